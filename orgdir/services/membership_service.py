"""Membership service for granting organization roles."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orgdir.models.enums import MembershipRole
from orgdir.models.membership import Membership


class MembershipService:
    """Creates and looks up memberships. Never commits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        created_by_guid: UUID,
        organization_guid: UUID,
        user_guid: UUID,
        role: MembershipRole,
    ) -> Membership:
        """Grant ``role`` on the organization to the user.

        Args:
            created_by_guid: User granting the role
            organization_guid: Organization to join
            user_guid: User receiving the role
            role: Role to grant

        Returns:
            Created Membership instance
        """
        membership = Membership(
            organization_guid=organization_guid,
            user_guid=user_guid,
            role=role,
            created_by_guid=created_by_guid,
        )
        self.db.add(membership)
        await self.db.flush()
        return membership

    async def find_all(
        self,
        organization_guid: UUID | None = None,
        user_guid: UUID | None = None,
        role: MembershipRole | None = None,
    ) -> list[Membership]:
        stmt = select(Membership).where(Membership.deleted_at.is_(None))
        if organization_guid is not None:
            stmt = stmt.where(Membership.organization_guid == organization_guid)
        if user_guid is not None:
            stmt = stmt.where(Membership.user_guid == user_guid)
        if role is not None:
            stmt = stmt.where(Membership.role == role)
        result = await self.db.execute(stmt.order_by(Membership.created_at))
        return list(result.scalars().all())

    async def has_role(
        self, organization_guid: UUID, user_guid: UUID, role: MembershipRole
    ) -> bool:
        memberships = await self.find_all(
            organization_guid=organization_guid, user_guid=user_guid, role=role
        )
        return bool(memberships)
