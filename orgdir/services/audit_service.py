"""Audit service for recording organization actions."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orgdir.models.audit_event import AuditEvent
from orgdir.models.enums import AuditAction


class AuditService:
    """Service for appending and reading audit trail entries."""

    def __init__(self, db: AsyncSession):
        """Initialize audit service.

        Args:
            db: Database session
        """
        self.db = db

    async def log(
        self,
        organization_guid: UUID,
        user_guid: UUID,
        action: AuditAction,
        message: str,
    ) -> AuditEvent:
        """Append an audit entry to the current transaction.

        Args:
            organization_guid: Organization acted upon
            user_guid: User performing the action
            action: Action being performed
            message: Human readable description

        Returns:
            Created AuditEvent instance
        """
        audit_event = AuditEvent(
            organization_guid=organization_guid,
            user_guid=user_guid,
            action=action,
            message=message,
        )
        self.db.add(audit_event)
        await self.db.flush()
        return audit_event

    async def list_for_organization(self, organization_guid: UUID) -> list[AuditEvent]:
        result = await self.db.execute(
            select(AuditEvent)
            .where(
                AuditEvent.organization_guid == organization_guid,
                AuditEvent.deleted_at.is_(None),
            )
            .order_by(AuditEvent.created_at)
        )
        return list(result.scalars().all())
