"""Organization persistence: scoped reads and row-level writes.

The repository never commits. Writes are flushed into the caller's session so
that the service can group them into a single transaction.
"""
from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from orgdir.models.base import utcnow
from orgdir.models.organization import Organization, OrganizationDomain, OrganizationMetadata
from orgdir.models.service import Service
from orgdir.models.user import User
from orgdir.schemas.organization import OrganizationMetadataForm
from orgdir.services.authorization import (
    AllAuthorization,
    Authorization,
    UserAuthorization,
    member_organization_guids,
)

DEFAULT_LIMIT = 25

_EMPTY_METADATA_FORM = OrganizationMetadataForm()


def email_domain(email: str) -> str | None:
    """Return the lowercased domain of an email address.

    Returns None unless the address contains exactly one ``@`` followed by a
    non-empty domain.
    """
    parts = email.split("@")
    if len(parts) != 2:
        return None
    domain = parts[1].strip().lower()
    return domain or None


class OrganizationRepository:
    """Reads and writes organization rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_all(
        self,
        authorization: Authorization,
        guid: UUID | None = None,
        user_guid: UUID | None = None,
        service_guid: UUID | None = None,
        key: str | None = None,
        name: str | None = None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> list[Organization]:
        """Find non-deleted organizations visible under ``authorization``.

        Filters combine conjunctively. ``key`` and ``name`` are compared on
        lower(trim()). Results are ordered by lowercased name.

        Args:
            authorization: Scope restricting visible organizations
            guid: Organization guid
            user_guid: Only organizations where this user is a member
            service_guid: Only the organization owning this service
            key: Organization key
            name: Organization name
            limit: Maximum number of rows
            offset: Rows to skip

        Returns:
            Matching organizations with domains and metadata loaded
        """
        if limit < 0 or offset < 0:
            raise ValueError("limit and offset must be non-negative")

        stmt = select(Organization).where(Organization.deleted_at.is_(None))

        scope = authorization.organization_filter()
        if scope is not None:
            stmt = stmt.where(scope)
        if user_guid is not None:
            stmt = stmt.where(Organization.guid.in_(member_organization_guids(user_guid)))
        if service_guid is not None:
            stmt = stmt.where(
                Organization.guid.in_(
                    select(Service.organization_guid).where(
                        Service.deleted_at.is_(None),
                        Service.guid == service_guid,
                    )
                )
            )
        if guid is not None:
            stmt = stmt.where(Organization.guid == guid)
        if key is not None:
            stmt = stmt.where(Organization.key == func.lower(func.trim(key)))
        if name is not None:
            stmt = stmt.where(
                func.lower(func.trim(Organization.name)) == func.lower(func.trim(name))
            )

        stmt = (
            stmt.order_by(func.lower(Organization.name))
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_by_guid(self, authorization: Authorization, guid: UUID) -> Organization | None:
        organizations = await self.find_all(authorization, guid=guid, limit=1)
        return organizations[0] if organizations else None

    async def find_by_key(self, authorization: Authorization, key: str) -> Organization | None:
        organizations = await self.find_all(authorization, key=key, limit=1)
        return organizations[0] if organizations else None

    async def find_by_name(self, authorization: Authorization, name: str) -> Organization | None:
        organizations = await self.find_all(authorization, name=name, limit=1)
        return organizations[0] if organizations else None

    async def find_by_user_and_guid(self, user: User, guid: UUID) -> Organization | None:
        return await self.find_by_guid(UserAuthorization(user.guid), guid)

    async def find_by_user_and_key(self, user: User, key: str) -> Organization | None:
        return await self.find_by_key(UserAuthorization(user.guid), key)

    async def find_domains(
        self,
        organization_guid: UUID | None = None,
        domain: str | None = None,
    ) -> list[OrganizationDomain]:
        """Find non-deleted domain rows, optionally by owner and/or domain."""
        stmt = select(OrganizationDomain).where(OrganizationDomain.deleted_at.is_(None))
        if organization_guid is not None:
            stmt = stmt.where(OrganizationDomain.organization_guid == organization_guid)
        if domain is not None:
            stmt = stmt.where(func.lower(OrganizationDomain.domain) == domain.strip().lower())
        result = await self.db.execute(stmt.order_by(OrganizationDomain.domain))
        return list(result.scalars().all())

    async def find_by_email_domain(self, email: str) -> Organization | None:
        """Resolve the organization owning the domain of ``email``.

        The lookup is not scoped by caller identity.
        """
        domain = email_domain(email)
        if domain is None:
            return None

        rows = await self.find_domains(domain=domain)
        for row in rows:
            organization = await self.find_by_guid(AllAuthorization(), row.organization_guid)
            if organization is not None:
                return organization
        return None

    async def insert(
        self,
        created_by: User,
        organization: Organization,
        domains: list[str],
        metadata_form: OrganizationMetadataForm | None,
    ) -> Organization:
        """Insert the organization row, its domain rows and optional metadata row.

        The metadata row is written only when the form differs from the empty
        form. Rows are flushed, not committed. The returned organization has
        ``domains`` and ``organization_metadata`` populated.
        """
        organization.created_by_guid = created_by.guid
        self.db.add(organization)
        await self.db.flush()

        domain_rows = [
            OrganizationDomain(
                organization_guid=organization.guid,
                domain=domain,
                created_by_guid=created_by.guid,
            )
            for domain in domains
        ]
        self.db.add_all(domain_rows)

        metadata_row = None
        if metadata_form is not None and metadata_form != _EMPTY_METADATA_FORM:
            metadata_row = self._metadata_row(created_by, organization, metadata_form)
            self.db.add(metadata_row)

        await self.db.flush()

        set_committed_value(
            organization, "domains", sorted(domain_rows, key=lambda row: row.domain)
        )
        set_committed_value(organization, "organization_metadata", metadata_row)
        return organization

    async def add_domain(
        self, created_by: User, organization: Organization, domain: str
    ) -> OrganizationDomain:
        row = OrganizationDomain(
            organization_guid=organization.guid,
            domain=domain,
            created_by_guid=created_by.guid,
        )
        self.db.add(row)
        await self.db.flush()
        return row

    async def soft_delete_domain(self, deleted_by: User, row: OrganizationDomain) -> None:
        row.deleted_at = utcnow()
        row.deleted_by_guid = deleted_by.guid
        await self.db.flush()

    async def replace_metadata(
        self,
        user: User,
        organization: Organization,
        form: OrganizationMetadataForm,
    ) -> OrganizationMetadata | None:
        """Soft-delete the active metadata row and insert one built from ``form``.

        An empty form leaves the organization without metadata.
        """
        await self._soft_delete_rows(OrganizationMetadata, user, organization.guid)
        if form == _EMPTY_METADATA_FORM:
            return None

        row = self._metadata_row(user, organization, form)
        self.db.add(row)
        await self.db.flush()
        return row

    async def soft_delete(self, deleted_by: User, organization: Organization) -> None:
        """Soft-delete the organization together with its domains and metadata."""
        await self._soft_delete_rows(OrganizationDomain, deleted_by, organization.guid)
        await self._soft_delete_rows(OrganizationMetadata, deleted_by, organization.guid)
        organization.deleted_at = utcnow()
        organization.deleted_by_guid = deleted_by.guid
        await self.db.flush()

    async def _soft_delete_rows(self, model, deleted_by: User, organization_guid: UUID) -> None:
        await self.db.execute(
            update(model)
            .where(model.organization_guid == organization_guid, model.deleted_at.is_(None))
            .values(deleted_at=utcnow(), deleted_by_guid=deleted_by.guid)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _metadata_row(
        user: User, organization: Organization, form: OrganizationMetadataForm
    ) -> OrganizationMetadata:
        return OrganizationMetadata(
            organization_guid=organization.guid,
            visibility=form.visibility,
            package_name=form.package_name.strip() if form.package_name else None,
            created_by_guid=user.guid,
        )
