"""Organization, domain and metadata models."""

from sqlalchemy import Column, ForeignKey, Index, String, Uuid, func
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from orgdir.models.base import BaseModel
from orgdir.models.enums import Visibility


class Organization(BaseModel):
    """Top-level tenant entity.

    ``key`` is the URL-safe identifier and ``name`` the display name; both
    are unique among non-deleted organizations (``name`` compared on
    ``lower(trim(name))``). Storage enforces this with partial unique
    indexes so concurrent creations cannot both commit.
    """

    __tablename__ = "organizations"

    name = Column(String(255), nullable=False)
    key = Column(String(255), nullable=False)
    created_by_guid = Column(Uuid(as_uuid=True), ForeignKey("users.guid"), nullable=False)

    # Only non-deleted rows; writes go through the repository.
    domains = relationship(
        "OrganizationDomain",
        primaryjoin=(
            "and_(Organization.guid == OrganizationDomain.organization_guid, "
            "OrganizationDomain.deleted_at.is_(None))"
        ),
        order_by="OrganizationDomain.domain",
        viewonly=True,
        lazy="selectin",
    )
    organization_metadata = relationship(
        "OrganizationMetadata",
        primaryjoin=(
            "and_(Organization.guid == OrganizationMetadata.organization_guid, "
            "OrganizationMetadata.deleted_at.is_(None))"
        ),
        uselist=False,
        viewonly=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Organization(guid={self.guid}, key={self.key})>"


class OrganizationDomain(BaseModel):
    """Internet domain owned by an organization, e.g. ``apidoc.me``."""

    __tablename__ = "organization_domains"

    organization_guid = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.guid"), nullable=False, index=True
    )
    domain = Column(String(255), nullable=False, index=True)
    created_by_guid = Column(Uuid(as_uuid=True), ForeignKey("users.guid"), nullable=False)

    def __repr__(self) -> str:
        return f"<OrganizationDomain(domain={self.domain}, organization_guid={self.organization_guid})>"


class OrganizationMetadata(BaseModel):
    """Optional one-to-one extension of an organization.

    Replaced as a unit: the active row is soft-deleted and a new one inserted.
    """

    __tablename__ = "organization_metadata"

    organization_guid = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.guid"), nullable=False, index=True
    )
    visibility = Column(
        SQLEnum(
            Visibility,
            name="visibility",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    package_name = Column(String(255), nullable=True)
    created_by_guid = Column(Uuid(as_uuid=True), ForeignKey("users.guid"), nullable=False)


_organizations = Organization.__table__
_metadata_rows = OrganizationMetadata.__table__

Index(
    "uq_organizations_key_active",
    _organizations.c.key,
    unique=True,
    postgresql_where=_organizations.c.deleted_at.is_(None),
    sqlite_where=_organizations.c.deleted_at.is_(None),
)
Index(
    "uq_organizations_name_active",
    func.lower(func.trim(_organizations.c.name)),
    unique=True,
    postgresql_where=_organizations.c.deleted_at.is_(None),
    sqlite_where=_organizations.c.deleted_at.is_(None),
)
Index(
    "uq_organization_metadata_active",
    _metadata_rows.c.organization_guid,
    unique=True,
    postgresql_where=_metadata_rows.c.deleted_at.is_(None),
    sqlite_where=_metadata_rows.c.deleted_at.is_(None),
)
