"""Authorization scopes for organization queries.

A scope contributes one boolean SQLAlchemy clause to organization queries.
The clause carries its own bound parameters, so callers never splice SQL
text together.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import ColumnElement, or_, select

from orgdir.models.enums import Visibility
from orgdir.models.membership import Membership
from orgdir.models.organization import Organization, OrganizationMetadata


def _public_organization_guids():
    return select(OrganizationMetadata.organization_guid).where(
        OrganizationMetadata.deleted_at.is_(None),
        OrganizationMetadata.visibility == Visibility.PUBLIC,
    )


def member_organization_guids(user_guid: UUID):
    """Subquery of organizations where the user holds a non-deleted membership."""
    return select(Membership.organization_guid).where(
        Membership.deleted_at.is_(None),
        Membership.user_guid == user_guid,
    )


class Authorization(ABC):
    """Restricts which organizations a caller can see."""

    @abstractmethod
    def organization_filter(self) -> ColumnElement[bool] | None:
        """Return the clause to AND into organization queries, or None for no restriction."""


class AllAuthorization(Authorization):
    """Unrestricted access, for internal lookups and uniqueness checks."""

    def organization_filter(self) -> ColumnElement[bool] | None:
        return None


class PublicAuthorization(Authorization):
    """Anonymous access: only organizations with public visibility."""

    def organization_filter(self) -> ColumnElement[bool] | None:
        return Organization.guid.in_(_public_organization_guids())


@dataclass(frozen=True)
class UserAuthorization(Authorization):
    """Organizations the user is a member of, plus public ones."""

    user_guid: UUID

    def organization_filter(self) -> ColumnElement[bool] | None:
        return or_(
            Organization.guid.in_(member_organization_guids(self.user_guid)),
            Organization.guid.in_(_public_organization_guids()),
        )
