"""SQLAlchemy models."""

from orgdir.models.audit_event import AuditEvent
from orgdir.models.base import Base, BaseModel
from orgdir.models.enums import AuditAction, MembershipRole, Visibility
from orgdir.models.membership import Membership
from orgdir.models.organization import Organization, OrganizationDomain, OrganizationMetadata
from orgdir.models.service import Service
from orgdir.models.user import User

__all__ = [
    "Base",
    "BaseModel",
    "AuditAction",
    "MembershipRole",
    "Visibility",
    "AuditEvent",
    "Membership",
    "Organization",
    "OrganizationDomain",
    "OrganizationMetadata",
    "Service",
    "User",
]
