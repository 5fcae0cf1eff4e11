"""Enumerations for membership roles, visibility and audit actions."""

from enum import Enum


class MembershipRole(str, Enum):
    """Role a user holds within an organization."""

    ADMIN = "admin"
    MEMBER = "member"


class Visibility(str, Enum):
    """Who can see an organization.

    PUBLIC organizations are visible to everyone; ORGANIZATION restricts
    visibility to members.
    """

    PUBLIC = "public"
    ORGANIZATION = "organization"


class AuditAction(str, Enum):
    """Audit action enumeration for organization changes."""

    ORG_CREATE = "organization.create"
    ORG_DELETE = "organization.delete"
    DOMAIN_CREATE = "domain.create"
    DOMAIN_DELETE = "domain.delete"
    METADATA_UPDATE = "metadata.update"
