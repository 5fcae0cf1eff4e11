"""Membership model."""

from sqlalchemy import Column, ForeignKey, Uuid
from sqlalchemy import Enum as SQLEnum

from orgdir.models.base import BaseModel
from orgdir.models.enums import MembershipRole


class Membership(BaseModel):
    """Links a user to an organization with a role."""

    __tablename__ = "memberships"

    organization_guid = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.guid"), nullable=False, index=True
    )
    user_guid = Column(Uuid(as_uuid=True), ForeignKey("users.guid"), nullable=False, index=True)
    role = Column(
        SQLEnum(
            MembershipRole,
            name="membership_role",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=MembershipRole.MEMBER,
    )
    created_by_guid = Column(Uuid(as_uuid=True), ForeignKey("users.guid"), nullable=False)

    def __repr__(self) -> str:
        return f"<Membership(user_guid={self.user_guid}, role={self.role})>"
