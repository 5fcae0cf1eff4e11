"""AuditEvent model."""

from sqlalchemy import Column, ForeignKey, Text, Uuid
from sqlalchemy import Enum as SQLEnum

from orgdir.models.base import BaseModel
from orgdir.models.enums import AuditAction


class AuditEvent(BaseModel):
    """Append-only log of actions taken on an organization.

    Records who did what to which organization, with a human readable
    message. Rows are never updated.
    """

    __tablename__ = "audit_events"

    organization_guid = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.guid"), nullable=False, index=True
    )
    user_guid = Column(Uuid(as_uuid=True), ForeignKey("users.guid"), nullable=False, index=True)
    action = Column(
        SQLEnum(
            AuditAction,
            name="audit_action",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    message = Column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<AuditEvent(guid={self.guid}, action={self.action})>"
