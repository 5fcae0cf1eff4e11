"""Service model."""

from sqlalchemy import Column, ForeignKey, String, Uuid

from orgdir.models.base import BaseModel


class Service(BaseModel):
    """API service published by an organization."""

    __tablename__ = "services"

    organization_guid = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.guid"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    key = Column(String(255), nullable=False)
