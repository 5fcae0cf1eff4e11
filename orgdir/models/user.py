"""User model."""

from sqlalchemy import Column, String

from orgdir.models.base import BaseModel


class User(BaseModel):
    """Person who creates, joins and administers organizations."""

    __tablename__ = "users"

    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<User(guid={self.guid}, email={self.email})>"
