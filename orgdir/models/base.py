"""Base SQLAlchemy model with UUID primary key, timestamps and soft delete."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Uuid, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(UTC)


class BaseModel(Base):
    """Base model with UUID primary key, timestamps and soft-delete columns.

    Rows are never physically removed: deletion sets ``deleted_at`` and every
    read filters on ``deleted_at IS NULL``.
    """

    __abstract__ = True

    guid = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    created_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by_guid = Column(Uuid(as_uuid=True), nullable=True)
