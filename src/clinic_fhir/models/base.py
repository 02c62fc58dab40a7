"""Base model classes for database models."""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, Query, Session, mapped_column


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for all tables."""


class TimestampMixin:
    """Mixin for adding timestamp fields to models."""

    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    date_changed: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=utcnow
    )


class SoftDeleteMixin:
    """Mixin for soft delete functionality."""

    voided: Mapped[bool] = mapped_column(default=False, nullable=False)
    date_voided: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    void_reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def void(self, reason: Optional[str] = None) -> None:
        """Soft delete this record."""
        self.voided = True
        self.date_voided = utcnow()
        self.void_reason = reason

    @classmethod
    def query_active(cls, session: Session) -> Query:
        """Query only active (non-voided) records."""
        return session.query(cls).filter(cls.voided.is_(False))  # type: ignore[attr-defined]


class BaseModel(Base):
    """Base model class with an integer key and a public uuid."""

    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(
        String(38),
        unique=True,
        nullable=False,
        index=True,
        default=lambda: str(uuid.uuid4()),
    )

    def __init__(self, **kwargs: Any) -> None:
        """Initialize base model."""
        super().__init__(**kwargs)
        if not self.uuid:
            self.uuid = str(uuid.uuid4())

    def __repr__(self) -> str:
        """Short representation with the uuid."""
        return f"<{self.__class__.__name__} {self.uuid}>"
