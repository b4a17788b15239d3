"""Database models for slugtrail."""

from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import Column, DateTime, Index, Integer, String, UniqueConstraint, inspect
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SlugRecord(Base):
    """Table of every slug ever assigned to a subject.

    One row per slug a subject has held, newest last by ``id``. A
    ``(subject_type, scope, slug)`` tuple is held by at most one row.
    """

    __tablename__ = "slugs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Polymorphic owner: type tag + key stored as text
    subject_type = Column(String(64), nullable=False)
    subject_id = Column(String(64), nullable=False)

    # Serialized scope, "" when the model is not scoped
    scope = Column(String(255), nullable=False, default="", server_default="")

    slug = Column(String(255), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("subject_type", "scope", "slug", name="uq_slugs_type_scope_slug"),
        Index("ix_slugs_subject", "subject_type", "subject_id", "created_at"),
    )

    def __repr__(self):
        return f"<SlugRecord {self.subject_type}#{self.subject_id} {self.slug!r} scope={self.scope!r}>"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON export."""
        return {
            "id": self.id,
            "subject_type": self.subject_type,
            "subject_id": self.subject_id,
            "scope": self.scope,
            "slug": self.slug,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# ============================================================================
# Subject helpers
# ============================================================================


def primary_key_column(model) -> Column:
    """The single primary key column of a mapped model."""
    columns = inspect(model).primary_key
    if len(columns) != 1:
        raise ValueError(f"{model.__name__} must have exactly one primary key column")
    return columns[0]


def subject_key(subject) -> Optional[Any]:
    """Primary key value of a subject, or None before it is flushed."""
    state = inspect(subject)
    if state.identity is not None:
        return state.identity[0]
    return state.mapper.primary_key_from_instance(subject)[0]


def is_persisted(subject) -> bool:
    state = inspect(subject)
    return state.persistent or state.detached


def coerce_key(model, value: Any) -> Optional[Any]:
    """Convert ``value`` to the Python type of the model's primary key.

    Returns None when the value cannot be represented as a key.
    """
    try:
        python_type = primary_key_column(model).type.python_type
    except NotImplementedError:
        return value
    if isinstance(value, python_type):
        return value
    try:
        return python_type(value)
    except (TypeError, ValueError):
        return None


def serialize_scope(subject, scope_columns: Sequence[str]) -> str:
    """Serialize the scope columns of a subject as ``"col:value,col:value"``."""
    if not scope_columns:
        return ""
    return ",".join(f"{column}:{getattr(subject, column)}" for column in sorted(scope_columns))


def serialize_scope_values(values: dict, scope_columns: Sequence[str]) -> str:
    """Same serialization as ``serialize_scope`` for a plain mapping of values."""
    if not scope_columns:
        return ""
    return ",".join(f"{column}:{values[column]}" for column in sorted(scope_columns))
