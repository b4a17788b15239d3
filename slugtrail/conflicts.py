"""Conflict Resolver: find the next free sequenced variant of a candidate slug.

Conflicts are the slugs of the same subject type (and scope) that equal the
candidate or extend it with ``separator + <digits>``. They are read longest
first, then in descending text order, so the first row seen carries the
highest sequence number: ``apple--10`` is longer than ``apple--9``, and for
equal lengths the text order matches the numeric order.

The read is not locked. Two writers can compute the same value; the unique
constraint at write time decides, and the loser gets a ConflictError.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .config import SlugConfig
from .identifiers import is_sequenced_variant, sequence_suffix
from .models import SlugRecord, is_persisted, primary_key_column, serialize_scope, subject_key

logger = logging.getLogger(__name__)


class ConflictResolver:
    """Computes a collision-free slug for a subject."""

    def __init__(self, model, subject_type: str, config: SlugConfig):
        self.model = model
        self.subject_type = subject_type
        self.config = config

    @property
    def separator(self) -> str:
        return self.config.sequence_separator

    def _history_query(self, session: Session, subject, candidate: str):
        column = SlugRecord.slug
        query = session.query(column).filter(
            SlugRecord.subject_type == self.subject_type,
            or_(column == candidate, column.startswith(f"{candidate}{self.separator}", autoescape=True))
        )
        if self.config.scoped:
            query = query.filter(SlugRecord.scope == serialize_scope(subject, self.config.scope_columns))
        if is_persisted(subject):
            query = query.filter(SlugRecord.subject_id != str(subject_key(subject)))
        return query, column

    def _live_query(self, session: Session, subject, candidate: str):
        column = getattr(self.model, self.config.slug_column)
        query = session.query(column).filter(
            or_(column == candidate, column.startswith(f"{candidate}{self.separator}", autoescape=True))
        )
        for scope_column in self.config.scope_columns:
            query = query.filter(getattr(self.model, scope_column) == getattr(subject, scope_column))
        if is_persisted(subject):
            query = query.filter(primary_key_column(self.model) != subject_key(subject))
        return query, column

    def conflicts(self, session: Session, subject, candidate: str) -> List[str]:
        """Slugs colliding with ``candidate``, highest sequence first."""
        if self.config.history:
            query, column = self._history_query(session, subject, candidate)
        else:
            query, column = self._live_query(session, subject, candidate)
        query = query.order_by(func.length(column).desc(), column.desc())

        with session.no_autoflush:
            rows = query.all()
        return [
            slug for (slug,) in rows
            if is_sequenced_variant(slug, candidate, self.separator)
        ]

    def next_slug(self, candidate: str, conflict: Optional[str]) -> str:
        """Slug following the highest conflict."""
        if conflict is None:
            return candidate
        suffix = sequence_suffix(conflict, candidate, self.separator)
        if not suffix or not suffix.isdigit():
            return f"{candidate}{self.separator}2"
        return f"{candidate}{self.separator}{int(suffix) + 1}"

    def resolve(self, session: Session, subject, candidate: str) -> str:
        """Return ``candidate`` or its next unused sequenced variant."""
        conflicts = self.conflicts(session, subject, candidate)
        slug = self.next_slug(candidate, conflicts[0] if conflicts else None)
        if slug != candidate:
            logger.debug(
                f"{self.subject_type} slug {candidate!r} taken "
                f"({len(conflicts)} conflict(s)), using {slug!r}"
            )
        return slug
