"""Identifier Store: the durable log of slugs held by each subject."""

import logging
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session

from .config import SlugConfig
from .models import SlugRecord, serialize_scope, subject_key

logger = logging.getLogger(__name__)


class IdentifierStore:
    """Append-mostly log of slug records for one subject type.

    Rows are keyed by ``(subject_type, scope, slug)`` and ordered by
    insertion; the newest row of a subject is its current slug.
    """

    def __init__(self, subject_type: str, config: SlugConfig):
        self.subject_type = subject_type
        self.config = config

    def _scope(self, subject) -> str:
        return serialize_scope(subject, self.config.scope_columns)

    def _subject_query(self, session: Session, subject):
        return self._records_query(session, subject_key(subject))

    def _records_query(self, session: Session, subject_id):
        return session.query(SlugRecord).filter(
            SlugRecord.subject_type == self.subject_type,
            SlugRecord.subject_id == str(subject_id)
        )

    def records_for(self, session: Session, subject_id) -> List[SlugRecord]:
        """All records of the subject with key ``subject_id``, newest first."""
        with session.no_autoflush:
            return self._records_query(session, subject_id).order_by(SlugRecord.id.desc()).all()

    def history(self, session: Session, subject) -> List[SlugRecord]:
        """All records of a subject, newest first."""
        key = subject_key(subject)
        if key is None:
            return []
        return self.records_for(session, key)

    def most_recent(self, session: Session, subject) -> Optional[str]:
        """Slug text of the subject's newest record, or None."""
        if subject_key(subject) is None:
            return None
        with session.no_autoflush:
            record = self._subject_query(session, subject).order_by(SlugRecord.id.desc()).first()
        return record.slug if record else None

    def record(self, session: Session, subject, slug: str) -> Optional[SlugRecord]:
        """Insert a record unless the subject's newest record already holds ``slug``.

        Returns:
            The new SlugRecord, or None when nothing was written
        """
        if self.most_recent(session, subject) == slug:
            return None

        record = SlugRecord(
            subject_type=self.subject_type,
            subject_id=str(subject_key(subject)),
            scope=self._scope(subject),
            slug=slug,
        )
        session.add(record)
        logger.debug(f"Recorded slug {slug!r} for {self.subject_type}#{record.subject_id}")
        return record

    def find_by_slug(self, session: Session, subject_type: str, slug: str,
                     scope: Optional[str] = None) -> List[str]:
        """Subject ids that have held ``slug``, newest first.

        Scope is ignored unless given explicitly.
        """
        query = session.query(SlugRecord.subject_id).filter(
            SlugRecord.subject_type == subject_type,
            SlugRecord.slug == slug
        )
        if scope is not None:
            query = query.filter(SlugRecord.scope == scope)
        return [row.subject_id for row in query.order_by(SlugRecord.id.desc()).all()]

    def lock(self, session: Session, subject, slug: str) -> List[SlugRecord]:
        """Select the rows holding ``(type, scope, slug)`` with a row lock."""
        with session.no_autoflush:
            return session.query(SlugRecord).filter(
                SlugRecord.subject_type == self.subject_type,
                SlugRecord.scope == self._scope(subject),
                SlugRecord.slug == slug
            ).with_for_update().all()

    def delete_where(self, session: Session, subject, slug: str) -> int:
        """Delete rows of *other* subjects holding ``(type, scope, slug)``.

        The calling subject's own rows are never touched.

        Returns:
            Number of rows deleted
        """
        query = session.query(SlugRecord).filter(
            SlugRecord.subject_type == self.subject_type,
            SlugRecord.scope == self._scope(subject),
            SlugRecord.slug == slug
        )
        key = subject_key(subject)
        if key is not None:
            query = query.filter(SlugRecord.subject_id != str(key))
        deleted = query.delete(synchronize_session="fetch")
        if deleted:
            logger.info(f"Reclaimed slug {slug!r} for {self.subject_type}: cleared {deleted} stale record(s)")
        return deleted

    def purge(self, connection: Connection, subject_id) -> None:
        """Delete every record of a subject; called when the subject is deleted."""
        connection.execute(
            delete(SlugRecord).where(
                SlugRecord.subject_type == self.subject_type,
                SlugRecord.subject_id == str(subject_id)
            )
        )
