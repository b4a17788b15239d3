"""Slug Assigner: turns a subject's candidate text into its stored slug."""

import logging
from typing import Optional

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import SlugConfig
from .conflicts import ConflictResolver
from .errors import ConflictError, ReservedWordError
from .identifiers import is_sequenced_variant
from .models import is_persisted, subject_key
from .store import IdentifierStore
from .utils.logging_config import get_subject_logger

logger = logging.getLogger(__name__)


def _is_unique_violation(error: IntegrityError) -> bool:
    return "unique" in str(error.orig).lower() or "duplicate" in str(error.orig).lower()


class SlugAssigner:
    """Normalizes, resolves and writes slugs for one model class.

    Every write happens in the caller's session and transaction. A unique
    violation surfaces as ConflictError and leaves the transaction for the
    caller to roll back.
    """

    def __init__(
        self,
        subject_type: str,
        config: SlugConfig,
        resolver: ConflictResolver,
        store: Optional[IdentifierStore] = None,
    ):
        self.subject_type = subject_type
        self.config = config
        self.resolver = resolver
        self.store = store
        self.log = get_subject_logger(__name__, subject_type)

    def normalize(self, raw: Optional[str]) -> str:
        if raw is None:
            return ""
        return self.config.normalizer(str(raw)) or ""

    def check_reserved(self, candidate: str) -> None:
        if candidate in self.config.reserved_words:
            raise ReservedWordError(candidate)

    def _flush(self, session: Session, slug: str) -> None:
        try:
            session.flush()
        except IntegrityError as e:
            if _is_unique_violation(e):
                self.log.warning(
                    f"Slug conflict for {self.subject_type} on {slug!r}: {e.orig}",
                    extra={"slug": slug},
                )
                raise ConflictError(self.subject_type, slug) from e
            raise

    def _check_scope_unchanged(self, subject) -> None:
        if not self.config.scoped or not is_persisted(subject):
            return
        attrs = inspect(subject).attrs
        changed = [name for name in self.config.scope_columns if attrs[name].history.has_changes()]
        if changed:
            raise ValueError(
                f"Scope of {self.subject_type}#{subject_key(subject)} cannot change on save: {', '.join(changed)}"
            )

    def _live_holds(self, subject, candidate: str) -> bool:
        state = inspect(subject)
        unchanged = not state.attrs[self.config.slug_column].history.has_changes()
        return is_persisted(subject) and unchanged and getattr(subject, self.config.slug_column) == candidate

    def _holds(self, session: Session, subject, candidate: str) -> bool:
        if not self._live_holds(subject, candidate):
            return False
        if self.config.history and self.store is not None:
            return self.store.most_recent(session, subject) == candidate
        return True

    def assign(self, session: Session, subject, candidate: Optional[str]) -> None:
        """Make ``candidate`` the subject's slug.

        Blank candidates are ignored and the previous slug is kept. Re-assigning
        the slug the subject already holds writes nothing.

        Raises:
            ReservedWordError: If the candidate is a reserved word
            ConflictError: If another writer holds the slug at flush time
            ValueError: If a scope column of a persisted subject changed
        """
        if candidate is None or not str(candidate).strip():
            logger.debug(f"Blank slug candidate for {self.subject_type}, keeping previous slug")
            return
        self.check_reserved(candidate)
        self._check_scope_unchanged(subject)

        if self._holds(session, subject, candidate):
            session.add(subject)
            return

        setattr(subject, self.config.slug_column, candidate)
        session.add(subject)
        self._flush(session, candidate)

        if not self.config.history or self.store is None:
            return
        if self.store.most_recent(session, subject) == candidate:
            # Live column was out of step with the newest record; only it needed writing
            return

        # Lock the holders of (type, scope, slug) before clearing them so a
        # concurrent assigner cannot slip in between check and delete.
        held = self.store.lock(session, subject, candidate)
        if held:
            own_key = str(subject_key(subject))
            own = [record for record in held if record.subject_id == own_key]
            self.store.delete_where(session, subject, candidate)
            for record in own:
                # Reverting to an old slug: re-insert so it becomes the newest row
                session.delete(record)
            self._flush(session, candidate)

        self.store.record(session, subject, candidate)
        self._flush(session, candidate)
        self.log.info(
            f"Assigned slug {candidate!r} to {self.subject_type}#{subject_key(subject)}",
            extra={"subject_id": subject_key(subject), "slug": candidate},
        )

    def candidate_for(self, subject, force: bool = False) -> Optional[str]:
        """Pick the slug candidate for a save.

        An explicitly changed slug wins and is used verbatim. Otherwise the
        normalized source attribute is used when the slug is empty, the source
        changed or ``force`` is set; failing that the current slug stands.
        """
        state = inspect(subject)
        current = getattr(subject, self.config.slug_column)

        if current and state.attrs[self.config.slug_column].history.has_changes():
            return str(current).strip()
        if self.config.source_column is None:
            return current

        source_changed = state.attrs[self.config.source_column].history.has_changes()
        if force or not current or (source_changed and is_persisted(subject)):
            return self.normalize(getattr(subject, self.config.source_column))
        return current

    def save(self, session: Session, subject, force: bool = False) -> Optional[str]:
        """Generate (when needed) and assign the subject's slug.

        Returns:
            The subject's slug after the save
        """
        self._check_scope_unchanged(subject)
        candidate = self.candidate_for(subject, force)

        if not candidate:
            current = getattr(subject, self.config.slug_column)
            logger.debug(f"Nothing to slug for {self.subject_type}#{subject_key(subject)}")
            session.add(subject)
            self._flush(session, current or "")
            return current

        self.check_reserved(candidate)

        committed = self._committed_slug(subject)
        if is_sequenced_variant(committed, candidate, self.config.sequence_separator):
            # Already holds this candidate or one of its sequenced forms
            slug = committed
        else:
            slug = self.resolver.resolve(session, subject, candidate)

        self.assign(session, subject, slug)
        return getattr(subject, self.config.slug_column)

    def _committed_slug(self, subject) -> Optional[str]:
        """Slug value as last loaded from the database."""
        if not is_persisted(subject):
            return None
        history = inspect(subject).attrs[self.config.slug_column].history
        if history.deleted:
            return history.deleted[0]
        if history.added:
            return None
        return getattr(subject, self.config.slug_column)
