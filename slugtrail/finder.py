"""Resolver Chain: turn a lookup token back into a subject.

Tiers, first hit wins:

1. exact match on the live slug column
2. slug history (History only, skipped for key-shaped tokens)
3. primary key

A miss is an ordinary outcome and returns None.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from .config import SlugConfig
from .errors import SubjectNotFoundError
from .models import coerce_key, primary_key_column, serialize_scope_values, subject_key
from .store import IdentifierStore

logger = logging.getLogger(__name__)


class ResolverChain:
    """Ordered lookup of subjects by current slug, old slug or primary key."""

    def __init__(self, model, subject_type: str, config: SlugConfig,
                 store: Optional[IdentifierStore] = None):
        self.model = model
        self.subject_type = subject_type
        self.config = config
        self.store = store

    def _scoped(self, query, scope: Optional[Dict[str, Any]]):
        if not scope:
            return query
        for column, value in scope.items():
            query = query.filter(getattr(self.model, column) == value)
        return query

    def by_current_slug(self, session: Session, token: Any, scope: Optional[Dict[str, Any]] = None):
        slug_column = getattr(self.model, self.config.slug_column)
        query = self._scoped(session.query(self.model).filter(slug_column == str(token)), scope)
        return query.order_by(primary_key_column(self.model)).first()

    def by_old_slug(self, session: Session, token: Any, scope: Optional[Dict[str, Any]] = None):
        if not self.config.history or self.store is None:
            return None
        serialized = None
        if scope and self.config.scoped:
            serialized = serialize_scope_values(scope, self.config.scope_columns)
        for subject_id in self.store.find_by_slug(session, self.subject_type, str(token), scope=serialized):
            subject = self.by_key(session, subject_id, scope)
            if subject is not None:
                return subject
        return None

    def by_key(self, session: Session, token: Any, scope: Optional[Dict[str, Any]] = None):
        key = coerce_key(self.model, token)
        if key is None:
            return None
        subject = session.get(self.model, key)
        if subject is not None and scope:
            if any(getattr(subject, column) != value for column, value in scope.items()):
                return None
        return subject

    def find(self, session: Session, token: Any, scope: Optional[Dict[str, Any]] = None):
        """Load the subject a token refers to, or None."""
        if token is None:
            return None

        subject = self.by_current_slug(session, token, scope)
        if subject is not None:
            return subject

        if not self.config.unfriendly_id(token):
            subject = self.by_old_slug(session, token, scope)
            if subject is not None:
                logger.debug(f"Resolved {self.subject_type} {token!r} through slug history")
                return subject

        subject = self.by_key(session, token, scope)
        if subject is None:
            logger.debug(f"No {self.subject_type} found for {token!r}")
        return subject

    def resolve(self, session: Session, token: Any, scope: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """Primary key of the subject a token refers to, or None."""
        subject = self.find(session, token, scope)
        if subject is None:
            return None
        return subject_key(subject)

    def find_or_raise(self, session: Session, token: Any, scope: Optional[Dict[str, Any]] = None):
        subject = self.find(session, token, scope)
        if subject is None:
            raise SubjectNotFoundError(self.subject_type, token)
        return subject

    def exists(self, session: Session, token: Any, scope: Optional[Dict[str, Any]] = None) -> bool:
        return self.find(session, token, scope) is not None

    def found_by_stale_slug(self, subject, token: Any) -> bool:
        """True when ``token`` is not the subject's current slug.

        Callers use this to redirect old links to the canonical one.
        """
        return str(token) != getattr(subject, self.config.slug_column)
