"""Per-model facade wiring the slug components together."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from .assigner import SlugAssigner
from .config import SlugConfig
from .conflicts import ConflictResolver
from .finder import ResolverChain
from .models import SlugRecord, primary_key_column, subject_key
from .store import IdentifierStore

logger = logging.getLogger(__name__)


class SlugManager:
    """Slug support for one SQLAlchemy model class.

    Example:
        >>> posts = SlugManager(Post, SlugConfig(source_column="title", history=True))
        >>> posts.save(session, Post(title="Hello World"))
        'hello-world'
        >>> posts.find(session, "hello-world")
        <Post 1>
    """

    def __init__(self, model, config: Optional[SlugConfig] = None):
        self.model = model
        self.config = config or SlugConfig.from_settings()
        self.subject_type = self.config.subject_type or model.__name__

        self._check_columns()

        self.store = IdentifierStore(self.subject_type, self.config) if self.config.history else None
        self.resolver = ConflictResolver(model, self.subject_type, self.config)
        self.assigner = SlugAssigner(self.subject_type, self.config, self.resolver, self.store)
        self.chain = ResolverChain(model, self.subject_type, self.config, self.store)

        if self.store is not None:
            event.listen(model, "after_delete", self._purge_history)

        logger.debug(
            f"Slugs enabled for {self.subject_type} "
            f"(history={self.config.history}, scope={list(self.config.scope_columns)})"
        )

    def _check_columns(self) -> None:
        primary_key_column(self.model)
        attrs = inspect(self.model).attrs
        names = [self.config.slug_column, *self.config.scope_columns]
        if self.config.source_column:
            names.append(self.config.source_column)
        missing = [name for name in names if name not in attrs]
        if missing:
            raise ValueError(f"{self.model.__name__} has no attribute(s): {', '.join(missing)}")

    def _purge_history(self, mapper, connection, target) -> None:
        self.store.purge(connection, subject_key(target))

    def remove(self) -> None:
        """Unregister the delete listener."""
        if self.store is not None and event.contains(self.model, "after_delete", self._purge_history):
            event.remove(self.model, "after_delete", self._purge_history)

    # ========================================================================
    # Writing
    # ========================================================================

    def save(self, session: Session, subject, force: bool = False) -> Optional[str]:
        return self.assigner.save(session, subject, force=force)

    def assign(self, session: Session, subject, candidate: Optional[str]) -> None:
        self.assigner.assign(session, subject, candidate)

    # ========================================================================
    # Reading
    # ========================================================================

    def resolve(self, session: Session, token: Any, scope: Optional[Dict[str, Any]] = None):
        return self.chain.resolve(session, token, scope)

    def find(self, session: Session, token: Any, scope: Optional[Dict[str, Any]] = None):
        return self.chain.find(session, token, scope)

    def find_or_raise(self, session: Session, token: Any, scope: Optional[Dict[str, Any]] = None):
        return self.chain.find_or_raise(session, token, scope)

    def exists(self, session: Session, token: Any, scope: Optional[Dict[str, Any]] = None) -> bool:
        return self.chain.exists(session, token, scope)

    def history(self, session: Session, subject) -> List[SlugRecord]:
        if self.store is None:
            return []
        return self.store.history(session, subject)

    def current_slug(self, session: Session, subject) -> Optional[str]:
        """Most recent recorded slug with History, the slug attribute otherwise."""
        if self.store is not None:
            recorded = self.store.most_recent(session, subject)
            if recorded is not None:
                return recorded
        return getattr(subject, self.config.slug_column)

    def to_param(self, subject) -> Optional[str]:
        """URL parameter for a subject.

        An unsaved slug change is not addressable yet, so the previously
        persisted slug is returned in that case.
        """
        history = inspect(subject).attrs[self.config.slug_column].history
        if history.has_changes():
            previous = history.deleted[0] if history.deleted else None
            if previous:
                return previous
        slug = getattr(subject, self.config.slug_column)
        if slug:
            return slug
        key = subject_key(subject)
        return str(key) if key is not None else None
