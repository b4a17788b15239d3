"""Exceptions raised by slugtrail."""

from typing import Any, Optional


class SlugError(Exception):
    """Base class for slugtrail errors."""


class ConflictError(SlugError):
    """A slug unique constraint was violated at write time.

    Recoverable: resolve a fresh candidate and retry the unit of work.
    """

    def __init__(self, subject_type: str, slug: Optional[str], message: Optional[str] = None):
        self.subject_type = subject_type
        self.slug = slug
        super().__init__(message or f"Slug {slug!r} is already taken for {subject_type}")


class ReservedWordError(SlugError):
    """The candidate slug is a reserved word (e.g. 'new')."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"{slug!r} is reserved and cannot be used as a slug")


class SubjectNotFoundError(SlugError, LookupError):
    """No subject matched a lookup token."""

    def __init__(self, subject_type: str, token: Any):
        self.subject_type = subject_type
        self.token = token
        super().__init__(f"No {subject_type} found for {token!r}")
