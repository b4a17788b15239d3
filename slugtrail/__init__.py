"""slugtrail: unique, historied slugs for SQLAlchemy models.

Assigns human-readable slugs to records keyed by opaque primary keys, keeps
them unique under concurrent writers and remembers retired slugs so old links
keep resolving.
"""

from .assigner import SlugAssigner
from .config import Settings, SlugConfig, get_settings
from .conflicts import ConflictResolver
from .database import Database
from .errors import ConflictError, ReservedWordError, SlugError, SubjectNotFoundError
from .finder import ResolverChain
from .identifiers import is_unfriendly_id, slugify
from .manager import SlugManager
from .models import Base, SlugRecord
from .store import IdentifierStore

__version__ = "0.1.0"

__all__ = [
    # Facade
    "SlugManager",
    # Components
    "IdentifierStore",
    "ConflictResolver",
    "SlugAssigner",
    "ResolverChain",
    # Persistence
    "Base",
    "SlugRecord",
    "Database",
    # Configuration
    "Settings",
    "SlugConfig",
    "get_settings",
    # Normalization
    "slugify",
    "is_unfriendly_id",
    # Errors
    "SlugError",
    "ConflictError",
    "ReservedWordError",
    "SubjectNotFoundError",
]
