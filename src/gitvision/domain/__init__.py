from .context import RepositoryContext
from .errors import (
    ConfigurationError,
    GitVisionError,
    PersistenceError,
    VcsQueryError,
)
from .models import (
    SENTINEL_DATE,
    SENTINEL_HASH,
    UNCOMMITTED_MESSAGE,
    Commit,
    HistoryEntry,
    make_label,
)

__all__ = [
    "Commit",
    "ConfigurationError",
    "GitVisionError",
    "HistoryEntry",
    "PersistenceError",
    "RepositoryContext",
    "SENTINEL_DATE",
    "SENTINEL_HASH",
    "UNCOMMITTED_MESSAGE",
    "VcsQueryError",
    "make_label",
]
