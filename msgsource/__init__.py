"""Database backed message catalogues."""

from msgsource.cache import MessageCache, NullCache
from msgsource.core.repository import CatalogueRepository, CatalogueStore
from msgsource.exceptions import MsgSourceError, StorageError
from msgsource.source import MessageSource

__version__ = "0.1.0"

__all__ = [
    "CatalogueRepository",
    "CatalogueStore",
    "MessageCache",
    "MessageSource",
    "MsgSourceError",
    "NullCache",
    "StorageError",
]
