"""
Message Source Module

MessageSource is the public entry point to the catalogue store:
- Resolve and validate catalogue variants
- Load catalogue tables, through the cache when one is attached
- Append untranslated messages, update and delete translations
- Touch the catalogue time and invalidate the cache after every change
"""

import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from msgsource.cache import MessageCache, NullCache, cache_key
from msgsource.core.repository import CatalogueRepository, CatalogueStore
from msgsource.exceptions import StorageError
from msgsource.logger import get_logger

from msgsource.source.loader import CatalogueTable, load_data
from msgsource.source.resolver import (
    CatalogueDetails,
    catalogue_variants,
    get_catalogue_details,
    is_valid_source,
    split_catalogue_name,
)

logger = get_logger(__name__)


class MessageSource:
    """
    Database backed message catalogues.

    Features:
    - Locale is an explicit argument of every call, falling back to the
      locale the source was created with
    - Update and delete succeed only when exactly one unit matched
    - Catalogue time and cache are only touched after a successful change
    """

    def __init__(self, store: Optional[CatalogueStore] = None,
                 cache: Optional[MessageCache] = None, locale: str = "en",
                 catalogue: str = "messages", author: str = ""):
        """
        Initialize message source.

        Args:
            store: Catalogue persistence, a ``CatalogueRepository`` by default
            cache: Cache invalidated after each change, no caching by default
            locale: Locale used when a call does not name one
            catalogue: Catalogue used when a call does not name one
            author: Recorded on every unit this source inserts or updates
        """
        self.store = store if store is not None else CatalogueRepository()
        self.cache = cache if cache is not None else NullCache()
        self.locale = locale
        self.catalogue = catalogue
        self.author = author
        self._untranslated: List[str] = []

    def _locale(self, locale: Optional[str]) -> str:
        # An empty locale addresses the bare catalogue name
        return locale if locale is not None else self.locale

    def _catalogue(self, catalogue: Optional[str]) -> str:
        return catalogue if catalogue is not None else self.catalogue

    # ============================================================
    # Reading
    # ============================================================

    def is_valid_source(self, variant: str) -> bool:
        """Check if a catalogue variant exists in the database."""
        return is_valid_source(self.store, variant)

    def get_last_modified(self, variant: str) -> int:
        """Last modified unix time of a catalogue variant, 0 when missing."""
        return self.store.catalogue_modified_at(variant)

    def load_data(self, variant: str) -> CatalogueTable:
        """Load the translation table for a variant straight from the database."""
        return load_data(self.store, variant)

    def get_catalogue(self, variant: str) -> Optional[Dict[str, Any]]:
        """Stored metadata of a catalogue variant, None when missing."""
        return self.store.get_catalogue(variant)

    def catalogues(self) -> List[Tuple[str, Optional[str]]]:
        """List ``(catalogue, locale)`` pairs for every stored catalogue, ordered by name."""
        return [split_catalogue_name(name) for name in self.store.list_catalogue_names()]

    def load(self, catalogue: Optional[str] = None, locale: Optional[str] = None) -> Dict[str, CatalogueTable]:
        """
        Load every existing variant in the locale fallback chain.

        A cached table is reused only when it was stored after the catalogue
        was last modified; otherwise the table is read from the database and
        written back to the cache.

        Returns:
            Dict mapping variant name to its table, most specific first
        """
        catalogue = self._catalogue(catalogue)
        locale = self._locale(locale)
        messages: Dict[str, CatalogueTable] = {}

        for variant in catalogue_variants(catalogue, locale):
            if not self.is_valid_source(variant):
                logger.debug(f"Skipping missing catalogue {variant}")
                continue

            key = cache_key(variant, locale)
            last_modified = self.get_last_modified(variant)
            if last_modified < self.cache.get_last_modified(key):
                data = self.cache.get(key)
                if isinstance(data, dict):
                    logger.debug(f"Catalogue {variant} served from cache")
                    messages[variant] = data
                    continue

            data = self.load_data(variant)
            messages[variant] = data
            self.cache.set(key, data)
            logger.debug(f"Catalogue {variant} loaded with {len(data)} source strings")

        return messages

    def read(self, catalogue: Optional[str] = None, locale: Optional[str] = None) -> Dict[str, CatalogueTable]:
        return self.load(catalogue, locale)

    # ============================================================
    # Untranslated buffer
    # ============================================================

    def append(self, message: str) -> None:
        """Record a source string that has no translation yet."""
        if message not in self._untranslated:
            self._untranslated.append(message)

    @property
    def untranslated(self) -> List[str]:
        return list(self._untranslated)

    # ============================================================
    # Mutations
    # ============================================================

    def _catalogue_changed(self, details: CatalogueDetails, locale: str) -> bool:
        """Touch the catalogue time, then drop its cached table."""
        if not self.store.touch_catalogue(details.cat_id, int(time.time())):
            logger.warning(f"Catalogue {details.variant} time was not updated")
            return False
        self.cache.remove(cache_key(details.variant, locale))
        return True

    def save_messages(self, untranslated: Optional[Iterable[str]] = None,
                      catalogue: Optional[str] = None, locale: Optional[str] = None) -> int:
        """
        Save untranslated messages to a catalogue.

        Inserts are best effort per message. If a storage fault interrupts
        the batch after some messages were stored, the catalogue is still
        touched and its cache entry dropped before the fault propagates.

        Args:
            untranslated: Source strings to add, the ``append`` buffer when None
            catalogue: Catalogue base name
            locale: Locale of the catalogue

        Returns:
            Number of messages inserted
        """
        from_buffer = untranslated is None
        messages = list(self._untranslated if from_buffer else untranslated)
        if not messages:
            return 0

        catalogue = self._catalogue(catalogue)
        locale = self._locale(locale)
        details = get_catalogue_details(self.store, catalogue, locale)
        if details is None:
            logger.info(f"Not saving {len(messages)} messages: catalogue {catalogue} for {locale} not found")
            return 0

        now = int(time.time())
        inserted = 0
        sequence = details.count
        try:
            for message in messages:
                sequence += 1
                if self.store.insert_unit(details.cat_id, sequence, message, now, author=self.author):
                    inserted += 1
        except StorageError:
            if inserted:
                logger.error(f"Save into {details.variant} interrupted after {inserted} messages")
                self._catalogue_changed(details, locale)
            raise

        if inserted <= 0:
            logger.warning(f"No messages inserted into {details.variant}")
            return 0

        logger.info(f"Inserted {inserted} of {len(messages)} messages into {details.variant}")
        self._catalogue_changed(details, locale)
        if from_buffer:
            self._untranslated = []
        return inserted

    def save(self, untranslated: Optional[Iterable[str]] = None, catalogue: Optional[str] = None,
             locale: Optional[str] = None) -> bool:
        """True if ``save_messages`` inserted at least one message."""
        return self.save_messages(untranslated, catalogue, locale) > 0

    def update(self, text: str, target: Optional[str], comments: Optional[str] = "",
               catalogue: Optional[str] = None, locale: Optional[str] = None) -> bool:
        """
        Update the translation of a source string.

        A None target or comment is stored as an empty string.

        Returns:
            True if exactly one unit was updated
        """
        catalogue = self._catalogue(catalogue)
        locale = self._locale(locale)
        details = get_catalogue_details(self.store, catalogue, locale)
        if details is None:
            return False

        matched = self.store.update_unit(details.cat_id, text, target or "", comments or "",
                                         int(time.time()), author=self.author)
        if matched != 1:
            logger.info(f"Translation not updated in {details.variant}: {matched} units matched")
            return False

        return self._catalogue_changed(details, locale)

    def delete(self, message: str, catalogue: Optional[str] = None, locale: Optional[str] = None) -> bool:
        """
        Delete a source string from a catalogue.

        Returns:
            True if exactly one unit was deleted
        """
        catalogue = self._catalogue(catalogue)
        locale = self._locale(locale)
        details = get_catalogue_details(self.store, catalogue, locale)
        if details is None:
            return False

        matched = self.store.delete_unit(details.cat_id, message)
        if matched != 1:
            logger.info(f"Message not deleted from {details.variant}: {matched} units matched")
            return False

        return self._catalogue_changed(details, locale)
