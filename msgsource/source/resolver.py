"""
Source Resolver Module

Maps a logical catalogue and locale to the stored catalogue name
("variant") and resolves the details mutations need.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from msgsource.config import CATALOGUE_SEPARATOR, DEFAULT_CATALOGUE, LOCALE_SEPARATOR
from msgsource.core.repository import CatalogueStore
from msgsource.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CatalogueDetails:
    """A resolved catalogue variant."""
    cat_id: int
    variant: str
    count: int                       # Units currently stored, used to number appends


def resolve_variant(catalogue: Optional[str], locale: Optional[str]) -> str:
    """
    Build the stored catalogue name for a catalogue and locale.

    Args:
        catalogue: Catalogue base name, ``"messages"`` when empty
        locale: Locale such as ``"en"`` or ``"en_US"``; empty gives the bare name

    Returns:
        The variant name, e.g. ``"messages.en"``
    """
    if not catalogue:
        catalogue = DEFAULT_CATALOGUE
    if not locale:
        return catalogue
    return f"{catalogue}{CATALOGUE_SEPARATOR}{locale}"


def catalogue_variants(catalogue: Optional[str], locale: Optional[str]) -> List[str]:
    """
    Locale fallback chain for a catalogue, most specific first.

    ``("messages", "en_US")`` gives ``["messages.en_US", "messages.en"]``.
    """
    if not locale:
        return [resolve_variant(catalogue, None)]

    variants = []
    base = ""
    for part in locale.split(LOCALE_SEPARATOR):
        if not part:
            continue
        base = f"{base}{LOCALE_SEPARATOR}{part}" if base else part
        variants.append(resolve_variant(catalogue, base))
    variants.reverse()
    return variants


def split_catalogue_name(name: str) -> Tuple[str, Optional[str]]:
    """Split a stored catalogue name into ``(catalogue, locale)``."""
    catalogue, separator, locale = name.partition(CATALOGUE_SEPARATOR)
    if not separator:
        return name, None
    return catalogue, locale


def is_valid_source(store: CatalogueStore, variant: str) -> bool:
    """Check whether exactly one stored catalogue has the variant name."""
    return store.catalogue_exists(variant)


def get_catalogue_details(store: CatalogueStore, catalogue: Optional[str],
                          locale: Optional[str]) -> Optional[CatalogueDetails]:
    """
    Resolve a catalogue and locale to its id, variant name and unit count.

    Returns:
        ``CatalogueDetails``, or None when no single catalogue has the name
    """
    variant = resolve_variant(catalogue, locale)

    cat_id, found = store.resolve_catalogue(variant)
    if not found or cat_id <= 0:
        logger.debug(f"Catalogue {variant} not found")
        return None

    return CatalogueDetails(cat_id=cat_id, variant=variant, count=store.count_units(cat_id))
