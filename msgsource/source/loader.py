"""
Catalogue Loader Module

Builds the in-memory translation table for one catalogue variant.
"""

from typing import Any, Dict, List

from msgsource.core.repository import CatalogueStore

# source text -> [target, id, comments, target, id, comments, ...]
CatalogueTable = Dict[str, List[Any]]


def load_data(store: CatalogueStore, variant: str) -> CatalogueTable:
    """
    Load every translation unit of a variant.

    Units are folded in ascending message number, so a source string stored
    more than once keeps one ``target, id, comments`` triple per unit in id
    order. A missing catalogue and an empty one both give ``{}``; check
    ``is_valid_source`` first when the difference matters.
    """
    table: CatalogueTable = {}
    for unit_id, source, target, comments in store.fetch_units(variant):
        table.setdefault(source, []).extend((target, unit_id, comments))
    return table


def iter_units(table: CatalogueTable):
    """Yield ``(source, target, id, comments)`` for every unit, in id order."""
    units = []
    for source, values in table.items():
        for i in range(0, len(values), 3):
            target, unit_id, comments = values[i:i + 3]
            units.append((unit_id, source, target, comments))
    units.sort(key=lambda unit: unit[0])
    for unit_id, source, target, comments in units:
        yield source, target, unit_id, comments
