"""
Source module - Catalogue resolution, loading and mutation

This module provides:
- MessageSource: Public entry point coordinating reads and mutations
- CatalogueDetails: A resolved catalogue variant
- Resolver helpers for variant names and locale fallback
- load_data: Builds the translation table for one variant
"""

from msgsource.source.resolver import (
    CatalogueDetails,
    resolve_variant,
    catalogue_variants,
    split_catalogue_name,
    is_valid_source,
    get_catalogue_details,
)
from msgsource.source.loader import CatalogueTable, load_data, iter_units
from msgsource.source.manager import MessageSource
