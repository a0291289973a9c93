"""Web application package for msgsource."""

from typing import Optional

from flask import Flask

from msgsource.cache import MessageCache
from msgsource.config import initialize_app
from msgsource.core.repository import CatalogueStore


def create_app(store: Optional[CatalogueStore] = None, cache: Optional[MessageCache] = None) -> Flask:
    """Application factory for the catalogue API."""
    initialize_app()

    from .app import build_app  # Import here to avoid circular imports

    return build_app(store=store, cache=cache)


__all__ = ["create_app"]
