"""Route blueprints for the web application."""

from .catalogues import catalogues_bp

__all__ = [
    "catalogues_bp",
]
