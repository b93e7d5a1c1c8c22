"""Canonical listing store services"""

from .catalog_client import CatalogClient

__all__ = ["CatalogClient"]
