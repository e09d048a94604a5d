"""Catalog readers for the source and target data stores."""

from .base import BaseCatalogReader, CatalogSnapshot, StaticCatalogReader
from .json_catalog import JsonCatalogReader
from .api_catalog import APICatalogReader

__all__ = [
    "BaseCatalogReader",
    "CatalogSnapshot",
    "StaticCatalogReader",
    "JsonCatalogReader",
    "APICatalogReader",
]
