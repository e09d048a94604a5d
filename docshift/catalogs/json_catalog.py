"""JSON snapshot catalog reader."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from .base import BaseCatalogReader
from ..errors import CatalogUnavailable
from ..models.catalog import SourceEntity, TargetEntity

logger = logging.getLogger(__name__)


class JsonCatalogReader(BaseCatalogReader):
    """
    Catalog reader for JSON snapshot files.

    Expected layout::

        {
          "source": [{"name": "rental", "record_count": 200,
                      "foreign_keys": [{"column": "customer_id",
                                        "referenced_table": "customer"}]}],
          "target": [{"name": "rental", "document_count": 0}]
        }

    ``tables`` and ``collections`` are accepted as aliases for ``source``
    and ``target``. The file is re-read on every call so that an external
    process can keep it current between refreshes.
    """

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8"):
        """
        Initialize the reader.

        Args:
            path: Path to the snapshot file
            encoding: File encoding
        """
        self.path = Path(path)
        self.encoding = encoding

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            raise CatalogUnavailable(f"Catalog file not found: {self.path}")

        try:
            with open(self.path, encoding=self.encoding) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CatalogUnavailable(f"Invalid JSON in catalog file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise CatalogUnavailable(f"Catalog file {self.path} must contain a JSON object")
        return data

    def _records(self, key: str, alias: str, side: str) -> List[Dict[str, Any]]:
        data = self._load()
        records = data.get(key, data.get(alias))
        if records is None:
            raise CatalogUnavailable(f"Catalog file {self.path} has no '{key}' section", side=side)
        return records

    def fetch_source_catalog(self) -> List[SourceEntity]:
        records = self._records("source", "tables", "source")
        try:
            entities = [SourceEntity.from_dict(r) for r in records]
        except (TypeError, ValueError) as e:
            raise CatalogUnavailable(f"Malformed source catalog in {self.path}: {e}", side="source") from e

        logger.info(f"Read {len(entities)} source tables from {self.path}")
        return entities

    def fetch_target_catalog(self) -> List[TargetEntity]:
        records = self._records("target", "collections", "target")
        try:
            entities = [TargetEntity.from_dict(r) for r in records]
        except (TypeError, ValueError) as e:
            raise CatalogUnavailable(f"Malformed target catalog in {self.path}: {e}", side="target") from e

        logger.info(f"Read {len(entities)} target collections from {self.path}")
        return entities
