"""Base catalog reader interface."""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
import logging

from ..errors import CatalogUnavailable
from ..models.catalog import SourceEntity, TargetEntity

logger = logging.getLogger(__name__)


@dataclass
class CatalogSnapshot:
    """Source and target catalogs read at (approximately) the same time."""
    source: List[SourceEntity] = field(default_factory=list)
    target: List[TargetEntity] = field(default_factory=list)
    fetched_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": [s.to_dict() for s in self.source],
            "target": [t.to_dict() for t in self.target],
            "fetched_at": self.fetched_at.isoformat(),
        }


class BaseCatalogReader(ABC):
    """
    Base class for catalog readers.

    Catalog readers report the tables of the relational source (with record
    counts and foreign keys) and the collections of the document store (with
    document counts). They are read-only and must return current counts on
    every call.
    """

    @abstractmethod
    def fetch_source_catalog(self) -> List[SourceEntity]:
        """
        Read the source tables.

        Raises:
            CatalogUnavailable: If the source cannot be read
        """
        pass

    @abstractmethod
    def fetch_target_catalog(self) -> List[TargetEntity]:
        """
        Read the target collections.

        Raises:
            CatalogUnavailable: If the target cannot be read
        """
        pass

    def fetch_snapshot(self) -> CatalogSnapshot:
        """
        Read both catalogs concurrently.

        The two reads are independent, so they run side by side; both must
        finish before the snapshot is returned.
        """
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="catalog") as pool:
            source_future = pool.submit(self._guarded, self.fetch_source_catalog, "source")
            target_future = pool.submit(self._guarded, self.fetch_target_catalog, "target")
            source = source_future.result()
            target = target_future.result()

        logger.debug(f"Fetched catalog snapshot: {len(source)} tables, {len(target)} collections")
        return CatalogSnapshot(source=source, target=target)

    @staticmethod
    def _guarded(fetch, side: str):
        try:
            return fetch()
        except CatalogUnavailable:
            raise
        except Exception as e:
            logger.error(f"Failed to read {side} catalog: {e}")
            raise CatalogUnavailable(f"Failed to read {side} catalog: {e}", side=side) from e


class StaticCatalogReader(BaseCatalogReader):
    """
    Catalog reader over in-memory entity lists.

    Useful for tests and for embedding the engine where the caller already
    holds catalog data. ``update_target`` lets callers simulate a copy.
    """

    def __init__(
        self,
        source: Iterable[SourceEntity],
        target: Optional[Iterable[TargetEntity]] = None
    ):
        self._source = list(source)
        self._target = list(target or [])

    def fetch_source_catalog(self) -> List[SourceEntity]:
        return list(self._source)

    def fetch_target_catalog(self) -> List[TargetEntity]:
        return list(self._target)

    def update_target(self, name: str, document_count: int) -> None:
        """Set (or add) the document count of a target collection."""
        self._target = [t for t in self._target if t.name != name]
        self._target.append(TargetEntity(name=name, document_count=document_count))
