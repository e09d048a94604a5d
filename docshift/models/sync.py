"""Synchronization state models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from .catalog import SourceEntity, TargetEntity


class SyncStatus(str, Enum):
    """Relationship between an entity's source and target counts."""
    SYNCED = "synced"
    SOURCE_AHEAD = "source_ahead"
    TARGET_AHEAD = "target_ahead"
    SOURCE_ONLY = "source_only"
    TARGET_ONLY = "target_only"


class OverallSyncStatus(str, Enum):
    """Sync status of the whole catalog pair."""
    SYNCED = "synced"
    PARTIALLY_SYNCED = "partially_synced"
    OUT_OF_SYNC = "out_of_sync"


# The target is missing data for these
MIGRATION_STATUSES = frozenset({SyncStatus.SOURCE_AHEAD, SyncStatus.SOURCE_ONLY})


@dataclass(frozen=True)
class EntityComparison:
    """Source and target counts for one entity."""
    name: str
    source_count: int
    target_count: int
    status: SyncStatus
    difference: int = 0

    @property
    def needs_migration(self) -> bool:
        return self.status in MIGRATION_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "source_count": self.source_count,
            "target_count": self.target_count,
            "status": self.status.value,
            "difference": self.difference,
            "needs_migration": self.needs_migration,
        }


@dataclass
class ComprehensiveDatabaseState:
    """A point-in-time comparison of the source and target catalogs."""
    common_entities: List[EntityComparison] = field(default_factory=list)
    source_only: List[SourceEntity] = field(default_factory=list)
    target_only: List[TargetEntity] = field(default_factory=list)
    total_source_records: int = 0
    total_target_records: int = 0
    overall_sync_status: OverallSyncStatus = OverallSyncStatus.OUT_OF_SYNC
    summary: str = ""
    generated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def synced_entities(self) -> List[EntityComparison]:
        """Common entities whose counts match."""
        return [e for e in self.common_entities if e.status == SyncStatus.SYNCED]

    def get_entity(self, name: str) -> EntityComparison:
        """Get a common entity by name."""
        for entity in self.common_entities:
            if entity.name == name:
                return entity
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "common_entities": [e.to_dict() for e in self.common_entities],
            "source_only": [
                {"name": e.name, "record_count": e.record_count} for e in self.source_only
            ],
            "target_only": [t.to_dict() for t in self.target_only],
            "total_source_records": self.total_source_records,
            "total_target_records": self.total_target_records,
            "overall_sync_status": self.overall_sync_status.value,
            "summary": self.summary,
            "generated_at": self.generated_at.isoformat(),
        }
