"""Migration plan models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from .sync import SyncStatus


class MigrationStrategyType(str, Enum):
    """Target representation for a source entity."""
    STANDALONE = "standalone"  # Own top-level collection
    EMBEDDED = "embedded"  # Sub-document array inside the parent


@dataclass(frozen=True)
class StrategyDecision:
    """Strategy chosen for one entity, with the rationale shown to the operator."""
    entity: str
    strategy: MigrationStrategyType
    reason: str
    parent: Optional[str] = None  # Embedding parent

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "entity": self.entity,
            "strategy": self.strategy.value,
            "reason": self.reason,
            "parent": self.parent,
        }


@dataclass(frozen=True)
class MigrationPlanEntity:
    """One source entity as it appears in a migration plan."""
    name: str
    record_count: int
    current_target_count: int
    dependencies: Tuple[str, ...]
    needs_migration: bool
    migration_strategy: MigrationStrategyType
    reason: str
    sync_status: SyncStatus = SyncStatus.SOURCE_ONLY

    def missing_dependencies(self, migrated: Set[str]) -> List[str]:
        """Dependencies not yet in the migrated set, in declaration order."""
        return [dep for dep in self.dependencies if dep not in migrated]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "record_count": self.record_count,
            "current_target_count": self.current_target_count,
            "dependencies": list(self.dependencies),
            "needs_migration": self.needs_migration,
            "migration_strategy": self.migration_strategy.value,
            "reason": self.reason,
            "sync_status": self.sync_status.value,
        }


@dataclass(frozen=True)
class MigrationPhase:
    """An ordered batch of entities migratable once earlier phases are done."""
    index: int
    name: str
    description: str
    entities: Tuple[MigrationPlanEntity, ...] = field(default_factory=tuple)

    @property
    def entities_to_migrate(self) -> List[MigrationPlanEntity]:
        return [e for e in self.entities if e.needs_migration]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "index": self.index,
            "name": self.name,
            "description": self.description,
            "entities": [e.to_dict() for e in self.entities],
        }


@dataclass(frozen=True)
class MigrationPlan:
    """
    Immutable snapshot of the phased migration plan.

    A refresh produces a new plan rather than mutating this one.
    """
    phases: Tuple[MigrationPhase, ...] = field(default_factory=tuple)
    total_entities_to_migrate: int = 0
    summary: str = ""
    synced_entities: Tuple[MigrationPlanEntity, ...] = field(default_factory=tuple)
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    generated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def total_phases(self) -> int:
        return len(self.phases)

    def iter_entities(self) -> Iterator[MigrationPlanEntity]:
        """Iterate over every entity in the plan, scheduled ones first."""
        for phase in self.phases:
            yield from phase.entities
        yield from self.synced_entities

    def get_entity(self, name: str) -> Optional[MigrationPlanEntity]:
        """Look up an entity by exact name, then case-insensitively."""
        lowered = None
        for entity in self.iter_entities():
            if entity.name == name:
                return entity
            if lowered is None and entity.name.lower() == name.lower():
                lowered = entity
        return lowered

    def phase_of(self, name: str) -> Optional[int]:
        """Index of the phase an entity is scheduled in."""
        for phase in self.phases:
            if any(e.name == name for e in phase.entities):
                return phase.index
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "phases": [p.to_dict() for p in self.phases],
            "total_phases": self.total_phases,
            "total_entities_to_migrate": self.total_entities_to_migrate,
            "summary": self.summary,
            "synced_entities": [e.to_dict() for e in self.synced_entities],
            "warnings": list(self.warnings),
            "generated_at": self.generated_at.isoformat(),
        }
