"""Data models for the migration engine."""

from .catalog import (
    ForeignKeyRef,
    SourceEntity,
    TargetEntity,
)
from .sync import (
    SyncStatus,
    OverallSyncStatus,
    EntityComparison,
    ComprehensiveDatabaseState,
)
from .plan import (
    MigrationStrategyType,
    StrategyDecision,
    MigrationPlanEntity,
    MigrationPhase,
    MigrationPlan,
)
from .execution import (
    SessionState,
    EventType,
    ExecutionResult,
    MigrationEvent,
)

__all__ = [
    "ForeignKeyRef",
    "SourceEntity",
    "TargetEntity",
    "SyncStatus",
    "OverallSyncStatus",
    "EntityComparison",
    "ComprehensiveDatabaseState",
    "MigrationStrategyType",
    "StrategyDecision",
    "MigrationPlanEntity",
    "MigrationPhase",
    "MigrationPlan",
    "SessionState",
    "EventType",
    "ExecutionResult",
    "MigrationEvent",
]
