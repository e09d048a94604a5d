"""Execution and session models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class SessionState(str, Enum):
    """States of an interactive migration session."""
    ANALYZING = "analyzing"
    AWAITING_SELECTION = "awaiting_selection"
    VALIDATING = "validating"
    EXECUTING = "executing"
    UPDATING = "updating"
    AWAITING_CONTINUE = "awaiting_continue"
    EXIT = "exit"


class EventType(str, Enum):
    """Kinds of events emitted by a migration session."""
    PLAN_READY = "plan_ready"
    PLANNING_FAILED = "planning_failed"
    SELECTION_PROMPT = "selection_prompt"
    ENTITY_NOT_FOUND = "entity_not_found"
    ENTITY_ALREADY_SYNCED = "entity_already_synced"
    DEPENDENCY_NOT_SATISFIED = "dependency_not_satisfied"
    EXECUTION_STARTED = "execution_started"
    EXECUTION_SUCCEEDED = "execution_succeeded"
    EXECUTION_FAILED = "execution_failed"
    STATE_REFRESHED = "state_refreshed"
    STATE_REFRESH_FAILED = "state_refresh_failed"
    CONTINUE_PROMPT = "continue_prompt"
    SESSION_ENDED = "session_ended"


@dataclass
class ExecutionResult:
    """Outcome of migrating one entity, as reported by the executor."""
    entity: str
    success: bool = False
    transferred_count: int = 0
    collection_name: Optional[str] = None
    strategy: Optional[str] = None
    duration_ms: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "entity": self.entity,
            "success": self.success,
            "transferred_count": self.transferred_count,
            "collection_name": self.collection_name,
            "strategy": self.strategy,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }

    @classmethod
    def failure(cls, entity: str, error: str, strategy: Optional[str] = None,
                duration_ms: int = 0) -> "ExecutionResult":
        """Build a failed result."""
        return cls(
            entity=entity,
            success=False,
            collection_name=entity,
            strategy=strategy,
            duration_ms=duration_ms,
            error=error,
        )


@dataclass
class MigrationEvent:
    """A state-transition event for any presentation layer."""
    type: EventType
    message: str
    state: SessionState
    entity: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "type": self.type.value,
            "message": self.message,
            "state": self.state.value,
            "entity": self.entity,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }
