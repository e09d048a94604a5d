"""Pydantic models for API requests and responses."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime


class MigrationStrategyEnum(str, Enum):
    STANDALONE = "standalone"
    EMBEDDED = "embedded"


class SyncStatusEnum(str, Enum):
    SYNCED = "synced"
    SOURCE_AHEAD = "source_ahead"
    TARGET_AHEAD = "target_ahead"
    SOURCE_ONLY = "source_only"
    TARGET_ONLY = "target_only"


class OverallSyncStatusEnum(str, Enum):
    SYNCED = "synced"
    PARTIALLY_SYNCED = "partially_synced"
    OUT_OF_SYNC = "out_of_sync"


class SessionStateEnum(str, Enum):
    ANALYZING = "analyzing"
    AWAITING_SELECTION = "awaiting_selection"
    VALIDATING = "validating"
    EXECUTING = "executing"
    UPDATING = "updating"
    AWAITING_CONTINUE = "awaiting_continue"
    EXIT = "exit"


# Request Models
class SelectRequest(BaseModel):
    """An entity name, or one of 'refresh' / 'exit'."""
    choice: str


class ContinueRequest(BaseModel):
    answer: bool


# Response Models
class PlanEntityResponse(BaseModel):
    name: str
    record_count: int
    current_target_count: int
    dependencies: List[str] = Field(default_factory=list)
    needs_migration: bool
    migration_strategy: MigrationStrategyEnum
    reason: str
    sync_status: SyncStatusEnum


class PhaseResponse(BaseModel):
    index: int
    name: str
    description: str
    entities: List[PlanEntityResponse]


class PlanResponse(BaseModel):
    phases: List[PhaseResponse]
    total_phases: int
    total_entities_to_migrate: int
    summary: str
    synced_entities: List[PlanEntityResponse] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    generated_at: datetime


class EntityComparisonResponse(BaseModel):
    name: str
    source_count: int
    target_count: int
    status: SyncStatusEnum
    difference: int
    needs_migration: bool


class SourceOnlyEntity(BaseModel):
    name: str
    record_count: int


class TargetOnlyEntity(BaseModel):
    name: str
    document_count: int


class DatabaseStateResponse(BaseModel):
    common_entities: List[EntityComparisonResponse]
    source_only: List[SourceOnlyEntity]
    target_only: List[TargetOnlyEntity]
    total_source_records: int
    total_target_records: int
    overall_sync_status: OverallSyncStatusEnum
    summary: str
    generated_at: datetime


class ExecutionResultResponse(BaseModel):
    entity: str
    success: bool
    transferred_count: int = 0
    collection_name: Optional[str] = None
    strategy: Optional[str] = None
    duration_ms: int = 0
    error: Optional[str] = None


class EventResponse(BaseModel):
    type: str
    message: str
    state: SessionStateEnum
    entity: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class EventListResponse(BaseModel):
    events: List[EventResponse]
    # Number of events the session has emitted, not the length of this page
    total: int


class SessionResponse(BaseModel):
    id: str
    state: SessionStateEnum
    created_at: datetime
    ended_at: Optional[datetime] = None
    migrated: List[str] = Field(default_factory=list)
    selectable: List[str] = Field(default_factory=list)
    plan: Optional[PlanResponse] = None
    database_state: Optional[DatabaseStateResponse] = None
    last_result: Optional[ExecutionResultResponse] = None
    # Events emitted by the request that produced this response, or after ``since`` on GET
    events: List[EventResponse] = Field(default_factory=list)
