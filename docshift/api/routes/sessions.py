"""Interactive migration session endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_config, get_executor, get_planner
from ..models import (
    ContinueRequest,
    EventListResponse,
    SelectRequest,
    SessionResponse,
)
from ..storage import session_storage
from ...config import EngineConfig
from ...executors.base import BaseMigrationExecutor
from ...planner import MigrationPlanner
from ...session import MigrationSession

router = APIRouter()


def _get_session(session_id: str) -> MigrationSession:
    session = session_storage.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _session_response(session: MigrationSession, since: int = 0) -> Dict[str, Any]:
    data = session.to_dict()
    data["events"] = [e.to_dict() for e in session.events[since:]]
    return data


# Handlers are sync: migrations block, so FastAPI runs them in its threadpool.
@router.post("", response_model=SessionResponse)
def create_session(
    planner: MigrationPlanner = Depends(get_planner),
    executor: BaseMigrationExecutor = Depends(get_executor),
    config: EngineConfig = Depends(get_config),
):
    """Start a session: compute the plan and wait for a selection."""
    session = MigrationSession(planner, executor, config)
    session.start()
    session_storage.add(session)
    return _session_response(session)


@router.get("/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, since: int = 0):
    """Get a session's state, plan, migrated set and events after index ``since``."""
    return _session_response(_get_session(session_id), max(since, 0))


@router.post("/{session_id}/select", response_model=SessionResponse)
def select_entity(session_id: str, data: SelectRequest):
    """Select an entity to migrate, or 'refresh' / 'exit'."""
    session = _get_session(session_id)
    since = len(session.events)
    session.select(data.choice)
    return _session_response(session, since)


@router.post("/{session_id}/continue", response_model=SessionResponse)
def answer_continue(session_id: str, data: ContinueRequest):
    """Answer whether to keep migrating after a success."""
    session = _get_session(session_id)
    since = len(session.events)
    session.answer_continue(data.answer)
    return _session_response(session, since)


@router.get("/{session_id}/status")
def get_status(session_id: str):
    """Current migration status per phase."""
    return _get_session(session_id).status_report()


@router.get("/{session_id}/events", response_model=EventListResponse)
def list_events(session_id: str, since: int = 0):
    """List session events, optionally only those after index ``since``."""
    session = _get_session(session_id)
    events = session.events[max(since, 0):]
    return EventListResponse(events=[e.to_dict() for e in events], total=len(session.events))


@router.delete("/{session_id}")
def delete_session(session_id: str):
    """Delete a session, cancelling any migration in flight."""
    if not session_storage.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted"}
