"""Interactive, dependency-gated migration session."""

import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

from .config import EngineConfig
from .errors import (
    DependencyNotSatisfied,
    EntityAlreadySynced,
    EntityNotInPlan,
    ExecutionFailed,
    InvalidTransition,
    MigrationEngineError,
    SessionBusy,
)
from .executors.base import BaseMigrationExecutor, CancellationToken
from .models.execution import EventType, ExecutionResult, MigrationEvent, SessionState
from .models.plan import MigrationPlan, MigrationPlanEntity
from .models.sync import ComprehensiveDatabaseState
from .planner import MigrationPlanner

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit")
REFRESH_COMMAND = "refresh"
YES_ANSWERS = ("y", "yes")

SELECTION_PROMPT = "Enter entity name to migrate (or 'refresh' / 'exit'): "
CONTINUE_PROMPT = "Continue migrating more entities? (yes/no): "

Listener = Callable[[MigrationEvent], None]


class MigrationSession:
    """
    Stateful controller for migrating entities one at a time.

    The session owns the migrated set: names considered migrated for its
    lifetime. It is seeded from entities that need no migration and grows
    when the executor confirms a migration. Nothing outside the session
    writes to it.

    An entity can be selected only when it needs migration and all of its
    dependencies are in the migrated set. Every execution requires an
    explicit ``select``; per-entity problems become events and the session
    returns to AWAITING_SELECTION.

    States:
        ANALYZING -> AWAITING_SELECTION -> VALIDATING -> EXECUTING
        -> UPDATING -> AWAITING_CONTINUE -> AWAITING_SELECTION | EXIT
    """

    def __init__(
        self,
        planner: MigrationPlanner,
        executor: BaseMigrationExecutor,
        config: Optional[EngineConfig] = None,
        session_id: Optional[str] = None
    ):
        """
        Initialize the session.

        Args:
            planner: Planner used for the initial plan and every refresh
            executor: Collaborator performing the data transfer
            config: Engine configuration (defaults to the planner's)
            session_id: Identifier for presentation layers
        """
        self.id = session_id or str(uuid.uuid4())
        self.planner = planner
        self.executor = executor
        self.config = config or planner.config
        self.created_at = datetime.utcnow()
        self.ended_at: Optional[datetime] = None

        self.state = SessionState.ANALYZING
        self.plan: Optional[MigrationPlan] = None
        self.database_state: Optional[ComprehensiveDatabaseState] = None
        self.last_result: Optional[ExecutionResult] = None
        self.events: List[MigrationEvent] = []

        self._migrated: Set[str] = set()
        self._listeners: List[Listener] = []
        self._busy = threading.Lock()
        self._cancel_token: Optional[CancellationToken] = None
        # Transfer that outlived its cancellation; blocks new executions until it exits
        self._abandoned: Optional[Tuple[str, CancellationToken]] = None

    # ------------------------------------------------------------------
    # Observers

    @property
    def migrated(self) -> frozenset:
        """Read-only view of the migrated set."""
        return frozenset(self._migrated)

    def subscribe(self, listener: Listener) -> None:
        """Register a callback receiving every event."""
        self._listeners.append(listener)

    def _emit(self, event_type: EventType, message: str, entity: Optional[str] = None,
              **data: Any) -> MigrationEvent:
        event = MigrationEvent(
            type=event_type,
            message=message,
            state=self.state,
            entity=entity,
            data=data,
        )
        self.events.append(event)

        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Event listener failed on {event_type.value}: {e}")

        return event

    def _transition(self, new_state: SessionState) -> None:
        logger.debug(f"Session {self.id}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidTransition(
                f"Operation not allowed in state {self.state.value} (expected {allowed})"
            )

    @contextmanager
    def _exclusive(self, operation: str):
        """Refresh and execution never overlap within a session."""
        if not self._busy.acquire(blocking=False):
            raise SessionBusy(f"Cannot {operation}: another operation is in progress")
        try:
            yield
        finally:
            self._busy.release()

    # ------------------------------------------------------------------
    # Queries

    def selectable_entities(self) -> List[MigrationPlanEntity]:
        """Entities that need migration and whose dependencies are all migrated."""
        if self.plan is None:
            return []

        return [
            entity
            for phase in self.plan.phases
            for entity in phase.entities
            if entity.needs_migration and not entity.missing_dependencies(self._migrated)
        ]

    def check_selection(self, name: str) -> MigrationPlanEntity:
        """
        Validate that an entity may be migrated now.

        Raises:
            EntityNotInPlan: If the plan has no such entity
            EntityAlreadySynced: If the entity needs no migration
            DependencyNotSatisfied: If a dependency is not yet migrated
        """
        if self.plan is None:
            raise InvalidTransition("No migration plan; start the session first")

        entity = self.plan.get_entity(name)
        if entity is None:
            raise EntityNotInPlan(name, [e.name for e in self.selectable_entities()])

        if not entity.needs_migration:
            raise EntityAlreadySynced(entity.name, entity.record_count, entity.current_target_count)

        missing = entity.missing_dependencies(self._migrated)
        if missing:
            raise DependencyNotSatisfied(entity.name, missing)

        return entity

    def status_report(self) -> Dict[str, Any]:
        """
        Current migration status per phase.

        Each entity is reported as ``synced``, ``migrated`` (this session),
        ``ready`` or ``waiting`` (with the dependencies it waits for).
        """
        phases = []
        ready = 0

        for phase in (self.plan.phases if self.plan else ()):
            rows = []
            for entity in phase.entities:
                row = {"name": entity.name, "record_count": entity.record_count}
                missing = entity.missing_dependencies(self._migrated)

                if not entity.needs_migration:
                    row["status"] = "synced"
                elif entity.name in self._migrated:
                    row["status"] = "migrated"
                elif missing:
                    row["status"] = "waiting"
                    row["waiting_for"] = missing
                else:
                    row["status"] = "ready"
                    ready += 1
                rows.append(row)

            phases.append({"index": phase.index, "name": phase.name, "entities": rows})

        return {
            "state": self.state.value,
            "phases": phases,
            "total_ready": ready,
            "total_migrated": len(self._migrated),
            "total_entities": sum(len(p["entities"]) for p in phases)
            + (len(self.plan.synced_entities) if self.plan else 0),
        }

    # ------------------------------------------------------------------
    # Transitions

    def start(self) -> MigrationPlan:
        """
        Compute the initial plan and seed the migrated set.

        Planning errors (CatalogUnavailable, UnresolvableDependency)
        propagate; the session stays in ANALYZING and may be started again.
        """
        with self._exclusive("start"):
            self._require(SessionState.ANALYZING)
            plan = self.planner.analyze()
            self._adopt_plan(plan)

            self._emit(
                EventType.PLAN_READY,
                f"Migration plan ready: {plan.total_phases} phases, "
                f"{plan.total_entities_to_migrate} entities to migrate",
                summary=plan.summary,
                total_phases=plan.total_phases,
                total_entities_to_migrate=plan.total_entities_to_migrate,
            )
            self._await_selection()

        return plan

    def select(self, choice: str) -> SessionState:
        """
        Handle an operator selection: an entity name, ``refresh`` or ``exit``.

        Returns:
            The state after handling the selection
        """
        with self._exclusive("select"):
            self._require(SessionState.AWAITING_SELECTION)
            command = choice.strip()

            if command.lower() in EXIT_COMMANDS:
                self._end("Migration session ended by operator")
            elif command.lower() == REFRESH_COMMAND:
                self._refresh()
            elif not command:
                self._await_selection()
            else:
                self._validate_and_execute(command)

        return self.state

    def refresh(self) -> SessionState:
        """Re-run planning against current catalogs."""
        with self._exclusive("refresh"):
            self._require(SessionState.AWAITING_SELECTION)
            self._refresh()
        return self.state

    def answer_continue(self, answer: Union[bool, str]) -> SessionState:
        """Answer the continue prompt after a successful migration."""
        with self._exclusive("continue"):
            self._require(SessionState.AWAITING_CONTINUE)

            if isinstance(answer, str):
                answer = answer.strip().lower() in YES_ANSWERS

            if answer:
                self._await_selection()
            else:
                self._end("Migration session completed")

        return self.state

    def cancel(self, reason: str = "cancelled by operator") -> bool:
        """
        Cancel the migration in flight, if any.

        The executor sees the cancellation through its token; the session
        records the migration as failed.
        """
        token = self._cancel_token
        if token is None:
            return False
        token.cancel(reason)
        return True

    def run(self, prompt: Callable[[str], str]) -> SessionState:
        """
        Drive the session until EXIT, blocking on ``prompt`` for every decision.

        Args:
            prompt: Callable that shows a prompt and returns the operator's answer
        """
        if self.state == SessionState.ANALYZING:
            self.start()

        while self.state != SessionState.EXIT:
            if self.state == SessionState.AWAITING_SELECTION:
                self.select(prompt(SELECTION_PROMPT))
            elif self.state == SessionState.AWAITING_CONTINUE:
                self.answer_continue(prompt(CONTINUE_PROMPT))
            else:
                raise InvalidTransition(f"Session stuck in state {self.state.value}")

        return self.state

    # ------------------------------------------------------------------
    # Internals (callers hold the busy lock)

    def _adopt_plan(self, plan: MigrationPlan) -> None:
        self.plan = plan
        # Entities already present in the target count as migrated; the set never shrinks
        self._migrated.update(e.name for e in plan.iter_entities() if not e.needs_migration)

    def _await_selection(self) -> None:
        self._transition(SessionState.AWAITING_SELECTION)
        selectable = [e.name for e in self.selectable_entities()]

        if selectable:
            message = f"Select an entity to migrate: {', '.join(selectable)}"
        else:
            message = "No entity is ready to migrate; refresh or exit"

        self._emit(EventType.SELECTION_PROMPT, message, selectable=selectable)

    def _end(self, message: str) -> None:
        self._transition(SessionState.EXIT)
        self.ended_at = datetime.utcnow()
        self._emit(
            EventType.SESSION_ENDED,
            message,
            migrated=sorted(self._migrated),
        )
        logger.info(f"Session {self.id} ended with {len(self._migrated)} entities migrated")

    def _refresh(self) -> None:
        self._transition(SessionState.ANALYZING)
        logger.info("Refreshing migration analysis...")

        try:
            plan = self.planner.analyze()
        except (MigrationEngineError, ValueError) as e:
            logger.warning(f"Refresh failed, keeping previous plan: {e}")
            self._emit(EventType.PLANNING_FAILED, f"Refresh failed: {e}", error=str(e))
        else:
            self._adopt_plan(plan)
            self._emit(
                EventType.PLAN_READY,
                f"Migration plan refreshed: {plan.total_phases} phases, "
                f"{plan.total_entities_to_migrate} entities to migrate",
                summary=plan.summary,
                total_phases=plan.total_phases,
                total_entities_to_migrate=plan.total_entities_to_migrate,
            )

        self._await_selection()

    def _validate_and_execute(self, name: str) -> None:
        self._transition(SessionState.VALIDATING)

        try:
            entity = self.check_selection(name)
        except EntityNotInPlan as e:
            self._emit(EventType.ENTITY_NOT_FOUND, str(e), entity=name, available=e.available)
            self._await_selection()
            return
        except EntityAlreadySynced as e:
            self._emit(
                EventType.ENTITY_ALREADY_SYNCED, str(e), entity=e.entity,
                source_count=e.source_count, target_count=e.target_count,
            )
            self._await_selection()
            return
        except DependencyNotSatisfied as e:
            self._emit(EventType.DEPENDENCY_NOT_SATISFIED, str(e), entity=e.entity, missing=e.missing)
            self._await_selection()
            return

        if self._previous_transfer_running(entity):
            self._await_selection()
            return

        self._execute(entity)

    def _previous_transfer_running(self, entity: MigrationPlanEntity) -> bool:
        if self._abandoned is None:
            return False

        previous, token = self._abandoned
        if token.finished:
            self._abandoned = None
            return False

        message = (
            f"Cannot migrate {entity.name}: the cancelled transfer of {previous} "
            f"is still running"
        )
        logger.warning(message)
        self.last_result = ExecutionResult.failure(
            entity.name, message, strategy=entity.migration_strategy.value
        )
        self._emit(EventType.EXECUTION_FAILED, message, entity=entity.name,
                   running=previous, result=self.last_result.to_dict())
        return True

    def _execute(self, entity: MigrationPlanEntity) -> None:
        self._transition(SessionState.EXECUTING)
        strategy = entity.migration_strategy.value
        token = CancellationToken()
        self._cancel_token = token

        self._emit(
            EventType.EXECUTION_STARTED,
            f"Starting migration of {entity.name} ({entity.record_count} records) "
            f"using {strategy.upper()} strategy",
            entity=entity.name,
            strategy=strategy,
        )

        try:
            result = self.executor.execute(
                entity.name,
                strategy,
                timeout=self.config.execution_timeout_seconds,
                cancel_token=token,
            )
        finally:
            self._cancel_token = None

        if token.is_cancelled and not token.finished:
            logger.warning(f"Transfer of {entity.name} outlived its cancellation; blocking new migrations")
            self._abandoned = (entity.name, token)

        self.last_result = result

        if not result.success:
            failure = ExecutionFailed(entity.name, result.error, result)
            logger.error(str(failure))
            self._emit(EventType.EXECUTION_FAILED, str(failure), entity=entity.name, result=result.to_dict())
            self._await_selection()
            return

        self._emit(
            EventType.EXECUTION_SUCCEEDED,
            f"Successfully migrated {entity.name}: {result.transferred_count} records into "
            f"{result.collection_name or entity.name} in {result.duration_ms}ms",
            entity=entity.name,
            result=result.to_dict(),
        )

        self._transition(SessionState.UPDATING)
        self._migrated.add(entity.name)
        self._refresh_database_state()

        self._transition(SessionState.AWAITING_CONTINUE)
        self._emit(EventType.CONTINUE_PROMPT, "Continue migrating more entities?")

    def _refresh_database_state(self) -> None:
        try:
            state = self.planner.database_state()
        except MigrationEngineError as e:
            logger.warning(f"Failed to fetch updated database state: {e}")
            self._emit(EventType.STATE_REFRESH_FAILED, f"Failed to fetch updated database state: {e}",
                       error=str(e))
            return

        self.database_state = state
        self._emit(
            EventType.STATE_REFRESHED,
            f"Overall sync status: {state.overall_sync_status.value}",
            overall_sync_status=state.overall_sync_status.value,
            total_source_records=state.total_source_records,
            total_target_records=state.total_target_records,
            synced=[e.name for e in state.synced_entities],
            summary=state.summary,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "state": self.state.value,
            "created_at": self.created_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "migrated": sorted(self._migrated),
            "selectable": [e.name for e in self.selectable_entities()],
            "plan": self.plan.to_dict() if self.plan else None,
            "database_state": self.database_state.to_dict() if self.database_state else None,
            "last_result": self.last_result.to_dict() if self.last_result else None,
        }
