"""Tests for the interactive migration session."""

import threading
import time

import pytest

from docshift.catalogs.base import StaticCatalogReader
from docshift.config import EngineConfig
from docshift.errors import CatalogUnavailable, InvalidTransition, SessionBusy
from docshift.executors.base import BaseMigrationExecutor
from docshift.models.execution import EventType, ExecutionResult, SessionState
from docshift.planner import MigrationPlanner
from docshift.session import MigrationSession
from tests.conftest import ScriptedExecutor, collection, table


def event_types(session, since=0):
    return [e.type for e in session.events[since:]]


def selectable(session):
    return [e.name for e in session.selectable_entities()]


@pytest.fixture
def session(planner, executor, config):
    session = MigrationSession(planner, executor, config)
    session.start()
    return session


class FlakyCatalog(StaticCatalogReader):
    """Catalog that can be switched to fail."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.available = True

    def fetch_source_catalog(self):
        if not self.available:
            raise CatalogUnavailable("source database unreachable", side="source")
        return super().fetch_source_catalog()


class BlockingExecutor(BaseMigrationExecutor):
    """Executor that runs until cancelled."""

    poll_interval = 0.01

    def __init__(self):
        self.started = threading.Event()

    def execute_migration(self, entity_name, strategy, cancel_token):
        self.started.set()
        if cancel_token.wait(5):
            return ExecutionResult.failure(entity_name, f"Migration cancelled: {cancel_token.reason}", strategy)
        return ExecutionResult(entity=entity_name, success=True, strategy=strategy)


class SlowCopyExecutor(BaseMigrationExecutor):
    """Executor whose transfer ignores cancellation, like a single blocking bulk request."""

    poll_interval = 0.01
    cancel_grace_seconds = 0.01

    def __init__(self, delay=0.5):
        self.delay = delay
        self.tokens = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def execute_migration(self, entity_name, strategy, cancel_token):
        self.tokens.append(cancel_token)
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
        finally:
            with self._lock:
                self.active -= 1
        return ExecutionResult(entity=entity_name, success=True, strategy=strategy)


def test_start_computes_plan_and_awaits_selection(session):
    assert session.state == SessionState.AWAITING_SELECTION
    assert session.plan.total_phases == 2
    assert event_types(session) == [EventType.PLAN_READY, EventType.SELECTION_PROMPT]
    assert session.events[-1].data["selectable"] == ["address", "customer"]
    assert session.migrated == frozenset()


def test_dependent_selected_too_early_is_rejected(session, executor):
    since = len(session.events)

    state = session.select("rental")

    assert state == SessionState.AWAITING_SELECTION
    event = session.events[since]
    assert event.type == EventType.DEPENDENCY_NOT_SATISFIED
    assert event.data["missing"] == ["customer", "address"]
    assert "customer, address" in event.message
    assert executor.calls == []


def test_successful_migration_awaits_continue(session, executor):
    since = len(session.events)

    state = session.select("address")

    assert state == SessionState.AWAITING_CONTINUE
    assert executor.calls == [("address", "embedded")]
    assert "address" in session.migrated
    assert event_types(session, since) == [
        EventType.EXECUTION_STARTED,
        EventType.EXECUTION_SUCCEEDED,
        EventType.STATE_REFRESHED,
        EventType.CONTINUE_PROMPT,
    ]
    assert session.last_result.success
    assert session.last_result.transferred_count == 50
    assert [e.name for e in session.database_state.synced_entities] == ["address"]


def test_continue_yes_returns_to_selection(session):
    session.select("customer")

    assert session.answer_continue("yes") == SessionState.AWAITING_SELECTION
    assert selectable(session) == ["address", "customer"]


@pytest.mark.parametrize("answer", ["no", "n", "", False])
def test_continue_anything_else_exits(session, answer):
    session.select("customer")

    assert session.answer_continue(answer) == SessionState.EXIT
    assert session.events[-1].type == EventType.SESSION_ENDED
    assert session.events[-1].data["migrated"] == ["customer"]


def test_dependency_chain_is_enforced():
    catalog = StaticCatalogReader([table("a", 1), table("b", 1, "a"), table("c", 1, "b")])
    session = MigrationSession(MigrationPlanner(catalog), ScriptedExecutor(catalog))
    session.start()

    for name in ("c", "b"):
        session.select(name)
        assert session.events[-2].type == EventType.DEPENDENCY_NOT_SATISFIED
    assert session.migrated == frozenset()

    session.select("a")
    session.answer_continue(True)
    assert selectable(session) == ["a", "b"]

    session.select("c")
    assert session.events[-2].data["missing"] == ["b"]

    session.select("b")
    session.answer_continue(True)
    session.select("c")

    assert session.state == SessionState.AWAITING_CONTINUE
    assert session.migrated == {"a", "b", "c"}


def test_failed_migration_leaves_entity_selectable(rental_catalog, config):
    executor = ScriptedExecutor(rental_catalog, failures={"address": "bulk insert failed"})
    session = MigrationSession(MigrationPlanner(rental_catalog, config), executor, config)
    session.start()
    since = len(session.events)

    state = session.select("address")

    assert state == SessionState.AWAITING_SELECTION
    assert session.migrated == frozenset()
    assert "address" in selectable(session)
    assert event_types(session, since) == [
        EventType.EXECUTION_STARTED,
        EventType.EXECUTION_FAILED,
        EventType.SELECTION_PROMPT,
    ]
    assert "bulk insert failed" in session.events[since + 1].message
    assert session.events[since + 1].data["result"]["success"] is False


def test_executor_exception_is_a_failed_migration(rental_catalog, config):
    executor = ScriptedExecutor(rental_catalog, raises={"customer": RuntimeError("boom")})
    session = MigrationSession(MigrationPlanner(rental_catalog, config), executor, config)
    session.start()

    assert session.select("customer") == SessionState.AWAITING_SELECTION
    assert session.last_result.error == "boom"
    assert "customer" not in session.migrated


def test_already_synced_entity_is_not_migrated():
    catalog = StaticCatalogReader(
        [table("actor", 200), table("film", 1000)],
        [collection("actor", 200), collection("film", 400)],
    )
    executor = ScriptedExecutor(catalog)
    session = MigrationSession(MigrationPlanner(catalog), executor)
    session.start()

    session.select("actor")

    assert session.events[-2].type == EventType.ENTITY_ALREADY_SYNCED
    assert session.state == SessionState.AWAITING_SELECTION
    assert executor.calls == []
    assert selectable(session) == ["film"]


def test_unknown_entity_is_reported(session):
    session.select("invoices")

    assert session.events[-2].type == EventType.ENTITY_NOT_FOUND
    assert session.events[-2].data["available"] == ["address", "customer"]
    assert session.state == SessionState.AWAITING_SELECTION


def test_selection_ignores_case(session, executor):
    session.select("ADDRESS")

    assert executor.calls == [("address", "embedded")]
    assert "address" in session.migrated


@pytest.mark.parametrize("command", ["exit", "quit", " EXIT "])
def test_exit_commands(session, command):
    assert session.select(command) == SessionState.EXIT


def test_target_ahead_entities_satisfy_dependents():
    catalog = StaticCatalogReader(
        [table("staff", 2), table("store", 2, "staff")],
        [collection("staff", 5)],
    )
    session = MigrationSession(MigrationPlanner(catalog), ScriptedExecutor(catalog))
    session.start()

    assert session.migrated == {"staff"}
    assert selectable(session) == ["store"]


def test_refresh_is_idempotent(session):
    before = session.plan.to_dict()

    session.select("refresh")

    after = session.plan.to_dict()
    before.pop("generated_at")
    after.pop("generated_at")
    assert after == before
    assert session.migrated == frozenset()
    assert session.state == SessionState.AWAITING_SELECTION


def test_refresh_picks_up_migrated_counts(session):
    session.select("customer")
    session.answer_continue(True)

    session.refresh()

    assert [e.name for e in session.plan.synced_entities] == ["customer"]
    assert session.migrated == {"customer"}


def test_refresh_failure_keeps_previous_plan(config):
    catalog = FlakyCatalog([table("actor", 2)])
    session = MigrationSession(MigrationPlanner(catalog, config), ScriptedExecutor(catalog), config)
    plan = session.start()
    catalog.available = False

    session.select("refresh")

    assert session.plan is plan
    assert session.state == SessionState.AWAITING_SELECTION
    assert session.events[-2].type == EventType.PLANNING_FAILED


def test_start_failure_propagates(config):
    catalog = FlakyCatalog([table("actor", 2)])
    catalog.available = False
    session = MigrationSession(MigrationPlanner(catalog, config), ScriptedExecutor(catalog), config)

    with pytest.raises(CatalogUnavailable):
        session.start()

    assert session.state == SessionState.ANALYZING
    assert session.plan is None


def test_state_refresh_failure_keeps_migration(session, monkeypatch):
    def unavailable(snapshot=None):
        raise CatalogUnavailable("target unreachable", side="target")

    monkeypatch.setattr(session.planner, "database_state", unavailable)

    session.select("customer")

    assert session.state == SessionState.AWAITING_CONTINUE
    assert "customer" in session.migrated
    assert session.events[-2].type == EventType.STATE_REFRESH_FAILED


def test_operations_in_wrong_state_are_rejected(planner, executor):
    session = MigrationSession(planner, executor)

    with pytest.raises(InvalidTransition):
        session.select("customer")

    session.start()
    with pytest.raises(InvalidTransition):
        session.answer_continue(True)
    with pytest.raises(InvalidTransition):
        session.start()


def test_timeout_is_a_failed_migration(planner):
    session = MigrationSession(planner, BlockingExecutor(), EngineConfig(execution_timeout_seconds=0.05))
    session.start()

    assert session.select("customer") == SessionState.AWAITING_SELECTION
    assert "timed out" in session.last_result.error
    assert session.migrated == frozenset()


def test_no_new_migration_while_timed_out_transfer_still_runs(planner):
    executor = SlowCopyExecutor()
    session = MigrationSession(planner, executor, EngineConfig(execution_timeout_seconds=0.05))
    session.start()

    assert session.select("customer") == SessionState.AWAITING_SELECTION
    assert "timed out" in session.last_result.error
    since = len(session.events)

    assert session.select("customer") == SessionState.AWAITING_SELECTION

    assert executor.max_active == 1
    assert len(executor.tokens) == 1
    assert event_types(session, since) == [EventType.EXECUTION_FAILED, EventType.SELECTION_PROMPT]
    assert "still running" in session.events[since].message
    assert session.events[since].data["running"] == "customer"
    assert "customer" not in session.migrated

    assert executor.tokens[0].wait_finished(5)
    executor.delay = 0

    assert session.select("customer") == SessionState.AWAITING_CONTINUE
    assert executor.max_active == 1
    assert "customer" in session.migrated


def test_refresh_during_execution_is_rejected_and_cancel_fails_migration(planner, config):
    executor = BlockingExecutor()
    session = MigrationSession(planner, executor, config)
    session.start()

    worker = threading.Thread(target=session.select, args=("customer",))
    worker.start()
    assert executor.started.wait(5)

    with pytest.raises(SessionBusy):
        session.refresh()
    assert session.cancel()

    worker.join(5)
    assert session.state == SessionState.AWAITING_SELECTION
    assert "cancelled" in session.last_result.error
    assert "customer" not in session.migrated
    assert not session.cancel()


def test_run_drives_session_until_exit(session):
    answers = iter(["rental", "customer", "yes", "address", "y", "rental", "no"])
    prompts = []

    def prompt(text):
        prompts.append(text)
        return next(answers)

    assert session.run(prompt) == SessionState.EXIT
    assert session.migrated == {"customer", "address", "rental"}
    assert len(prompts) == 7


def test_listeners_receive_events_and_failures_are_contained(planner, executor):
    received = []

    def broken(event):
        raise RuntimeError("renderer crashed")

    session = MigrationSession(planner, executor)
    session.subscribe(broken)
    session.subscribe(received.append)
    session.start()

    assert [e.type for e in received] == [EventType.PLAN_READY, EventType.SELECTION_PROMPT]


def test_status_report(session):
    session.select("customer")
    session.answer_continue(True)

    report = session.status_report()

    rows = {row["name"]: row for phase in report["phases"] for row in phase["entities"]}
    assert rows["customer"]["status"] == "migrated"
    assert rows["address"]["status"] == "ready"
    assert rows["rental"]["status"] == "waiting"
    assert rows["rental"]["waiting_for"] == ["address"]
    assert report["total_ready"] == 1
    assert report["total_migrated"] == 1
    assert report["total_entities"] == 3


def test_sessions_do_not_share_migrated_sets(planner, executor):
    first = MigrationSession(planner, executor)
    second = MigrationSession(planner, executor)
    first.start()
    second.start()

    first.select("customer")

    assert second.migrated == frozenset()
