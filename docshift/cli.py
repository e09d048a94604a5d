"""Console front-end for planning and running phased migrations."""

import argparse
import json
import logging
import sys
from typing import Callable, List, Optional

from .config import EngineConfig
from .errors import MigrationEngineError
from .models.execution import EventType, MigrationEvent, SessionState
from .models.plan import MigrationPlan
from .models.sync import ComprehensiveDatabaseState
from .planner import MigrationPlanner, build_executor, build_planner
from .session import MigrationSession

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    "synced": "ALREADY SYNCED",
    "migrated": "MIGRATED",
    "ready": "READY TO MIGRATE",
    "waiting": "WAITING FOR",
}


def print_plan(plan: MigrationPlan):
    """Print a migration plan phase by phase."""
    print("\n" + "=" * 60)
    print("  MIGRATION PLAN")
    print("=" * 60)

    for phase in plan.phases:
        print(f"\nPhase {phase.index}: {phase.name}")
        print(f"  {phase.description}")

        for entity in phase.entities:
            marker = "*" if entity.needs_migration else " "
            print(
                f"  {marker} {entity.name}: {entity.record_count} records "
                f"({entity.migration_strategy.value}) - {entity.reason}"
            )
            if entity.dependencies:
                print(f"      depends on: {', '.join(entity.dependencies)}")

    if plan.synced_entities:
        print(f"\nAlready synced: {', '.join(e.name for e in plan.synced_entities)}")

    for warning in plan.warnings:
        print(f"\nWarning: {warning}")

    print("\n" + plan.summary)


def print_state(state: ComprehensiveDatabaseState):
    """Print a source/target comparison."""
    print("\n" + "=" * 60)
    print("  DATABASE STATE")
    print("=" * 60)
    print(state.summary)


class InteractiveMigrationCLI:
    """
    Interactive console for migrating entities one at a time.

    Supports:
    - Selecting an entity by name
    - Showing the current status per phase ("status")
    - Re-analyzing the catalogs ("refresh")
    - Leaving the session ("exit" / "quit")
    """

    def __init__(
        self,
        session: MigrationSession,
        input_func: Callable[[str], str] = input
    ):
        """
        Initialize the interactive CLI.

        Args:
            session: Session to drive
            input_func: Reads one answer from the operator
        """
        self.session = session
        self.input_func = input_func
        self.session.subscribe(self.print_event)

    def run(self) -> SessionState:
        """Run the interactive loop until the session exits."""
        print("\n" + "=" * 60)
        print("  Phased Migration - Interactive Session")
        print("=" * 60)

        return self.session.run(self.prompt)

    def prompt(self, text: str) -> str:
        """Ask the operator, treating end of input as 'exit'."""
        while True:
            try:
                answer = self.input_func("\n" + text).strip()
            except (EOFError, KeyboardInterrupt):
                print()
                return "exit" if self.session.state == SessionState.AWAITING_SELECTION else "no"

            if self.session.state == SessionState.AWAITING_SELECTION:
                if answer.lower() == "status":
                    self.print_status()
                    continue
                if answer.lower() == "help":
                    self._print_help()
                    continue

            return answer

    def print_event(self, event: MigrationEvent):
        """Render one session event."""
        if event.type == EventType.PLAN_READY:
            print_plan(self.session.plan)
            self.print_status()
        elif event.type == EventType.SELECTION_PROMPT:
            selectable = event.data.get("selectable", [])
            if selectable:
                print(f"\nReady to migrate: {', '.join(selectable)}")
            else:
                print(f"\n{event.message}")
        elif event.type == EventType.STATE_REFRESHED:
            print_state(self.session.database_state)
        elif event.type in (EventType.EXECUTION_FAILED, EventType.PLANNING_FAILED,
                            EventType.STATE_REFRESH_FAILED):
            print(f"\nError: {event.message}")
        elif event.type == EventType.DEPENDENCY_NOT_SATISFIED:
            print(f"\n{event.message}")
            print("Migrate the missing dependencies first.")
        elif event.type == EventType.CONTINUE_PROMPT:
            pass
        else:
            print(f"\n{event.message}")

    def print_status(self):
        """Print the current migration status per phase."""
        report = self.session.status_report()

        print("\n=== Current Migration Status ===")
        for phase in report["phases"]:
            print(f"\nPhase {phase['index']}: {phase['name']}")
            for row in phase["entities"]:
                label = STATUS_LABELS[row["status"]]
                if row["status"] == "waiting":
                    label = f"{label}: {', '.join(row['waiting_for'])}"
                print(f"  - {row['name']} ({row['record_count']} records) {label}")

        print(
            f"\nReady: {report['total_ready']}, "
            f"migrated: {report['total_migrated']}, "
            f"total: {report['total_entities']}"
        )

    def _print_help(self):
        print("\nCommands:")
        print("  <entity>  Migrate the named entity")
        print("  status    Show the current migration status")
        print("  refresh   Re-analyze source and target")
        print("  exit      Leave the session")


def load_config(args) -> EngineConfig:
    """Build the engine configuration from a file, the environment and flags."""
    config = EngineConfig.from_json_file(args.config) if args.config else EngineConfig()
    config = EngineConfig.from_env(config)

    if args.catalog:
        config.catalog_file = args.catalog
    if getattr(args, "executor_url", None):
        config.executor_url = args.executor_url
    if getattr(args, "timeout", None) is not None:
        config.execution_timeout_seconds = args.timeout if args.timeout > 0 else None

    return config


def run_plan(args, planner: MigrationPlanner) -> int:
    """Print the migration plan."""
    plan = planner.analyze()

    if args.json:
        print(json.dumps(plan.to_dict(), indent=2, default=str))
    else:
        print_plan(plan)
    return 0


def run_state(args, planner: MigrationPlanner) -> int:
    """Print the source/target comparison."""
    state = planner.database_state()

    if args.json:
        print(json.dumps(state.to_dict(), indent=2, default=str))
    else:
        print_state(state)
    return 0


def run_migrate(args, planner: MigrationPlanner, config: EngineConfig) -> int:
    """Run an interactive migration session."""
    session = MigrationSession(planner, build_executor(config), config)
    cli = InteractiveMigrationCLI(session)
    cli.run()

    print(f"\nMigrated this session: {', '.join(sorted(session.migrated)) or 'none'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="docshift - Plan and run dependency-ordered relational to document migrations"
    )
    parser.add_argument("--config", help="Path to engine config JSON file")
    parser.add_argument("--catalog", help="Path to catalog snapshot JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    plan_parser = subparsers.add_parser("plan", help="Show the phased migration plan")
    plan_parser.add_argument("--json", action="store_true", help="Print as JSON")

    state_parser = subparsers.add_parser("state", help="Compare source and target counts")
    state_parser.add_argument("--json", action="store_true", help="Print as JSON")

    migrate_parser = subparsers.add_parser("migrate", help="Migrate entities interactively")
    migrate_parser.add_argument("--executor-url", help="Base URL of the bulk-transfer service")
    migrate_parser.add_argument(
        "--timeout", type=float, help="Per-entity timeout in seconds (0 disables)"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args)
    except (OSError, ValueError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 2

    # Set up logging
    log_level = logging.DEBUG if args.verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        planner = build_planner(config)

        if args.command == "plan":
            return run_plan(args, planner)
        elif args.command == "state":
            return run_state(args, planner)
        elif args.command == "migrate":
            return run_migrate(args, planner, config)

    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except MigrationEngineError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
