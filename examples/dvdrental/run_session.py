#!/usr/bin/env python3
"""
Example: DVD rental (PostgreSQL sample schema) to a document store

This script walks through a phased migration of the DVD rental sample
database against a catalog snapshot. The bulk transfer is simulated: each
"migrated" table has its document count written back into a working copy
of the snapshot, so refreshes show the progress.

Usage:
    # Show the phased plan only
    python run_session.py --plan-only

    # Interactive session
    python run_session.py

    # Against a real bulk-transfer service
    python run_session.py --executor-url http://localhost:8080
"""

import argparse
import json
import logging
import shutil
import sys
import tempfile
import time
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from docshift.catalogs.json_catalog import JsonCatalogReader
from docshift.cli import InteractiveMigrationCLI, print_plan
from docshift.config import EngineConfig
from docshift.executors.api_executor import APIMigrationExecutor
from docshift.executors.base import BaseMigrationExecutor, CancellationToken
from docshift.models.execution import ExecutionResult
from docshift.planner import MigrationPlanner
from docshift.session import MigrationSession

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('migration.log')
    ]
)
logger = logging.getLogger(__name__)

CATALOG_FILE = Path(__file__).parent / "catalog.json"


class SnapshotCopyExecutor(BaseMigrationExecutor):
    """Pretends to copy a table by updating the snapshot's target counts."""

    def __init__(self, catalog_path: Path, rows_per_second: int = 20000):
        self.catalog_path = catalog_path
        self.rows_per_second = rows_per_second

    def execute_migration(
        self,
        entity_name: str,
        strategy: str,
        cancel_token: CancellationToken
    ) -> ExecutionResult:
        started = time.monotonic()

        with open(self.catalog_path) as f:
            data = json.load(f)

        source = next(s for s in data["source"] if s["name"] == entity_name)
        count = source["record_count"]

        # Simulated transfer time; stops early on cancel or timeout
        if cancel_token.wait(count / self.rows_per_second):
            return ExecutionResult.failure(entity_name, f"Migration cancelled: {cancel_token.reason}", strategy)

        data["target"] = [t for t in data["target"] if t["name"] != entity_name]
        data["target"].append({"name": entity_name, "document_count": count})

        with open(self.catalog_path, 'w') as f:
            json.dump(data, f, indent=2)

        return ExecutionResult(
            entity=entity_name,
            success=True,
            transferred_count=count,
            collection_name=entity_name,
            strategy=strategy,
            duration_ms=int((time.monotonic() - started) * 1000),
        )


def main():
    parser = argparse.ArgumentParser(description="DVD rental phased migration example")
    parser.add_argument("--plan-only", action="store_true", help="Print the plan and exit")
    parser.add_argument("--executor-url", help="Bulk-transfer service instead of the simulation")
    args = parser.parse_args()

    # Work on a copy so the example snapshot stays pristine
    workdir = Path(tempfile.mkdtemp(prefix="docshift-"))
    catalog_path = workdir / "catalog.json"
    shutil.copy(CATALOG_FILE, catalog_path)
    logger.info(f"Working catalog: {catalog_path}")

    config = EngineConfig(catalog_file=str(catalog_path), execution_timeout_seconds=60.0)
    planner = MigrationPlanner(JsonCatalogReader(catalog_path), config)

    if args.plan_only:
        print_plan(planner.analyze())
        return

    if args.executor_url:
        executor = APIMigrationExecutor(args.executor_url)
    else:
        executor = SnapshotCopyExecutor(catalog_path)

    session = MigrationSession(planner, executor, config)
    InteractiveMigrationCLI(session).run()

    print(f"\nMigrated: {', '.join(sorted(session.migrated)) or 'none'}")


if __name__ == "__main__":
    main()
