"""Migration planner - runs graph building, phasing, comparison and assembly."""

import logging
from typing import Optional

from .config import EngineConfig
from .catalogs.base import BaseCatalogReader, CatalogSnapshot
from .catalogs.json_catalog import JsonCatalogReader
from .catalogs.api_catalog import APICatalogReader
from .executors.base import BaseMigrationExecutor
from .executors.api_executor import APIMigrationExecutor
from .models.plan import MigrationPlan
from .models.sync import ComprehensiveDatabaseState
from .services.dependency_graph import DependencyGraphBuilder
from .services.phase_planner import PhasePlanner
from .services.sync_comparator import SyncStateComparator
from .services.strategy_classifier import StrategyClassifier
from .services.plan_assembler import PlanAssembler

logger = logging.getLogger(__name__)


class MigrationPlanner:
    """
    Produces migration plans and database state from live catalogs.

    Handles:
    - Concurrent source/target catalog reads
    - Dependency graph construction
    - Phase leveling
    - Sync state comparison
    - Strategy classification
    - Plan assembly

    Holds no session state; every call reads the catalogs afresh.
    """

    def __init__(
        self,
        catalog: BaseCatalogReader,
        config: Optional[EngineConfig] = None
    ):
        """
        Initialize the planner.

        Args:
            catalog: Reader for the source and target catalogs
            config: Engine configuration
        """
        self.catalog = catalog
        self.config = config or EngineConfig()
        self.graph_builder = DependencyGraphBuilder()
        self.phase_planner = PhasePlanner()
        self.comparator = SyncStateComparator(case_insensitive=self.config.case_insensitive_names)
        self.classifier = StrategyClassifier(self.config.thresholds)
        self.assembler = PlanAssembler()

    def fetch_snapshot(self) -> CatalogSnapshot:
        """Read both catalogs. Raises CatalogUnavailable."""
        return self.catalog.fetch_snapshot()

    def build_plan(self, snapshot: CatalogSnapshot) -> MigrationPlan:
        """
        Build a plan from an already-fetched snapshot.

        Raises:
            CycleDetected: If the foreign keys form a cycle
            UnresolvableDependency: If entities cannot be leveled
        """
        graph = self.graph_builder.build(snapshot.source)
        sync_states = self.comparator.statuses_for(snapshot.source, snapshot.target)
        phases = self.phase_planner.plan(
            graph, {name: state.status for name, state in sync_states.items()}
        )
        strategies = self.classifier.classify_all(snapshot.source, graph)
        return self.assembler.assemble(phases, graph, strategies, sync_states)

    def analyze(self) -> MigrationPlan:
        """Read the catalogs and build a fresh migration plan."""
        logger.info("Analyzing source dependencies for migration ordering...")
        snapshot = self.fetch_snapshot()
        plan = self.build_plan(snapshot)
        logger.info(
            f"Migration plan ready: {plan.total_phases} phases, "
            f"{plan.total_entities_to_migrate} entities to migrate"
        )
        return plan

    def database_state(self, snapshot: Optional[CatalogSnapshot] = None) -> ComprehensiveDatabaseState:
        """Compare current source and target counts."""
        snapshot = snapshot or self.fetch_snapshot()
        return self.comparator.compare(snapshot.source, snapshot.target)


def create_catalog_reader(config: EngineConfig) -> BaseCatalogReader:
    """Create the catalog reader the configuration points at."""
    if config.catalog_file:
        return JsonCatalogReader(config.catalog_file)

    if config.source_catalog_url and config.target_catalog_url:
        return APICatalogReader(
            source_url=config.source_catalog_url,
            target_url=config.target_catalog_url,
            api_key=config.api_key,
        )

    raise ValueError(
        "No catalog configured: set catalog_file, or both source_catalog_url and target_catalog_url"
    )


def build_executor(config: EngineConfig) -> BaseMigrationExecutor:
    """Create the migration executor the configuration points at."""
    if not config.executor_url:
        raise ValueError("No migration executor configured: set executor_url")

    return APIMigrationExecutor(
        base_url=config.executor_url,
        api_key=config.api_key,
        request_timeout=config.execution_timeout_seconds or 600.0,
    )


def build_planner(config: EngineConfig) -> MigrationPlanner:
    """Create a planner reading the catalogs the configuration points at."""
    return MigrationPlanner(create_catalog_reader(config), config)
