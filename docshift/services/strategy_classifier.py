"""Standalone vs embedded collection strategy classification."""

import logging
from typing import Dict, Mapping, Optional, Sequence

from ..config import StrategyThresholds
from ..models.catalog import SourceEntity
from ..models.plan import MigrationStrategyType, StrategyDecision
from .dependency_graph import DependencyGraph

logger = logging.getLogger(__name__)


class StrategyClassifier:
    """
    Suggests a target representation for each entity.

    - Referenced by several entities: standalone, so each can refer to it
    - Referenced by nobody: standalone top-level collection
    - Referenced by exactly one parent with low cardinality relative to it:
      embedded as a sub-document array inside that parent
    - Otherwise: standalone
    """

    def __init__(self, thresholds: Optional[StrategyThresholds] = None):
        self.thresholds = thresholds or StrategyThresholds()

    def classify(
        self,
        entity: SourceEntity,
        graph: DependencyGraph,
        entities: Mapping[str, SourceEntity]
    ) -> StrategyDecision:
        """
        Classify a single entity.

        Args:
            entity: The entity to classify
            graph: Dependency graph of the catalog
            entities: All source entities by name, for parent row counts

        Returns:
            StrategyDecision with a reason for operator display
        """
        parents = graph.dependents(entity.name)

        if len(parents) > 1:
            return StrategyDecision(
                entity=entity.name,
                strategy=MigrationStrategyType.STANDALONE,
                reason=(
                    f"Referenced by {len(parents)} entities ({', '.join(parents)}) - "
                    f"kept as its own collection"
                ),
            )

        if not parents:
            return StrategyDecision(
                entity=entity.name,
                strategy=MigrationStrategyType.STANDALONE,
                reason="Not referenced by other entities - migrates as a top-level collection",
            )

        parent_name = parents[0]
        parent = entities.get(parent_name)
        parent_rows = parent.record_count if parent else 0
        ratio = entity.record_count / max(parent_rows, 1)

        if entity.record_count > self.thresholds.embed_max_records:
            return StrategyDecision(
                entity=entity.name,
                strategy=MigrationStrategyType.STANDALONE,
                reason=(
                    f"Only referenced by {parent_name}, but {entity.record_count} records "
                    f"exceeds the embedding limit of {self.thresholds.embed_max_records}"
                ),
            )

        if ratio > self.thresholds.embed_max_ratio:
            return StrategyDecision(
                entity=entity.name,
                strategy=MigrationStrategyType.STANDALONE,
                reason=(
                    f"Only referenced by {parent_name}, but has {ratio:.2f} records per "
                    f"{parent_name} record (limit {self.thresholds.embed_max_ratio:.2f})"
                ),
            )

        return StrategyDecision(
            entity=entity.name,
            strategy=MigrationStrategyType.EMBEDDED,
            parent=parent_name,
            reason=(
                f"Only referenced by {parent_name} with low cardinality "
                f"({ratio:.2f} per {parent_name} record) - embed as a sub-document array"
            ),
        )

    def classify_all(
        self,
        entities: Sequence[SourceEntity],
        graph: DependencyGraph
    ) -> Dict[str, StrategyDecision]:
        """Classify every entity in the catalog."""
        by_name = {e.name: e for e in entities}
        decisions = {e.name: self.classify(e, graph, by_name) for e in entities}

        embedded = sum(1 for d in decisions.values() if d.strategy == MigrationStrategyType.EMBEDDED)
        logger.debug(f"Classified {len(decisions)} entities ({embedded} embedded)")
        return decisions
