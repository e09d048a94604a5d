"""Phase planning: topological leveling of the dependency graph."""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..errors import UnresolvableDependency
from ..models.sync import SyncStatus
from .dependency_graph import DependencyGraph

logger = logging.getLogger(__name__)

GraphLike = Union[DependencyGraph, Mapping[str, Iterable[str]]]


class PhasePlanner:
    """
    Partitions entities into ordered migration phases (Kahn leveling).

    Phase 1 holds entities whose dependencies are empty or already synced;
    phase k holds entities whose dependencies all sit in phases 1..k-1 or
    are synced. Already-synced entities are not scheduled at all. Within a
    phase, entities are sorted by name so output is reproducible.
    """

    def plan(
        self,
        graph: GraphLike,
        statuses: Optional[Mapping[str, SyncStatus]] = None
    ) -> List[List[str]]:
        """
        Level the graph into phases.

        Args:
            graph: DependencyGraph or a plain ``name -> dependencies`` mapping
            statuses: Sync status per entity; synced entities are skipped

        Returns:
            Ordered list of phases, each a sorted list of entity names

        Raises:
            UnresolvableDependency: If some entities can never be scheduled
                (a cycle, or a dependency that is neither scheduled nor synced)
        """
        edges = self._edges(graph)
        statuses = statuses or {}

        synced = {name for name, status in statuses.items() if status == SyncStatus.SYNCED}
        remaining = {name: deps for name, deps in edges.items() if name not in synced}
        placed = set(synced)
        phases: List[List[str]] = []

        while remaining:
            ready = sorted(
                name for name, deps in remaining.items()
                if all(dep in placed for dep in deps)
            )

            if not ready:
                stuck = sorted(remaining)
                logger.error(f"Cannot schedule entities, unresolved dependencies: {stuck}")
                raise UnresolvableDependency(stuck)

            phases.append(ready)
            placed.update(ready)
            for name in ready:
                del remaining[name]

        logger.info(
            f"Planned {len(phases)} phases for {sum(len(p) for p in phases)} entities "
            f"({len(synced & set(edges))} already synced)"
        )
        return phases

    @staticmethod
    def describe_phase(index: int) -> Tuple[str, str]:
        """Display name and description for a 1-based phase index."""
        if index == 1:
            return (
                "Independent Entities",
                "Entities with no unmigrated foreign key dependencies - safe to migrate first",
            )
        return (
            f"Dependent Entities (level {index})",
            f"Entities whose dependencies are all satisfied by phases 1-{index - 1} "
            f"or already synced",
        )

    @staticmethod
    def _edges(graph: GraphLike) -> Dict[str, Tuple[str, ...]]:
        if isinstance(graph, DependencyGraph):
            return dict(graph.edges)
        # Self-references never constrain ordering
        return {
            name: tuple(dep for dep in deps if dep != name)
            for name, deps in graph.items()
        }
