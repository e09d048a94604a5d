"""Dependency graph construction from foreign-key relationships."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from ..errors import CycleDetected
from ..models.catalog import SourceEntity

logger = logging.getLogger(__name__)


@dataclass
class DependencyGraph:
    """
    Directed acyclic graph of source entity dependencies.

    An edge ``rental -> customer`` means rental holds a foreign key to
    customer, so customer must be migrated first.
    """
    nodes: List[str] = field(default_factory=list)
    edges: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def dependencies(self, name: str) -> Tuple[str, ...]:
        """Entities that ``name`` depends on, in declaration order."""
        return self.edges.get(name, ())

    def dependents(self, name: str) -> List[str]:
        """Entities that hold a foreign key to ``name``, sorted."""
        return sorted(node for node, deps in self.edges.items() if name in deps)

    def __contains__(self, name: str) -> bool:
        return name in self.edges

    def __len__(self) -> int:
        return len(self.nodes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "nodes": list(self.nodes),
            "edges": {name: list(deps) for name, deps in self.edges.items()},
            "warnings": list(self.warnings),
        }


class DependencyGraphBuilder:
    """
    Builds a DependencyGraph from a source catalog.

    - Self-references are dropped (they never constrain ordering)
    - References to tables outside the catalog are dropped with a warning
    - Cycles are reported with CycleDetected, never broken silently
    """

    def build(self, entities: Sequence[SourceEntity]) -> DependencyGraph:
        """
        Build the dependency graph.

        Args:
            entities: Source entities with their raw foreign keys

        Returns:
            DependencyGraph over the catalog

        Raises:
            ValueError: If an entity name appears twice
            CycleDetected: If the foreign keys form a cycle
        """
        graph = DependencyGraph()
        canonical: Dict[str, str] = {}

        for entity in entities:
            if entity.name in graph.edges:
                raise ValueError(f"Duplicate entity in source catalog: {entity.name}")
            graph.nodes.append(entity.name)
            graph.edges[entity.name] = ()
            canonical.setdefault(entity.name.lower(), entity.name)

        for entity in entities:
            deps: List[str] = []
            for referenced in entity.depends_on:
                target = referenced if referenced in graph.edges else canonical.get(referenced.lower())

                if target == entity.name:
                    logger.debug(f"Dropping self-reference on {entity.name}")
                    continue

                if target is None:
                    warning = (
                        f"{entity.name} references {referenced}, which is not in the "
                        f"source catalog; ignoring the reference"
                    )
                    logger.warning(warning)
                    graph.warnings.append(warning)
                    continue

                if target not in deps:
                    deps.append(target)

            graph.edges[entity.name] = tuple(deps)

        cycles = self.find_cycles(graph)
        if cycles:
            raise CycleDetected(cycles)

        logger.info(
            f"Built dependency graph: {len(graph.nodes)} entities, "
            f"{sum(len(d) for d in graph.edges.values())} dependencies"
        )
        return graph

    def find_cycles(self, graph: DependencyGraph) -> List[List[str]]:
        """
        Find strongly-connected components with more than one member.

        Iterative Tarjan, so deep foreign-key chains do not hit the
        recursion limit.
        """
        index_of: Dict[str, int] = {}
        lowlink: Dict[str, int] = {}
        on_stack = set()
        stack: List[str] = []
        cycles: List[List[str]] = []
        counter = 0

        for root in graph.nodes:
            if root in index_of:
                continue

            work = [(root, iter(graph.dependencies(root)))]
            index_of[root] = lowlink[root] = counter
            counter += 1
            stack.append(root)
            on_stack.add(root)

            while work:
                node, children = work[-1]
                advanced = False

                for child in children:
                    if child not in index_of:
                        index_of[child] = lowlink[child] = counter
                        counter += 1
                        stack.append(child)
                        on_stack.add(child)
                        work.append((child, iter(graph.dependencies(child))))
                        advanced = True
                        break
                    if child in on_stack:
                        lowlink[node] = min(lowlink[node], index_of[child])

                if advanced:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])

                if lowlink[node] == index_of[node]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    if len(component) > 1:
                        cycles.append(sorted(component))

        return cycles
