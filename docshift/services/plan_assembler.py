"""Assembly of the phased migration plan."""

import logging
from dataclasses import replace
from typing import List, Mapping, Sequence

from ..models.plan import (
    MigrationPhase,
    MigrationPlan,
    MigrationPlanEntity,
    MigrationStrategyType,
    StrategyDecision,
)
from ..models.sync import EntityComparison, SyncStatus
from .dependency_graph import DependencyGraph
from .phase_planner import PhasePlanner

logger = logging.getLogger(__name__)


class PlanAssembler:
    """Combines phases, strategies and sync states into a MigrationPlan."""

    def assemble(
        self,
        phases: Sequence[Sequence[str]],
        graph: DependencyGraph,
        strategies: Mapping[str, StrategyDecision],
        sync_states: Mapping[str, EntityComparison]
    ) -> MigrationPlan:
        """
        Assemble the plan. Pure: no external systems are touched.

        Args:
            phases: Ordered phases of entity names from the PhasePlanner
            graph: Dependency graph, for each entity's dependencies
            strategies: Strategy decision per entity
            sync_states: Source/target comparison per source entity

        Returns:
            A new MigrationPlan snapshot
        """
        scheduled = set()
        plan_phases: List[MigrationPhase] = []

        for index, names in enumerate(phases, 1):
            name, description = PhasePlanner.describe_phase(index)
            entities = tuple(
                self._plan_entity(n, graph, strategies, sync_states) for n in names
            )
            scheduled.update(names)
            plan_phases.append(MigrationPhase(
                index=index,
                name=name,
                description=description,
                entities=entities,
            ))

        synced = tuple(
            self._plan_entity(n, graph, strategies, sync_states)
            for n in sorted(sync_states)
            if n not in scheduled and sync_states[n].status == SyncStatus.SYNCED
        )

        total = sum(len(p.entities_to_migrate) for p in plan_phases)
        plan = MigrationPlan(
            phases=tuple(plan_phases),
            total_entities_to_migrate=total,
            synced_entities=synced,
            warnings=tuple(graph.warnings),
        )

        plan = replace(plan, summary=self.render_summary(plan))
        logger.info(f"Assembled plan: {plan.total_phases} phases, {total} entities to migrate")
        return plan

    def _plan_entity(
        self,
        name: str,
        graph: DependencyGraph,
        strategies: Mapping[str, StrategyDecision],
        sync_states: Mapping[str, EntityComparison]
    ) -> MigrationPlanEntity:
        state = sync_states.get(name)
        if state is None:
            state = EntityComparison(
                name=name, source_count=0, target_count=0, status=SyncStatus.SOURCE_ONLY
            )

        decision = strategies.get(name)
        strategy = decision.strategy if decision else MigrationStrategyType.STANDALONE

        if state.needs_migration:
            reason = decision.reason if decision else "No strategy decision - defaulting to standalone"
        elif state.status == SyncStatus.SYNCED:
            reason = "Already migrated and synced"
        else:
            reason = (
                f"Target is ahead of source ({state.target_count} documents vs "
                f"{state.source_count} records) - nothing to migrate"
            )

        return MigrationPlanEntity(
            name=name,
            record_count=state.source_count,
            current_target_count=state.target_count,
            dependencies=tuple(graph.dependencies(name)),
            needs_migration=state.needs_migration,
            migration_strategy=strategy,
            reason=reason,
            sync_status=state.status,
        )

    @staticmethod
    def render_summary(plan: MigrationPlan) -> str:
        """Human-readable plan summary, listing only entities that need migration."""
        lines = [
            "Relational to Document Store Migration Plan",
            "",
            f"Total Phases: {plan.total_phases}",
            f"Entities to Migrate: {plan.total_entities_to_migrate}",
            f"Already Synced: {len(plan.synced_entities)}",
            "",
        ]

        for phase in plan.phases:
            to_migrate = phase.entities_to_migrate
            if not to_migrate:
                continue

            lines.append(f"Phase {phase.index}: {phase.name}")
            lines.append(f"   {phase.description}")
            lines.append(f"   Entities to Migrate ({len(to_migrate)}):")
            for entity in to_migrate:
                lines.append(
                    f"     {entity.name} ({entity.record_count} records) - "
                    f"{entity.migration_strategy.value.upper()}"
                )
                if entity.current_target_count > 0:
                    lines.append(f"        Current target: {entity.current_target_count} documents")
                if entity.dependencies:
                    lines.append(f"        Dependencies: {', '.join(entity.dependencies)}")
                lines.append(f"        Reason: {entity.reason}")
            lines.append("")

        if plan.total_entities_to_migrate == 0:
            lines.append("All entities are already migrated and synchronized!")
        else:
            lines.append("Strategies:")
            lines.append("   STANDALONE: entity becomes its own top-level collection")
            lines.append("   EMBEDDED: entity is nested as a sub-document array in its parent")

        if plan.warnings:
            lines.append("")
            lines.append("Warnings:")
            for warning in plan.warnings:
                lines.append(f"   {warning}")

        return "\n".join(lines)
