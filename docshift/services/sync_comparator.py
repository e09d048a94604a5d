"""Comparison of source record counts against target document counts."""

import logging
from typing import Dict, List, Sequence

from ..models.catalog import SourceEntity, TargetEntity
from ..models.sync import (
    ComprehensiveDatabaseState,
    EntityComparison,
    OverallSyncStatus,
    SyncStatus,
)

logger = logging.getLogger(__name__)


class SyncStateComparator:
    """
    Derives synchronization status from catalog snapshots.

    Pure: inputs are never mutated and the same snapshots always produce
    the same result, so it is safe to call on every refresh.
    """

    def __init__(self, case_insensitive: bool = True):
        """
        Initialize the comparator.

        Args:
            case_insensitive: Match table and collection names ignoring case
        """
        self.case_insensitive = case_insensitive

    def _key(self, name: str) -> str:
        return name.lower() if self.case_insensitive else name

    @staticmethod
    def compare_entity(source_count: int, target_count: int) -> SyncStatus:
        """Status for an entity present on both sides."""
        if source_count == target_count:
            return SyncStatus.SYNCED
        if source_count > target_count:
            return SyncStatus.SOURCE_AHEAD
        return SyncStatus.TARGET_AHEAD

    def _index_targets(self, target_entities: Sequence[TargetEntity]) -> Dict[str, TargetEntity]:
        index: Dict[str, TargetEntity] = {}
        for target in target_entities:
            index.setdefault(self._key(target.name), target)
        return index

    def statuses_for(
        self,
        source_entities: Sequence[SourceEntity],
        target_entities: Sequence[TargetEntity]
    ) -> Dict[str, EntityComparison]:
        """
        Comparison for every source entity, keyed by source name.

        Source-only entities are reported with a target count of zero.
        """
        targets = self._index_targets(target_entities)
        result: Dict[str, EntityComparison] = {}

        for source in source_entities:
            target = targets.get(self._key(source.name))
            if target is None:
                result[source.name] = EntityComparison(
                    name=source.name,
                    source_count=source.record_count,
                    target_count=0,
                    status=SyncStatus.SOURCE_ONLY,
                    difference=source.record_count,
                )
                continue

            result[source.name] = EntityComparison(
                name=source.name,
                source_count=source.record_count,
                target_count=target.document_count,
                status=self.compare_entity(source.record_count, target.document_count),
                difference=abs(source.record_count - target.document_count),
            )

        return result

    def compare(
        self,
        source_entities: Sequence[SourceEntity],
        target_entities: Sequence[TargetEntity]
    ) -> ComprehensiveDatabaseState:
        """
        Build the comprehensive state of both catalogs.

        Args:
            source_entities: Tables with record counts
            target_entities: Collections with document counts

        Returns:
            ComprehensiveDatabaseState
        """
        statuses = self.statuses_for(source_entities, target_entities)
        source_keys = {self._key(s.name) for s in source_entities}

        common = [c for c in statuses.values() if c.status != SyncStatus.SOURCE_ONLY]
        source_only = [s for s in source_entities if statuses[s.name].status == SyncStatus.SOURCE_ONLY]
        target_only = [t for t in target_entities if self._key(t.name) not in source_keys]

        state = ComprehensiveDatabaseState(
            common_entities=common,
            source_only=source_only,
            target_only=target_only,
            total_source_records=sum(s.record_count for s in source_entities),
            total_target_records=sum(t.document_count for t in target_entities),
            overall_sync_status=self._overall_status(common, source_only, target_only),
        )
        state.summary = self.render_summary(state)

        logger.debug(
            f"Compared {len(source_entities)} tables with {len(target_entities)} collections: "
            f"{state.overall_sync_status.value}"
        )
        return state

    @staticmethod
    def _overall_status(
        common: List[EntityComparison],
        source_only: List[SourceEntity],
        target_only: List[TargetEntity]
    ) -> OverallSyncStatus:
        synced = sum(1 for c in common if c.status == SyncStatus.SYNCED)

        if synced == len(common) and not source_only and not target_only:
            return OverallSyncStatus.SYNCED
        if synced == 0:
            return OverallSyncStatus.OUT_OF_SYNC
        return OverallSyncStatus.PARTIALLY_SYNCED

    @staticmethod
    def render_summary(state: ComprehensiveDatabaseState) -> str:
        """Human-readable comparison summary."""
        lines = [
            "Comprehensive Database State Comparison",
            "",
            f"Overall Sync Status: {state.overall_sync_status.value.replace('_', ' ').upper()}",
            f"Total Source Records: {state.total_source_records:,}",
            f"Total Target Documents: {state.total_target_records:,}",
            "",
            f"Common Entities: {len(state.common_entities)} "
            f"({len(state.synced_entities)} synced)",
        ]

        for entity in state.common_entities:
            line = f"  {entity.name}: {entity.source_count} <-> {entity.target_count} [{entity.status.value}]"
            if entity.difference:
                missing_in = "target" if entity.status == SyncStatus.SOURCE_AHEAD else "source"
                line += f" - {entity.difference} records missing in {missing_in}"
            lines.append(line)

        if state.source_only:
            lines.append("")
            lines.append(f"Source Only Tables: {len(state.source_only)}")
            for source in state.source_only:
                lines.append(f"  {source.name} ({source.record_count} records)")

        if state.target_only:
            lines.append("")
            lines.append(f"Target Only Collections: {len(state.target_only)}")
            for target in state.target_only:
                lines.append(f"  {target.name} ({target.document_count} documents)")

        return "\n".join(lines)
