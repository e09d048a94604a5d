"""Tests for plan assembly and the planning facade."""

import pytest

from docshift.catalogs.base import StaticCatalogReader
from docshift.errors import CatalogUnavailable, CycleDetected
from docshift.models.plan import MigrationStrategyType
from docshift.models.sync import SyncStatus
from docshift.planner import MigrationPlanner
from tests.conftest import collection, table


def plan_for(source, target=()):
    return MigrationPlanner(StaticCatalogReader(source, target)).analyze()


def test_rental_plan_phases():
    plan = plan_for([
        table("customer", 0),
        table("address", 50),
        table("rental", 200, "customer", "address"),
    ])

    assert plan.total_phases == 2
    assert [e.name for e in plan.phases[0].entities] == ["address", "customer"]
    assert [e.name for e in plan.phases[1].entities] == ["rental"]
    assert plan.phases[0].name == "Independent Entities"
    assert plan.phases[1].index == 2
    assert plan.total_entities_to_migrate == 3
    assert plan.get_entity("rental").dependencies == ("customer", "address")


def test_synced_entities_are_listed_but_not_phased():
    plan = plan_for(
        [table("actor", 200), table("film", 1000), table("film_actor", 5000, "actor", "film")],
        [collection("actor", 200), collection("film", 400)],
    )

    assert [e.name for e in plan.synced_entities] == ["actor"]
    assert plan.synced_entities[0].reason == "Already migrated and synced"
    assert [[e.name for e in p.entities] for p in plan.phases] == [["film"], ["film_actor"]]
    assert plan.phase_of("actor") is None
    assert plan.total_entities_to_migrate == 2

    film = plan.get_entity("film")
    assert film.sync_status == SyncStatus.SOURCE_AHEAD
    assert film.current_target_count == 400
    assert film.needs_migration


def test_target_ahead_entity_is_phased_without_migration():
    plan = plan_for(
        [table("staff", 2), table("store", 2, "staff")],
        [collection("staff", 5)],
    )

    staff = plan.get_entity("staff")
    assert not staff.needs_migration
    assert "Target is ahead of source" in staff.reason
    assert plan.total_entities_to_migrate == 1
    assert "staff (" not in plan.summary


def test_every_source_entity_appears_once():
    source = [
        table("actor", 200), table("film", 10), table("language", 2),
        table("film_actor", 30, "actor", "film"), table("inventory", 5, "film"),
    ]
    plan = plan_for(source, [collection("actor", 200)])

    names = [e.name for e in plan.iter_entities()]
    assert sorted(names) == sorted(s.name for s in source)
    assert len(names) == len(set(names))


def test_strategies_attach_to_plan_entities():
    plan = plan_for([table("language", 6), table("film", 1000, "language")])

    language = plan.get_entity("language")
    assert language.migration_strategy == MigrationStrategyType.EMBEDDED
    assert "film" in language.reason


def test_plan_is_deterministic():
    source = [table("b", 1, "a"), table("a", 1), table("c", 1, "a")]

    first = plan_for(source).to_dict()
    second = plan_for(list(reversed(source))).to_dict()

    first.pop("generated_at")
    second.pop("generated_at")
    assert first == second


def test_summary_lists_phases():
    plan = plan_for([table("address", 50), table("rental", 200, "address")])

    assert "Total Phases: 2" in plan.summary
    assert "Phase 2: Dependent Entities (level 2)" in plan.summary
    assert "Dependencies: address" in plan.summary


def test_summary_when_everything_is_synced():
    plan = plan_for([table("actor", 2)], [collection("actor", 2)])

    assert plan.total_phases == 0
    assert "All entities are already migrated and synchronized!" in plan.summary


def test_dangling_references_become_warnings():
    plan = plan_for([table("payment", 1, "ledger")])

    assert len(plan.warnings) == 1
    assert "Warnings:" in plan.summary


def test_get_entity_ignores_case():
    plan = plan_for([table("Rental", 1)])

    assert plan.get_entity("rental").name == "Rental"
    assert plan.get_entity("missing") is None


def test_cycle_fails_planning():
    with pytest.raises(CycleDetected) as exc_info:
        plan_for([table("a", 1, "b"), table("b", 1, "c"), table("c", 1, "a")])

    assert exc_info.value.entities == ["a", "b", "c"]


def test_catalog_failure_surfaces_as_catalog_unavailable():
    class BrokenCatalog(StaticCatalogReader):
        def fetch_target_catalog(self):
            raise ConnectionError("document store unreachable")

    planner = MigrationPlanner(BrokenCatalog([table("actor", 1)]))

    with pytest.raises(CatalogUnavailable) as exc_info:
        planner.analyze()

    assert exc_info.value.side == "target"
