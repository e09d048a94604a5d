"""Tests for dependency graph construction."""

import pytest

from docshift.errors import CycleDetected, UnresolvableDependency
from docshift.services.dependency_graph import DependencyGraph, DependencyGraphBuilder
from tests.conftest import table


@pytest.fixture
def builder():
    return DependencyGraphBuilder()


def test_builds_edges_in_declaration_order(builder):
    graph = builder.build([
        table("customer"),
        table("address"),
        table("rental", 10, "customer", "address"),
    ])

    assert graph.nodes == ["customer", "address", "rental"]
    assert graph.dependencies("rental") == ("customer", "address")
    assert graph.dependencies("customer") == ()
    assert graph.dependents("customer") == ["rental"]
    assert "rental" in graph
    assert len(graph) == 3


def test_duplicate_foreign_keys_collapse(builder):
    graph = builder.build([
        table("film"),
        table("film_actor", 5, "film", "film"),
    ])

    assert graph.dependencies("film_actor") == ("film",)


def test_self_reference_is_dropped(builder):
    graph = builder.build([table("staff", 3, "staff")])

    assert graph.dependencies("staff") == ()
    assert graph.warnings == []


def test_dangling_reference_is_dropped_with_warning(builder, caplog):
    with caplog.at_level("WARNING"):
        graph = builder.build([table("payment", 10, "ledger")])

    assert graph.dependencies("payment") == ()
    assert len(graph.warnings) == 1
    assert "ledger" in graph.warnings[0]
    assert "ledger" in caplog.text


def test_references_resolve_ignoring_case(builder):
    graph = builder.build([
        table("Customer"),
        table("rental", 1, "customer"),
    ])

    assert graph.dependencies("rental") == ("Customer",)


def test_duplicate_entity_names_rejected(builder):
    with pytest.raises(ValueError):
        builder.build([table("film"), table("film")])


def test_cycle_raises_cycle_detected(builder):
    with pytest.raises(CycleDetected) as exc_info:
        builder.build([
            table("a", 1, "b"),
            table("b", 1, "c"),
            table("c", 1, "a"),
            table("d", 1),
        ])

    assert exc_info.value.cycles == [["a", "b", "c"]]
    assert exc_info.value.entities == ["a", "b", "c"]
    assert isinstance(exc_info.value, UnresolvableDependency)


def test_find_cycles_reports_each_component(builder):
    graph = DependencyGraph(
        nodes=["a", "b", "x", "y", "z"],
        edges={"a": ("b",), "b": ("a",), "x": ("y",), "y": ("x",), "z": ("a",)},
    )

    assert builder.find_cycles(graph) == [["a", "b"], ["x", "y"]]


def test_deep_chain_does_not_hit_recursion_limit(builder):
    entities = [table("t0")] + [table(f"t{i}", 1, f"t{i - 1}") for i in range(1, 5000)]

    graph = builder.build(entities)

    assert graph.dependencies("t4999") == ("t4998",)


def test_to_dict(builder):
    graph = builder.build([table("a"), table("b", 1, "a")])

    assert graph.to_dict() == {
        "nodes": ["a", "b"],
        "edges": {"a": [], "b": ["a"]},
        "warnings": [],
    }
