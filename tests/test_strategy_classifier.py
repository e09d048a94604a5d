"""Tests for standalone/embedded strategy classification."""

import pytest

from docshift.config import StrategyThresholds
from docshift.models.plan import MigrationStrategyType
from docshift.services.dependency_graph import DependencyGraphBuilder
from docshift.services.strategy_classifier import StrategyClassifier
from tests.conftest import table


def classify_all(entities, thresholds=None):
    graph = DependencyGraphBuilder().build(entities)
    return StrategyClassifier(thresholds).classify_all(entities, graph)


def test_entity_referenced_by_many_is_standalone():
    decisions = classify_all([
        table("customer", 100),
        table("rental", 500, "customer"),
        table("payment", 800, "customer"),
    ])

    assert decisions["customer"].strategy == MigrationStrategyType.STANDALONE
    assert "payment, rental" in decisions["customer"].reason


def test_unreferenced_entity_is_standalone():
    decisions = classify_all([table("film", 1000)])

    assert decisions["film"].strategy == MigrationStrategyType.STANDALONE
    assert decisions["film"].parent is None


def test_low_cardinality_single_parent_is_embedded():
    decisions = classify_all([
        table("language", 6),
        table("film", 1000, "language"),
    ])

    assert decisions["language"].strategy == MigrationStrategyType.EMBEDDED
    assert decisions["language"].parent == "film"


def test_high_ratio_single_parent_is_standalone():
    decisions = classify_all([
        table("address", 600),
        table("customer", 599, "address"),
    ])

    assert decisions["address"].strategy == MigrationStrategyType.STANDALONE
    assert "per customer record" in decisions["address"].reason


def test_too_many_records_to_embed_is_standalone():
    decisions = classify_all([
        table("category", 2000),
        table("film", 100000, "category"),
    ])

    assert decisions["category"].strategy == MigrationStrategyType.STANDALONE
    assert "embedding limit" in decisions["category"].reason


def test_thresholds_are_configurable():
    entities = [table("address", 600), table("customer", 599, "address")]

    decisions = classify_all(entities, StrategyThresholds(embed_max_ratio=2.0))

    assert decisions["address"].strategy == MigrationStrategyType.EMBEDDED


@pytest.mark.parametrize("parent_rows", [0, 1])
def test_empty_parent_does_not_divide_by_zero(parent_rows):
    decisions = classify_all([
        table("note", 0),
        table("ticket", parent_rows, "note"),
    ])

    assert decisions["note"].strategy == MigrationStrategyType.EMBEDDED
