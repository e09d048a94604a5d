"""Shared fixtures: in-memory catalogs and a scripted migration executor."""

import pytest

from docshift.catalogs.base import StaticCatalogReader
from docshift.config import EngineConfig
from docshift.executors.base import BaseMigrationExecutor
from docshift.models.catalog import ForeignKeyRef, SourceEntity, TargetEntity
from docshift.models.execution import ExecutionResult
from docshift.planner import MigrationPlanner


def table(name, rows=0, *refs):
    """Source entity with foreign keys to ``refs``, in order."""
    return SourceEntity(
        name=name,
        record_count=rows,
        foreign_keys=tuple(ForeignKeyRef(referenced_entity=r) for r in refs),
    )


def collection(name, docs):
    return TargetEntity(name=name, document_count=docs)


class ScriptedExecutor(BaseMigrationExecutor):
    """
    Executor whose outcomes are scripted per entity.

    Successful migrations copy the source count into the in-memory target
    catalog, so refreshed state reflects them.
    """

    poll_interval = 0.01

    def __init__(self, catalog=None, failures=None, raises=None):
        self.catalog = catalog
        self.failures = dict(failures or {})
        self.raises = dict(raises or {})
        self.calls = []

    def execute_migration(self, entity_name, strategy, cancel_token):
        self.calls.append((entity_name, strategy))

        if entity_name in self.raises:
            raise self.raises[entity_name]

        if entity_name in self.failures:
            return ExecutionResult.failure(entity_name, self.failures[entity_name], strategy)

        count = 0
        if self.catalog is not None:
            source = {s.name: s for s in self.catalog.fetch_source_catalog()}
            count = source[entity_name].record_count
            self.catalog.update_target(entity_name, count)

        return ExecutionResult(
            entity=entity_name,
            success=True,
            transferred_count=count,
            collection_name=entity_name,
            strategy=strategy,
            duration_ms=5,
        )


@pytest.fixture
def rental_catalog():
    """The rental schema: rental depends on customer and address."""
    return StaticCatalogReader(
        source=[
            table("customer", 0),
            table("address", 50),
            table("rental", 200, "customer", "address"),
        ],
    )


@pytest.fixture
def config():
    return EngineConfig(execution_timeout_seconds=5.0)


@pytest.fixture
def planner(rental_catalog, config):
    return MigrationPlanner(rental_catalog, config)


@pytest.fixture
def executor(rental_catalog):
    return ScriptedExecutor(rental_catalog)
