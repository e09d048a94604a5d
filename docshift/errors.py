"""Error taxonomy for the migration engine."""

from typing import Iterable, List, Optional, Sequence


class MigrationEngineError(Exception):
    """Base class for all engine errors."""


class CatalogUnavailable(MigrationEngineError):
    """A source or target catalog could not be read. Fatal to a planning run."""

    def __init__(self, message: str, side: Optional[str] = None):
        super().__init__(message)
        self.side = side  # "source" or "target"


class UnresolvableDependency(MigrationEngineError):
    """The foreign-key graph cannot be ordered into phases. Fatal to planning."""

    def __init__(self, entities: Iterable[str], message: Optional[str] = None):
        self.entities: List[str] = sorted(set(entities))
        super().__init__(
            message or f"Unresolvable dependencies among: {', '.join(self.entities)}"
        )


class CycleDetected(UnresolvableDependency):
    """The foreign-key graph contains at least one cycle."""

    def __init__(self, cycles: Sequence[Sequence[str]]):
        self.cycles: List[List[str]] = [sorted(c) for c in cycles]
        members = [name for cycle in self.cycles for name in cycle]
        rendered = "; ".join(" -> ".join(c) for c in self.cycles)
        super().__init__(members, f"Dependency cycle detected: {rendered}")


class DependencyNotSatisfied(MigrationEngineError):
    """An entity was selected before all of its dependencies were migrated."""

    def __init__(self, entity: str, missing: Sequence[str]):
        self.entity = entity
        self.missing = list(missing)
        super().__init__(
            f"Cannot migrate '{entity}' yet - missing dependencies: {', '.join(self.missing)}"
        )


class EntityAlreadySynced(MigrationEngineError):
    """An entity was selected that does not need migration."""

    def __init__(self, entity: str, source_count: int = 0, target_count: int = 0):
        self.entity = entity
        self.source_count = source_count
        self.target_count = target_count
        super().__init__(
            f"'{entity}' does not need migration "
            f"({source_count} records <-> {target_count} documents)"
        )


class EntityNotInPlan(MigrationEngineError):
    """A selection named an entity the current plan does not contain."""

    def __init__(self, entity: str, available: Sequence[str] = ()):
        self.entity = entity
        self.available = list(available)
        super().__init__(f"Entity '{entity}' not found in migration plan")


class ExecutionFailed(MigrationEngineError):
    """The migration executor reported failure. The entity stays eligible."""

    def __init__(self, entity: str, error: Optional[str] = None, result=None):
        self.entity = entity
        self.error = error
        self.result = result
        super().__init__(f"Failed to migrate '{entity}': {error or 'unknown error'}")


class SessionBusy(MigrationEngineError):
    """A refresh or execution is already in flight for this session."""


class InvalidTransition(MigrationEngineError):
    """A session operation was invoked from a state that does not allow it."""
