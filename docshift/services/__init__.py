"""Planning services for the migration engine."""

from .dependency_graph import DependencyGraph, DependencyGraphBuilder
from .phase_planner import PhasePlanner
from .sync_comparator import SyncStateComparator
from .strategy_classifier import StrategyClassifier
from .plan_assembler import PlanAssembler

__all__ = [
    "DependencyGraph",
    "DependencyGraphBuilder",
    "PhasePlanner",
    "SyncStateComparator",
    "StrategyClassifier",
    "PlanAssembler",
]
