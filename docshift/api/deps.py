"""FastAPI dependencies wiring the engine from environment configuration."""

from functools import lru_cache

from fastapi import Depends, HTTPException

from ..config import EngineConfig
from ..executors.base import BaseMigrationExecutor
from ..planner import MigrationPlanner, build_executor, build_planner


@lru_cache()
def get_config() -> EngineConfig:
    """Engine configuration from ``DOCSHIFT_*`` environment variables."""
    return EngineConfig.from_env()


def get_planner(config: EngineConfig = Depends(get_config)) -> MigrationPlanner:
    try:
        return build_planner(config)
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))


def get_executor(config: EngineConfig = Depends(get_config)) -> BaseMigrationExecutor:
    try:
        return build_executor(config)
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))
