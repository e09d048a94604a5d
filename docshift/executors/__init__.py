"""Migration executors that perform the actual data transfer."""

from .base import BaseMigrationExecutor, CancellationToken
from .api_executor import APIMigrationExecutor

__all__ = [
    "BaseMigrationExecutor",
    "CancellationToken",
    "APIMigrationExecutor",
]
