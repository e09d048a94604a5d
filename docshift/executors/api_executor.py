"""HTTP migration executor for an external bulk-transfer service."""

import time
import logging
from typing import Any, Dict, Optional

import requests

from .base import BaseMigrationExecutor, CancellationToken
from ..models.execution import ExecutionResult

logger = logging.getLogger(__name__)


class APIMigrationExecutor(BaseMigrationExecutor):
    """
    Delegates the copy of one entity to a REST bulk-transfer service.

    Sends ``POST {base_url}{endpoint}`` with ``{"entity", "strategy"}`` and
    reads ``success``, ``transferred_count``, ``collection_name``,
    ``duration_ms`` and ``error`` from the JSON response (camelCase
    spellings are accepted too).
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        endpoint: str = "/migrations",
        request_timeout: float = 600.0
    ):
        """
        Initialize the executor.

        Args:
            base_url: Base URL of the bulk-transfer service
            api_key: Bearer token
            endpoint: Path of the migration endpoint
            request_timeout: Socket timeout for the transfer request
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.endpoint = endpoint
        self.request_timeout = request_timeout
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with authentication."""
        session = requests.Session()

        if self.api_key:
            session.headers["Authorization"] = f"Bearer {self.api_key}"
        session.headers["Content-Type"] = "application/json"

        return session

    def execute_migration(
        self,
        entity_name: str,
        strategy: str,
        cancel_token: CancellationToken
    ) -> ExecutionResult:
        """Ask the transfer service to migrate one entity."""
        if cancel_token.is_cancelled:
            return ExecutionResult.failure(entity_name, f"Migration cancelled: {cancel_token.reason}", strategy)

        url = f"{self.base_url}{self.endpoint}"
        started = time.monotonic()
        logger.info(f"Starting migration of {entity_name} using {strategy} strategy")

        try:
            response = self._session.post(
                url,
                json={"entity": entity_name, "strategy": strategy},
                timeout=self.request_timeout,
            )
            response.raise_for_status()
            data = response.json() if response.text else {}

        except requests.exceptions.HTTPError as e:
            error_msg = str(e)
            try:
                error_data = e.response.json()
                error_msg = error_data.get("error") or error_data.get("message") or str(error_data)
            except ValueError:
                pass

            logger.error(f"Failed to migrate {entity_name}: {error_msg}")
            return ExecutionResult.failure(
                entity_name, error_msg, strategy,
                duration_ms=int((time.monotonic() - started) * 1000),
            )

        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to migrate {entity_name}: {e}")
            return ExecutionResult.failure(
                entity_name, str(e), strategy,
                duration_ms=int((time.monotonic() - started) * 1000),
            )

        return self._parse_response(entity_name, strategy, data, started)

    def _parse_response(
        self,
        entity_name: str,
        strategy: str,
        data: Dict[str, Any],
        started: float
    ) -> ExecutionResult:
        """Map the service response onto an ExecutionResult."""
        duration = data.get("duration_ms", data.get("durationMs", data.get("duration")))
        if duration is None:
            duration = (time.monotonic() - started) * 1000

        transferred = data.get(
            "transferred_count", data.get("transferredCount", data.get("migratedCount", 0))
        )

        result = ExecutionResult(
            entity=entity_name,
            success=bool(data.get("success", False)),
            transferred_count=int(transferred or 0),
            collection_name=data.get("collection_name", data.get("collectionName", entity_name)),
            strategy=data.get("strategy", strategy),
            duration_ms=int(duration),
            error=data.get("error"),
        )

        if result.success:
            logger.info(
                f"Migrated {entity_name}: {result.transferred_count} records into "
                f"{result.collection_name} in {result.duration_ms}ms"
            )
        else:
            logger.error(f"Transfer service reported failure for {entity_name}: {result.error}")

        return result
