"""Base migration executor interface."""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Optional
import logging
import threading
import time

from ..models.execution import ExecutionResult

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag shared between the engine and an executor."""

    def __init__(self):
        self._event = threading.Event()
        self._finished = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or the timeout elapses. Returns True if cancelled."""
        return self._event.wait(timeout)

    @property
    def finished(self) -> bool:
        """True once the worker running under this token has returned."""
        return self._finished.is_set()

    def wait_finished(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker has returned. Returns False on timeout."""
        return self._finished.wait(timeout)

    def _mark_finished(self) -> None:
        self._finished.set()


class BaseMigrationExecutor(ABC):
    """
    Base class for migration executors.

    Executors perform the actual data transfer of one entity into the
    document store. The engine never retries; a retry is an explicit
    operator re-selection.
    """

    poll_interval: float = 0.1
    # How long a cancelled or timed-out worker gets to stop before it is left running
    cancel_grace_seconds: float = 5.0

    @abstractmethod
    def execute_migration(
        self,
        entity_name: str,
        strategy: str,
        cancel_token: CancellationToken
    ) -> ExecutionResult:
        """
        Migrate one entity.

        Implementations should check ``cancel_token`` between units of work
        and stop early when it is set.

        Args:
            entity_name: Source table to migrate
            strategy: "standalone" or "embedded"
            cancel_token: Cancellation flag set on timeout or operator cancel

        Returns:
            ExecutionResult with success, transferred count and duration
        """
        pass

    def execute(
        self,
        entity_name: str,
        strategy: str,
        timeout: Optional[float] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> ExecutionResult:
        """
        Run ``execute_migration`` with a timeout and cancellation.

        Timeouts, cancellations and raised exceptions all come back as failed
        ExecutionResults, never as exceptions.

        After a timeout or cancellation the worker gets ``cancel_grace_seconds``
        to return. If it is still running after that, the failed result is
        returned anyway and ``cancel_token.finished`` stays False until the
        worker exits; callers must not start another transfer before then.
        """
        token = cancel_token or CancellationToken()
        started = time.monotonic()
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="migration")
        future = pool.submit(self._run, entity_name, strategy, token)

        try:
            while True:
                elapsed = time.monotonic() - started

                if timeout is not None and elapsed >= timeout:
                    token.cancel(f"timed out after {timeout:.1f}s")
                    logger.error(f"Migration of {entity_name} timed out after {timeout:.1f}s")
                    self._stop_worker(entity_name, token)
                    return ExecutionResult.failure(
                        entity_name, f"Migration timed out after {timeout:.1f}s",
                        strategy=strategy, duration_ms=int(elapsed * 1000),
                    )

                if token.is_cancelled:
                    logger.warning(f"Migration of {entity_name} cancelled: {token.reason}")
                    self._stop_worker(entity_name, token)
                    return ExecutionResult.failure(
                        entity_name, f"Migration cancelled: {token.reason}",
                        strategy=strategy, duration_ms=int(elapsed * 1000),
                    )

                wait = self.poll_interval
                if timeout is not None:
                    wait = min(wait, max(timeout - elapsed, 0.0))

                try:
                    result = future.result(timeout=wait)
                    break
                except FutureTimeout:
                    continue
                except Exception as e:
                    logger.error(f"Executor raised while migrating {entity_name}: {e}")
                    return ExecutionResult.failure(
                        entity_name, str(e), strategy=strategy,
                        duration_ms=int((time.monotonic() - started) * 1000),
                    )
        finally:
            pool.shutdown(wait=False)

        if not isinstance(result, ExecutionResult):
            return ExecutionResult.failure(
                entity_name, f"Executor returned {type(result).__name__}, expected ExecutionResult",
                strategy=strategy,
            )

        return result

    def _run(self, entity_name: str, strategy: str, token: CancellationToken):
        try:
            return self.execute_migration(entity_name, strategy, token)
        finally:
            token._mark_finished()

    def _stop_worker(self, entity_name: str, token: CancellationToken) -> None:
        if not token.wait_finished(self.cancel_grace_seconds):
            logger.error(
                f"Transfer of {entity_name} still running {self.cancel_grace_seconds:.1f}s "
                f"after it was cancelled"
            )
