"""Import Coordinator — single-flight gate for import and catalog-mutating operations.

Invariants:
    - At most one operation runs inside run_exclusive at a time (per coordinator)
    - The lock is released on success, on error, and on cancellation
    - Any Exception from the operation is logged and turned into False
    - Cancellation is re-raised after the lock is released, never converted
    - Not reentrant: an operation must not call run_exclusive on the same coordinator

Design Decisions:
    - asyncio.Lock: every caller (watcher, API routes) runs on the same event loop
    - This gate only narrows races; raw-material uniqueness is still guaranteed by
      the store's unique index plus the registry's conflict retry
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ImportCoordinator:
    """Serializes operations that mutate formulas or raw materials."""

    def __init__(self):
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def run_exclusive(
        self, operation: Callable[[], Awaitable[T]], label: str = "import",
    ) -> T | bool:
        """Run operation under the gate; its result, or False if it raised."""
        async with self._lock:
            logger.info(f"Starting {label} operation", extra={"operation": label})
            try:
                result = await operation()
            except asyncio.CancelledError:
                logger.warning(f"{label} operation cancelled", extra={"operation": label})
                raise
            except Exception as e:
                logger.error(
                    f"Error during {label} operation: {e}",
                    extra={"operation": label}, exc_info=True,
                )
                return False
            logger.info(
                f"Completed {label} operation with result: {result}",
                extra={"operation": label},
            )
            return result
