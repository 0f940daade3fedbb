"""Raw Material Registry — get-or-create by exact name, tolerant of racing creators.

Invariants:
    - An existing raw material is returned unchanged (its price is authoritative)
    - A new raw material is created with the supplied price rounded to 2 decimals
    - A name collision on insert never propagates: the lookup is retried once per
      entry of retry_delays_ms, sleeping that long before each lookup
    - If the winner's row never becomes visible, ConflictUnresolvedError is raised
      and the caller aborts the whole import
    - Any other store error propagates unchanged

Design Decisions:
    - Returns (record, created) like Django's get_or_create so callers can tell a
      fresh catalog entry from a resolved one
    - Collision detected by the typed UniqueConstraintViolation, not message text
"""

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

from formulary.core.costing import round2
from formulary.core.domain_types import RawMaterialRecord
from formulary.core.errors import ConflictUnresolvedError, UniqueConstraintViolation
from formulary.core.repository_protocols import RawMaterialStore

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAYS_MS = (50, 100, 150)


class RawMaterialRegistry:
    """Resolves raw materials by name, creating them on first reference."""

    def __init__(
        self,
        store: RawMaterialStore,
        retry_delays_ms: Sequence[int] = DEFAULT_RETRY_DELAYS_MS,
    ):
        self.store = store
        self.retry_delays_ms = tuple(retry_delays_ms)

    async def get_or_create(
        self, name: str, price_per_kg: Decimal,
    ) -> tuple[RawMaterialRecord, bool]:
        existing = await self.store.get_by_name(name)
        if existing is not None:
            return existing, False

        try:
            created = await self.store.add(
                name, round2(price_per_kg), datetime.now(timezone.utc),
            )
        except UniqueConstraintViolation:
            logger.warning(
                f"Raw material '{name}' created concurrently, waiting for it to become visible",
                extra={"raw_material": name},
            )
            return await self._await_winner(name), False

        logger.info(f"Created raw material '{name}'", extra={"raw_material": name})
        return created, True

    async def _await_winner(self, name: str) -> RawMaterialRecord:
        for attempt, delay_ms in enumerate(self.retry_delays_ms, start=1):
            await asyncio.sleep(delay_ms / 1000)
            existing = await self.store.get_by_name(name)
            if existing is not None:
                logger.info(
                    f"Resolved raw material '{name}' after conflict",
                    extra={"raw_material": name, "attempt": attempt},
                )
                return existing
            logger.warning(
                f"Raw material '{name}' still not visible (attempt {attempt})",
                extra={"raw_material": name, "attempt": attempt},
            )
        raise ConflictUnresolvedError(name, len(self.retry_delays_ms))
