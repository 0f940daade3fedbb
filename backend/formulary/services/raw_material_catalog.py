"""Raw Material Catalog — listing and explicit price updates.

Invariants:
    - Prices are stored with 2 decimals
    - update_price publishes PriceUpdated(name, new price) only when the row existed
    - Formula costs are NOT touched here; callers follow up with
      FormulaImportEngine.recalculate_costs
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from formulary.core.costing import round2
from formulary.core.domain_types import RawMaterialId
from formulary.core.events import PriceUpdated
from formulary.core.repository_protocols import NotificationSink, RawMaterialStore
from formulary.schemas.formula import RawMaterialDisplay

logger = logging.getLogger(__name__)


class RawMaterialCatalog:

    def __init__(self, store: RawMaterialStore, sink: NotificationSink):
        self.store = store
        self.sink = sink

    async def list_raw_materials(self) -> list[RawMaterialDisplay]:
        return [
            RawMaterialDisplay(id=rm.id, name=rm.name, price_per_kg=round2(rm.price_per_kg))
            for rm in await self.store.list_all()
        ]

    async def update_price(self, raw_material_id: RawMaterialId, new_price: Decimal) -> bool:
        try:
            updated = await self.store.update_price(
                raw_material_id, round2(new_price), datetime.now(timezone.utc),
            )
        except Exception as e:
            logger.error(
                f"Error updating raw material price for ID {raw_material_id}: {e}",
                exc_info=True,
            )
            return False
        if updated is None:
            logger.warning(f"Raw material with ID {raw_material_id} not found")
            return False

        logger.info(
            f"Raw material {updated.name} price updated to {updated.price_per_kg}",
            extra={"raw_material": updated.name},
        )
        await self.sink.publish(PriceUpdated(updated.name, updated.price_per_kg))
        return True
