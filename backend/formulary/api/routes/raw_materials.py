"""Raw Material Routes — catalog listing and price updates.

Invariants:
    - A price update and the cost recalculation it triggers run as ONE coordinator
      operation: no import can observe the new price with stale formula costs
"""

import logging

from fastapi import APIRouter, Depends

from formulary.api.dependencies import get_runtime
from formulary.core.domain_types import RawMaterialId
from formulary.core.errors import DatabaseError, ResourceNotFoundError
from formulary.runtime import Runtime
from formulary.schemas.formula import (
    PriceUpdateRequest, PriceUpdateResult, RawMaterialDisplay,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/raw-materials", tags=["raw-materials"])


@router.get("", response_model=list[RawMaterialDisplay])
async def list_raw_materials(runtime: Runtime = Depends(get_runtime)):
    return await runtime.catalog.list_raw_materials()


@router.put("/{raw_material_id}/price", response_model=PriceUpdateResult)
async def update_price(
    raw_material_id: int,
    body: PriceUpdateRequest,
    runtime: Runtime = Depends(get_runtime),
):
    rm_id = RawMaterialId(raw_material_id)

    async def reprice() -> int | None:
        if not await runtime.catalog.update_price(rm_id, body.new_price):
            return None
        return await runtime.engine.recalculate_costs()

    updated = await runtime.coordinator.run_exclusive(
        reprice, label=f"price update {raw_material_id}",
    )
    if updated is None:
        raise ResourceNotFoundError("RawMaterial", str(raw_material_id))
    if updated is False:
        raise DatabaseError("Price update failed", "update_price")

    record = await runtime.engine.raw_materials.get(rm_id)
    return PriceUpdateResult(
        raw_material_id=raw_material_id,
        new_price=record.price_per_kg if record else body.new_price,
        formulas_updated=updated,
    )
