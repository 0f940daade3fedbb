"""Orphan Reaper — deletes raw materials no formula references any more.

Invariants:
    - The referenced set is recomputed from ALL formulas at call time (no cached
      counts): an import that landed after the triggering delete keeps its raw material
    - Only candidates are ever considered; unreferenced non-candidates survive
    - A failure deleting one candidate is logged and cleanup continues with the rest
"""

import logging
from typing import Iterable

from formulary.core.domain_types import RawMaterialId
from formulary.core.repository_protocols import FormulaStore, RawMaterialStore

logger = logging.getLogger(__name__)


class OrphanReaper:
    """Reclaims raw materials orphaned by a formula deletion."""

    def __init__(self, formulas: FormulaStore, raw_materials: RawMaterialStore):
        self.formulas = formulas
        self.raw_materials = raw_materials

    async def reap(self, candidates: Iterable[RawMaterialId]) -> set[RawMaterialId]:
        """Delete every candidate nobody references; returns the ids removed."""
        candidate_ids = set(candidates)
        if not candidate_ids:
            return set()

        referenced: set[RawMaterialId] = set()
        for formula in await self.formulas.list_all():
            referenced |= formula.raw_material_ids()

        removed: set[RawMaterialId] = set()
        for raw_material_id in sorted(candidate_ids - referenced):
            try:
                if await self.raw_materials.delete(raw_material_id):
                    removed.add(raw_material_id)
                    logger.info(f"Removed orphaned raw material {raw_material_id}")
            except Exception as e:
                logger.error(
                    f"Failed to remove orphaned raw material {raw_material_id}: {e}",
                    exc_info=True,
                )
        return removed
