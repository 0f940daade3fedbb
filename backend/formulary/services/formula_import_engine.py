"""Formula Import Engine — turns formula documents into persisted formulas and keeps
the shared raw-material catalog consistent on import, delete, and repricing.

Invariants:
    - import never overwrites or merges: an existing name rejects the import
    - Component weights/costs and totals come from core.costing (2-decimal rounding)
    - A formula and its components are written in one store call; a failed import
      leaves no formula behind; raw materials it created stay in the catalog until a
      formula deletion orphans them
    - delete captures the referenced raw-material ids BEFORE deleting, then reaps
    - recalculate_costs writes (and notifies) only formulas whose cost drifted
    - Public operations return booleans / results and log; they never raise
      (except cancellation)

Design Decisions:
    - Engine is not self-locking: callers route mutations through ImportCoordinator
    - Notification sink is required; NullNotificationSink stands in when nobody listens
"""

import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from formulary.core.analysis import (
    SubstanceRow, order_by_usage, order_by_weight, summarize_substances,
)
from formulary.core.costing import (
    ResolvedLine, build_new_formula, component_percentage, component_weight,
    compute_cost_update, percentage_at,
)
from formulary.core.domain_types import (
    FormulaId, FormulaRecord, RawMaterialId, RawMaterialRecord,
)
from formulary.core.errors import (
    DuplicateFormulaError, ErrorContext, MalformedInputError,
    ResourceNotFoundError, UniqueConstraintViolation,
)
from formulary.core.events import FormulaDeleted, FormulaImported, PriceUpdated
from formulary.core.repository_protocols import (
    FormulaStore, NotificationSink, RawMaterialStore,
)
from formulary.schemas.formula import (
    FormulaDto, RawMaterialDto, RawMaterialPriceDto, SubstanceDto,
)
from formulary.services.notification_bus import NullNotificationSink
from formulary.services.orphan_reaper import OrphanReaper
from formulary.services.raw_material_registry import RawMaterialRegistry

logger = logging.getLogger(__name__)

_NULL_SINK = NullNotificationSink()


def parse_formula_document(content: str | bytes) -> FormulaDto:
    """Parse a JSON import document; MalformedInputError if unparseable or incomplete."""
    try:
        return FormulaDto.model_validate_json(content)
    except ValidationError as e:
        raise MalformedInputError(
            f"Invalid formula document: {e.error_count()} error(s): "
            + "; ".join(err["msg"] for err in e.errors()[:3]),
        ) from e


class FormulaImportEngine:
    """Import, delete, reprice, and analyze formulas over the two stores."""

    def __init__(
        self,
        formulas: FormulaStore,
        raw_materials: RawMaterialStore,
        registry: RawMaterialRegistry,
        reaper: OrphanReaper,
        sink: NotificationSink = _NULL_SINK,
        currency: str = "EUR",
    ):
        self.formulas = formulas
        self.raw_materials = raw_materials
        self.registry = registry
        self.reaper = reaper
        self.sink = sink
        self.currency = currency

    # ─── Import ─────────────────────────────────────────────────

    async def import_json(self, content: str | bytes, notify: bool = True) -> bool:
        """Parse and import one JSON document."""
        try:
            dto = parse_formula_document(content)
        except MalformedInputError as e:
            logger.error(e.message, extra={"error_code": e.code})
            return False
        return await self.import_formula(dto, notify=notify)

    async def import_formula(self, dto: FormulaDto, notify: bool = True) -> bool:
        context = ErrorContext(formula_name=dto.name, operation="import")
        try:
            if await self.formulas.exists(dto.name):
                raise DuplicateFormulaError(dto.name, context)

            lines = []
            for index, raw_material in enumerate(dto.raw_materials):
                weight = component_weight(
                    dto.weight, percentage_at(dto.raw_material_percentages, index),
                )
                record, _ = await self.registry.get_or_create(
                    raw_material.name, raw_material.price.amount,
                )
                lines.append(ResolvedLine(record.id, weight, record.price_per_kg))

            new_formula = build_new_formula(
                dto.name, lines, datetime.now(timezone.utc),
            )
            try:
                await self.formulas.add(new_formula)
            except UniqueConstraintViolation as e:
                raise DuplicateFormulaError(dto.name, context) from e
        except DuplicateFormulaError as e:
            logger.warning(
                e.message,
                extra={"formula_name": dto.name, "error_code": e.code},
            )
            return False
        except Exception as e:
            logger.error(
                f"Error importing formula {dto.name}: {e}",
                extra={"formula_name": dto.name, "error_code": getattr(e, "code", None)},
                exc_info=True,
            )
            return False

        logger.info(
            f"Formula {dto.name} imported successfully",
            extra={"formula_name": dto.name},
        )
        if notify:
            await self.sink.publish(FormulaImported(dto.name))
        return True

    # ─── Delete ─────────────────────────────────────────────────

    async def delete_formula(self, formula_id: FormulaId) -> bool:
        try:
            formula = await self.formulas.get(formula_id)
            if formula is None or not await self.formulas.delete(formula_id):
                raise ResourceNotFoundError("Formula", str(formula_id))
        except ResourceNotFoundError as e:
            logger.warning(e.message, extra={"error_code": e.code})
            return False
        except Exception as e:
            logger.error(f"Error deleting formula with ID {formula_id}: {e}", exc_info=True)
            return False

        # components are gone now; reap against the ids they held
        try:
            await self.reaper.reap(formula.raw_material_ids())
        except Exception as e:
            logger.error(
                f"Orphan cleanup after deleting {formula.name} failed: {e}",
                extra={"formula_name": formula.name}, exc_info=True,
            )

        logger.info(
            f"Formula {formula.name} deleted successfully",
            extra={"formula_name": formula.name},
        )
        await self.sink.publish(FormulaDeleted(formula.name))
        return True

    async def delete_formula_by_name(self, name: str) -> bool:
        try:
            match = next(
                (f for f in await self.formulas.list_all() if f.name == name), None,
            )
        except Exception as e:
            logger.error(f"Error deleting formula {name}: {e}", exc_info=True)
            return False
        if match is None:
            logger.warning(
                f"Formula {name} not found for deletion",
                extra={"formula_name": name},
            )
            return False
        return await self.delete_formula(match.id)

    # ─── Repricing ──────────────────────────────────────────────

    async def recalculate_costs(self) -> int:
        """Reprice every formula from current raw-material prices; returns formulas updated."""
        raw_materials = {rm.id: rm for rm in await self.raw_materials.list_all()}
        prices = {rm_id: rm.price_per_kg for rm_id, rm in raw_materials.items()}
        updated = 0
        for formula in await self.formulas.list_all():
            update = compute_cost_update(formula, prices, datetime.now(timezone.utc))
            if update is None:
                continue
            try:
                await self.formulas.apply_cost_update(update)
            except Exception as e:
                logger.error(
                    f"Failed to persist new costs for formula {formula.name}: {e}",
                    extra={"formula_name": formula.name}, exc_info=True,
                )
                continue
            updated += 1
            logger.info(
                f"Formula {formula.name} repriced to {update.total_cost}",
                extra={"formula_name": formula.name},
            )
            await self.sink.publish(_price_event(formula, update.component_costs, raw_materials))
        return updated

    # ─── Read models ────────────────────────────────────────────

    async def analyze_by_weight(self) -> list[SubstanceRow]:
        return order_by_weight(await self._substance_rows())

    async def analyze_by_usage(self) -> list[SubstanceRow]:
        return order_by_usage(await self._substance_rows())

    async def _substance_rows(self) -> list[SubstanceRow]:
        names = {rm.id: rm.name for rm in await self.raw_materials.list_all()}
        return summarize_substances(await self.formulas.list_all(), names)

    async def list_formulas(self) -> list[FormulaDto]:
        raw_materials = {rm.id: rm for rm in await self.raw_materials.list_all()}
        return [
            self._to_dto(f, raw_materials) for f in await self.formulas.list_all()
        ]

    async def get_formula(self, formula_id: FormulaId) -> FormulaDto | None:
        formula = await self.formulas.get(formula_id)
        if formula is None:
            return None
        raw_materials = {rm.id: rm for rm in await self.raw_materials.list_all()}
        return self._to_dto(formula, raw_materials)

    def _to_dto(
        self,
        formula: FormulaRecord,
        raw_materials: dict[RawMaterialId, RawMaterialRecord],
    ) -> FormulaDto:
        materials = []
        percentages = []
        for component in formula.components:
            rm = raw_materials.get(component.raw_material_id)
            if rm is None:
                continue
            materials.append(RawMaterialDto(
                name=rm.name,
                price=RawMaterialPriceDto(
                    amount=rm.price_per_kg, currency=self.currency, reference_unit="kg",
                ),
                substances=[SubstanceDto(name=rm.name)],
                substance_percentages=[100],
            ))
            percentages.append(
                component_percentage(component.weight_in_grams, formula.total_weight),
            )
        return FormulaDto(
            name=formula.name,
            weight=formula.total_weight,
            weight_unit="g",
            raw_materials=materials,
            raw_material_percentages=percentages,
        )


def _price_event(
    formula: FormulaRecord,
    changed: dict,
    raw_materials: dict[RawMaterialId, RawMaterialRecord],
) -> PriceUpdated:
    """One event per repriced formula; new_price only when one raw material drifted."""
    drifted = sorted({
        raw_materials[c.raw_material_id]
        for c in formula.components
        if c.id in changed and c.raw_material_id in raw_materials
    }, key=lambda rm: rm.name)
    return PriceUpdated(
        raw_material_name=", ".join(rm.name for rm in drifted),
        new_price=drifted[0].price_per_kg if len(drifted) == 1 else None,
        formula_name=formula.name,
    )
