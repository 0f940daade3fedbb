"""SQL Stores — SQLAlchemy implementations of FormulaStore and RawMaterialStore.

Invariants:
    - Each method opens its own session: one call, one transaction
    - Returned values are immutable records, never live ORM objects
    - Name collisions on insert surface as UniqueConstraintViolation
    - A formula and its components are committed together or not at all

Design Decisions:
    - Components loaded with selectin (Formula.components) so list_all is two queries
    - Deleting a raw material still referenced fails on the RESTRICT foreign key and
      surfaces as DatabaseError from the session manager
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from formulary.core.costing import round2
from formulary.core.domain_types import (
    ComponentId, ComponentRecord, CostUpdate, FormulaId, FormulaRecord,
    NewFormula, RawMaterialId, RawMaterialRecord,
)
from formulary.core.errors import UniqueConstraintViolation
from formulary.infrastructure.database import DatabaseSessionManager, is_unique_violation
from formulary.models.formula import Formula
from formulary.models.formula_component import FormulaComponent
from formulary.models.raw_material import RawMaterial

logger = logging.getLogger(__name__)


def _formula_record(row: Formula) -> FormulaRecord:
    return FormulaRecord(
        id=FormulaId(row.id),
        name=row.name,
        total_weight=round2(row.total_weight),
        total_cost=round2(row.total_cost),
        created_date=row.created_date,
        last_modified_date=row.last_modified_date,
        is_price_updated=row.is_price_updated,
        components=tuple(
            ComponentRecord(
                id=ComponentId(c.id),
                formula_id=FormulaId(row.id),
                raw_material_id=RawMaterialId(c.raw_material_id),
                weight_in_grams=round2(c.weight_in_grams),
                cost=round2(c.cost),
            )
            for c in row.components
        ),
    )


def _raw_material_record(row: RawMaterial) -> RawMaterialRecord:
    return RawMaterialRecord(
        id=RawMaterialId(row.id),
        name=row.name,
        price_per_kg=round2(row.price_per_kg),
        created_date=row.created_date,
        last_modified_date=row.last_modified_date,
    )


class SqlFormulaStore:
    """FormulaStore backed by the formulas / formula_components tables."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def list_all(self) -> list[FormulaRecord]:
        async with self._db.session() as session:
            result = await session.execute(select(Formula).order_by(Formula.id))
            return [_formula_record(row) for row in result.scalars().all()]

    async def get(self, formula_id: FormulaId) -> FormulaRecord | None:
        async with self._db.session() as session:
            row = await session.get(Formula, formula_id)
            return _formula_record(row) if row else None

    async def exists(self, name: str) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                select(Formula.id).where(Formula.name == name).limit(1),
            )
            return result.scalar_one_or_none() is not None

    async def add(self, formula: NewFormula) -> FormulaRecord:
        async with self._db.session() as session:
            row = Formula(
                name=formula.name,
                total_weight=formula.total_weight,
                total_cost=formula.total_cost,
                created_date=formula.created_date,
                is_price_updated=False,
                components=[
                    FormulaComponent(
                        raw_material_id=c.raw_material_id,
                        weight_in_grams=c.weight_in_grams,
                        cost=c.cost,
                    )
                    for c in formula.components
                ],
            )
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                if is_unique_violation(e):
                    raise UniqueConstraintViolation("formulas", formula.name) from e
                raise
            return _formula_record(row)

    async def apply_cost_update(self, update: CostUpdate) -> None:
        async with self._db.session() as session:
            row = await session.get(Formula, update.formula_id)
            if row is None:
                logger.warning(
                    f"Formula {update.formula_id} vanished before cost update",
                    extra={"formula_name": update.formula_name},
                )
                return
            for component in row.components:
                if component.id in update.component_costs:
                    component.cost = update.component_costs[component.id]
            row.total_cost = update.total_cost
            row.is_price_updated = True
            row.last_modified_date = update.last_modified_date
            await session.commit()

    async def delete(self, formula_id: FormulaId) -> bool:
        async with self._db.session() as session:
            row = await session.get(Formula, formula_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True


class SqlRawMaterialStore:
    """RawMaterialStore backed by the raw_materials table."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def list_all(self) -> list[RawMaterialRecord]:
        async with self._db.session() as session:
            result = await session.execute(select(RawMaterial).order_by(RawMaterial.id))
            return [_raw_material_record(row) for row in result.scalars().all()]

    async def get(self, raw_material_id: RawMaterialId) -> RawMaterialRecord | None:
        async with self._db.session() as session:
            row = await session.get(RawMaterial, raw_material_id)
            return _raw_material_record(row) if row else None

    async def get_by_name(self, name: str) -> RawMaterialRecord | None:
        async with self._db.session() as session:
            result = await session.execute(
                select(RawMaterial).where(RawMaterial.name == name),
            )
            row = result.scalar_one_or_none()
            return _raw_material_record(row) if row else None

    async def exists(self, name: str) -> bool:
        return await self.get_by_name(name) is not None

    async def add(
        self, name: str, price_per_kg: Decimal, created_date: datetime,
    ) -> RawMaterialRecord:
        async with self._db.session() as session:
            row = RawMaterial(
                name=name, price_per_kg=round2(price_per_kg), created_date=created_date,
            )
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                if is_unique_violation(e):
                    raise UniqueConstraintViolation("raw_materials", name) from e
                raise
            return _raw_material_record(row)

    async def update_price(
        self, raw_material_id: RawMaterialId, price_per_kg: Decimal,
        modified_date: datetime,
    ) -> RawMaterialRecord | None:
        async with self._db.session() as session:
            row = await session.get(RawMaterial, raw_material_id)
            if row is None:
                return None
            row.price_per_kg = round2(price_per_kg)
            row.last_modified_date = modified_date
            await session.commit()
            return _raw_material_record(row)

    async def delete(self, raw_material_id: RawMaterialId) -> bool:
        async with self._db.session() as session:
            row = await session.get(RawMaterial, raw_material_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True
