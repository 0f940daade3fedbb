"""In-memory store fakes — deterministic stand-ins for the SQL stores.

Invariants:
    - Same contracts as the Protocols in core/repository_protocols.py
    - Unique names enforced by raising UniqueConstraintViolation, like the SQL stores
    - Race hooks let a test inject a competing insert between lookup and add
"""

from datetime import datetime
from decimal import Decimal

from formulary.core.domain_types import (
    ComponentId, ComponentRecord, CostUpdate, FormulaId, FormulaRecord,
    NewFormula, RawMaterialId, RawMaterialRecord,
)
from formulary.core.errors import UniqueConstraintViolation


class FakeRawMaterialStore:

    def __init__(self):
        self.rows: dict[RawMaterialId, RawMaterialRecord] = {}
        self._next_id = 1
        self.lookups = 0
        # names whose committed row stays invisible to get_by_name
        self.invisible: set[str] = set()
        # name -> price inserted by a "competitor" right before our add()
        self.race_on_add: dict[str, Decimal] = {}
        self.fail_delete: set[RawMaterialId] = set()

    def _insert(self, name: str, price: Decimal, created: datetime) -> RawMaterialRecord:
        record = RawMaterialRecord(RawMaterialId(self._next_id), name, price, created)
        self._next_id += 1
        self.rows[record.id] = record
        return record

    def seed(self, name: str, price: str) -> RawMaterialRecord:
        return self._insert(name, Decimal(price), datetime(2024, 1, 1))

    async def list_all(self) -> list[RawMaterialRecord]:
        return list(self.rows.values())

    async def get(self, raw_material_id):
        return self.rows.get(raw_material_id)

    async def get_by_name(self, name: str):
        self.lookups += 1
        if name in self.invisible:
            return None
        return next((r for r in self.rows.values() if r.name == name), None)

    async def exists(self, name: str) -> bool:
        return await self.get_by_name(name) is not None

    async def add(self, name: str, price_per_kg: Decimal, created_date: datetime):
        if name in self.race_on_add:
            self._insert(name, self.race_on_add.pop(name), created_date)
        if any(r.name == name for r in self.rows.values()):
            raise UniqueConstraintViolation("raw_materials", name)
        return self._insert(name, price_per_kg, created_date)

    async def update_price(self, raw_material_id, price_per_kg, modified_date):
        current = self.rows.get(raw_material_id)
        if current is None:
            return None
        updated = RawMaterialRecord(
            current.id, current.name, price_per_kg, current.created_date, modified_date,
        )
        self.rows[current.id] = updated
        return updated

    async def delete(self, raw_material_id) -> bool:
        if raw_material_id in self.fail_delete:
            raise RuntimeError("delete failed")
        return self.rows.pop(raw_material_id, None) is not None

    def names(self) -> set[str]:
        return {r.name for r in self.rows.values()}


class FakeFormulaStore:

    def __init__(self):
        self.rows: dict[FormulaId, FormulaRecord] = {}
        self._next_id = 1
        self._next_component_id = 1
        self.cost_updates: list[CostUpdate] = []
        self.fail_add = False
        # async callable run once before the next add(), for interleaving writers
        self.on_add = None

    async def list_all(self) -> list[FormulaRecord]:
        return list(self.rows.values())

    async def get(self, formula_id):
        return self.rows.get(formula_id)

    async def exists(self, name: str) -> bool:
        return any(f.name == name for f in self.rows.values())

    async def add(self, formula: NewFormula) -> FormulaRecord:
        if self.on_add is not None:
            hook, self.on_add = self.on_add, None
            await hook()
        if self.fail_add:
            raise RuntimeError("insert failed")
        if await self.exists(formula.name):
            raise UniqueConstraintViolation("formulas", formula.name)
        formula_id = FormulaId(self._next_id)
        self._next_id += 1
        components = []
        for c in formula.components:
            components.append(ComponentRecord(
                ComponentId(self._next_component_id), formula_id,
                c.raw_material_id, c.weight_in_grams, c.cost,
            ))
            self._next_component_id += 1
        record = FormulaRecord(
            id=formula_id,
            name=formula.name,
            total_weight=formula.total_weight,
            total_cost=formula.total_cost,
            created_date=formula.created_date,
            components=tuple(components),
        )
        self.rows[formula_id] = record
        return record

    async def apply_cost_update(self, update: CostUpdate) -> None:
        self.cost_updates.append(update)
        current = self.rows[update.formula_id]
        components = tuple(
            ComponentRecord(
                c.id, c.formula_id, c.raw_material_id, c.weight_in_grams,
                update.component_costs.get(c.id, c.cost),
            )
            for c in current.components
        )
        self.rows[current.id] = FormulaRecord(
            id=current.id,
            name=current.name,
            total_weight=current.total_weight,
            total_cost=update.total_cost,
            created_date=current.created_date,
            last_modified_date=update.last_modified_date,
            is_price_updated=True,
            components=components,
        )

    async def delete(self, formula_id) -> bool:
        return self.rows.pop(formula_id, None) is not None

    def by_name(self, name: str) -> FormulaRecord | None:
        return next((f for f in self.rows.values() if f.name == name), None)


class RecordingSink:

    def __init__(self):
        self.events = []

    async def publish(self, event) -> None:
        self.events.append(event)


def formula_document(
    name: str, weight=100, materials=(("Water", 2, 60), ("Glycerin", 5, 40)),
) -> dict:
    """Import document with (name, price per kg, percentage) lines."""
    return {
        "Name": name,
        "Weight": weight,
        "WeightUnit": "g",
        "RawMaterials": [
            {"Name": rm, "Price": {"Amount": price, "Currency": "EUR", "ReferenceUnit": "kg"}}
            for rm, price, _ in materials
        ],
        "RawMaterialPercentages": [pct for _, _, pct in materials],
    }
