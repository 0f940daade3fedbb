"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Every store call is one self-contained unit of work (its own transaction)
    - add() raises UniqueConstraintViolation on a name collision; nothing else
      signals a duplicate
    - FormulaStore.add persists the formula and all its components atomically
    - FormulaStore.delete cascades to the formula's components

Design Decisions:
    - Protocol over ABC: structural subtyping, the SQL stores and the test fakes
      share no base class
    - Async in Protocol: implementations do IO; the pure functions that consume
      their records stay synchronous
"""

from decimal import Decimal
from datetime import datetime
from typing import Protocol

from formulary.core.domain_types import (
    FormulaId, RawMaterialId, FormulaRecord, RawMaterialRecord,
    NewFormula, CostUpdate,
)
from formulary.core.events import NotificationEvent


class FormulaStore(Protocol):
    """Contract for formula persistence — implemented by shell."""
    async def list_all(self) -> list[FormulaRecord]: ...
    async def get(self, formula_id: FormulaId) -> FormulaRecord | None: ...
    async def exists(self, name: str) -> bool: ...
    async def add(self, formula: NewFormula) -> FormulaRecord: ...
    async def apply_cost_update(self, update: CostUpdate) -> None: ...
    async def delete(self, formula_id: FormulaId) -> bool: ...


class RawMaterialStore(Protocol):
    """Contract for raw-material persistence — implemented by shell."""
    async def list_all(self) -> list[RawMaterialRecord]: ...
    async def get(self, raw_material_id: RawMaterialId) -> RawMaterialRecord | None: ...
    async def get_by_name(self, name: str) -> RawMaterialRecord | None: ...
    async def exists(self, name: str) -> bool: ...
    async def add(
        self, name: str, price_per_kg: Decimal, created_date: datetime,
    ) -> RawMaterialRecord: ...
    async def update_price(
        self, raw_material_id: RawMaterialId, price_per_kg: Decimal,
        modified_date: datetime,
    ) -> RawMaterialRecord | None: ...
    async def delete(self, raw_material_id: RawMaterialId) -> bool: ...


class NotificationSink(Protocol):
    """Receives events after completed mutations."""
    async def publish(self, event: NotificationEvent) -> None: ...
