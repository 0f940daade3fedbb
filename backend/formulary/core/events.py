"""Notification Events — what the engine publishes after a completed mutation.

Invariants:
    - Events are immutable and carry names, never ids (observers re-query if needed)
    - PriceUpdated.new_price is None when one repricing touched several raw materials;
      formula_name is set when the event comes from a recalculation pass
"""

from dataclasses import dataclass
from decimal import Decimal

from formulary.core.domain_types import EventKind


@dataclass(frozen=True)
class FormulaImported:
    formula_name: str
    kind: EventKind = EventKind.FORMULA_IMPORTED

    def to_dict(self) -> dict:
        return {"type": self.kind.value, "formula_name": self.formula_name}


@dataclass(frozen=True)
class FormulaDeleted:
    formula_name: str
    kind: EventKind = EventKind.FORMULA_DELETED

    def to_dict(self) -> dict:
        return {"type": self.kind.value, "formula_name": self.formula_name}


@dataclass(frozen=True)
class PriceUpdated:
    raw_material_name: str
    new_price: Decimal | None = None
    formula_name: str | None = None
    kind: EventKind = EventKind.PRICE_UPDATED

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "raw_material_name": self.raw_material_name,
            "new_price": str(self.new_price) if self.new_price is not None else None,
            "formula_name": self.formula_name,
        }


NotificationEvent = FormulaImported | FormulaDeleted | PriceUpdated
