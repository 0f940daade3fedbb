"""Domain Types — identity types, records, and enums shared by core and shell.

Invariants:
    - Entities are plain records linked by integer ids (no back-references)
    - FormulaRecord owns its components; components reference raw materials by id only
    - Records are immutable snapshots of store state; mutations go through the stores

Design Decisions:
    - NewType over wrapper classes: zero runtime cost, type-checker support
    - frozen dataclasses with tuple collections: records are safe to share across tasks
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

FormulaId = NewType("FormulaId", int)
RawMaterialId = NewType("RawMaterialId", int)
ComponentId = NewType("ComponentId", int)


# ─── Records ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class RawMaterialRecord:
    id: RawMaterialId
    name: str
    price_per_kg: Decimal
    created_date: datetime
    last_modified_date: datetime | None = None


@dataclass(frozen=True)
class ComponentRecord:
    id: ComponentId
    formula_id: FormulaId
    raw_material_id: RawMaterialId
    weight_in_grams: Decimal
    cost: Decimal


@dataclass(frozen=True)
class FormulaRecord:
    id: FormulaId
    name: str
    total_weight: Decimal
    total_cost: Decimal
    created_date: datetime
    last_modified_date: datetime | None = None
    is_price_updated: bool = False
    components: tuple[ComponentRecord, ...] = ()

    def raw_material_ids(self) -> set[RawMaterialId]:
        return {c.raw_material_id for c in self.components}


@dataclass(frozen=True)
class NewComponent:
    """Component about to be persisted (no ids assigned yet)."""
    raw_material_id: RawMaterialId
    weight_in_grams: Decimal
    cost: Decimal


@dataclass(frozen=True)
class NewFormula:
    """Formula about to be persisted together with its components."""
    name: str
    total_weight: Decimal
    total_cost: Decimal
    created_date: datetime
    components: tuple[NewComponent, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CostUpdate:
    """Recomputed costs for one formula whose prices drifted."""
    formula_id: FormulaId
    formula_name: str
    total_cost: Decimal
    component_costs: dict[ComponentId, Decimal]
    last_modified_date: datetime


# ─── Enums ───────────────────────────────────────────────────────

class EventKind(str, Enum):
    """Notification event kinds published on the bus."""
    FORMULA_IMPORTED = "formula_imported"
    FORMULA_DELETED = "formula_deleted"
    PRICE_UPDATED = "price_updated"


class FileOutcome(str, Enum):
    """Terminal states of a watched file."""
    PROCESSED = "processed"
    ERRORED = "errored"
    SKIPPED = "skipped"
