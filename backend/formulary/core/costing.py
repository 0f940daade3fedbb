"""Formula Costing — pure weight/cost derivation and cost drift detection.

Invariants:
    - Every stored amount passes through round2 (2 decimals, half-to-even)
    - component weight = round2(formula weight × percentage / 100)
    - component cost   = round2(component weight / 1000 × price per kg)
    - Formula totals are sums of the already-rounded component amounts, so
      sum(component weights) == total weight and sum(component costs) == total cost
    - A missing percentage (list shorter than raw materials) counts as 0%

Design Decisions:
    - Cost derives from the rounded stored weight: recalculation with unchanged
      prices reproduces the stored cost exactly and detects no drift
    - ROUND_HALF_EVEN matches the rounding the formula documents were authored with
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Sequence

from formulary.core.domain_types import (
    RawMaterialId, FormulaRecord, NewComponent, NewFormula, CostUpdate,
)

CENT = Decimal("0.01")
HUNDRED = Decimal(100)
GRAMS_PER_KG = Decimal(1000)


def round2(value: Decimal | int | str) -> Decimal:
    """Round to 2 decimals, half-to-even."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_EVEN)


def percentage_at(percentages: Sequence[Decimal], index: int) -> Decimal:
    """Positional percentage lookup; entries past the end default to 0."""
    return Decimal(percentages[index]) if index < len(percentages) else Decimal(0)


def component_weight(formula_weight: Decimal, percentage: Decimal) -> Decimal:
    return round2(Decimal(formula_weight) * Decimal(percentage) / HUNDRED)


def component_cost(weight_in_grams: Decimal, price_per_kg: Decimal) -> Decimal:
    return round2(Decimal(weight_in_grams) / GRAMS_PER_KG * Decimal(price_per_kg))


def component_percentage(weight_in_grams: Decimal, total_weight: Decimal) -> Decimal:
    """Share of a component in its formula, in percent (0 for an empty formula)."""
    if not total_weight:
        return round2(0)
    return round2(Decimal(weight_in_grams) / Decimal(total_weight) * HUNDRED)


@dataclass(frozen=True)
class ResolvedLine:
    """One raw-material line after the registry resolved it."""
    raw_material_id: RawMaterialId
    weight_in_grams: Decimal
    price_per_kg: Decimal


def build_new_formula(
    name: str, lines: Sequence[ResolvedLine], created_date: datetime,
) -> NewFormula:
    """Assemble the formula and its components with derived costs and totals."""
    components = tuple(
        NewComponent(
            raw_material_id=line.raw_material_id,
            weight_in_grams=line.weight_in_grams,
            cost=component_cost(line.weight_in_grams, line.price_per_kg),
        )
        for line in lines
    )
    return NewFormula(
        name=name,
        total_weight=round2(sum((c.weight_in_grams for c in components), Decimal(0))),
        total_cost=round2(sum((c.cost for c in components), Decimal(0))),
        created_date=created_date,
        components=components,
    )


def compute_cost_update(
    formula: FormulaRecord,
    prices: dict[RawMaterialId, Decimal],
    modified_date: datetime,
) -> CostUpdate | None:
    """Recompute component costs from current prices; None when nothing drifted.

    Components whose raw material is absent from prices keep their stored cost.
    """
    changed = {}
    total = Decimal(0)
    for component in formula.components:
        cost = component.cost
        price = prices.get(component.raw_material_id)
        if price is not None:
            new_cost = component_cost(component.weight_in_grams, price)
            if new_cost != cost:
                changed[component.id] = new_cost
                cost = new_cost
        total += cost

    if not changed:
        return None
    return CostUpdate(
        formula_id=formula.id,
        formula_name=formula.name,
        total_cost=round2(total),
        component_costs=changed,
        last_modified_date=modified_date,
    )
