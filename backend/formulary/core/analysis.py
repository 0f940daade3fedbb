"""Substance Analysis — per raw material totals across all formulas.

Invariants:
    - Rows grouped by raw material NAME (join through raw_material_id)
    - total_weight = round2(sum of component weights); number_of_formulas counts
      distinct formula ids
    - by weight: descending total weight
    - by usage: descending formula count, ties by descending total weight
    - Sorting is stable: equal keys keep first-seen order
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from formulary.core.costing import round2
from formulary.core.domain_types import FormulaRecord, RawMaterialId


@dataclass(frozen=True)
class SubstanceRow:
    name: str
    total_weight: Decimal
    number_of_formulas: int


def summarize_substances(
    formulas: Iterable[FormulaRecord],
    names_by_id: dict[RawMaterialId, str],
) -> list[SubstanceRow]:
    """Group components by raw material name in first-seen order."""
    weights: dict[str, Decimal] = {}
    formula_ids: dict[str, set] = {}
    for formula in formulas:
        for component in formula.components:
            name = names_by_id.get(component.raw_material_id)
            if name is None:
                continue
            weights[name] = weights.get(name, Decimal(0)) + component.weight_in_grams
            formula_ids.setdefault(name, set()).add(formula.id)
    return [
        SubstanceRow(
            name=name,
            total_weight=round2(total),
            number_of_formulas=len(formula_ids[name]),
        )
        for name, total in weights.items()
    ]


def order_by_weight(rows: list[SubstanceRow]) -> list[SubstanceRow]:
    return sorted(rows, key=lambda r: r.total_weight, reverse=True)


def order_by_usage(rows: list[SubstanceRow]) -> list[SubstanceRow]:
    return sorted(
        rows, key=lambda r: (r.number_of_formulas, r.total_weight), reverse=True,
    )
