"""Tests for substance analysis — grouping and both orderings."""

from datetime import datetime, timezone
from decimal import Decimal

from formulary.core.analysis import (
    SubstanceRow, order_by_usage, order_by_weight, summarize_substances,
)
from formulary.core.domain_types import (
    ComponentId, ComponentRecord, FormulaId, FormulaRecord, RawMaterialId,
)

NAMES = {RawMaterialId(1): "Water", RawMaterialId(2): "RareIngredient", RawMaterialId(3): "Glycerin"}


def _formula(formula_id: int, *lines: tuple[int, str]) -> FormulaRecord:
    return FormulaRecord(
        id=FormulaId(formula_id),
        name=f"F{formula_id}",
        total_weight=Decimal(0),
        total_cost=Decimal(0),
        created_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        components=tuple(
            ComponentRecord(
                ComponentId(formula_id * 10 + i), FormulaId(formula_id),
                RawMaterialId(rm), Decimal(w), Decimal(0),
            )
            for i, (rm, w) in enumerate(lines)
        ),
    )


def test_groups_by_name_and_counts_distinct_formulas():
    rows = summarize_substances(
        [_formula(1, (1, "10"), (1, "5")), _formula(2, (1, "20"))], NAMES,
    )
    assert rows == [SubstanceRow("Water", Decimal("35.00"), 2)]


def test_by_weight_and_by_usage_rank_differently():
    formulas = [
        _formula(1, (1, "10"), (2, "500")),
        _formula(2, (1, "10")),
        _formula(3, (1, "10")),
    ]
    rows = summarize_substances(formulas, NAMES)

    assert [r.name for r in order_by_weight(rows)] == ["RareIngredient", "Water"]
    assert [r.name for r in order_by_usage(rows)] == ["Water", "RareIngredient"]


def test_usage_ties_broken_by_weight():
    rows = summarize_substances(
        [_formula(1, (1, "10"), (3, "30"))], NAMES,
    )
    assert [r.name for r in order_by_usage(rows)] == ["Glycerin", "Water"]


def test_equal_keys_keep_first_seen_order():
    rows = summarize_substances([_formula(1, (3, "10"), (1, "10"))], NAMES)
    assert [r.name for r in order_by_weight(rows)] == ["Glycerin", "Water"]


def test_components_with_unknown_raw_material_are_ignored():
    rows = summarize_substances([_formula(1, (99, "10"))], NAMES)
    assert rows == []


def test_no_formulas_gives_empty_analysis():
    assert order_by_usage(summarize_substances([], NAMES)) == []


def test_usage_ranks_common_water_above_heavy_rare_ingredient():
    rows = summarize_substances(
        [_formula(1, (1, "30")), _formula(2, (1, "30"), (2, "90"))], NAMES,
    )
    assert [r.name for r in order_by_usage(rows)] == ["Water", "RareIngredient"]
    assert [r.name for r in order_by_weight(rows)] == ["RareIngredient", "Water"]
