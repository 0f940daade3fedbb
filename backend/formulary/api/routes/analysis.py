"""Substance analysis rows, ordered by total weight or by formula count."""

from fastapi import APIRouter, Depends

from formulary.api.dependencies import get_runtime
from formulary.core.analysis import SubstanceRow
from formulary.runtime import Runtime
from formulary.schemas.formula import SubstanceAnalysis

router = APIRouter(prefix="/api/v1/analysis", tags=["analysis"])


def _to_response(rows: list[SubstanceRow]) -> list[SubstanceAnalysis]:
    return [
        SubstanceAnalysis(
            name=r.name,
            total_weight=r.total_weight,
            number_of_formulas=r.number_of_formulas,
        )
        for r in rows
    ]


@router.get("/by-weight", response_model=list[SubstanceAnalysis])
async def analyze_by_weight(runtime: Runtime = Depends(get_runtime)):
    return _to_response(await runtime.engine.analyze_by_weight())


@router.get("/by-usage", response_model=list[SubstanceAnalysis])
async def analyze_by_usage(runtime: Runtime = Depends(get_runtime)):
    return _to_response(await runtime.engine.analyze_by_usage())
