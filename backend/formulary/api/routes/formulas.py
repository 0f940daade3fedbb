"""Formula Routes — list, export, import, delete, and reprice formulas.

Invariants:
    - Import, delete and recalculate run inside the shared ImportCoordinator, so
      they never interleave with watcher imports
    - Import bodies use the same case-insensitive document model as dropped files
    - A rejected import of an existing name is 409; other rejections are 422
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from formulary.api.dependencies import get_runtime
from formulary.core.domain_types import FormulaId
from formulary.core.errors import (
    DatabaseError, DuplicateFormulaError, ResourceNotFoundError,
)
from formulary.runtime import Runtime
from formulary.schemas.formula import FormulaDto, OperationResult, RecalculationResult

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/formulas", tags=["formulas"])


@router.get("", response_model=list[FormulaDto])
async def list_formulas(runtime: Runtime = Depends(get_runtime)):
    return await runtime.engine.list_formulas()


@router.post(
    "/import", response_model=OperationResult,
    status_code=status.HTTP_201_CREATED,
)
async def import_formula(dto: FormulaDto, runtime: Runtime = Depends(get_runtime)):
    imported = await runtime.coordinator.run_exclusive(
        lambda: runtime.engine.import_formula(dto),
        label=f"import {dto.name}",
    )
    if imported is True:
        return OperationResult(success=True, name=dto.name)
    if await runtime.engine.formulas.exists(dto.name):
        raise DuplicateFormulaError(dto.name)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=OperationResult(success=False, name=dto.name).model_dump(by_alias=True),
    )


@router.post("/recalculate", response_model=RecalculationResult)
async def recalculate_costs(runtime: Runtime = Depends(get_runtime)):
    updated = await runtime.coordinator.run_exclusive(
        runtime.engine.recalculate_costs, label="recalculate",
    )
    if updated is False:
        raise DatabaseError("Cost recalculation failed", "recalculate")
    return RecalculationResult(formulas_updated=updated)


@router.delete("/by-name/{name}", response_model=OperationResult)
async def delete_formula_by_name(name: str, runtime: Runtime = Depends(get_runtime)):
    deleted = await runtime.coordinator.run_exclusive(
        lambda: runtime.engine.delete_formula_by_name(name),
        label=f"delete {name}",
    )
    if deleted is not True:
        raise ResourceNotFoundError("Formula", name)
    return OperationResult(success=True, name=name)


@router.get("/{formula_id}", response_model=FormulaDto)
async def get_formula(formula_id: int, runtime: Runtime = Depends(get_runtime)):
    formula = await runtime.engine.get_formula(FormulaId(formula_id))
    if formula is None:
        raise ResourceNotFoundError("Formula", str(formula_id))
    return formula


@router.delete("/{formula_id}", response_model=OperationResult)
async def delete_formula(formula_id: int, runtime: Runtime = Depends(get_runtime)):
    deleted = await runtime.coordinator.run_exclusive(
        lambda: runtime.engine.delete_formula(FormulaId(formula_id)),
        label=f"delete formula {formula_id}",
    )
    if deleted is not True:
        raise ResourceNotFoundError("Formula", str(formula_id))
    return OperationResult(success=True)
