"""Formula Schemas — pydantic models for the import document and API payloads.

Invariants:
    - Field names are matched case-insensitively ("rawMaterials", "RAWMATERIALS",
      "raw_materials" all populate raw_materials)
    - Serialization uses the PascalCase wire names of the import document
    - Missing RawMaterialPercentages entries are NOT padded here; the engine
      treats them as 0%
    - Name must be non-blank and is kept verbatim; Weight and percentages must be non-negative

Design Decisions:
    - alias_generator=to_pascal keeps Python attribute names snake_case while the
      wire format stays PascalCase
    - Case folding done in a before-validator so nested models fold their own keys
"""

from decimal import Decimal

from pydantic import (
    BaseModel, ConfigDict, Field, field_validator, model_validator,
)
from pydantic.alias_generators import to_pascal


class _WireModel(BaseModel):
    """Base for import-document models: PascalCase aliases, case-insensitive keys."""
    model_config = ConfigDict(
        alias_generator=to_pascal, populate_by_name=True, extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def fold_key_case(cls, data):
        if not isinstance(data, dict):
            return data
        lookup: dict[str, str] = {}
        for name, info in cls.model_fields.items():
            lookup[name.lower()] = name
            lookup[name.replace("_", "").lower()] = name
            if info.alias:
                lookup[info.alias.lower()] = name
        return {
            lookup.get(str(key).lower(), key): value
            for key, value in data.items()
        }


class SubstanceDto(_WireModel):
    name: str


class RawMaterialPriceDto(_WireModel):
    amount: Decimal = Field(ge=0)
    currency: str = "EUR"
    reference_unit: str = "kg"


class RawMaterialDto(_WireModel):
    name: str = Field(min_length=1, max_length=255)
    price: RawMaterialPriceDto
    substances: list[SubstanceDto] = Field(default_factory=list)
    substance_percentages: list[Decimal] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def reject_blank_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("raw material name cannot be empty or whitespace")
        return v


class FormulaDto(_WireModel):
    """The import document: a named mixture of weighted raw materials."""
    name: str = Field(min_length=1, max_length=255)
    weight: Decimal = Field(ge=0)
    weight_unit: str = "g"
    raw_materials: list[RawMaterialDto] = Field(default_factory=list)
    raw_material_percentages: list[Decimal] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def reject_blank_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("formula name cannot be empty or whitespace")
        return v

    @field_validator("raw_material_percentages")
    @classmethod
    def non_negative_percentages(cls, v: list[Decimal]) -> list[Decimal]:
        if any(p < 0 for p in v):
            raise ValueError("raw material percentages must be non-negative")
        return v


# --- Read models --------------------------------------------------------------

class SubstanceAnalysis(_WireModel):
    """One row of the by-weight / by-usage analysis."""
    name: str
    total_weight: Decimal
    number_of_formulas: int


class RawMaterialDisplay(_WireModel):
    id: int
    name: str
    price_per_kg: Decimal


class PriceUpdateRequest(_WireModel):
    new_price: Decimal = Field(ge=0)


class OperationResult(_WireModel):
    success: bool
    name: str | None = None


class RecalculationResult(_WireModel):
    formulas_updated: int


class PriceUpdateResult(_WireModel):
    raw_material_id: int
    new_price: Decimal
    formulas_updated: int
