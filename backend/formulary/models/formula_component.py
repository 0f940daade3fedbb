"""FormulaComponent ORM — join row between a formula and one raw material.

Invariants:
    - formula_id cascades on formula delete
    - raw_material_id restricts raw material delete while referenced
    - weight_in_grams and cost are derived values, Numeric(18, 2)
"""

from decimal import Decimal

from sqlalchemy import Integer, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formulary.db.base import Base


class FormulaComponent(Base):
    """Component of a formula — weight and cost of one raw material."""
    __tablename__ = "formula_components"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    formula_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("formulas.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    raw_material_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("raw_materials.id", ondelete="RESTRICT"),
        nullable=False, index=True,
    )
    weight_in_grams: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    cost: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    formula: Mapped["Formula"] = relationship(
        "Formula", back_populates="components",
    )
