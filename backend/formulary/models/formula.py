"""Formula ORM — a named mixture; owns its components.

Invariants:
    - name is unique (case-sensitive) and non-nullable
    - total_weight / total_cost are Numeric(18, 2) sums of the components
    - components cascade on delete (ORM delete-orphan + DB ON DELETE CASCADE)
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formulary.db.base import Base


class Formula(Base):
    """Formula aggregate root — owns FormulaComponent rows."""
    __tablename__ = "formulas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    total_weight: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, default=Decimal(0),
    )
    total_cost: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, default=Decimal(0),
    )
    created_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    last_modified_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    is_price_updated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )

    # Relationships
    components: Mapped[list["FormulaComponent"]] = relationship(
        "FormulaComponent", back_populates="formula",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="FormulaComponent.id",
    )
