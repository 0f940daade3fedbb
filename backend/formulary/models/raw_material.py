"""RawMaterial ORM — a shared, priced ingredient.

Invariants:
    - name is unique (case-sensitive); the unique index is what the registry's
      conflict retry relies on
    - price_per_kg stored with 2 decimals
    - No relationship to components: references are resolved at query time
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from formulary.db.base import Base


class RawMaterial(Base):
    """Raw material entity — referenced, never owned, by formula components."""
    __tablename__ = "raw_materials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    price_per_kg: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    created_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    last_modified_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
