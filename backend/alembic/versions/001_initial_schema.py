"""Initial schema — formulas, raw_materials, formula_components.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "formulas",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("total_weight", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("total_cost", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("created_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_modified_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_price_updated", sa.Boolean, nullable=False, server_default=sa.false()),
    )

    op.create_table(
        "raw_materials",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("price_per_kg", sa.Numeric(18, 2), nullable=False),
        sa.Column("created_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_modified_date", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "formula_components",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "formula_id", sa.Integer,
            sa.ForeignKey("formulas.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "raw_material_id", sa.Integer,
            sa.ForeignKey("raw_materials.id", ondelete="RESTRICT"), nullable=False,
        ),
        sa.Column("weight_in_grams", sa.Numeric(18, 2), nullable=False),
        sa.Column("cost", sa.Numeric(18, 2), nullable=False),
    )
    op.create_index("ix_formula_components_formula_id", "formula_components", ["formula_id"])
    op.create_index("ix_formula_components_raw_material_id", "formula_components", ["raw_material_id"])


def downgrade() -> None:
    op.drop_index("ix_formula_components_raw_material_id", table_name="formula_components")
    op.drop_index("ix_formula_components_formula_id", table_name="formula_components")
    op.drop_table("formula_components")
    op.drop_table("raw_materials")
    op.drop_table("formulas")
