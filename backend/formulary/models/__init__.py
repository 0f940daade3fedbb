"""ORM Models — SQLAlchemy declarative models for formulas and raw materials.

Invariants:
    - All models inherit from Base (db/base.py)
    - Formula is the aggregate root for its components; raw materials are shared

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from formulary.models.formula import Formula  # noqa: F401
from formulary.models.raw_material import RawMaterial  # noqa: F401
from formulary.models.formula_component import FormulaComponent  # noqa: F401
