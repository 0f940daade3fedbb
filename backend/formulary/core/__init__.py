"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Money and weights are Decimal end to end, rounded only through core.costing

Design Decisions:
    - Functional core separated from imperative shell: the engine fetches records,
      hands them to pure functions here, then persists the result
"""
