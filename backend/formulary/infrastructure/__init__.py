"""Infrastructure Layer — database access, SQL stores, logging, and runtime wiring.

Invariants:
    - SQLAlchemy never leaks past this package: stores return core records
"""
