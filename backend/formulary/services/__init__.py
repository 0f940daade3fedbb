"""Services Layer — async imperative shell around the pure core.

Invariants:
    - Services reach storage only through the store Protocols (core/repository_protocols.py)
    - Every public operation converts failures into a result plus a log entry
"""
