"""Formulary — formula ingestion and raw-material catalog consistency engine.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
