"""Schemas — pydantic models at the system boundaries (import documents, API)."""
