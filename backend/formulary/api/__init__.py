"""API Layer — FastAPI routes and error handlers over the formula engine.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Every mutating route runs inside the shared ImportCoordinator
    - All endpoints return structured JSON (or an SSE stream for /events)
"""
