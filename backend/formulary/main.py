"""Formulary API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map FormularyError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Lifespan owns the runtime: database, engine, bus, coordinator, watcher;
      the watcher is stopped before the engine's database is disposed

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Tables created on startup for development; production schema comes from alembic
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from formulary.api.error_handlers import register_error_handlers
from formulary.api.routes import analysis, events, formulas, health, raw_materials
from formulary.config import get_settings
from formulary.infrastructure.database import init_db
from formulary.infrastructure.observability import setup_logging
from formulary.runtime import build_runtime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    await db.create_all()
    runtime = build_runtime(db, settings)
    app.state.runtime = runtime
    await runtime.start()
    logger.info("Formulary API started")
    try:
        yield
    finally:
        logger.info("Formulary API shutting down")
        await runtime.stop()
        await db.dispose()


app = FastAPI(title="Formulary API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(formulas.router)
app.include_router(raw_materials.router)
app.include_router(analysis.router)
app.include_router(events.router)

register_error_handlers(app)
