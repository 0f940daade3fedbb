"""Service test fixtures — SQLite-backed runtime, fakes, and the API client.

Invariants:
    - Every test gets a fresh file-backed SQLite database in tmp_path, so
      concurrent sessions see each other's commits
    - The client fixture installs a runtime with the watcher disabled; ASGITransport
      does not run the lifespan

Design Decisions:
    - File database over :memory:: the registry race tests need several
      connections at once
"""

import pytest
from httpx import ASGITransport, AsyncClient

from fakes import FakeFormulaStore, FakeRawMaterialStore, RecordingSink
from formulary.config import Settings
from formulary.infrastructure.database import DatabaseSessionManager
from formulary.infrastructure.sql_stores import SqlFormulaStore, SqlRawMaterialStore
from formulary.main import app
from formulary.runtime import build_runtime
from formulary.services.formula_import_engine import FormulaImportEngine
from formulary.services.orphan_reaper import OrphanReaper
from formulary.services.raw_material_registry import RawMaterialRegistry

FAST_RETRIES = (1, 1, 1)


@pytest.fixture
async def db(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'formulary.db'}")
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
def formula_store(db):
    return SqlFormulaStore(db)


@pytest.fixture
def raw_material_store(db):
    return SqlRawMaterialStore(db)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def sql_engine(formula_store, raw_material_store, sink):
    return FormulaImportEngine(
        formula_store,
        raw_material_store,
        RawMaterialRegistry(raw_material_store, FAST_RETRIES),
        OrphanReaper(formula_store, raw_material_store),
        sink=sink,
    )


@pytest.fixture
def fake_formulas():
    return FakeFormulaStore()


@pytest.fixture
def fake_raw_materials():
    return FakeRawMaterialStore()


@pytest.fixture
def fake_engine(fake_formulas, fake_raw_materials, sink):
    return FormulaImportEngine(
        fake_formulas,
        fake_raw_materials,
        RawMaterialRegistry(fake_raw_materials, FAST_RETRIES),
        OrphanReaper(fake_formulas, fake_raw_materials),
        sink=sink,
    )


@pytest.fixture
def runtime(db):
    return build_runtime(db, Settings(watcher_enabled=False))


@pytest.fixture
async def client(runtime):
    app.state.runtime = runtime
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    del app.state.runtime
