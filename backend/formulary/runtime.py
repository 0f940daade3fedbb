"""Runtime Wiring — builds the object graph shared by the API and the watcher.

Invariants:
    - Exactly one ImportCoordinator and one NotificationBus per runtime: the
      watcher and the API routes serialize through the same gate
    - Watcher is built only when watcher_enabled; start()/stop() are idempotent
"""

from dataclasses import dataclass
from pathlib import Path

from formulary.config import Settings, resolve_import_folder
from formulary.infrastructure.database import DatabaseSessionManager
from formulary.infrastructure.sql_stores import SqlFormulaStore, SqlRawMaterialStore
from formulary.services.formula_import_engine import FormulaImportEngine
from formulary.services.import_coordinator import ImportCoordinator
from formulary.services.ingestion_watcher import IngestionWatcher
from formulary.services.notification_bus import NotificationBus
from formulary.services.orphan_reaper import OrphanReaper
from formulary.services.raw_material_catalog import RawMaterialCatalog
from formulary.services.raw_material_registry import RawMaterialRegistry


@dataclass
class Runtime:
    db: DatabaseSessionManager
    bus: NotificationBus
    coordinator: ImportCoordinator
    engine: FormulaImportEngine
    catalog: RawMaterialCatalog
    watcher: IngestionWatcher | None = None

    async def start(self) -> None:
        if self.watcher is not None and not self.watcher.running:
            await self.watcher.start()

    async def stop(self) -> None:
        if self.watcher is not None:
            await self.watcher.stop()
        self.bus.clear()


def build_runtime(
    db: DatabaseSessionManager, settings: Settings, base_dir: Path | None = None,
) -> Runtime:
    formulas = SqlFormulaStore(db)
    raw_materials = SqlRawMaterialStore(db)
    bus = NotificationBus()
    coordinator = ImportCoordinator()
    engine = FormulaImportEngine(
        formulas,
        raw_materials,
        RawMaterialRegistry(raw_materials, settings.raw_material_retry_delays_ms),
        OrphanReaper(formulas, raw_materials),
        sink=bus,
        currency=settings.default_currency,
    )
    watcher = None
    if settings.watcher_enabled:
        watcher = IngestionWatcher(
            resolve_import_folder(settings.import_folder, base_dir),
            engine,
            coordinator,
            settle_delay=settings.import_settle_delay_seconds,
            scan_interval=settings.import_scan_interval_seconds,
        )
    return Runtime(
        db=db,
        bus=bus,
        coordinator=coordinator,
        engine=engine,
        catalog=RawMaterialCatalog(raw_materials, bus),
        watcher=watcher,
    )
