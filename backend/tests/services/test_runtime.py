"""Runtime wiring — one coordinator and bus shared by engine, catalog, and watcher."""

from formulary.config import Settings
from formulary.runtime import build_runtime


async def test_watcher_disabled_by_setting(db):
    runtime = build_runtime(db, Settings(watcher_enabled=False))
    assert runtime.watcher is None
    assert runtime.engine.sink is runtime.bus
    assert runtime.catalog.sink is runtime.bus


async def test_watcher_uses_resolved_folder_and_shared_coordinator(db, tmp_path):
    settings = Settings(
        watcher_enabled=True,
        import_folder="drop",
        import_settle_delay_seconds=0.5,
        raw_material_retry_delays_ms=[10, 20],
    )
    runtime = build_runtime(db, settings, base_dir=tmp_path)

    assert runtime.watcher.folder == (tmp_path / "drop").resolve()
    assert runtime.watcher.coordinator is runtime.coordinator
    assert runtime.watcher.settle_delay == 0.5
    assert runtime.engine.registry.retry_delays_ms == (10, 20)


async def test_stop_without_start_is_harmless(db, tmp_path):
    runtime = build_runtime(
        db, Settings(watcher_enabled=True, import_folder=str(tmp_path)),
    )
    await runtime.stop()
    assert not runtime.watcher.running
