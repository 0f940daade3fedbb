"""Ingestion Watcher — picks up *.json formula documents dropped into a folder.

Per file: detected → debouncing (settle delay) → reading → importing →
Processed/ or Errors/.

Invariants:
    - Two detection sources: watchdog native events (created / modified / moved-in)
      and a periodic full scan that also runs once at start
    - Every file waits settle_delay before it is read; a newer native event for the
      same path restarts that wait
    - File processing is serialized by the watcher's own lock, and each import runs
      inside ImportCoordinator.run_exclusive
    - A file is moved exactly once: success → Processed/, failure (unreadable,
      malformed, rejected import) → Errors/; same-named files there are overwritten
    - A file that vanished before processing is a normal race outcome: warning, skip
    - Cancellation is a benign abort (logged at INFO and re-raised); no other error
      escapes process_file or stops the scan loop

Design Decisions:
    - watchdog callbacks run on the observer thread; they only hand the path to the
      event loop via call_soon_threadsafe
    - File IO runs in asyncio.to_thread so the loop keeps serving API requests
"""

import asyncio
import logging
import os
import shutil
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from formulary.core.domain_types import FileOutcome
from formulary.services.formula_import_engine import FormulaImportEngine
from formulary.services.import_coordinator import ImportCoordinator

logger = logging.getLogger(__name__)

PROCESSED_DIR = "Processed"
ERRORS_DIR = "Errors"


class _JsonFileHandler(FileSystemEventHandler):
    """Forwards *.json file events from the watched folder (non-recursive)."""

    def __init__(self, folder: Path, callback: Callable[[Path], None]):
        super().__init__()
        self.folder = folder
        self.callback = callback

    def _forward(self, raw_path) -> None:
        path = Path(os.fsdecode(raw_path))
        if path.suffix.lower() == ".json" and path.parent == self.folder:
            self.callback(path)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.dest_path)


def _move_replacing(source: Path, target_dir: Path) -> Path:
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / source.name
    if target.exists():
        target.unlink()
    shutil.move(str(source), str(target))
    return target


class IngestionWatcher:
    """Watches one folder and feeds its JSON files to the import engine."""

    def __init__(
        self,
        folder: Path,
        engine: FormulaImportEngine,
        coordinator: ImportCoordinator,
        settle_delay: float = 1.0,
        scan_interval: float = 5.0,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        self.folder = Path(folder).resolve()
        self.processed_dir = self.folder / PROCESSED_DIR
        self.errors_dir = self.folder / ERRORS_DIR
        self.engine = engine
        self.coordinator = coordinator
        self.settle_delay = settle_delay
        self.scan_interval = scan_interval
        self._observer_factory = observer_factory
        self._observer = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._lock = asyncio.Lock()
        self._scan_task: asyncio.Task | None = None
        self._debouncing: dict[Path, asyncio.Task] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._scan_task is not None and not self._scan_task.done()

    # ─── Lifecycle ──────────────────────────────────────────────

    async def start(self) -> None:
        self.folder.mkdir(parents=True, exist_ok=True)
        self._loop = asyncio.get_running_loop()
        try:
            observer = self._observer_factory()
            observer.schedule(
                _JsonFileHandler(self.folder, self._on_native_event),
                str(self.folder), recursive=False,
            )
            observer.start()
            self._observer = observer
        except Exception as e:
            # periodic scan still covers the folder
            logger.error(
                f"Native file watching unavailable for {self.folder}: {e}",
                extra={"file_path": str(self.folder)}, exc_info=True,
            )
        self._scan_task = asyncio.create_task(self.run_scan_loop())
        logger.info(
            f"File watcher started for folder: {self.folder}",
            extra={"file_path": str(self.folder)},
        )

    async def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join)
            self._observer = None
        tasks = list(self._tasks)
        if self._scan_task is not None:
            tasks.append(self._scan_task)
            self._scan_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._debouncing.clear()
        self._tasks.clear()
        logger.info("File watcher stopped", extra={"file_path": str(self.folder)})

    # ─── Detection ──────────────────────────────────────────────

    def _on_native_event(self, path: Path) -> None:
        """Observer thread → event loop hand-off."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._debounce, path)

    def _debounce(self, path: Path) -> None:
        pending = self._debouncing.get(path)
        if pending is not None and not pending.done():
            pending.cancel()
        task = asyncio.create_task(self._process_after_event(path))
        self._debouncing[path] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _process_after_event(self, path: Path) -> None:
        current = asyncio.current_task()
        try:
            await asyncio.sleep(self.settle_delay)
        except asyncio.CancelledError:
            logger.debug(f"Settle restarted or aborted for {path.name}")
            raise
        finally:
            if self._debouncing.get(path) is current:
                del self._debouncing[path]
        await self.process_file(path, settle=False)

    async def run_scan_loop(self) -> None:
        """Scan now, then every scan_interval seconds until cancelled."""
        try:
            while True:
                await self.scan_once()
                await asyncio.sleep(self.scan_interval)
        except asyncio.CancelledError:
            logger.info("Periodic folder scan cancelled")
            raise

    async def scan_once(self) -> dict[Path, FileOutcome]:
        """Process every *.json file currently in the folder, in name order."""
        try:
            paths = sorted(
                p for p in self.folder.iterdir()
                if p.is_file() and p.suffix.lower() == ".json"
            )
        except OSError as e:
            logger.error(f"Folder scan failed for {self.folder}: {e}", exc_info=True)
            return {}
        outcomes = {}
        for path in paths:
            if path in self._debouncing:
                continue  # a native event already owns it
            outcomes[path] = await self.process_file(path)
        return outcomes

    # ─── Processing ─────────────────────────────────────────────

    async def process_file(self, path: Path, settle: bool = True) -> FileOutcome:
        path = Path(path)
        try:
            if settle:
                await asyncio.sleep(self.settle_delay)
            async with self._lock:
                return await self._process_locked(path)
        except asyncio.CancelledError:
            logger.info(f"Processing of {path.name} aborted", extra={"file_path": str(path)})
            raise
        except Exception as e:
            logger.error(
                f"Error processing file: {path}: {e}",
                extra={"file_path": str(path)}, exc_info=True,
            )
            return FileOutcome.ERRORED

    async def _process_locked(self, path: Path) -> FileOutcome:
        if not path.exists():
            logger.warning(
                f"File {path.name} no longer exists, skipping",
                extra={"file_path": str(path), "outcome": FileOutcome.SKIPPED.value},
            )
            return FileOutcome.SKIPPED

        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8-sig")
        except FileNotFoundError:
            logger.warning(
                f"File {path.name} disappeared before it could be read",
                extra={"file_path": str(path), "outcome": FileOutcome.SKIPPED.value},
            )
            return FileOutcome.SKIPPED
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Unreadable file {path.name}: {e}", extra={"file_path": str(path)})
            success = False
        else:
            result = await self.coordinator.run_exclusive(
                lambda: self.engine.import_json(content),
                label=f"import {path.name}",
            )
            success = result is True

        outcome = FileOutcome.PROCESSED if success else FileOutcome.ERRORED
        target_dir = self.processed_dir if success else self.errors_dir
        try:
            await asyncio.to_thread(_move_replacing, path, target_dir)
        except FileNotFoundError:
            logger.warning(
                f"File {path.name} vanished before it could be moved",
                extra={"file_path": str(path), "outcome": FileOutcome.SKIPPED.value},
            )
            return FileOutcome.SKIPPED

        log = logger.info if success else logger.error
        log(
            f"{'Successfully imported' if success else 'Failed to import'} formula from file: {path}",
            extra={"file_path": str(path), "outcome": outcome.value},
        )
        return outcome
