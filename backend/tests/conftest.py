"""Root conftest — shared test configuration."""

import os

# Keep tests off any real database and folder
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("WATCHER_ENABLED", "false")
