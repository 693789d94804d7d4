from sqlalchemy import create_engine, text, Engine
from sqlalchemy.engine import make_url
import os
import threading
from contextlib import suppress
from pathlib import Path

from logging_config import setup_logging

logger = setup_logging(__name__)

# =============================================================================
# Project (tenant) Configuration
# =============================================================================

# Serializes engine and store creation/disposal within the process
_ENGINE_LOCK = threading.Lock()


def get_settings(settings_path: str | Path = "settings.toml") -> dict:
    from settings_service import SettingsService

    return SettingsService(settings_path).settings_dict


class ProjectConfig:
    """Connection settings for one tenant document store.

    Engines and stores are shared per alias so that every facade built for
    the same project talks to the same underlying store, and therefore sees
    the same change feed.
    """

    # Shared handles per-alias to avoid multiple simultaneous connections to the same file
    _engines: dict[str, Engine] = {}
    _stores: dict = {}

    def __init__(self, alias: str, settings_path: str | Path = "settings.toml"):
        from settings_service import get_all_project_configs

        projects = get_all_project_configs(Path(settings_path))
        if alias not in projects:
            raise ValueError(
                f"Unknown project alias '{alias}'. "
                f"Available: {list(projects.keys())}"
            )
        project = projects[alias]
        self.alias = alias
        self.url = project.url
        self.display_name = project.display_name
        self.read_only = project.read_only

    @property
    def engine(self) -> Engine:
        with _ENGINE_LOCK:
            return self._get_engine()

    def _get_engine(self) -> Engine:
        eng = ProjectConfig._engines.get(self.alias)
        if eng is None:
            self._ensure_sqlite_dir()
            eng = create_engine(self.url)
            ProjectConfig._engines[self.alias] = eng
            logger.info(f"Created engine for project {self.alias} ({self.display_name})")
        return eng

    @property
    def store(self):
        """The shared SqlDocumentStore for this alias."""
        from repositories.sql_store import SqlDocumentStore

        with _ENGINE_LOCK:
            store = ProjectConfig._stores.get(self.alias)
            if store is None:
                store = SqlDocumentStore(self._get_engine(), project=self.alias, read_only=self.read_only)
                ProjectConfig._stores[self.alias] = store
                logger.info(f"Created store for project {self.alias} (read_only={self.read_only})")
            return store

    def _ensure_sqlite_dir(self) -> None:
        """Create the parent directory of a file-backed SQLite URL."""
        url = make_url(self.url)
        if url.get_backend_name() != "sqlite":
            return
        database = url.database
        if not database or database == ":memory:" or database.startswith("file:"):
            return
        parent = os.path.dirname(os.path.abspath(database))
        os.makedirs(parent, exist_ok=True)

    def dispose(self) -> None:
        """Close the shared store and dispose the shared engine for this alias, if any."""
        with _ENGINE_LOCK:
            store = ProjectConfig._stores.pop(self.alias, None)
            eng = ProjectConfig._engines.pop(self.alias, None)
        if store is not None:
            store.close()
        if eng is not None:
            with suppress(Exception):
                eng.dispose()
            logger.info(f"Disposed engine for project {self.alias}")

    def ping(self) -> bool:
        """Return True if the store answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Ping failed for project {self.alias}: {e}")
            return False
