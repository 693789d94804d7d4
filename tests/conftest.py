"""
Pytest configuration file for the docstore project.
This file sets up the Python path so tests can import modules from the project root.
"""
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine

# Add the project root to Python path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture
def temp_db(tmp_path):
    # path for a fresh db per test
    return str(tmp_path / "test.db")


@pytest.fixture
def engine(temp_db):
    eng = create_engine(f"sqlite:///{temp_db}")
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    from repositories.sql_store import SqlDocumentStore

    s = SqlDocumentStore(engine, project="test_project")
    yield s
    s.close()


@pytest.fixture
def seed(store):
    """Write documents into a collection: seed("col", {"id": {...}, ...})."""

    def _seed(collection, documents):
        for document_id, payload in documents.items():
            store.set_document(collection, document_id, payload)

    return _seed


@pytest.fixture
def settings_file(tmp_path):
    """A settings.toml with two projects backed by files under tmp_path."""
    from settings_service import clear_settings_cache

    path = tmp_path / "settings.toml"
    path.write_text(
        "[env]\n"
        'env = "test"\n'
        'log_level = "INFO"\n'
        "\n"
        "[projects.project_one]\n"
        'display_name = "Project One"\n'
        f'url = "sqlite:///{(tmp_path / "one.db").as_posix()}"\n'
        "read_only = false\n"
        "\n"
        "[projects.project_two]\n"
        'display_name = "Project Two"\n'
        f'url = "sqlite:///{(tmp_path / "data" / "two.db").as_posix()}"\n'
        "read_only = true\n"
    )
    clear_settings_cache()
    yield path
    from config import ProjectConfig

    for alias in ("project_one", "project_two"):
        ProjectConfig(alias, settings_path=path).dispose()
    clear_settings_cache()
