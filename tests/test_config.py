"""
Tests for ProjectConfig and the settings service

Covers:
- Alias resolution from settings.toml
- Shared engine and store per alias
- dispose() closing the store and its listeners
- ping()
"""
import threading
from unittest.mock import Mock

import pytest

from config import ProjectConfig, get_settings
from repositories.sql_store import SqlDocumentStore
from settings_service import SettingsService, get_all_project_configs


class TestSettings:
    def test_get_settings(self, settings_file):
        settings = get_settings(settings_file)
        assert settings["env"]["env"] == "test"

    def test_settings_service(self, settings_file):
        service = SettingsService(settings_file)
        assert service.log_level == "INFO"
        assert service.env == "test"
        assert set(service.projects) == {"project_one", "project_two"}

    def test_project_settings(self, settings_file):
        configs = get_all_project_configs(settings_file)
        assert configs["project_one"].display_name == "Project One"
        assert configs["project_one"].read_only is False
        assert configs["project_two"].read_only is True

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SettingsService(tmp_path / "nope.toml")


class TestProjectConfig:
    def test_unknown_alias(self, settings_file):
        with pytest.raises(ValueError, match="Unknown project alias"):
            ProjectConfig("nope", settings_path=settings_file)

    def test_attributes(self, settings_file):
        config = ProjectConfig("project_two", settings_path=settings_file)
        assert config.alias == "project_two"
        assert config.display_name == "Project Two"
        assert config.read_only is True
        assert config.url.startswith("sqlite:///")

    def test_engine_shared_per_alias(self, settings_file):
        first = ProjectConfig("project_one", settings_path=settings_file)
        second = ProjectConfig("project_one", settings_path=settings_file)
        other = ProjectConfig("project_two", settings_path=settings_file)
        assert first.engine is second.engine
        assert first.engine is not other.engine

    def test_store_shared_per_alias(self, settings_file):
        first = ProjectConfig("project_one", settings_path=settings_file).store
        second = ProjectConfig("project_one", settings_path=settings_file).store
        assert isinstance(first, SqlDocumentStore)
        assert first is second
        assert first.project == "project_one"
        assert ProjectConfig("project_two", settings_path=settings_file).store.read_only

    def test_concurrent_store_creation(self, settings_file):
        stores = []

        def grab():
            stores.append(ProjectConfig("project_one", settings_path=settings_file).store)

        threads = [threading.Thread(target=grab) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len({id(s) for s in stores}) == 1

    def test_sqlite_directory_created(self, settings_file, tmp_path):
        config = ProjectConfig("project_two", settings_path=settings_file)
        assert config.ping()
        assert (tmp_path / "data").is_dir()

    def test_dispose_closes_store(self, settings_file):
        from domain.query import QueryDescriptor

        config = ProjectConfig("project_one", settings_path=settings_file)
        store = config.store
        on_error = Mock()
        store.listen_query(QueryDescriptor("c"), Mock(), on_error)

        config.dispose()

        on_error.assert_called_once()
        assert ProjectConfig("project_one", settings_path=settings_file).store is not store

    def test_ping_failure(self, settings_file, monkeypatch):
        config = ProjectConfig("project_one", settings_path=settings_file)
        broken = Mock()
        broken.connect.side_effect = RuntimeError("down")
        monkeypatch.setitem(ProjectConfig._engines, "project_one", broken)
        assert config.ping() is False
