import unittest
import tomllib
from pathlib import Path

from sqlalchemy.engine import make_url


class TestSettingsToml(unittest.TestCase):
    """Test suite to validate settings.toml structure and contents."""

    @classmethod
    def setUpClass(cls):
        """Load settings.toml once for all tests."""
        settings_path = Path(__file__).parent.parent / "settings.toml"
        with open(settings_path, "rb") as f:
            cls.settings = tomllib.load(f)

    def test_toml_file_can_be_loaded(self):
        """Test that settings.toml exists and can be parsed without errors."""
        settings_path = Path(__file__).parent.parent / "settings.toml"
        self.assertTrue(settings_path.exists(), "settings.toml file does not exist")

        with open(settings_path, "rb") as f:
            settings = tomllib.load(f)

        self.assertIsInstance(settings, dict)

    def test_env_section(self):
        """Test that env holds a known log level."""
        env = self.settings['env']
        self.assertIn('env', env)
        self.assertIn(env['log_level'], ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])

    def test_both_projects_configured(self):
        """Test that both tenant stores are present."""
        projects = self.settings['projects']
        for alias in ['project_one', 'project_two']:
            with self.subTest(alias=alias):
                self.assertIn(alias, projects, f"{alias} is missing from projects")

    def test_project_entries(self):
        """Test that every project has a parseable url and a boolean read_only."""
        for alias, project in self.settings['projects'].items():
            with self.subTest(alias=alias):
                self.assertIsInstance(project['url'], str)
                make_url(project['url'])
                self.assertIsInstance(project.get('read_only', False), bool)
                self.assertIsInstance(project.get('display_name', alias), str)

    def test_project_urls_are_distinct(self):
        """Test that no two tenants share a backing store."""
        urls = [p['url'] for p in self.settings['projects'].values()]
        self.assertEqual(len(urls), len(set(urls)))

    def test_settings_compatible_with_project_settings(self):
        """Test that the projects section loads into ProjectSettings."""
        from settings_service import get_all_project_configs
        from domain.project import ProjectSettings

        settings_path = Path(__file__).parent.parent / "settings.toml"
        configs = get_all_project_configs(settings_path)
        self.assertEqual(set(configs), set(self.settings['projects']))
        for alias, config in configs.items():
            self.assertIsInstance(config, ProjectSettings)
            self.assertEqual(config.alias, alias)


if __name__ == "__main__":
    unittest.main()
