import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from gershell.config import ConfigError, GershellPaths, Settings, load_settings

FULL_ENV = {
    "GERRIT_URL": "https://review.example.com",
    "GERRIT_USER": "alice",
    "GERRIT_PW": "secret",
}


class SettingsTests(unittest.TestCase):
    def _paths(self, tmp: str) -> GershellPaths:
        return GershellPaths(home=Path(tmp))

    def _write_config(self, paths: GershellPaths, content: str) -> None:
        paths.global_dir.mkdir(parents=True, exist_ok=True)
        paths.config_file.write_text(content, encoding="utf-8")

    def test_loads_from_environment(self) -> None:
        env = dict(FULL_ENV, GERRIT_SSL_VERIFY="yes", GERRIT_TIMEOUT="12", GERSHELL_DEBUG="info")
        with tempfile.TemporaryDirectory() as tmp, mock.patch.dict(os.environ, env, clear=True):
            settings = load_settings(self._paths(tmp))
        self.assertEqual(settings.gerrit_url, "https://review.example.com")
        self.assertEqual(settings.gerrit_user, "alice")
        self.assertEqual(settings.gerrit_password, "secret")
        self.assertTrue(settings.ssl_verify)
        self.assertEqual(settings.timeout, 12.0)
        self.assertEqual(settings.debug, "info")
        settings.require()

    def test_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, mock.patch.dict(os.environ, FULL_ENV, clear=True):
            settings = load_settings(self._paths(tmp))
        self.assertFalse(settings.ssl_verify)
        self.assertEqual(settings.timeout, 30.0)
        self.assertIsNone(settings.debug)
        self.assertEqual(settings.prompt_prefix, "gerrit")
        self.assertEqual(settings.prompt_symbol, ">")

    def test_invalid_timeout_falls_back_to_default(self) -> None:
        env = dict(FULL_ENV, GERRIT_TIMEOUT="soon")
        with tempfile.TemporaryDirectory() as tmp, mock.patch.dict(os.environ, env, clear=True):
            settings = load_settings(self._paths(tmp))
        self.assertEqual(settings.timeout, 30.0)

    def test_file_values_override_environment(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, mock.patch.dict(os.environ, FULL_ENV, clear=True):
            paths = self._paths(tmp)
            self._write_config(
                paths,
                json.dumps(
                    {
                        "gerrit_user": "bob",
                        "gerrit_password": None,
                        "prompt_prefix": "review",
                        "unrelated": 1,
                    }
                ),
            )
            settings = load_settings(paths)
        self.assertEqual(settings.gerrit_user, "bob")
        self.assertEqual(settings.gerrit_password, "secret")
        self.assertEqual(settings.prompt_prefix, "review")
        self.assertFalse(hasattr(settings, "unrelated"))

    def test_malformed_file_is_a_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, mock.patch.dict(os.environ, FULL_ENV, clear=True):
            paths = self._paths(tmp)
            self._write_config(paths, "{not json")
            with self.assertRaises(ConfigError):
                load_settings(paths)

    def test_non_object_file_is_a_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, mock.patch.dict(os.environ, FULL_ENV, clear=True):
            paths = self._paths(tmp)
            self._write_config(paths, "[1, 2]")
            with self.assertRaises(ConfigError):
                load_settings(paths)

    def test_require_names_every_missing_variable(self) -> None:
        settings = Settings(gerrit_url="https://review.example.com")
        with self.assertRaises(ConfigError) as ctx:
            settings.require()
        self.assertEqual(str(ctx.exception), "Please set GERRIT_USER, GERRIT_PW")

    def test_missing_environment(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, mock.patch.dict(os.environ, {}, clear=True):
            settings = load_settings(self._paths(tmp))
        with self.assertRaises(ConfigError) as ctx:
            settings.require()
        self.assertIn("GERRIT_URL", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
