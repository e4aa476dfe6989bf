"""
Tests for configuration loading.
"""

import json
import os
import tempfile
import unittest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from spotify_mcp.config import Config, EnvConfig, JSONConfig, load_config
from spotify_mcp.errors import ConfigurationError

FULL_ENV = {
    "SPOTIFY_CLIENT_ID": "client-id",
    "SPOTIFY_CLIENT_SECRET": "client-secret",
    "SPOTIFY_REDIRECT_URI": "http://localhost:8888",
    "SPOTIFY_REFRESH_TOKEN": "refresh-token",
}


class TestConfig(unittest.TestCase):
    """Test suite for Config and its loaders."""

    def test_defaults(self):
        config = Config()
        self.assertEqual(config.get_value("refresh_margin"), 60)
        self.assertEqual(config.get_value("auth_port"), 8888)
        self.assertIn("user-modify-playback-state", config.get_value("scopes"))
        self.assertEqual(config.missing_keys(), ["client_id", "client_secret", "redirect_uri"])

    def test_env_credentials(self):
        credentials = EnvConfig(environ=FULL_ENV).get_credentials()

        self.assertEqual(credentials.client_id, "client-id")
        self.assertEqual(credentials.refresh_token, "refresh-token")
        self.assertTrue(credentials.has_refresh_token)

    def test_refresh_token_optional(self):
        env = {k: v for k, v in FULL_ENV.items() if k != "SPOTIFY_REFRESH_TOKEN"}

        credentials = EnvConfig(environ=env).get_credentials()

        self.assertIsNone(credentials.refresh_token)
        self.assertFalse(credentials.has_refresh_token)

    def test_missing_required_strict(self):
        config = EnvConfig(environ={"SPOTIFY_CLIENT_ID": "client-id"})

        with self.assertRaises(ConfigurationError) as cm:
            config.get_credentials()
        self.assertIn("SPOTIFY_CLIENT_SECRET", str(cm.exception))
        self.assertIn("SPOTIFY_REDIRECT_URI", str(cm.exception))

    def test_missing_required_lenient(self):
        credentials = EnvConfig(environ={}).get_credentials(strict=False)

        self.assertEqual(credentials.client_id, "")
        self.assertIsNone(credentials.refresh_token)

    def test_request_timeout(self):
        config = EnvConfig(environ={"SPOTIFY_REQUEST_TIMEOUT": "2.5"})
        self.assertEqual(config.get_request_timeout(), 2.5)

        config.set_value("request_timeout", "soon")
        with self.assertRaises(ConfigurationError):
            config.get_request_timeout()

    def test_credentials_immutable(self):
        credentials = EnvConfig(environ=FULL_ENV).get_credentials()
        with self.assertRaises(Exception):
            credentials.client_id = "other"


class TestJSONConfig(unittest.TestCase):
    """Test suite for JSON configuration files."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, "config.json")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_environment_overrides_file(self):
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"client_id": "from-file", "client_secret": "file-secret", "auth_port": 9999}, f)

        config = load_config(self.path, environ={"SPOTIFY_CLIENT_ID": "from-env"})

        self.assertEqual(config.get_value("client_id"), "from-env")
        self.assertEqual(config.get_value("client_secret"), "file-secret")
        self.assertEqual(config.get_value("auth_port"), 9999)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            JSONConfig(os.path.join(self.temp_dir.name, "absent.json"))

    def test_invalid_json(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{not json")

        with self.assertRaises(ValueError):
            JSONConfig(self.path)


if __name__ == "__main__":
    unittest.main(verbosity=2)
