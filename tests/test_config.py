"""
Unit tests for configuration loading.
"""
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from config import Config, get_api_key, get_config


class TestConfig(unittest.TestCase):
    """Tests for the configuration manager."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        Config._instance = None

    def tearDown(self):
        Config._instance = None
        self.tmpdir.cleanup()

    def load(self):
        with mock.patch("config.Path.cwd", return_value=Path(self.tmpdir.name)), \
                mock.patch("config.Path.home", return_value=Path(self.tmpdir.name) / "home"):
            return get_config()

    def test_defaults(self):
        cfg = self.load()
        self.assertEqual(cfg.get("llm_model"), config.LLM_MODEL)
        self.assertEqual(cfg.get("raw_text_snippet_chars"), 2000)
        self.assertEqual(cfg.get("max_content_length"), 16 * 1024 * 1024)

    def test_yaml_override(self):
        with open(os.path.join(self.tmpdir.name, "config.yaml"), "w", encoding="utf-8") as f:
            f.write("llm_model: claude-test\nraw_text_snippet_chars: 500\n")
        cfg = self.load()
        self.assertEqual(cfg.get("llm_model"), "claude-test")
        self.assertEqual(cfg.get("raw_text_snippet_chars"), 500)

    def test_invalid_yaml_ignored(self):
        with open(os.path.join(self.tmpdir.name, "config.yaml"), "w", encoding="utf-8") as f:
            f.write("- just\n- a list\n")
        cfg = self.load()
        self.assertEqual(cfg.get("llm_model"), config.LLM_MODEL)

    def test_singleton_and_runtime_set(self):
        cfg = self.load()
        cfg.set("llm_max_tokens", 10)
        self.assertIs(get_config(), cfg)
        self.assertEqual(get_config().get("llm_max_tokens"), 10)

    def test_api_key_from_environment(self):
        with mock.patch.dict(os.environ, {"ANTHROPIC_API_KEY": "sk-env"}):
            self.assertEqual(get_api_key(), "sk-env")
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(get_api_key(), "")

    def test_log_level_unset_without_environment(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertIsNone(self.load().get("log_level"))
        Config._instance = None
        with mock.patch.dict(os.environ, {"LOG_LEVEL": "debug"}):
            self.assertEqual(self.load().get("log_level"), "DEBUG")


if __name__ == '__main__':
    unittest.main()
