"""
Configuration and constants for the statement reconciler.

This module provides:
- Default settings for PDF handling, LLM extraction and reconciliation
- Support for user-configurable settings via environment variables
- Loading overrides from a YAML file
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# =============================================================================
# Application Info
# =============================================================================

APP_NAME: str = "Statement Reconciler"
APP_VERSION: str = "1.0.0"

# =============================================================================
# LLM Settings
# =============================================================================

LLM_MODEL: str = os.environ.get("LLM_MODEL", "claude-3-5-haiku-latest")
LLM_MAX_TOKENS: int = int(os.environ.get("LLM_MAX_TOKENS", "4096"))

# Statement text beyond this is dropped from the prompt
LLM_MAX_INPUT_CHARS: int = 100_000

# =============================================================================
# Reconciliation Settings
# =============================================================================

# 1.5 cents absorbs rounding noise in the stated figures
RECONCILIATION_TOLERANCE: str = "0.015"

# =============================================================================
# Upload Settings
# =============================================================================

MAX_CONTENT_LENGTH: int = 16 * 1024 * 1024  # 16 MB
ALLOWED_CONTENT_TYPES: List[str] = ["application/pdf"]
UPLOAD_FIELD_NAME: str = "pdfFile"

# Length of the raw text snippet echoed back to the caller
RAW_TEXT_SNIPPET_CHARS: int = 2000

# =============================================================================
# API Key
# =============================================================================

def get_api_key() -> str:
    """Get the Anthropic API key from environment variable."""
    api_key = os.environ.get("ANTHROPIC_API_KEY", "")
    return api_key


# =============================================================================
# Flexible Configuration System
# =============================================================================

class Config:
    """
    Configuration manager that supports:
    - Environment variables
    - A custom YAML configuration file
    - Runtime overrides
    """

    _instance: Optional["Config"] = None
    _settings: Dict[str, Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_defaults()
            cls._instance._load_custom_config()
        return cls._instance

    def _load_defaults(self) -> None:
        """Load default settings."""
        self._settings = {
            "llm_model": LLM_MODEL,
            "llm_max_tokens": LLM_MAX_TOKENS,
            "llm_max_input_chars": LLM_MAX_INPUT_CHARS,
            "raw_text_snippet_chars": int(
                os.environ.get("RAW_TEXT_SNIPPET_CHARS", str(RAW_TEXT_SNIPPET_CHARS))
            ),
            "max_content_length": MAX_CONTENT_LENGTH,
            "log_level": os.environ.get("LOG_LEVEL", "").upper() or None,
        }

    def _load_custom_config(self) -> None:
        """Load custom configuration from YAML file if available."""
        config_paths = [
            Path.cwd() / "config.yaml",
            Path.cwd() / "config.yml",
            Path(__file__).parent / "config.yaml",
            Path.home() / ".statement_reconciler" / "config.yaml",
        ]

        for config_path in config_paths:
            if config_path.exists():
                try:
                    with open(config_path, 'r', encoding='utf-8') as f:
                        custom_config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.warning("Could not load config from %s: %s", config_path, e)
                    continue

                if not isinstance(custom_config, dict):
                    logger.warning("Ignoring %s: top level must be a mapping", config_path)
                    continue

                self._settings.update(custom_config)
                logger.info("Loaded config from %s", config_path)
                break

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        return self._settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value at runtime."""
        self._settings[key] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._settings)

    def reload(self) -> None:
        """Reload configuration from files."""
        self._load_defaults()
        self._load_custom_config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
