"""Centralized config loading — read once at import time.

``HUBGEN_CONFIG`` may point at an alternative YAML file; keys it omits keep
the defaults below.
"""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Credentials (ANTHROPIC_API_KEY, GOOGLE_API_KEY, GITHUB_TOKEN, TAVILY_API_KEY) live in .env
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

CONFIG_PATH = Path(os.getenv("HUBGEN_CONFIG", Path(__file__).resolve().parent / "config.yaml"))

DEFAULTS = {
    "provider": "anthropic",
    "max_cycles": 3,
    "max_attempts": 5,
    "rate_limit_backoff_seconds": 60,
    "skip_tasks": [],
    "http_max_retries": 3,
    "log_level": "INFO",
}


def load_config(path: Path) -> dict:
    """Read a YAML config file and fill in defaults for missing keys."""
    loaded = yaml.safe_load(path.read_text()) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {path} must contain a mapping.")
    return {**DEFAULTS, **loaded}


_config = load_config(CONFIG_PATH)


def get_config() -> dict:
    """Return the loaded config dictionary."""
    return _config
