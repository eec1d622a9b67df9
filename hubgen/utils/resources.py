"""Declared external resources and runtime dependencies available to verification scripts."""

import json
import logging
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


def load_resource_names(env_path: str | Path) -> list[str]:
    """Return the variable names declared in a .env file (never the values).

    A missing file yields an empty list: the verifier then has no credentials
    to offer and the self-sufficiency judge is told so.
    """
    path = Path(env_path)
    if not path.is_file():
        logger.warning("No resource file at %s; no external resources declared.", path)
        return []
    return sorted(name for name in dotenv_values(path) if name)


def load_dependencies(package_json_path: str | Path) -> dict[str, str]:
    """Return dependencies + devDependencies from a package.json, or {} if absent."""
    path = Path(package_json_path)
    if not path.is_file():
        return {}
    try:
        package = json.loads(path.read_text())
    except json.JSONDecodeError:
        logger.warning("Could not parse %s; listing no dependencies.", path)
        return {}
    return {**package.get("dependencies", {}), **package.get("devDependencies", {})}
