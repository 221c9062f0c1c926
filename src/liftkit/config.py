"""Configuration management for liftkit.

Two layers:
1. Tool config: ~/.config/liftkit/config.yaml (registry, schema, stylesheet...)
2. Project alias config: <project>/components.json (read-only)
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from .fetcher import DEFAULT_REGISTRY_URL, DEFAULT_SCHEMA_URL, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

COMPONENTS_CONFIG = "components.json"

DEFAULT_CONFIG: dict[str, Any] = {
    "registry_url": DEFAULT_REGISTRY_URL,
    "schema_url": DEFAULT_SCHEMA_URL,
    "stylesheet": "src/app/globals.css",
    "source_dir": "src",
    "package_manager": "npm",
    "timeout": DEFAULT_TIMEOUT,
    "debug": False,
}

# Aliases used when the project has no components.json
DEFAULT_ALIASES: dict[str, str] = {
    "components": "@/components",
    "utils": "@/lib/utils",
    "ui": "@/components/ui",
    "lib": "@/lib",
    "hooks": "@/hooks",
    "blocks": "@/components/blocks",
}


def get_config_dir() -> Path:
    """Get the liftkit config directory."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(xdg_config) / "liftkit"


def get_config_path() -> Path:
    """Get the path to the tool config file."""
    return get_config_dir() / "config.yaml"


def get_debug_log_path() -> Path:
    """Get the path to the debug log file."""
    return get_config_dir() / "debug.log"


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config() -> dict[str, Any]:
    """Load the tool config, falling back to defaults."""
    config_path = get_config_path()
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            return copy.deepcopy(DEFAULT_CONFIG)
        return _deep_merge(copy.deepcopy(DEFAULT_CONFIG), data)
    except FileNotFoundError:
        return copy.deepcopy(DEFAULT_CONFIG)
    except (yaml.YAMLError, OSError):
        logger.warning(f"Ignoring unreadable config file {config_path}")
        return copy.deepcopy(DEFAULT_CONFIG)


def save_config(cfg: dict[str, Any]) -> None:
    """Save the tool config."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(cfg, f, default_flow_style=False, sort_keys=False)


def is_debug_enabled() -> bool:
    """Check if debug mode is enabled."""
    return bool(load_config().get("debug", False))


def load_components_config(project_dir: Path) -> dict[str, Any] | None:
    """Load <project>/components.json.

    Returns None when the file is absent or cannot be parsed.
    """
    path = project_dir / COMPONENTS_CONFIG
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to load {COMPONENTS_CONFIG}: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Failed to load {COMPONENTS_CONFIG}: not a JSON object")
        return None
    return data


def load_aliases(project_dir: Path) -> dict[str, str] | None:
    """Alias table declared by the project, or None if it declares none."""
    data = load_components_config(project_dir)
    if data is None:
        return None
    aliases = data.get("aliases")
    if not isinstance(aliases, dict):
        return None
    return {str(k): str(v) for k, v in aliases.items() if isinstance(v, str)}
