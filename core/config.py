# =============================================================================
# core/config.py  —  Server Configuration Loading
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Builds a ServerConfig from an optional `config.json`:
#
#     {
#       "filtering": {
#         "excludeKeywords": ["deprecated"],
#         "excludePageIds": [], "excludeDatabaseIds": [],
#         "includeOnlyPageIds": [], "includeOnlyDatabaseIds": []
#       },
#       "caching": {"enabled": true, "ttlMinutes": 5}
#     }
#
#   Any key that is missing keeps its default.  A broken file is logged and
#   ignored; the server must still start with defaults.
#
# SECRETS:
#   NOTION_TOKEN is NOT read here.  It comes from the environment (loaded
#   from .env by main.py), so config.json can be committed safely.
# =============================================================================

import json
import logging
import os
from pathlib import Path
from typing import Any

from core.models import ServerConfig

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "NOTION_MCP_CONFIG"
DEFAULT_CONFIG_FILE = "config.json"


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_minutes(value: Any) -> bool:
    # bool is an int subclass; `true` is not a TTL.
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0


# JSON key → (dataclass attribute, value check, expected type for the log)
_FILTERING_KEYS = {
    "excludeKeywords": ("exclude_keywords", _is_string_list, "a list of strings"),
    "excludePageIds": ("exclude_page_ids", _is_string_list, "a list of strings"),
    "excludeDatabaseIds": ("exclude_database_ids", _is_string_list, "a list of strings"),
    "includeOnlyPageIds": ("include_only_page_ids", _is_string_list, "a list of strings"),
    "includeOnlyDatabaseIds": ("include_only_database_ids", _is_string_list, "a list of strings"),
}
_CACHING_KEYS = {
    "enabled": ("enabled", _is_bool, "true or false"),
    "ttlMinutes": ("ttl_minutes", _is_minutes, "a non-negative number"),
}


def _apply(target: Any, name: str, section: Any, keys: dict) -> None:
    """Copy well-typed values from ``section`` onto ``target``.

    A value of the wrong type is logged and the default is kept.
    """
    if not isinstance(section, dict):
        logger.warning("[CONFIG] Ignoring %r: expected an object", name)
        return
    for json_key, (attr, is_valid, expected) in keys.items():
        if json_key not in section:
            continue
        value = section[json_key]
        if not is_valid(value):
            logger.warning(
                "[CONFIG] Ignoring %s.%s=%r: expected %s", name, json_key, value, expected
            )
            continue
        setattr(target, attr, list(value) if isinstance(value, list) else value)


def parse_config(data: dict) -> ServerConfig:
    """Overlay a decoded config.json document onto the defaults."""
    config = ServerConfig()
    _apply(config.filtering, "filtering", data.get("filtering") or {}, _FILTERING_KEYS)
    _apply(config.caching, "caching", data.get("caching") or {}, _CACHING_KEYS)
    return config


def resolve_config_path(path: str | os.PathLike | None = None) -> Path:
    if path is not None:
        return Path(path)
    return Path(os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_FILE))


def load_config(path: str | os.PathLike | None = None) -> ServerConfig:
    """Load configuration, falling back to defaults on any problem.

    Args:
        path: Explicit config file.  Defaults to $NOTION_MCP_CONFIG, then
              ./config.json.

    Returns:
        A fresh ServerConfig.  Never raises for a missing or invalid file.
    """
    config_path = resolve_config_path(path)
    if not config_path.exists():
        return ServerConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("top-level JSON value must be an object")
        config = parse_config(data)
    except (OSError, ValueError, TypeError) as exc:
        logger.error("[CONFIG] Failed to load %s: %s", config_path, exc)
        return ServerConfig()

    logger.info("[CONFIG] Loaded configuration from %s", config_path)
    return config

