"""
Optional JSON configuration supplying defaults for the command-line tools.

Search order (first file found wins):
  1. $DLNA_PLAYLIST_CONFIG
  2. ~/.config/dlna-playlist/config.json
  3. dlna-playlist.json             (CWD)

Command-line flags always override configured values.

Example file:
    {
        "renderer": {"name": "Living*"},
        "server": {"name": "MiniDLNA*"},
        "playback": {"poll_interval": 2, "max_start_retries": 5},
        "discovery": {"timeout": 3},
        "playlist": {"checkpoint": "~/.cache/dlna-playlist/checkpoint"}
    }

Usage:
    from dlna_playlist.config import cfg

    renderer = cfg("renderer", "name", default="*")
"""

import json
import logging
import os

logger = logging.getLogger(__name__)

ENV_VAR = "DLNA_PLAYLIST_CONFIG"

_config: dict | None = None


def _search_paths() -> list:
    paths = []
    if os.environ.get(ENV_VAR):
        paths.append(os.environ[ENV_VAR])
    paths.append(os.path.expanduser("~/.config/dlna-playlist/config.json"))
    paths.append("dlna-playlist.json")
    return paths


def load_config() -> dict:
    """Load config from the first JSON file found. Cached after first call."""
    global _config
    if _config is not None:
        return _config

    for path in _search_paths():
        try:
            with open(path) as f:
                loaded = json.load(f)
        except FileNotFoundError:
            continue
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in %s: %s", path, e)
            continue
        if not isinstance(loaded, dict):
            logger.error("Config %s is not a JSON object, ignoring it", path)
            continue
        logger.debug("Config loaded from %s", path)
        _config = loaded
        return _config

    _config = {}
    return _config


def cfg(section: str, key: str | None = None, *, default=None):
    """Read a config value.

    cfg("renderer")                      → config["renderer"]
    cfg("renderer", "name")              → config["renderer"]["name"]
    cfg("playback", "poll_interval", default=1)  → value or 1
    """
    config = load_config()
    val = config.get(section)
    if key is None:
        return val if val is not None else default
    if isinstance(val, dict):
        return val.get(key, default)
    return default


def reload_config():
    """Force re-read from disk (for testing or after the environment changed)."""
    global _config
    _config = None
    return load_config()
