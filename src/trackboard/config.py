"""Configuration file handling for trackboard."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from trackboard.constants import (
    ACTOR_ENV_VAR,
    CONFIG_FILENAME,
    FEED_LIMIT,
    MAX_ATTACHMENT_SIZE,
)

logger = logging.getLogger(__name__)


@dataclass
class TrackboardConfig:
    """Session settings."""

    actor_name: str | None = None
    max_attachment_size: int = MAX_ATTACHMENT_SIZE
    feed_limit: int = FEED_LIMIT
    seed_file: str | None = None


def get_config_path(directory: str | Path | None = None) -> Path:
    """Get the path to the config file in *directory* (default: cwd)."""
    base = Path.cwd() if directory is None else Path(directory)
    return base / CONFIG_FILENAME


def load_config_dict(config_path: str | Path) -> dict[str, Any]:
    """Load the raw TOML mapping, or an empty dict if missing or malformed."""
    config_path = Path(config_path)
    if not config_path.exists():
        return {}

    try:
        with config_path.open("rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return {}


def _positive_int(raw: Any, default: int, key: str) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool) and raw > 0:
        return raw
    if raw is not None:
        logger.warning("Ignoring invalid %s=%r in config", key, raw)
    return default


def load_config(config_path: str | Path | None = None) -> TrackboardConfig:
    """Load settings from trackboard.toml, applying defaults and env overrides.

    Precedence for the actor name:
    1. ``TBOARD_ACTOR`` environment variable
    2. ``actor_name`` in the config file
    3. None (rendered as "System")
    """
    path = get_config_path() if config_path is None else Path(config_path)
    data = load_config_dict(path)

    actor = os.environ.get(ACTOR_ENV_VAR, "").strip() or data.get("actor_name")
    seed_file = data.get("seed_file")
    if seed_file is not None and not Path(seed_file).is_absolute():
        seed_file = str(path.parent / seed_file)

    return TrackboardConfig(
        actor_name=actor or None,
        max_attachment_size=_positive_int(
            data.get("max_attachment_size"),
            MAX_ATTACHMENT_SIZE,
            "max_attachment_size",
        ),
        feed_limit=_positive_int(data.get("feed_limit"), FEED_LIMIT, "feed_limit"),
        seed_file=seed_file,
    )


def save_config(config_path: str | Path, config: dict[str, Any]) -> None:
    """Write a config mapping to *config_path* as TOML."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("wb") as f:
        tomli_w.dump(config, f)


def set_config_value(config_path: str | Path, key: str, value: Any) -> None:
    """Set a single key in the config file, preserving the others."""
    config = load_config_dict(config_path)
    config[key] = value
    save_config(config_path, config)
