"""
playhub.config — YAML Configuration Loader
===========================================

Reads ``config.yaml`` for **infrastructure-only** settings (community
identity, throttle window, game catalog endpoint, CORS origins).  Secrets
and the database URL stay in the environment (``.env``).

Usage::

    from playhub.config import load_config

    cfg = load_config()                 # reads ./config.yaml by default
    print(cfg.community_name)           # "PlayHub Dev"
    print(cfg.throttle_window_seconds)  # 2.0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from playhub.constants import DEFAULT_THROTTLE_WINDOW_SECONDS


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PlayhubConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    community_name: str

    # Anti-spam
    throttle_window_seconds: float = DEFAULT_THROTTLE_WINDOW_SECONDS

    # Collaborators
    game_catalog_url: str | None = None  # None → accept any game id

    # HTTP
    cors_origins: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> PlayhubConfig:
    """Read *path* and return a :class:`PlayhubConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    window = raw.get("throttle_window_seconds")
    return PlayhubConfig(
        community_name=raw["community_name"],
        throttle_window_seconds=(
            float(window) if window is not None else DEFAULT_THROTTLE_WINDOW_SECONDS
        ),
        game_catalog_url=raw.get("game_catalog_url") or None,
        cors_origins=[
            str(origin).rstrip("/") for origin in raw.get("cors_origins") or []
        ],
    )
