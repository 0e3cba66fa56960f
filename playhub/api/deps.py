"""
playhub.api.deps — FastAPI dependency injection
=================================================
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import BackgroundTasks, Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from playhub.config import PlayhubConfig, load_config
from playhub.database.engine import create_db_engine
from playhub.engine.throttle import ActionThrottle
from playhub.identity import Identity
from playhub.services.achievement_service import TriggerSink, fire_trigger
from playhub.services.catalog import GameCatalog, build_catalog

logger = logging.getLogger(__name__)

_WEAK_SECRETS = frozenset({
    "playhub-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> PlayhubConfig:
    return load_config(os.getenv("PLAYHUB_CONFIG", "config.yaml"))


@lru_cache(maxsize=1)
def get_catalog() -> GameCatalog:
    return build_catalog(get_config().game_catalog_url)


# ---------------------------------------------------------------------------
# Throttle — module-level singleton, configured at startup
# ---------------------------------------------------------------------------
_throttle: ActionThrottle | None = None


def get_throttle() -> ActionThrottle:
    """Return the global action throttle."""
    if _throttle is None:
        raise RuntimeError("Throttle not configured — call configure_throttle() first")
    return _throttle


def configure_throttle(window_seconds: float) -> None:
    global _throttle
    _throttle = ActionThrottle(window_seconds)
    logger.info("Action throttle configured (%.1fs window)", window_seconds)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
def get_current_identity(
    authorization: Annotated[str | None, Header()] = None,
) -> Identity:
    """Validate the bearer JWT and return the caller. Raises 401 if invalid."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        user_id = int(payload["sub"])
    except (InvalidTokenError, KeyError, TypeError, ValueError):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    return Identity(
        user_id=user_id,
        display_name=payload.get("name") or f"user-{user_id}",
        is_admin=bool(payload.get("is_admin")),
    )


def get_current_admin(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    if not identity.is_admin:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Not admin")
    return identity


# ---------------------------------------------------------------------------
# Achievement triggers — evaluated after the response is sent
# ---------------------------------------------------------------------------
def get_trigger_sink(
    background_tasks: BackgroundTasks,
    engine: Engine = Depends(get_engine),
) -> TriggerSink:
    def sink(user_id: int, trigger_kind: str, context: dict | None) -> None:
        background_tasks.add_task(fire_trigger, engine, user_id, trigger_kind, context)

    return sink
