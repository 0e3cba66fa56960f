"""
playhub.services.catalog — Game catalog lookup
================================================

The catalog of game metadata lives in another service.  The core only
asks one question of it: does this game id exist?
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

import httpx

from playhub.errors import InternalError

logger = logging.getLogger(__name__)


class GameCatalog(Protocol):
    def exists(self, game_id: str) -> bool: ...


class StaticGameCatalog:
    """In-memory catalog.  With no ids given, every game id is accepted."""

    def __init__(self, known_ids: Iterable[str] | None = None) -> None:
        self._known = None if known_ids is None else {str(g) for g in known_ids}

    def exists(self, game_id: str) -> bool:
        if self._known is None:
            return bool(game_id)
        return str(game_id) in self._known


class HttpGameCatalog:
    """Catalog backed by ``GET {base_url}/games/{id}``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(
            base_url=base_url.rstrip("/"), timeout=timeout,
        )

    def exists(self, game_id: str) -> bool:
        try:
            resp = self._client.get(f"/games/{game_id}")
        except httpx.HTTPError as exc:
            logger.error("Game catalog unreachable: %s", exc)
            raise InternalError("Game catalog is unavailable") from exc

        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        logger.error(
            "Game catalog returned %d for game %s", resp.status_code, game_id,
        )
        raise InternalError("Game catalog returned an unexpected response")

    def close(self) -> None:
        self._client.close()


def build_catalog(base_url: str | None) -> GameCatalog:
    """HTTP catalog when a URL is configured, otherwise accept-all."""
    if base_url:
        logger.info("Using game catalog at %s", base_url)
        return HttpGameCatalog(base_url)
    logger.info("No game catalog configured — accepting any game id")
    return StaticGameCatalog()
