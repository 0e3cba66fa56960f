"""
playhub.api.main — FastAPI application entry point
=====================================================

Run with::

    uvicorn playhub.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import math
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from playhub.api.deps import configure_throttle, get_catalog, get_config, get_engine  # noqa: E402
from playhub.api.routes.achievements import router as achievements_router  # noqa: E402
from playhub.api.routes.posts import router as posts_router  # noqa: E402
from playhub.api.routes.progress import router as progress_router  # noqa: E402
from playhub.api.routes.reviews import games_router  # noqa: E402
from playhub.api.routes.reviews import router as reviews_router  # noqa: E402
from playhub.api.routes.users import router as users_router  # noqa: E402
from playhub.database.seed import seed_default_achievements  # noqa: E402
from playhub.errors import PlayhubError, TooManyRequestsError  # noqa: E402
from playhub.services.catalog import HttpGameCatalog  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) ``cors_origins`` in config.yaml
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    try:
        cfg = get_config()
    except FileNotFoundError:
        return []
    return [origin.rstrip("/") for origin in cfg.cors_origins]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine, configure the throttle."""
    cfg = get_config()
    engine = get_engine()
    configure_throttle(cfg.throttle_window_seconds)
    seed_default_achievements(engine)
    logger.info("PlayHub API started for %s — engine ready (%s)",
                cfg.community_name, engine.url.database)
    yield
    catalog = get_catalog()
    if isinstance(catalog, HttpGameCatalog):
        catalog.close()
    logger.info("PlayHub API shutting down")


app = FastAPI(
    title="PlayHub API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PlayhubError)
async def playhub_error_handler(request: Request, exc: PlayhubError) -> JSONResponse:
    headers = None
    if isinstance(exc, TooManyRequestsError):
        headers = {"Retry-After": str(max(1, math.ceil(exc.retry_after)))}
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


# Mount routers
app.include_router(posts_router, prefix="/api")
app.include_router(reviews_router, prefix="/api")
app.include_router(games_router, prefix="/api")
app.include_router(progress_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(achievements_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
