from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from algoarena.api.categories import router as categories_router
from algoarena.api.health import router as health_router
from algoarena.api.metrics_endpoint import router as metrics_router
from algoarena.api.progress import router as progress_router
from algoarena.api.questions import router as questions_router
from algoarena.core.config import SETTINGS
from algoarena.core.errors import AlreadyExists, NotFound, StoreUnavailable
from algoarena.core.logging import setup_logging
from algoarena.db.engine import lifespan_db
from algoarena.db.redis import lifespan_redis
from algoarena.middleware.metrics import MetricsMiddleware
from algoarena.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order.
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="algoarena-progress",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)


@app.exception_handler(NotFound)
async def _not_found(_request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(AlreadyExists)
async def _already_exists(_request: Request, exc: AlreadyExists) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(StoreUnavailable)
async def _store_unavailable(_request: Request, exc: StoreUnavailable) -> JSONResponse:
    logger.error("Request failed, store unavailable: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "storage temporarily unavailable"},
    )


# Last-added runs first: RequestContext (outermost) → Metrics → route handler,
# so every request has an ID before metrics are recorded.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(progress_router)
app.include_router(questions_router)
app.include_router(categories_router)

logger.info(
    "algoarena-progress started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
