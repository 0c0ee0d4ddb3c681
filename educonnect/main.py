from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from educonnect.api.assessments import router as assessments_router
from educonnect.api.certificates import router as certificates_router
from educonnect.api.courses import router as courses_router
from educonnect.api.health import router as health_router
from educonnect.api.metrics_endpoint import router as metrics_router
from educonnect.core.config import SETTINGS
from educonnect.core.logging import setup_logging
from educonnect.db.engine import lifespan_db
from educonnect.db.redis import lifespan_redis
from educonnect.middleware.metrics import MetricsMiddleware
from educonnect.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="educonnect-assessments",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext -> Metrics -> CORS -> route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    # e.g. "timeSpent: Input should be greater than or equal to 0"
    problems = [
        ".".join(str(p) for p in err["loc"] if p != "body") + ": " + err["msg"]
        for err in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"message": "; ".join(problems)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": str(exc)})


app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(courses_router)
app.include_router(assessments_router)
app.include_router(certificates_router)

logger.info(
    "educonnect-assessments started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
