"""FastAPI application entrypoint. No business logic; only wiring, lifecycle and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.v1 import router as v1_router
from app.core.config import settings
from app.core.database import SessionLocal
from app.core.errors import ConfigurationError, ConfigurationLoadError, ServiceError
from app.services.config_cache import ConfigCache

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load the settings cache before serving traffic; a load failure aborts startup."""
    cache = ConfigCache(SessionLocal)
    try:
        cache.load()
    except SQLAlchemyError as e:
        logger.exception("Failed to load settings cache at startup")
        raise ConfigurationLoadError(f"Failed to load settings cache: {e}") from e
    app.state.config_cache = cache
    yield


app = FastAPI(
    title="Admin API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
    """Map ServiceError to {"detail", "code"} with the status for its kind."""
    headers = (
        {"WWW-Authenticate": "Bearer"}
        if exc.status_code == status.HTTP_401_UNAUTHORIZED
        else None
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.kind.value},
        headers=headers,
    )


@app.exception_handler(ConfigurationError)
async def handle_configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Configuration error on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Server misconfigured", "code": "configuration_error"},
    )


app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Admin API", "documentation": "/docs"}
