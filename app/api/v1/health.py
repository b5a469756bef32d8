"""Health check endpoint with database connectivity and settings cache status."""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_config_cache
from app.core.config import Settings, get_settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse
from app.services.config_cache import ConfigCache

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    cache: Annotated[ConfigCache, Depends(get_config_cache)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """
    Report database connectivity and whether settings are cached. Always 200 so load
    balancers can tell a degraded process from a dead one; check status for "ok".
    """
    db_ok = check_db_connected(db)
    healthy = db_ok and cache.is_loaded
    return HealthResponse(
        status="ok" if healthy else "degraded",
        message="Server is running" if healthy else "Server is running with degraded dependencies",
        environment=settings.APP_ENV,
        database="connected" if db_ok else "disconnected",
        settings_cache="loaded" if cache.is_loaded else "not_loaded",
        timestamp=datetime.now(timezone.utc),
    )
