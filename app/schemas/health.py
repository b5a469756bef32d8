"""Pydantic schemas for health check responses."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness plus the two dependencies authentication needs: the database and the settings cache."""

    status: Literal["ok", "degraded"] = Field(description="ok when database and settings cache are both up")
    message: str
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"]
    settings_cache: Literal["loaded", "not_loaded"]
    timestamp: datetime
