"""Pydantic schemas for API responses.

The run report itself is ``moviebonus.etl.schemas.RunReport``; only the
responses specific to the HTTP layer are defined here.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(UTC)


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(examples=["healthy"])
    version: str = Field(examples=["1.0.0"])
    environment: str = Field(examples=["production"])
    trigger_configured: bool = False
    timestamp: datetime = Field(default_factory=_utc_now)


class ErrorResponse(BaseModel):
    """Body of authorization and configuration failures."""

    success: bool = False
    error: str = Field(examples=["Unauthorized"])
    message: str = Field(examples=["Invalid or missing CRON_SECRET"])
