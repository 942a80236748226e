"""Response bodies of the /health endpoints."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class DatabaseHealth(BaseModel):
    healthy: bool
    pool_size: int = Field(default=0, ge=0)
    pool_free: int = Field(default=0, ge=0)
    pool_used: int = Field(default=0, ge=0)
    # Never the driver message: it can name hosts and users
    error: str | None = None

    @classmethod
    def from_pool_stats(cls, stats: dict[str, Any]) -> DatabaseHealth:
        healthy = bool(stats.get("healthy"))
        return cls(
            healthy=healthy,
            pool_size=stats.get("pool_size", 0),
            pool_free=stats.get("free_connections", 0),
            pool_used=stats.get("used_connections", 0),
            error=None if healthy else "Database unavailable",
        )


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"]
    version: str
    environment: str
    uptime_seconds: float | None = Field(default=None, description="Seconds since startup")
    database: DatabaseHealth
    notification_transport: str = Field(description="Transport that delivers signing emails")


class ReadinessResponse(BaseModel):
    ready: bool
    error: str | None = None


class LivenessResponse(BaseModel):
    alive: bool = True
