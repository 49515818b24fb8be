"""Health check endpoints for postcanvas.

Provides /health and /ready endpoints for container orchestration
and load balancer health checks.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

import structlog
from litestar import Controller, get
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from postcanvas.exceptions import PersistenceError
from postcanvas.services.design import DesignService

if TYPE_CHECKING:
    from litestar import Request

logger = structlog.get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of an individual component."""

    name: str
    status: HealthStatus
    message: str | None = None
    latency_ms: float | None = None


@dataclass
class HealthResponse:
    """Health check response."""

    status: HealthStatus
    version: str = "0.1.0"
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    components: list[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "version": self.version,
            "timestamp": self.timestamp,
            "components": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "message": c.message,
                    "latency_ms": c.latency_ms,
                }
                for c in self.components
            ],
        }


class HealthController(Controller):
    """Health check controller.

    Provides endpoints for liveness and readiness probes used by
    container orchestration systems like Kubernetes.
    """

    path = ""
    tags: ClassVar[list[str]] = ["Health"]

    @get("/health")
    async def health(self, request: Request, design_service: DesignService) -> dict:
        """Liveness probe endpoint.

        Returns:
            Health status with component details.
        """
        components = [
            ComponentHealth(name="application", status=HealthStatus.HEALTHY, message="Application is running"),
            await self._check_storage(design_service),
        ]
        db_health = await self._check_database(request)
        if db_health:
            components.append(db_health)

        statuses = [c.status for c in components]
        if HealthStatus.UNHEALTHY in statuses:
            overall_status = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall_status = HealthStatus.DEGRADED
        else:
            overall_status = HealthStatus.HEALTHY

        return HealthResponse(status=overall_status, components=components).to_dict()

    @get("/ready")
    async def ready(self, request: Request, design_service: DesignService) -> dict:
        """Readiness probe endpoint.

        Unlike /health, this reports one boolean per dependency.

        Returns:
            Readiness status with individual check results.
        """
        checks: dict[str, bool] = {
            "application": True,
            "storage": (await self._check_storage(design_service)).status is HealthStatus.HEALTHY,
        }
        db_health = await self._check_database(request)
        if db_health is not None:
            checks["database"] = db_health.status is HealthStatus.HEALTHY

        return {
            "ready": all(checks.values()),
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
        }

    async def _check_storage(self, design_service: DesignService) -> ComponentHealth:
        """Check that the design storage answers a listing."""
        start = time.perf_counter()
        try:
            await design_service.list_designs()
        except PersistenceError as e:
            logger.warning("Storage health check failed", error=str(e))
            return ComponentHealth(name="storage", status=HealthStatus.UNHEALTHY, message=f"Storage error: {e!s}")
        latency = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            name="storage",
            status=HealthStatus.HEALTHY,
            message=type(design_service.storage).__name__,
            latency_ms=round(latency, 2),
        )

    async def _check_database(self, request: Request) -> ComponentHealth | None:
        """Check database health, if the app runs with a database."""
        db_manager = getattr(request.app.state, "db_manager", None)
        if db_manager is None:
            return None

        start = time.perf_counter()
        try:
            async with db_manager.session() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning("Database health check failed", error=str(e))
            return ComponentHealth(name="database", status=HealthStatus.UNHEALTHY, message=f"Database error: {e!s}")
        latency = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            name="database",
            status=HealthStatus.HEALTHY,
            message="Database connection successful",
            latency_ms=round(latency, 2),
        )
