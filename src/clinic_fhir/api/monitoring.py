"""API monitoring for the Clinic FHIR server.

Request metrics and logging middleware, a Prometheus ``/metrics`` endpoint
and a ``/health`` check that pings the database.
"""

import time
from datetime import datetime
from typing import Any, Callable, Dict, cast

from fastapi import Depends, FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_fhir.core.database import get_db
from clinic_fhir.utils.logging import get_logger, request_logger

logger = get_logger(__name__)
db_dependency = Depends(get_db)


def get_or_create_counter(name: str, description: str, labels: list[str]) -> Counter:
    """Get existing counter or create new one."""
    try:
        return Counter(name, description, labels)
    except ValueError as exc:
        # Metric already registered
        existing = getattr(REGISTRY, "_names_to_collectors", {}).get(name)
        if existing is None:
            raise ValueError(f"Counter {name} not found") from exc
        return cast(Counter, existing)


def get_or_create_histogram(
    name: str, description: str, labels: list[str]
) -> Histogram:
    """Get existing histogram or create new one."""
    try:
        return Histogram(name, description, labels)
    except ValueError as exc:
        # Metric already registered
        existing = getattr(REGISTRY, "_names_to_collectors", {}).get(name)
        if existing is None:
            raise ValueError(f"Histogram {name} not found") from exc
        return cast(Histogram, existing)


fhir_requests_total = get_or_create_counter(
    "clinic_fhir_requests_total",
    "Total FHIR HTTP requests",
    ["method", "endpoint", "status"],
)
fhir_request_duration_seconds = get_or_create_histogram(
    "clinic_fhir_request_duration_seconds",
    "FHIR HTTP request duration in seconds",
    ["method", "endpoint"],
)
fhir_errors_total = get_or_create_counter(
    "clinic_fhir_errors_total",
    "Unhandled errors raised while serving FHIR requests",
    ["error_type", "endpoint"],
)


def _endpoint_label(request: Request) -> str:
    # Route templates keep label cardinality bounded
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class MonitoringService:
    """Request metrics, logging and health endpoints."""

    def __init__(self, app: FastAPI):
        """Initialize monitoring service."""
        self.app = app
        self.start_time = datetime.utcnow()

    def setup_monitoring(self) -> None:
        """Set up monitoring middleware and endpoints."""
        self.app.middleware("http")(self.monitoring_middleware)

        if self.app.state.settings.metrics_enabled:
            self.app.get("/metrics", tags=["monitoring"])(self.metrics_endpoint)

        self.app.get("/health", tags=["monitoring"])(self.health_check)

    async def monitoring_middleware(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Middleware to log requests and collect request metrics."""
        start_time = time.time()
        request_data = request_logger.log_request(request)
        method = request.method

        try:
            response = await call_next(request)
        except Exception as e:
            fhir_errors_total.labels(
                error_type=type(e).__name__, endpoint=_endpoint_label(request)
            ).inc()
            raise

        duration = time.time() - start_time
        endpoint = _endpoint_label(request)
        fhir_requests_total.labels(
            method=method, endpoint=endpoint, status=response.status_code
        ).inc()
        fhir_request_duration_seconds.labels(
            method=method, endpoint=endpoint
        ).observe(duration)

        response.headers["X-Response-Time"] = f"{duration:.3f}"
        request_logger.log_response(request_data, response, duration)
        return cast(Response, response)

    async def metrics_endpoint(self) -> Response:
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    def health_check(self, db: Session = db_dependency) -> Dict[str, Any]:
        """Report service and database health."""
        database = "healthy"
        try:
            db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("health_check_database_failed", error=str(e))
            database = "unhealthy"

        settings = self.app.state.settings
        return {
            "status": "healthy" if database == "healthy" else "degraded",
            "service": settings.app_name,
            "version": settings.app_version,
            "database": database,
            "uptime_seconds": round(
                (datetime.utcnow() - self.start_time).total_seconds(), 1
            ),
        }


def setup_monitoring(app: FastAPI) -> MonitoringService:
    """Attach monitoring to the application."""
    monitoring_service = MonitoringService(app)
    monitoring_service.setup_monitoring()
    app.state.monitoring = monitoring_service
    return monitoring_service
