"""FastAPI application factory for the Clinic FHIR server."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinic_fhir.api import medication_request_endpoints, metadata_endpoints
from clinic_fhir.api.exceptions import BaseServerResponseException
from clinic_fhir.api.monitoring import setup_monitoring
from clinic_fhir.api.responses import fhir_response
from clinic_fhir.config import Settings, get_settings
from clinic_fhir.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

_HTTP_ISSUE_CODES = {
    404: "not-found",
    405: "not-supported",
    415: "not-supported",
}


def _error_outcome(code: str, diagnostics: str) -> Dict[str, Any]:
    return {
        "resourceType": "OperationOutcome",
        "issue": [{"severity": "error", "code": code, "diagnostics": diagnostics}],
    }


async def fhir_exception_handler(
    request: Request, exc: BaseServerResponseException
) -> JSONResponse:
    """Render FHIR interaction failures as OperationOutcome resources."""
    logger.info(
        "fhir_request_failed",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail,
    )
    return fhir_response(
        exc.operation_outcome(), status_code=exc.status_code, headers=exc.headers
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render routing and other HTTP errors as OperationOutcome resources."""
    code = _HTTP_ISSUE_CODES.get(exc.status_code, "processing")
    return fhir_response(
        _error_outcome(code, str(exc.detail)),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render malformed request bodies as invalid-request outcomes."""
    messages = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return fhir_response(
        _error_outcome("invalid", "; ".join(messages)), status_code=400
    )


def create_app(
    settings: Optional[Settings] = None, init_database: bool = True
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Settings to use instead of the environment-derived ones
        init_database: Create missing tables on startup
    """
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan handler."""
        logger.info(
            "application_starting",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment,
        )
        if init_database:
            from clinic_fhir.core.database import init_db

            init_db()
            logger.info("database_initialized")

        yield

        logger.info("application_shutdown")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="FHIR R4 MedicationRequest server",
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_exception_handler(BaseServerResponseException, fhir_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(metadata_endpoints.router, prefix=settings.fhir_base_path)
    app.include_router(
        medication_request_endpoints.router, prefix=settings.fhir_base_path
    )

    setup_monitoring(app)
    return app
