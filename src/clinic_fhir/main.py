"""Console entry point for the Clinic FHIR server."""

import uvicorn

from clinic_fhir.config import get_settings


def main() -> None:
    """Run the FHIR server with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "clinic_fhir.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
