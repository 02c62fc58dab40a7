"""FHIR server exceptions.

Each exception carries the HTTP status it maps to and renders itself as an
OperationOutcome, which is the body of every FHIR error response.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class BaseServerResponseException(HTTPException):
    """Base exception for all FHIR interaction failures."""

    issue_code = "processing"

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None,
    ):
        """Initialize base FHIR exception."""
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def operation_outcome(self) -> Dict[str, Any]:
        """Render this error as an OperationOutcome JSON dictionary."""
        return {
            "resourceType": "OperationOutcome",
            "issue": [
                {
                    "severity": "error",
                    "code": self.issue_code,
                    "diagnostics": self.detail,
                }
            ],
        }


class ResourceNotFoundException(BaseServerResponseException):
    """Raised when a requested resource is not found."""

    issue_code = "not-found"

    def __init__(self, detail: str):
        """Initialize resource not found error."""
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

    @classmethod
    def for_id(
        cls, resource_type: str, resource_id: Optional[str]
    ) -> "ResourceNotFoundException":
        """Build the standard message for a missing resource id."""
        return cls(f"Could not find {resource_type} with Id {resource_id}")


class InvalidRequestException(BaseServerResponseException):
    """Raised when a request is semantically invalid."""

    issue_code = "invalid"

    def __init__(self, detail: str):
        """Initialize invalid request error."""
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class MethodNotAllowedException(BaseServerResponseException):
    """Raised when an interaction is not allowed on the target resource."""

    issue_code = "not-supported"

    def __init__(self, detail: str):
        """Initialize method not allowed error."""
        super().__init__(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            detail=detail,
        )
