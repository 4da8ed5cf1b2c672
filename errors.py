"""
Service error taxonomy.
Each error maps to one HTTP status; handlers in main.py render them as
{"error": ..., "details": ...}.
"""
from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for errors surfaced at the request boundary."""
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_body(self, include_details: bool = True) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if include_details and self.details is not None:
            body["details"] = self.details
        return body


class NotFound(ServiceError):
    """A referenced user, profile, race, plan or workout does not exist."""
    status_code = 404

    def __init__(self, resource: str, key: Any, message: Optional[str] = None):
        self.resource = resource
        self.key = key
        super().__init__(message or f"{resource.capitalize()} not found")

    def to_body(self, include_details: bool = True) -> Dict[str, Any]:
        # The identifying key is always echoed back
        return {"error": self.message, self.resource: self.key}


class ValidationError(ServiceError):
    """Malformed request body or an operation not allowed in the current state."""
    status_code = 400
    message = "Invalid request"


class GenerationUnavailable(ServiceError):
    """The generation backend could not be reached or timed out. Retryable."""
    status_code = 503
    message = "Generation service unavailable"


class GenerationMalformed(ServiceError):
    """The generation backend answered with text that does not match the schema."""
    status_code = 500
    message = "Generation service returned a malformed response"


class PersistenceFailure(ServiceError):
    """A store write failed; the transaction was rolled back."""
    status_code = 500
    message = "Failed to persist data"
