"""
Relay Errors
Typed failures raised by adapters, the store and the flows.
Each carries the HTTP status the API layer answers with.
"""

from typing import Any, Optional


PROVIDER_LABELS = {
    "openai": "OpenAI",
    "spoonacular": "Spoonacular",
    "nutritionix": "Nutritionix",
    "exercisedb": "ExerciseDB",
}


class RelayError(Exception):
    """Base exception for relay errors"""
    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str = "", error: Optional[str] = None):
        if error:
            self.error = error
        super().__init__(message or self.error)
        self.message = message

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.message and self.message != self.error:
            body["message"] = self.message
        return body


class ValidationError(RelayError):
    """Raised when a request is missing or has malformed fields"""
    status_code = 400
    error = "Invalid request"


class NotFoundError(RelayError):
    """Raised when no matching stored record exists"""
    status_code = 404
    error = "Not found"


class UpstreamError(RelayError):
    """Raised for non-2xx responses or transport failures from a third-party API"""

    def __init__(self, provider: str, status: Optional[int] = None, body: Any = None):
        label = PROVIDER_LABELS.get(provider, provider)
        if status is None:
            message = f"{label} request could not be completed"
        else:
            message = f"{label} responded with status {status}"
        super().__init__(message, error=f"{label} API request failed")
        self.provider = provider
        self.status = status
        self.body = body

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.body is not None:
            body["details"] = self.body
        return body


class PersistenceError(RelayError):
    """Raised when a datastore operation fails"""
    error = "Datastore request failed"


class InsufficientResultsError(RelayError):
    """Raised when fewer candidates came back than a selection has slots"""

    def __init__(self, kind: str, required: int, available: int):
        super().__init__(
            f"Expected at least {required} {kind}, got {available}",
            error=f"Not enough {kind} to build a selection",
        )
        self.kind = kind
        self.required = required
        self.available = available
