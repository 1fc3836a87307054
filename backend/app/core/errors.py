"""
Error taxonomy shared by services and API routes
"""
from typing import Any, Dict, Optional

from fastapi import status


class PromptHubError(Exception):
    """Base error carrying an HTTP status and a user-facing message"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to response body"""
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class UnauthorizedError(PromptHubError):
    """Missing or invalid caller identity"""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class BadRequestError(PromptHubError):
    """Validation failure"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request body."


class NotFoundError(PromptHubError):
    """Repository or version absent, or not visible to the caller"""
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(PromptHubError):
    """Concurrent writers competed for the same version number"""
    status_code = status.HTTP_409_CONFLICT
    default_message = "Another version was created at the same time. Please retry."


class InternalError(PromptHubError):
    """Store failure or unexpected exception"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
