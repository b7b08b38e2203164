"""Error taxonomy shared by the generation pipeline and its collaborators.

Every error carries the HTTP status it maps to and a ``detail`` that is safe
to show to the caller. Upstream response bodies and other internals stay on
the exception for logging and never reach the response.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import status


class PipelineError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None):
        super().__init__(message or detail or self.default_detail)
        self.detail = detail or self.default_detail


class UnauthorizedError(PipelineError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class InvalidInputError(PipelineError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"

    def __init__(self, message: str):
        # Validation messages describe the caller's own input; show them as-is
        super().__init__(message, detail=message)


class NotFoundError(PipelineError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not Found"


class PersistenceError(PipelineError):
    default_detail = "Internal Server Error"


class GenerationError(PipelineError):
    """The model answered but its output could not be shaped into a result."""

    default_detail = "Generation failed"
    retryable: bool = False


class UpstreamError(GenerationError):
    def __init__(self, status_code: int, body: Any = None):
        super().__init__(f"upstream returned HTTP {status_code}")
        self.upstream_status = status_code
        self.body = body


class TransportError(GenerationError):
    retryable = True


class ConfigurationError(GenerationError):
    """Remote credentials are missing or were rejected."""


__all__ = [
    "PipelineError",
    "UnauthorizedError",
    "InvalidInputError",
    "NotFoundError",
    "PersistenceError",
    "GenerationError",
    "UpstreamError",
    "TransportError",
    "ConfigurationError",
]
