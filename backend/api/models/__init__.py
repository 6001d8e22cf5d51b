"""API models package."""

from .errors import ErrorDetail, ErrorResponse, ValidationErrorResponse

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "ValidationErrorResponse",
]
