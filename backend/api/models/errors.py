"""
Error response models.

Standardized error responses for the API.
"""

from pydantic import BaseModel
from typing import Any, Optional


class ErrorDetail(BaseModel):
    """Domain error body, as produced by VaultError.to_dict()."""

    error: str
    message: str
    details: dict[str, Any] = {}


class ErrorResponse(BaseModel):
    """Standard error response format."""

    detail: ErrorDetail


class ValidationErrorResponse(BaseModel):
    """Validation error response format."""

    error: str = "Validation Error"
    detail: Optional[list[dict]] = None
