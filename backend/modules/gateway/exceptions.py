"""
Gateway transport exceptions.

Typed remote failures (bad credentials, missing rows) live with the module
that owns the concept; these cover "the backend did not answer properly".
"""

from typing import Optional

from shared.exceptions import ExternalServiceError


class GatewayError(ExternalServiceError):
    """Raised when a remote call fails in transport or is rejected by the backend."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(
            message,
            service="supabase",
            code="GATEWAY_ERROR",
            details={"operation": operation} if operation else {},
        )


class SubscriptionFailedError(GatewayError):
    """Raised when the realtime change feed cannot be joined."""

    def __init__(self, channel: str, reason: str = ""):
        super().__init__(
            f"Could not subscribe to {channel}" + (f": {reason}" if reason else ""),
            operation="subscribe",
        )
        self.details["channel"] = channel


class GatewayTimeoutError(GatewayError):
    """Raised when a user-initiated remote call does not answer in time."""

    def __init__(self, operation: str, timeout: float):
        super().__init__(
            f"The server did not respond to {operation} within {timeout:g}s. Please try again.",
            operation=operation,
        )
        self.code = "GATEWAY_TIMEOUT"
        self.details["timeout"] = timeout
