"""
Billing module exceptions.

These exceptions are raised by the billing module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from typing import Optional

from shared.exceptions import VaultError, ValidationError


class BillingError(VaultError):
    """Base exception for billing-related errors."""

    pass


class BillingNotConfiguredError(BillingError):
    """Raised when a Stripe secret needed for the operation is not set."""

    def __init__(self, setting: str):
        super().__init__(
            f"Billing is not configured (missing {setting.upper()})",
            code="BILLING_NOT_CONFIGURED",
            details={"setting": setting},
        )


class MissingParametersError(ValidationError):
    """Raised when a checkout request lacks a required field."""

    def __init__(self, missing: list[str]):
        super().__init__(
            f"Missing parameters: {', '.join(missing)}",
            code="MISSING_PARAMETERS",
            details={"missing": missing},
        )


class PaymentFailedError(BillingError):
    """Raised when Stripe rejects a checkout request."""

    def __init__(self, message: str, stripe_error: Optional[str] = None):
        super().__init__(
            message,
            code="PAYMENT_FAILED",
            details={"stripe_error": stripe_error} if stripe_error else {},
        )


class WebhookVerificationError(BillingError):
    """Raised when Stripe webhook signature verification fails."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(
            "Webhook signature verification failed",
            code="WEBHOOK_VERIFICATION_FAILED",
            details={"reason": reason} if reason else {},
        )
