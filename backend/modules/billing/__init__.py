"""
Billing module.

Payment collaborator: Stripe hosted checkout for the subscription plan and
the signed webhook that flips a profile's subscription status.

Public API:
- IBillingService: Interface for billing operations
- CheckoutRequest, CheckoutSession: Checkout request/response
- WebhookResult, WebhookEventType: Webhook processing outcome
- Billing exceptions: PaymentFailedError, WebhookVerificationError, etc.
"""

from .interfaces import IBillingService
from .models import (
    CheckoutRequest,
    CheckoutSession,
    WebhookResult,
    WebhookEventType,
)
from .exceptions import (
    BillingError,
    BillingNotConfiguredError,
    MissingParametersError,
    PaymentFailedError,
    WebhookVerificationError,
)

__all__ = [
    # Interface
    "IBillingService",
    # Models
    "CheckoutRequest",
    "CheckoutSession",
    "WebhookResult",
    "WebhookEventType",
    # Exceptions
    "BillingError",
    "BillingNotConfiguredError",
    "MissingParametersError",
    "PaymentFailedError",
    "WebhookVerificationError",
]
