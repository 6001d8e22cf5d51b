"""
Billing module interface.

The API layer depends on IBillingService, not on Stripe. Subscription state
is only ever written here; clients observe it through their profile.
"""

from typing import Protocol, runtime_checkable

from .models import CheckoutRequest, CheckoutSession, WebhookResult


@runtime_checkable
class IBillingService(Protocol):
    """
    Interface for the payment collaborator.

    This protocol defines the contract that the billing module exposes
    to the HTTP layer.
    """

    async def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        """
        Create a hosted subscription checkout.

        Args:
            request: Plan, return URL and the user to activate

        Returns:
            CheckoutSession with the URL to redirect the user to

        Raises:
            MissingParametersError: If the request lacks a price, user or email
            PaymentFailedError: If Stripe rejects the request
        """
        ...

    async def handle_webhook(self, payload: bytes, signature: str) -> WebhookResult:
        """
        Verify and apply a Stripe webhook delivery.

        Args:
            payload: Raw request body, exactly as received
            signature: Value of the Stripe-Signature header

        Returns:
            WebhookResult describing what was updated

        Raises:
            WebhookVerificationError: If the signature doesn't match
        """
        ...
