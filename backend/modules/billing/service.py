"""
Billing service implementation.

Creates Stripe checkout sessions for the subscription plan and settles the
Stripe webhook into profile subscription status.
"""

import asyncio
import logging
from typing import Any, Optional

import stripe

from shared.config import Settings, get_settings

from .exceptions import (
    BillingNotConfiguredError,
    MissingParametersError,
    PaymentFailedError,
    WebhookVerificationError,
)
from .interfaces import IBillingService
from .models import CheckoutRequest, CheckoutSession, WebhookEventType, WebhookResult
from .repository import ProfileRepository

logger = logging.getLogger(__name__)


def _field(obj: Any, key: str) -> Any:
    """Read a key from a Stripe object or plain dict, None if absent."""
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None


class BillingService(IBillingService):
    """
    Stripe-backed billing.

    Stripe calls are blocking, so they run in a worker thread.
    """

    def __init__(self, profiles: ProfileRepository, settings: Optional[Settings] = None):
        self._profiles = profiles
        self._settings = settings or get_settings()

    async def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        """Create a subscription-mode checkout session for the configured plan."""
        price_id = request.price_id or self._settings.stripe_price_id
        return_url = request.return_url or self._settings.frontend_url
        missing = [
            name
            for name, value in (
                ("priceId", price_id),
                ("userId", request.user_id),
                ("email", request.email),
            )
            if not value
        ]
        if missing:
            raise MissingParametersError(missing)
        if not self._settings.stripe_secret_key:
            raise BillingNotConfiguredError("stripe_secret_key")

        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self._settings.stripe_secret_key,
                mode="subscription",
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=f"{return_url}?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=return_url,
                customer_email=request.email,
                metadata={"user_id": request.user_id},
            )
        except stripe.StripeError as e:
            logger.warning(f"Stripe checkout failed for {request.user_id}: {e}")
            raise PaymentFailedError("Could not start checkout", stripe_error=str(e)) from e

        logger.info(f"Checkout session {session['id']} created for {request.user_id}")
        return CheckoutSession(session_id=session["id"], url=session["url"])

    async def handle_webhook(self, payload: bytes, signature: str) -> WebhookResult:
        """Verify the delivery, then activate or deactivate the matching profile."""
        secret = self._settings.stripe_webhook_secret
        if not secret:
            raise BillingNotConfiguredError("stripe_webhook_secret")
        if not signature:
            raise WebhookVerificationError("missing signature")

        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as e:
            raise WebhookVerificationError(str(e)) from e
        except ValueError as e:
            raise WebhookVerificationError(f"invalid payload: {e}") from e

        event_type = str(event["type"])
        obj = event["data"]["object"]

        if event_type == WebhookEventType.CHECKOUT_COMPLETED.value:
            return await self._on_checkout_completed(event_type, obj)
        if event_type == WebhookEventType.SUBSCRIPTION_DELETED.value:
            return await self._on_subscription_deleted(event_type, obj)

        logger.debug(f"Ignoring Stripe event {event_type}")
        return WebhookResult(event_type=event_type)

    async def _on_checkout_completed(self, event_type: str, session: Any) -> WebhookResult:
        metadata = _field(session, "metadata") or {}
        user_id = _field(metadata, "user_id")
        customer_id = _field(session, "customer")

        if not user_id:
            logger.warning("Checkout completed without a user_id in metadata")
            return WebhookResult(event_type=event_type, customer_id=customer_id)

        updated = await asyncio.to_thread(self._profiles.activate, user_id, customer_id)
        if not updated:
            logger.warning(f"Checkout completed for unknown profile {user_id}")
        else:
            logger.info(f"Subscription activated for {user_id}")
        return WebhookResult(
            event_type=event_type,
            handled=bool(updated),
            user_id=user_id,
            customer_id=customer_id,
        )

    async def _on_subscription_deleted(self, event_type: str, subscription: Any) -> WebhookResult:
        customer_id = _field(subscription, "customer")
        if not customer_id:
            return WebhookResult(event_type=event_type)

        updated = await asyncio.to_thread(self._profiles.deactivate_customer, customer_id)
        logger.info(f"Subscription cancelled for customer {customer_id} ({updated} profiles)")
        return WebhookResult(
            event_type=event_type,
            handled=bool(updated),
            customer_id=customer_id,
        )


# Module-level instance getter
_service_instance: Optional[BillingService] = None


def get_billing_service() -> BillingService:
    """Get the billing service singleton, backed by the service-role client."""
    global _service_instance
    if _service_instance is None:
        from shared.database import get_supabase_client

        _service_instance = BillingService(ProfileRepository(get_supabase_client()))
    return _service_instance


def reset_billing_service() -> None:
    """Reset the billing service singleton (for testing)."""
    global _service_instance
    _service_instance = None
