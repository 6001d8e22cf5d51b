"""
Billing API endpoints.

Hosted checkout creation and the Stripe webhook. The webhook is the only
writer of profile subscription status.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel

from api.dependencies import get_billing_service
from api.models import ErrorResponse

from .exceptions import (
    BillingNotConfiguredError,
    MissingParametersError,
    PaymentFailedError,
    WebhookVerificationError,
)
from .interfaces import IBillingService
from .models import CheckoutRequest, WebhookResult

router = APIRouter()


class CheckoutResponse(BaseModel):
    """Checkout redirect response."""

    url: str


@router.post(
    "/create-checkout-session",
    response_model=CheckoutResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def create_checkout_session(
    request: CheckoutRequest,
    service: IBillingService = Depends(get_billing_service),
) -> CheckoutResponse:
    """
    Start a subscription checkout.

    Returns the hosted checkout URL to redirect the browser to.
    """
    try:
        session = await service.create_checkout_session(request)
    except MissingParametersError as e:
        raise HTTPException(status_code=400, detail=e.to_dict())
    except BillingNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=e.to_dict())
    except PaymentFailedError as e:
        raise HTTPException(status_code=502, detail=e.to_dict())

    return CheckoutResponse(url=session.url)


@router.post(
    "/webhook",
    response_model=WebhookResult,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None),
    service: IBillingService = Depends(get_billing_service),
) -> WebhookResult:
    """
    Receive a Stripe webhook.

    The raw body is verified against the signing secret before anything
    is applied.
    """
    payload = await request.body()
    try:
        return await service.handle_webhook(payload, stripe_signature or "")
    except WebhookVerificationError as e:
        raise HTTPException(status_code=400, detail=e.to_dict())
    except BillingNotConfiguredError as e:
        raise HTTPException(status_code=503, detail=e.to_dict())
