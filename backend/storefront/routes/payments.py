"""
Storefront API — Payment Route Handlers
=========================================

What:  POST /api/v1/payments and POST /api/v1/payment.
How:   Both handlers delegate to PaymentService.create_payment with their
       checkout profile and return a single response model. Errors propagate
       to the global handlers: 400 for an invalid body, 502 for any payment
       processor failure.

Request Flow:
    1. FastAPI validates the body against PaymentRequest (400 on failure)
    2. Optional Idempotency-Key header is read
    3. PaymentService: customer → ephemeral key → payment intent
    4. One JSON response
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header

from storefront.dependencies import get_payment_service
from storefront.schemas.common import ErrorResponse
from storefront.schemas.payment import (
    AutomaticPaymentResponse,
    CardPaymentResponse,
    PaymentRequest,
)
from storefront.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Payments"])

ERROR_RESPONSES = {
    400: {"description": "Missing or invalid payment fields", "model": ErrorResponse},
    429: {"description": "Rate limit exceeded", "model": ErrorResponse},
    502: {"description": "Payment processor failure", "model": ErrorResponse},
}


@router.post(
    "/payments",
    response_model=CardPaymentResponse,
    responses=ERROR_RESPONSES,
    summary="Start a card-only payment",
    description=(
        "Creates a customer, an ephemeral key and a card-only payment intent. "
        "Returns the secrets a mobile payment sheet needs plus the publishable key."
    ),
)
async def create_card_payment(
    payload: PaymentRequest,
    idempotency_key: Optional[str] = Header(
        default=None,
        max_length=255,
        description="Repeat the same key to replay a previous attempt instead of creating new records",
    ),
    payment_service: PaymentService = Depends(get_payment_service),
) -> CardPaymentResponse:
    result = await payment_service.create_payment(
        payload, profile_name="card", idempotency_key=idempotency_key
    )
    return CardPaymentResponse(
        client_secret=result.client_secret,
        ephemeral_key=result.ephemeral_key_secret,
        customer=result.customer_id,
        publishable_key=result.publishable_key,
    )


@router.post(
    "/payment",
    response_model=AutomaticPaymentResponse,
    responses=ERROR_RESPONSES,
    summary="Start a payment with automatic payment methods",
    description=(
        "Creates a customer, an ephemeral key and a payment intent with automatic "
        "payment method selection, in the requested currency."
    ),
)
async def create_automatic_payment(
    payload: PaymentRequest,
    idempotency_key: Optional[str] = Header(default=None, max_length=255),
    payment_service: PaymentService = Depends(get_payment_service),
) -> AutomaticPaymentResponse:
    result = await payment_service.create_payment(
        payload, profile_name="automatic", idempotency_key=idempotency_key
    )
    return AutomaticPaymentResponse(
        payment_intent=result.client_secret,
        ephemeral_key=result.ephemeral_key_secret,
        customer=result.customer_id,
    )
