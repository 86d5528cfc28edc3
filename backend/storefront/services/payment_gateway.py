"""
Storefront API — Payment Gateway Adapter
==========================================

What:  Abstract interface for the three payment processor calls the checkout
       flow needs, plus the Stripe implementation.
How:   StripeGateway calls the Stripe SDK's async resource methods with an
       explicit api_key (no module-level key), forwards optional idempotency
       keys, and translates every stripe.StripeError into PaymentGatewayError.
Who:   Constructed once at startup; used by PaymentService.

No retries happen here. Creates are not idempotent unless the caller
supplies an idempotency key, so a blind retry would duplicate remote records.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import stripe

from storefront.exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)


class PaymentGateway(ABC):
    """
    Contract for the remote payment processor.

    Each method returns only the identifier or secret the orchestration
    needs, so callers never depend on SDK object shapes.
    """

    @property
    def configured(self) -> bool:
        """False when the gateway was built without credentials."""
        return True

    @abstractmethod
    async def create_customer(
        self, params: Dict[str, Any], idempotency_key: Optional[str] = None
    ) -> str:
        """Creates a remote customer and returns its id."""
        ...

    @abstractmethod
    async def create_ephemeral_key(
        self, customer_id: str, api_version: str, idempotency_key: Optional[str] = None
    ) -> str:
        """Creates an ephemeral key scoped to the customer and returns its secret."""
        ...

    @abstractmethod
    async def create_payment_intent(
        self,
        amount: int,
        currency: str,
        customer_id: str,
        payment_method_types: Optional[List[str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> str:
        """
        Creates a payment intent and returns its client secret.

        payment_method_types=None enables automatic payment method selection.
        """
        ...


class StripeGateway(PaymentGateway):
    """Stripe implementation of PaymentGateway."""

    def __init__(self, secret_key: str):
        self._api_key = secret_key

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _options(self, idempotency_key: Optional[str]) -> Dict[str, Any]:
        options: Dict[str, Any] = {"api_key": self._api_key}
        if idempotency_key:
            options["idempotency_key"] = idempotency_key
        return options

    def _wrap(self, step: str, e: "stripe.StripeError") -> PaymentGatewayError:
        # Raw processor text stays in context (logged); the client gets the default message.
        logger.error(
            "Stripe %s call failed: %s (%s)",
            step,
            type(e).__name__,
            getattr(e, "user_message", None) or str(e),
        )
        return PaymentGatewayError(
            step=step,
            context={
                "error_type": type(e).__name__,
                "stripe_code": getattr(e, "code", None),
                "stripe_request_id": getattr(e, "request_id", None),
                "http_status": getattr(e, "http_status", None),
            },
        )

    async def create_customer(
        self, params: Dict[str, Any], idempotency_key: Optional[str] = None
    ) -> str:
        try:
            customer = await stripe.Customer.create_async(
                **params, **self._options(idempotency_key)
            )
        except stripe.StripeError as e:
            raise self._wrap("customer", e)
        return customer.id

    async def create_ephemeral_key(
        self, customer_id: str, api_version: str, idempotency_key: Optional[str] = None
    ) -> str:
        try:
            key = await stripe.EphemeralKey.create_async(
                customer=customer_id,
                stripe_version=api_version,
                **self._options(idempotency_key),
            )
        except stripe.StripeError as e:
            raise self._wrap("ephemeral_key", e)
        return key.secret

    async def create_payment_intent(
        self,
        amount: int,
        currency: str,
        customer_id: str,
        payment_method_types: Optional[List[str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> str:
        params: Dict[str, Any] = {
            "amount": amount,
            "currency": currency,
            "customer": customer_id,
        }
        if payment_method_types:
            params["payment_method_types"] = list(payment_method_types)
        else:
            params["automatic_payment_methods"] = {"enabled": True}

        try:
            intent = await stripe.PaymentIntent.create_async(
                **params, **self._options(idempotency_key)
            )
        except stripe.StripeError as e:
            raise self._wrap("payment_intent", e)
        return intent.client_secret
