"""
Storefront API — Payment Orchestration Service
================================================

What:  Provisions everything a client-side payment sheet needs in one call:
       a remote customer, an ephemeral key and a payment intent.
How:   Three sequential gateway calls, parameterised by a CheckoutProfile.
Who:   Called by both payment route handlers.

Orchestration Flow:
    ┌──────────────┐    ┌────────────────┐    ┌────────────────┐
    │  Customer    │───▶│ Ephemeral key  │───▶│ Payment intent │
    │  (contact +  │    │ (pinned API    │    │ (amount,       │
    │   addresses) │    │  version)      │    │  currency)     │
    └──────────────┘    └────────────────┘    └────────────────┘

Checkout profiles:
    card       card-only payment_method_types, legacy ephemeral key version
    automatic  automatic payment methods, current ephemeral key version

Both profiles honour the requested currency. No customer dedup is performed;
a repeated call creates new remote records unless the caller sends an
idempotency key, in which case each step gets a derived key and the
processor replays the original result.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from storefront.config import Settings
from storefront.exceptions import StorefrontError
from storefront.schemas.payment import BillingDetails, PaymentRequest
from storefront.services.payment_gateway import PaymentGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutProfile:
    """
    The behavioural differences between the two payment endpoints.

    payment_method_types=None means automatic payment method selection.
    """
    name: str
    ephemeral_key_version: str
    payment_method_types: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class PaymentResult:
    client_secret: str
    ephemeral_key_secret: str
    customer_id: str
    publishable_key: str


def build_profiles(settings: Settings) -> Dict[str, CheckoutProfile]:
    return {
        "card": CheckoutProfile(
            name="card",
            ephemeral_key_version=settings.stripe_card_ephemeral_key_version,
            payment_method_types=("card",),
        ),
        "automatic": CheckoutProfile(
            name="automatic",
            ephemeral_key_version=settings.stripe_automatic_ephemeral_key_version,
        ),
    }


def _address(details: BillingDetails) -> Dict[str, str]:
    fields = ("line1", "line2", "city", "state", "postal_code", "country")
    return {f: getattr(details, f) for f in fields if getattr(details, f) is not None}


def customer_params(request: PaymentRequest) -> Dict[str, Any]:
    """Maps a PaymentRequest onto the processor's customer-create parameters."""
    return {
        "name": request.customer_details.name,
        "email": request.customer_details.email,
        "phone": request.customer_details.phone,
        "shipping": {
            "name": request.shipping_address.name,
            "address": _address(request.shipping_address),
        },
        "address": _address(request.billing_details),
    }


def _derived_key(idempotency_key: Optional[str], step: str) -> Optional[str]:
    if not idempotency_key:
        return None
    return f"{idempotency_key}:{step}"


class PaymentService:
    """
    Payment orchestration over an injected PaymentGateway.

    Stateless apart from its collaborators; safe to share across requests.
    """

    def __init__(
        self,
        gateway: PaymentGateway,
        publishable_key: str,
        profiles: Dict[str, CheckoutProfile],
        default_currency: str = "usd",
    ):
        self.gateway = gateway
        self._publishable_key = publishable_key
        self.profiles = profiles
        self.default_currency = default_currency

    @property
    def configured(self) -> bool:
        """True when both the gateway credentials and the publishable key are present."""
        return self.gateway.configured and bool(self._publishable_key)

    def profile(self, name: str) -> CheckoutProfile:
        try:
            return self.profiles[name]
        except KeyError:
            raise ValueError(f"Unknown checkout profile '{name}'") from None

    async def create_payment(
        self,
        request: PaymentRequest,
        profile_name: str,
        idempotency_key: Optional[str] = None,
    ) -> PaymentResult:
        """
        Creates customer → ephemeral key → payment intent.

        Args:
            request: Validated payment body
            profile_name: "card" or "automatic"
            idempotency_key: Optional client-supplied key; each step receives
                             "<key>:<step>" so retries collapse remotely

        Returns:
            PaymentResult with client secret, ephemeral key secret, customer id
            and the configured publishable key

        Raises:
            StorefrontError: publishable key not configured (card profile needs it, → 500)
            PaymentGatewayError: any processor call failed (→ 502)
        """
        profile = self.profile(profile_name)
        currency = request.currency or self.default_currency

        if profile.payment_method_types and not self._publishable_key:
            # Nothing remote has been created yet at this point.
            logger.error("Card checkout requested but STRIPE_PUBLISHABLE_KEY is not configured")
            raise StorefrontError(
                message="Card payments are not available right now.",
                context={"reason": "publishable_key_missing"},
            )

        logger.info(
            "Starting %s checkout: amount=%d currency=%s idempotent=%s",
            profile.name,
            request.amount,
            currency,
            bool(idempotency_key),
        )

        customer_id = await self.gateway.create_customer(
            customer_params(request),
            idempotency_key=_derived_key(idempotency_key, "customer"),
        )
        logger.info("Created customer %s", customer_id)

        ephemeral_secret = await self.gateway.create_ephemeral_key(
            customer_id,
            api_version=profile.ephemeral_key_version,
            idempotency_key=_derived_key(idempotency_key, "ephemeral-key"),
        )

        client_secret = await self.gateway.create_payment_intent(
            amount=request.amount,
            currency=currency,
            customer_id=customer_id,
            payment_method_types=(
                list(profile.payment_method_types) if profile.payment_method_types else None
            ),
            idempotency_key=_derived_key(idempotency_key, "payment-intent"),
        )
        logger.info("Created payment intent for customer %s", customer_id)

        return PaymentResult(
            client_secret=client_secret,
            ephemeral_key_secret=ephemeral_secret,
            customer_id=customer_id,
            publishable_key=self._publishable_key,
        )
