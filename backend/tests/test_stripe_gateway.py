"""
Storefront API — Stripe Gateway Adapter Tests
===============================================

What:  Checks the parameters StripeGateway sends and its error translation.
How:   The SDK's async create methods are patched with AsyncMock; nothing
       leaves the process.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import stripe

import storefront
from storefront.exceptions import PaymentGatewayError
from storefront.services.payment_gateway import StripeGateway


class TestStripeGateway:

    def setup_method(self):
        self.gateway = StripeGateway("sk_fixture_not_real")

    @pytest.mark.asyncio
    async def test_create_customer_passes_key_and_params(self):
        create = AsyncMock(return_value=MagicMock(id="cus_123"))
        with patch.object(stripe.Customer, "create_async", create):
            customer_id = await self.gateway.create_customer({"name": "Ada", "email": "ada@example.com"})

        assert customer_id == "cus_123"
        kwargs = create.await_args.kwargs
        assert kwargs["api_key"] == "sk_fixture_not_real"
        assert kwargs["name"] == "Ada"
        assert "idempotency_key" not in kwargs

    @pytest.mark.asyncio
    async def test_ephemeral_key_pins_api_version(self):
        create = AsyncMock(return_value=MagicMock(secret="ek_secret"))
        with patch.object(stripe.EphemeralKey, "create_async", create):
            secret = await self.gateway.create_ephemeral_key(
                "cus_123", api_version="2022-11-15", idempotency_key="k:ephemeral-key"
            )

        assert secret == "ek_secret"
        kwargs = create.await_args.kwargs
        assert kwargs["customer"] == "cus_123"
        assert kwargs["stripe_version"] == "2022-11-15"
        assert kwargs["idempotency_key"] == "k:ephemeral-key"

    @pytest.mark.asyncio
    async def test_card_payment_intent(self):
        create = AsyncMock(return_value=MagicMock(client_secret="pi_secret"))
        with patch.object(stripe.PaymentIntent, "create_async", create):
            secret = await self.gateway.create_payment_intent(
                amount=500, currency="usd", customer_id="cus_123", payment_method_types=["card"]
            )

        assert secret == "pi_secret"
        kwargs = create.await_args.kwargs
        assert kwargs["payment_method_types"] == ["card"]
        assert "automatic_payment_methods" not in kwargs

    @pytest.mark.asyncio
    async def test_automatic_payment_intent(self):
        create = AsyncMock(return_value=MagicMock(client_secret="pi_secret"))
        with patch.object(stripe.PaymentIntent, "create_async", create):
            await self.gateway.create_payment_intent(amount=500, currency="eur", customer_id="cus_123")

        kwargs = create.await_args.kwargs
        assert kwargs["automatic_payment_methods"] == {"enabled": True}
        assert kwargs["currency"] == "eur"
        assert "payment_method_types" not in kwargs

    @pytest.mark.asyncio
    async def test_stripe_errors_become_gateway_errors(self):
        error = stripe.APIConnectionError("Network error: connection refused")
        with patch.object(stripe.Customer, "create_async", AsyncMock(side_effect=error)):
            with pytest.raises(PaymentGatewayError) as exc_info:
                await self.gateway.create_customer({"name": "Ada"})

        exc = exc_info.value
        assert exc.step == "customer"
        assert exc.context["error_type"] == "APIConnectionError"
        assert "connection refused" not in exc.message


def test_no_publishable_key_literals_in_source():
    package_dir = Path(storefront.__file__).parent
    for path in package_dir.rglob("*.py"):
        text = path.read_text(encoding="utf-8")
        assert "pk_test_" not in text, path
        assert "pk_live_" not in text, path
