"""
Storefront API — Payment Endpoint Tests
=========================================

What:  HTTP-level tests for POST /api/v1/payments and POST /api/v1/payment.
How:   httpx AsyncClient against create_app() wired to a RecordingGateway.
"""

import pytest

from fakes import RecordingGateway


class TestCardPaymentEndpoint:

    @pytest.mark.asyncio
    async def test_returns_payment_sheet_fields(self, test_client, payment_body, gateway):
        response = await test_client.post("/api/v1/payments", json=payment_body)

        assert response.status_code == 200
        assert response.json() == {
            "clientSecret": "pi_test1_secret_abc",
            "ephemeralKey": "ek_test_secret1",
            "customer": "cus_test1",
            "publishableKey": "pk_fixture_not_real",
        }
        assert gateway.call("payment_intent")["payment_method_types"] == ["card"]

    @pytest.mark.asyncio
    async def test_missing_shipping_address_is_rejected_before_any_remote_call(
        self, test_client, payment_body, gateway
    ):
        del payment_body["shippingAddress"]

        response = await test_client.post("/api/v1/payments", json=payment_body)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert "shippingAddress" in body["message"]
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_missing_nested_field_is_rejected(self, test_client, payment_body, gateway):
        del payment_body["billingDetails"]["city"]

        response = await test_client.post("/api/v1/payments", json=payment_body)

        assert response.status_code == 400
        assert "billingDetails.city" in response.json()["details"]["fields"]
        assert gateway.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -100, "ten"])
    async def test_invalid_amount_is_rejected(self, test_client, payment_body, amount):
        payment_body["amount"] = amount

        response = await test_client.post("/api/v1/payments", json=payment_body)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_idempotency_header_is_forwarded(self, test_client, payment_body, gateway):
        response = await test_client.post(
            "/api/v1/payments",
            json=payment_body,
            headers={"Idempotency-Key": "cart-7"},
        )

        assert response.status_code == 200
        assert gateway.call("customer")["idempotency_key"] == "cart-7:customer"


class TestAutomaticPaymentEndpoint:

    @pytest.mark.asyncio
    async def test_returns_payment_sheet_fields(self, test_client, payment_body):
        response = await test_client.post(
            "/api/v1/payment", json={**payment_body, "currency": "inr"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "paymentIntent": "pi_test1_secret_abc",
            "ephemeralKey": "ek_test_secret1",
            "customer": "cus_test1",
        }

    @pytest.mark.asyncio
    async def test_honours_currency(self, test_client, payment_body, gateway):
        await test_client.post("/api/v1/payment", json={**payment_body, "currency": "inr"})

        assert gateway.call("payment_intent")["currency"] == "inr"

    @pytest.mark.asyncio
    async def test_invalid_currency_is_rejected(self, test_client, payment_body, gateway):
        response = await test_client.post(
            "/api/v1/payment", json={**payment_body, "currency": "us1"}
        )

        assert response.status_code == 400
        assert gateway.calls == []


class TestPaymentGatewayFailures:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("step", ["customer", "ephemeral_key", "payment_intent"])
    async def test_gateway_failure_returns_generic_502(self, services, payment_body, step):
        from httpx import ASGITransport, AsyncClient

        from storefront.main import create_app

        services.payment_service.gateway = RecordingGateway(fail_at=step)
        app = create_app(services=services)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/v1/payment", json=payment_body)

        assert response.status_code == 502
        body = response.json()
        assert body["error"] == "payment_gateway_error"
        assert "declined" not in body["message"]
        assert "raw processor text" not in response.text
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_card_checkout_without_publishable_key_returns_500(self, services, payment_body, gateway):
        from httpx import ASGITransport, AsyncClient

        from storefront.main import create_app

        services.payment_service._publishable_key = ""
        app = create_app(services=services)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/v1/payments", json=payment_body)

        assert response.status_code == 500
        assert response.json()["error"] == "server_error"
        assert gateway.calls == []
