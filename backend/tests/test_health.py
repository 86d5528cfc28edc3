"""
Storefront API — Health, Root and Test Route Tests
====================================================
"""

import pytest


class TestHealth:

    @pytest.mark.asyncio
    async def test_degraded_when_image_host_unconfigured(self, test_client, image_service):
        image_service.enabled = False

        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "degraded"
        assert body["database"] == "connected"
        assert body["payments"] == "configured"
        assert body["images"] == "unconfigured"

    @pytest.mark.asyncio
    async def test_healthy_when_everything_configured(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_payments_reflect_the_running_service(self, test_client, payment_service):
        payment_service._publishable_key = ""

        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["payments"] == "unconfigured"
        assert response.json()["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_unhealthy_when_database_unreachable(self, test_client, database):
        database.reachable = False

        response = await test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] == "disconnected"


class TestGreetingRoutes:

    @pytest.mark.asyncio
    async def test_api_root(self, test_client):
        response = await test_client.get("/api")

        assert response.status_code == 200
        assert response.json() == {"message": "Hello from the API! we are getting started"}

    @pytest.mark.asyncio
    async def test_test_route(self, test_client):
        response = await test_client.get("/api/v1/test")

        assert response.json() == {"message": "test route is working"}

    @pytest.mark.asyncio
    async def test_unknown_route_is_404(self, test_client):
        response = await test_client.get("/api/v1/nope")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
