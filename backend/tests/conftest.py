"""
Storefront API — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── sample_products / product_collection / category_collection
    ├── gateway: RecordingGateway (no Stripe calls)
    ├── payment_service / image_service
    ├── services: Services container wired to the fakes
    ├── app: create_app(services=...) (lifespan never connects anywhere)
    ├── test_client: HTTPX AsyncClient for API endpoint testing
    └── sample_image_bytes / payment_body
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["MONGO_URL"] = "mongodb://localhost:1"
os.environ["STRIPE_SECRET_KEY"] = "sk_fixture_not_real"
os.environ["STRIPE_PUBLISHABLE_KEY"] = "pk_fixture_not_real"
os.environ["CLOUDINARY_NAME"] = ""
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

from fakes import FakeCollection, FakeDatabase, RecordingGateway
from storefront.config import settings
from storefront.dependencies import Services
from storefront.services.image_service import ImageService
from storefront.services.payment_service import PaymentService, build_profiles
from storefront.services.product_store import CategoryStore, ProductStore

PUBLISHABLE_KEY = "pk_fixture_not_real"


@pytest.fixture
def sample_products():
    return [
        {"_id": ObjectId("64b7f0c2a1b2c3d4e5f60001"), "name": "Red Shirt", "price": 1999, "category": "shirts"},
        {"_id": ObjectId("64b7f0c2a1b2c3d4e5f60002"), "name": "blue shirt", "price": 1499, "category": "shirts"},
        {"_id": ObjectId("64b7f0c2a1b2c3d4e5f60003"), "name": "Red Hat", "price": 999, "category": "hats"},
    ]


@pytest.fixture
def product_collection(sample_products):
    return FakeCollection(sample_products)


@pytest.fixture
def category_collection():
    return FakeCollection([
        {"_id": ObjectId("64b7f0c2a1b2c3d4e5f60101"), "name": "shirts"},
        {"_id": ObjectId("64b7f0c2a1b2c3d4e5f60102"), "name": "hats"},
    ])


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def payment_service(gateway):
    return PaymentService(
        gateway=gateway,
        publishable_key=PUBLISHABLE_KEY,
        profiles=build_profiles(settings),
        default_currency="usd",
    )


@pytest.fixture
def image_service():
    return ImageService(folder="test-shop", max_size=1024 * 1024, enabled=True)


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def services(product_collection, category_collection, payment_service, image_service, database):
    return Services(
        product_store=ProductStore(product_collection),
        category_store=CategoryStore(category_collection),
        payment_service=payment_service,
        image_service=image_service,
        database=database,
    )


@pytest.fixture
def app(services):
    from storefront.main import create_app
    return create_app(services=services)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_image_bytes():
    """Smallest valid JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def payment_body():
    return {
        "amount": 2500,
        "customerDetails": {"name": "Ada Lovelace", "email": "ada@example.com", "phone": "+15555550100"},
        "shippingAddress": {
            "name": "Ada Lovelace",
            "line1": "1 Analytical Way",
            "city": "London",
            "state": "LDN",
            "postal_code": "N1 9GU",
            "country": "GB",
        },
        "billingDetails": {
            "line1": "1 Analytical Way",
            "line2": "Flat 2",
            "city": "London",
            "state": "LDN",
            "postal_code": "N1 9GU",
            "country": "GB",
        },
    }
