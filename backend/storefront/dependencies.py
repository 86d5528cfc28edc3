"""
Storefront API — Service Container & FastAPI Dependencies
===========================================================

What:  Builds the process-wide collaborators (MongoDB client, store adapters,
       payment service, image service) once at startup and hands them to
       route handlers through Depends().
How:   build_services() runs in the application lifespan and the result is
       stored on app.state.services. Each get_* dependency reads it from the
       current request. Tests either pass a ready Services into create_app()
       or override individual getters with app.dependency_overrides.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request

from storefront.config import Settings
from storefront.database import close_client, create_client
from storefront.services.image_service import ImageService, configure_image_host
from storefront.services.payment_gateway import StripeGateway
from storefront.services.payment_service import PaymentService, build_profiles
from storefront.services.product_store import CategoryStore, ProductStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    product_store: ProductStore
    category_store: CategoryStore
    payment_service: PaymentService
    image_service: ImageService
    database: Any = None
    mongo_client: Any = None


def build_services(config: Settings) -> Services:
    """Constructs every external-facing collaborator from configuration."""
    client = create_client(config)
    database = client[config.mongo_db_name]

    images_enabled = configure_image_host(config)

    payment_service = PaymentService(
        gateway=StripeGateway(config.stripe_secret_key.get_secret_value()),
        publishable_key=config.stripe_publishable_key.get_secret_value(),
        profiles=build_profiles(config),
        default_currency=config.default_currency,
    )

    return Services(
        product_store=ProductStore(database[config.products_collection]),
        category_store=CategoryStore(database[config.categories_collection]),
        payment_service=payment_service,
        image_service=ImageService(
            folder=config.cloudinary_folder,
            max_size=config.max_image_size,
            enabled=images_enabled,
        ),
        database=database,
        mongo_client=client,
    )


async def close_services(services: Optional[Services]) -> None:
    if services is not None and services.mongo_client is not None:
        await close_client(services.mongo_client)


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Application services are not initialised")
    return services


def get_product_store(request: Request) -> ProductStore:
    return get_services(request).product_store


def get_category_store(request: Request) -> CategoryStore:
    return get_services(request).category_store


def get_payment_service(request: Request) -> PaymentService:
    return get_services(request).payment_service


def get_image_service(request: Request) -> ImageService:
    return get_services(request).image_service
