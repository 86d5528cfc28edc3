"""
Storefront API — Product & Category Routes
============================================

What:  Read access to products and categories, plus product image upload.

Routes:
    GET  /api/v1/product                    list products
    GET  /api/v1/product/{product_id}       single product
    POST /api/v1/product/{product_id}/image upload and attach an image
    GET  /api/v1/cat                        list categories
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, File, Query, UploadFile

from storefront.dependencies import (
    get_category_store,
    get_image_service,
    get_product_store,
)
from storefront.schemas.common import ErrorResponse
from storefront.services.image_service import ImageService
from storefront.services.product_store import CategoryStore, ProductStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/product", tags=["Products"])
category_router = APIRouter(prefix="/api/v1/cat", tags=["Categories"])


@router.get("", summary="List products")
async def list_products(
    limit: int = Query(default=50, ge=1, le=100),
    store: ProductStore = Depends(get_product_store),
) -> List[Dict[str, Any]]:
    return await store.list_products(limit=limit)


@router.get(
    "/{product_id}",
    responses={
        400: {"description": "Malformed product id", "model": ErrorResponse},
        404: {"description": "Product not found", "model": ErrorResponse},
    },
    summary="Get a single product",
)
async def get_product(
    product_id: str,
    store: ProductStore = Depends(get_product_store),
) -> Dict[str, Any]:
    return await store.get_product(product_id)


@router.post(
    "/{product_id}/image",
    status_code=201,
    responses={
        400: {"description": "Invalid image", "model": ErrorResponse},
        404: {"description": "Product not found", "model": ErrorResponse},
        502: {"description": "Image host failure", "model": ErrorResponse},
    },
    summary="Upload a product image",
    description="Validates the image (PNG, JPEG or WebP), uploads it to the image host and stores its URL on the product.",
)
async def upload_product_image(
    product_id: str,
    file: UploadFile = File(..., description="Product image"),
    store: ProductStore = Depends(get_product_store),
    images: ImageService = Depends(get_image_service),
) -> Dict[str, Any]:
    # Fail on unknown products before spending an upload.
    await store.get_product(product_id)

    content = await file.read()
    logger.info(
        "Received image upload for product %s: filename=%s, size=%d bytes",
        product_id,
        file.filename or "unknown",
        len(content),
    )

    try:
        image = await images.upload_product_image(
            product_id=product_id,
            filename=file.filename or "upload.jpg",
            content=content,
            content_length=file.size,
        )
    finally:
        await file.close()

    return await store.set_image(product_id, image)


@category_router.get("", summary="List categories")
async def list_categories(
    store: CategoryStore = Depends(get_category_store),
) -> List[Dict[str, Any]]:
    return await store.list_categories()
