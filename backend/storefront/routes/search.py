"""
Storefront API — Product Search Route
=======================================

GET /api/v1/search?query=<text>

Case-insensitive substring match on product names. The full list of matches
is returned as a JSON array with no pagination or ranking. An empty or
missing query returns every product.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from storefront.config import settings
from storefront.dependencies import get_product_store
from storefront.exceptions import ValidationError
from storefront.schemas.common import ErrorResponse
from storefront.services.product_store import ProductStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Search"])


@router.get(
    "/search",
    responses={
        400: {"description": "Query too long", "model": ErrorResponse},
        500: {"description": "Product store unavailable", "model": ErrorResponse},
    },
    summary="Search products by name",
)
async def search_products(
    query: str = Query(default="", description="Substring to look for in product names"),
    store: ProductStore = Depends(get_product_store),
) -> List[Dict[str, Any]]:
    if len(query) > settings.search_query_max_length:
        raise ValidationError(
            message=f"Search query must be at most {settings.search_query_max_length} characters.",
            field="query",
            context={"length": len(query)},
        )

    return await store.search_by_name(query)
