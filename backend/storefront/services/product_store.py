"""
Storefront API — Product & Category Store Adapters
====================================================

What:  Thin adapters over the MongoDB `products` and `categories` collections.
How:   Each adapter wraps one collection, translates driver errors into
       DatabaseError and renders documents as JSON-safe dicts.
Who:   Injected into the search, product and category route handlers.

Search semantics:
    The user's query is escaped before it becomes a $regex pattern, so
    "shirt (xl)" matches that literal text and a query cannot smuggle in a
    catastrophic pattern. Matching is case-insensitive. An empty query uses
    an empty filter and returns every product.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from storefront.exceptions import DatabaseError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def serialize_doc(value: Any) -> Any:
    """
    Converts BSON values into JSON-safe equivalents, recursively.

    ObjectId → str, datetime → ISO 8601. The `_id` key is kept as `_id` so
    existing clients that read `product._id` keep working.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize_doc(v) for k, v in value.items()}
    if isinstance(value, list):
        return [serialize_doc(v) for v in value]
    return value


def name_filter(query: Optional[str]) -> Dict[str, Any]:
    """Builds the case-insensitive substring filter for a search query."""
    if not query:
        return {}
    return {"name": {"$regex": re.escape(query), "$options": "i"}}


def parse_object_id(raw: str, resource: str = "product") -> ObjectId:
    if not ObjectId.is_valid(raw):
        raise ValidationError(
            message=f"'{raw}' is not a valid {resource} id",
            field=f"{resource}_id",
        )
    return ObjectId(raw)


class ProductStore:
    """
    Read access to products plus the image attachment update.

    Responsibilities:
        - search_by_name(): substring search on `name`
        - list_products(): unfiltered listing with a limit
        - get_product(): single lookup by ObjectId
        - set_image(): attach an uploaded image to a product
    """

    def __init__(self, collection):
        self.collection = collection

    async def search_by_name(self, query: Optional[str]) -> List[Dict[str, Any]]:
        """
        Returns every product whose name contains `query`, case-insensitively.

        No pagination, limit or ranking; results come back in natural order.

        Raises:
            DatabaseError: the store could not be queried (→ 500)
        """
        try:
            cursor = self.collection.find(name_filter(query))
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Product search failed: %s", str(e))
            raise DatabaseError(
                message="Could not search products. Please try again.",
                context={"error_type": type(e).__name__, "error": str(e)},
            )

        logger.info("Product search matched %d document(s)", len(docs))
        return [serialize_doc(doc) for doc in docs]

    async def list_products(self, limit: int = 50) -> List[Dict[str, Any]]:
        try:
            cursor = self.collection.find({}).limit(limit)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as e:
            logger.error("Listing products failed: %s", str(e))
            raise DatabaseError(
                message="Could not retrieve products. Please try again.",
                context={"error_type": type(e).__name__, "error": str(e)},
            )
        return [serialize_doc(doc) for doc in docs]

    async def get_product(self, product_id: str) -> Dict[str, Any]:
        """
        Raises:
            ValidationError: id is not a valid ObjectId (→ 400)
            NotFoundError: no product with that id (→ 404)
            DatabaseError: query failed (→ 500)
        """
        oid = parse_object_id(product_id)
        try:
            doc = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            logger.error("Fetching product %s failed: %s", product_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the product. Please try again.",
                context={"product_id": product_id, "error": str(e)},
            )

        if doc is None:
            raise NotFoundError(resource="product", resource_id=product_id)
        return serialize_doc(doc)

    async def set_image(self, product_id: str, image: Dict[str, str]) -> Dict[str, Any]:
        """Stores `{url, public_id}` as the product's image and returns the updated product."""
        oid = parse_object_id(product_id)
        try:
            doc = await self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": {"image": image}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error("Updating image for product %s failed: %s", product_id, str(e))
            raise DatabaseError(
                message="Could not update the product image. Please try again.",
                context={"product_id": product_id, "error": str(e)},
            )

        if doc is None:
            raise NotFoundError(resource="product", resource_id=product_id)
        return serialize_doc(doc)


class CategoryStore:
    """Read-only listing of the `categories` collection."""

    def __init__(self, collection):
        self.collection = collection

    async def list_categories(self) -> List[Dict[str, Any]]:
        try:
            cursor = self.collection.find({}).sort("name", 1)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("Listing categories failed: %s", str(e))
            raise DatabaseError(
                message="Could not retrieve categories. Please try again.",
                context={"error_type": type(e).__name__, "error": str(e)},
            )
        return [serialize_doc(doc) for doc in docs]
