"""
Storefront API — Product Search Tests
=======================================

What we test:
    ✅ Case-insensitive substring match on product names
    ✅ Empty or missing query returns every product
    ✅ Regex metacharacters are matched literally
    ✅ Over-long queries are rejected with 400
    ✅ Store failures surface as a generic 500
"""

import pytest

from storefront.exceptions import DatabaseError
from storefront.services.product_store import ProductStore, name_filter


class TestNameFilter:

    def test_empty_query_matches_everything(self):
        assert name_filter("") == {}
        assert name_filter(None) == {}

    def test_query_is_escaped_and_case_insensitive(self):
        assert name_filter("shirt(xl)") == {
            "name": {"$regex": r"shirt\(xl\)", "$options": "i"}
        }


class TestProductStoreSearch:

    @pytest.mark.asyncio
    async def test_matches_substring_ignoring_case(self, product_collection):
        store = ProductStore(product_collection)

        results = await store.search_by_name("shirt")

        assert sorted(r["name"] for r in results) == ["Red Shirt", "blue shirt"]

    @pytest.mark.asyncio
    async def test_ids_are_rendered_as_strings(self, product_collection):
        results = await ProductStore(product_collection).search_by_name("hat")

        assert results == [
            {"_id": "64b7f0c2a1b2c3d4e5f60003", "name": "Red Hat", "price": 999, "category": "hats"}
        ]

    @pytest.mark.asyncio
    async def test_driver_error_becomes_database_error(self, product_collection):
        product_collection.fail = True

        with pytest.raises(DatabaseError):
            await ProductStore(product_collection).search_by_name("shirt")


class TestSearchEndpoint:

    @pytest.mark.asyncio
    async def test_search_returns_all_matches(self, test_client):
        response = await test_client.get("/api/v1/search", params={"query": "red"})

        assert response.status_code == 200
        assert sorted(p["name"] for p in response.json()) == ["Red Hat", "Red Shirt"]

    @pytest.mark.asyncio
    async def test_no_match_returns_empty_list(self, test_client):
        response = await test_client.get("/api/v1/search", params={"query": "socks"})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{}, {"query": ""}])
    async def test_empty_query_returns_every_product(self, test_client, params):
        response = await test_client.get("/api/v1/search", params=params)

        assert response.status_code == 200
        assert len(response.json()) == 3

    @pytest.mark.asyncio
    async def test_regex_metacharacters_match_literally(self, test_client, product_collection):
        response = await test_client.get("/api/v1/search", params={"query": ".*"})

        assert response.status_code == 200
        assert response.json() == []
        assert product_collection.queries[-1]["name"]["$regex"] == r"\.\*"

    @pytest.mark.asyncio
    async def test_overlong_query_is_rejected(self, test_client, product_collection):
        response = await test_client.get("/api/v1/search", params={"query": "a" * 257})

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "query"}
        assert product_collection.queries == []

    @pytest.mark.asyncio
    async def test_store_failure_returns_generic_500(self, test_client, product_collection):
        product_collection.fail = True

        response = await test_client.get("/api/v1/search", params={"query": "shirt"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "No servers available" not in response.text
