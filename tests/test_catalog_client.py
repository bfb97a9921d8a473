"""
Remote catalog clients against a mocked Shopify Admin API
"""
import asyncio

import httpx
import pytest

from app.exceptions import RemoteFetchError
from app.services.catalog_client import GraphQLCatalogClient, RestCatalogClient, get_catalog_client
from app.services.shopify_service import normalize_id, to_gid

SHOP = "s.test"
TOKEN = "tok"
API_BASE = "/admin/api/2025-07"


def run(coro):
    return asyncio.run(coro)


class TestRestClient:
    def test_fetch_first_page(self, remote, http_client):
        remote.add("GET", f"{API_BASE}/products.json", {
            "products": [
                {"id": 11, "title": "A", "tags": "summer, status_approved"},
                {"id": 12, "title": "B", "tags": ""},
            ]
        })
        client = RestCatalogClient(http_client, SHOP, TOKEN)
        page = run(client.fetch_page(None, 250))

        assert [i.id for i in page.items] == ["11", "12"]
        assert page.items[0].raw_tags == ["summer", "status_approved"]
        assert page.items[0].fields["title"] == "A"
        assert page.next_token == "12"

        request = remote.requests[0]
        assert request.url.host == "s.test"
        assert request.url.params["limit"] == "250"
        assert "since_id" not in request.url.params
        assert request.headers["X-Shopify-Access-Token"] == TOKEN

    def test_since_id_and_orders_status(self, remote, http_client):
        remote.add("GET", f"{API_BASE}/orders.json", {"orders": []})
        client = RestCatalogClient(http_client, SHOP, TOKEN, resource="orders")
        page = run(client.fetch_page("500", 50))

        assert page.items == []
        assert page.next_token is None
        params = remote.requests[0].url.params
        assert params["since_id"] == "500"
        assert params["status"] == "any"

    def test_http_error_becomes_remote_fetch_error(self, remote, http_client):
        remote.add("GET", f"{API_BASE}/products.json", {"errors": "[API] Invalid API key"}, status=401)
        client = RestCatalogClient(http_client, SHOP, TOKEN)
        with pytest.raises(RemoteFetchError) as exc:
            run(client.fetch_page(None, 250))
        assert exc.value.status == 401
        assert exc.value.status_code == 401
        assert exc.value.body == {"errors": "[API] Invalid API key"}

    def test_server_error_folds_to_500(self, remote, http_client):
        remote.add("GET", f"{API_BASE}/products.json", {"errors": "boom"}, status=502)
        with pytest.raises(RemoteFetchError) as exc:
            run(RestCatalogClient(http_client, SHOP, TOKEN).fetch_page(None, 250))
        assert exc.value.status_code == 500

    def test_transport_failure(self):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(fail))
        with pytest.raises(RemoteFetchError) as exc:
            run(RestCatalogClient(http, SHOP, TOKEN).fetch_page(None, 10))
        assert exc.value.status is None
        assert exc.value.status_code == 500

    def test_timeout(self):
        def slow(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(slow))
        with pytest.raises(RemoteFetchError) as exc:
            run(RestCatalogClient(http, SHOP, TOKEN).fetch_page(None, 10))
        assert exc.value.status is None
        assert exc.value.status_code == 500

    @pytest.mark.parametrize("size", [0, 251])
    def test_page_size_bounds(self, http_client, size):
        with pytest.raises(ValueError):
            run(RestCatalogClient(http_client, SHOP, TOKEN).fetch_page(None, size))


class TestGraphQLClient:
    def test_cursor_paging(self, remote, http_client):
        seen = []

        def handler(query, variables):
            seen.append(variables)
            return {
                "products": {
                    "edges": [{"node": {
                        "id": "gid://shopify/Product/7",
                        "title": "Tee",
                        "tags": ["code_6109"],
                        "images": {"edges": [{"node": {"url": "https://cdn/t.png"}}]},
                    }}],
                    "pageInfo": {"hasNextPage": True, "endCursor": "cursor-1"},
                }
            }

        remote.graphql(handler)
        page = run(GraphQLCatalogClient(http_client, SHOP, TOKEN).fetch_page("cursor-0", 100))

        assert seen == [{"first": 100, "after": "cursor-0"}]
        assert page.items[0].id == "7"
        assert page.items[0].raw_tags == ["code_6109"]
        assert page.items[0].fields["images"] == [{"url": "https://cdn/t.png"}]
        assert page.next_token == "cursor-1"

    def test_last_page_has_no_token(self, remote, http_client):
        remote.graphql(lambda q, v: {
            "orders": {"edges": [], "pageInfo": {"hasNextPage": False, "endCursor": None}}
        })
        page = run(GraphQLCatalogClient(http_client, SHOP, TOKEN, resource="orders").fetch_page(None, 10))
        assert page.items == []
        assert page.next_token is None

    def test_graphql_errors_raise(self, remote, http_client):
        remote.graphql(lambda q, v: httpx.Response(200, json={"errors": [{"message": "Throttled"}]}))
        with pytest.raises(RemoteFetchError) as exc:
            run(GraphQLCatalogClient(http_client, SHOP, TOKEN).fetch_page(None, 10))
        assert exc.value.body == [{"message": "Throttled"}]


class TestFactory:
    def test_selects_style(self, http_client):
        assert isinstance(get_catalog_client(http_client, SHOP, TOKEN, style="graphql"), GraphQLCatalogClient)
        assert isinstance(get_catalog_client(http_client, SHOP, TOKEN, style="rest"), RestCatalogClient)

    def test_unknown_style_falls_back_to_rest(self, http_client):
        assert isinstance(get_catalog_client(http_client, SHOP, TOKEN, style="soap"), RestCatalogClient)

    def test_unknown_resource(self, http_client):
        with pytest.raises(ValueError):
            get_catalog_client(http_client, SHOP, TOKEN, resource="customers")


def test_id_normalization():
    assert normalize_id("gid://shopify/Product/123") == "123"
    assert normalize_id(123) == "123"
    assert normalize_id(" 45 ") == "45"
    assert to_gid("123") == "gid://shopify/Product/123"
    assert to_gid("gid://shopify/Order/9", "Order") == "gid://shopify/Order/9"
