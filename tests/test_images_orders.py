"""
Image and order endpoints
"""
import base64
import json

import httpx
import pytest

from app.services.shopify_images import MAX_ATTACHMENT_BYTES, AttachmentTooLargeError, build_image_payload
from app.services.shopify_orders import order_customer_name

SHOP = "s.test"
TOKEN = "tok"
API_BASE = "/admin/api/2025-07"
AUTH = {"shop": SHOP, "credential": TOKEN}


class TestImages:
    def test_list_images(self, client, remote):
        remote.add("GET", f"{API_BASE}/products/7/images.json", {"images": [{"id": 1, "src": "https://cdn/a.png"}]})
        response = client.post("/api/shopify/images/list", json={**AUTH, "productId": "gid://shopify/Product/7"})
        assert response.status_code == 200
        assert response.json() == {"images": [{"id": 1, "src": "https://cdn/a.png"}], "count": 1}

    def test_get_missing_image(self, client, remote):
        response = client.post("/api/shopify/image/get", json={**AUTH, "productId": "7", "imageId": "3"})
        assert response.status_code == 404
        assert response.json()["error"] == "Image not found"

    def test_create_with_data_uri_attachment(self, client, remote):
        sent = {}

        def route(request):
            sent.update(json.loads(request.content)["image"])
            return httpx.Response(200, json={"image": {"id": 10, "alt": "front"}})

        remote.add("POST", f"{API_BASE}/products/7/images.json", route)
        data = base64.b64encode(b"png-bytes").decode()
        response = client.post("/api/shopify/image/create", json={
            **AUTH, "productId": "7", "attachment": f"data:image/png;base64,{data}", "alt": "front",
        })
        assert response.status_code == 200
        assert response.json()["image"]["id"] == 10
        assert sent == {"attachment": data, "alt": "front"}

    def test_create_requires_source(self, client):
        response = client.post("/api/shopify/image/create", json={**AUTH, "productId": "7"})
        assert response.status_code == 400
        assert response.json()["error"] == "Provide either src or attachment"

    def test_create_rejects_invalid_base64(self, client):
        response = client.post("/api/shopify/image/create", json={**AUTH, "productId": "7", "attachment": "***"})
        assert response.status_code == 400

    def test_update_and_delete(self, client, remote):
        remote.add("PUT", f"{API_BASE}/products/7/images/3.json", {"image": {"id": 3, "position": 1}})
        remote.add("DELETE", f"{API_BASE}/products/7/images/3.json", {})
        updated = client.post("/api/shopify/image/update", json={**AUTH, "productId": "7", "imageId": 3, "position": 1})
        assert updated.json() == {"image": {"id": 3, "position": 1}}
        assert json.loads(remote.requests[0].content) == {"image": {"id": 3, "position": 1}}

        deleted = client.post("/api/shopify/image/delete", json={**AUTH, "productId": "7", "imageId": "3"})
        assert deleted.json() == {"success": True}

    def test_image_id_required(self, client):
        response = client.post("/api/shopify/image/delete", json={**AUTH, "productId": "7"})
        assert response.status_code == 400
        assert "imageId" in response.json()["error"]


def test_attachment_over_limit_is_413():
    # Size is computed from the base64 length, before content validity
    oversized = "A" * ((MAX_ATTACHMENT_BYTES // 3) * 4 + 8)
    with pytest.raises(AttachmentTooLargeError) as exc:
        build_image_payload(attachment=oversized)
    assert exc.value.status_code == 413


class TestOrders:
    def test_list_all_orders(self, client, remote):
        remote.add("GET", f"{API_BASE}/orders.json", {"orders": [
            {"id": 1001, "name": "#1001", "tags": "", "customer": {"first_name": "Ada", "last_name": "L"}},
            {"id": 1002, "name": "#1002", "tags": "", "email": "x@example.com"},
        ]})
        response = client.post("/api/shopify/orders/all", json=AUTH)
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert [o["customerName"] for o in body["items"]] == ["Ada L", "x@example.com"]
        assert remote.requests[0].url.params["status"] == "any"

    def test_get_order_not_found(self, client, remote):
        response = client.post("/api/shopify/orders/get", json={**AUTH, "orderId": "55"})
        assert response.status_code == 404

    def test_update_order(self, client, remote):
        remote.add("PUT", f"{API_BASE}/orders/55.json", lambda r: httpx.Response(200, json=json.loads(r.content)))
        response = client.post("/api/shopify/orders/update", json={**AUTH, "orderId": "gid://shopify/Order/55", "orderData": {"note": "gift"}})
        assert response.status_code == 200
        assert response.json()["order"] == {"note": "gift", "id": 55}

    def test_order_details_without_shop_info(self, client, remote):
        remote.add("GET", f"{API_BASE}/orders/55.json", {"order": {"id": 55, "customer": {"first_name": "Ada"}}})
        remote.add("GET", f"{API_BASE}/shop.json", {"errors": "forbidden"}, status=403)
        response = client.post("/api/shopify/orders/details", json={**AUTH, "orderId": 55})
        assert response.status_code == 200
        assert response.json() == {"order": {"id": 55, "customer": {"first_name": "Ada"}}, "shop": {}, "customerName": "Ada"}

    def test_orders_auth_failure(self, client, remote):
        remote.add("GET", f"{API_BASE}/orders.json", {"errors": "forbidden"}, status=403)
        response = client.post("/api/shopify/orders/all", json=AUTH)
        assert response.status_code == 403


def test_customer_name_fallbacks():
    assert order_customer_name({}) == "Unknown"
    assert order_customer_name({"customer": {"email": "c@example.com"}}) == "c@example.com"
