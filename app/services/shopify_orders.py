"""
Shopify orders (REST Admin API): single order read/update and invoice details.
Full order listing goes through the collection synchronizer.
"""
import logging

import httpx

from app.exceptions import NotFoundError, RemoteFetchError
from app.services.http_client import send
from app.services.shopify_service import _base_url, _headers, normalize_id

logger = logging.getLogger(__name__)

ORDER_DETAIL_FIELDS = (
    "id,order_number,line_items,name,total_price,subtotal_price,total_tax,"
    "customer,billing_address,shipping_address,created_at"
)
SHOP_DETAIL_FIELDS = "name,address1,city,province,zip,country,logo"


def _order_url(shop_domain: str, order_id: str) -> str:
    return f"{_base_url(shop_domain)}/orders/{normalize_id(order_id)}.json"


def order_customer_name(order: dict) -> str:
    """First name + last name, else email, else 'Unknown'."""
    c = order.get("customer") or {}
    first = (c.get("first_name") or "").strip()
    last = (c.get("last_name") or "").strip()
    if first or last:
        return f"{first} {last}".strip()
    return (order.get("email") or c.get("email") or "").strip() or "Unknown"


async def get_order(http: httpx.AsyncClient, shop_domain: str, access_token: str, order_id: str, fields: str = "") -> dict:
    params = {"fields": fields} if fields else None
    try:
        response = await send(http, "GET", _order_url(shop_domain, order_id), params=params, headers=_headers(access_token))
    except RemoteFetchError as e:
        if e.status == 404:
            raise NotFoundError("Order not found") from e
        raise
    order = response.json().get("order")
    if not order:
        raise NotFoundError("Order not found")
    return order


async def update_order(http: httpx.AsyncClient, shop_domain: str, access_token: str, order_id: str, order_data: dict) -> dict:
    body = dict(order_data)
    body["id"] = int(normalize_id(order_id)) if normalize_id(order_id).isdigit() else normalize_id(order_id)
    try:
        response = await send(
            http, "PUT", _order_url(shop_domain, order_id), json={"order": body}, headers=_headers(access_token)
        )
    except RemoteFetchError as e:
        if e.status == 404:
            raise NotFoundError("Order not found") from e
        raise
    logger.info("Shopify order %s updated (fields=%s)", normalize_id(order_id), sorted(order_data))
    return response.json().get("order") or {}


async def get_order_details(http: httpx.AsyncClient, shop_domain: str, access_token: str, order_id: str) -> dict:
    """Order (invoice/packing-list fields) plus shop name/address/logo. Shop info is best effort."""
    order = await get_order(http, shop_domain, access_token, order_id, fields=ORDER_DETAIL_FIELDS)
    shop: dict = {}
    try:
        response = await send(
            http,
            "GET",
            f"{_base_url(shop_domain)}/shop.json",
            params={"fields": SHOP_DETAIL_FIELDS},
            headers=_headers(access_token),
        )
        shop = response.json().get("shop") or {}
    except RemoteFetchError as e:
        logger.warning("Shop info unavailable for order details (%s): %s", shop_domain, e.message)
    return {"order": order, "shop": shop, "customerName": order_customer_name(order)}
