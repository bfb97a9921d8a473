"""
Shopify Admin API service - authenticated requests for single products.
Never expose access_token to the frontend or logs.
Shared URL/header/GraphQL helpers used by the catalog client, image and order services.
"""
import base64
import logging
import re
from typing import Any, Optional, Union

import httpx

from app.config import settings
from app.exceptions import NotFoundError, RemoteFetchError, ValidationError
from app.services.http_client import send
from app.services.tag_codec import ClassificationMetadata, default_codec

logger = logging.getLogger(__name__)

GID_PATTERN = re.compile(r"^gid://shopify/([A-Za-z]+)/(\d+)")
HTML_TAG_PATTERN = re.compile(r"<[^>]*>")
DATA_URI_PREFIX = re.compile(r"^data:[\w/+.-]+;base64,")


def _base_url(shop_domain: str) -> str:
    shop = (shop_domain or "").lower().strip()
    shop = shop.replace("https://", "").replace("http://", "").split("/")[0]
    if not shop.endswith(".myshopify.com"):
        shop = f"{shop}.myshopify.com" if "." not in shop else shop
    return f"https://{shop}/admin/api/{settings.SHOPIFY_API_VERSION}"


def _headers(access_token: str) -> dict:
    return {
        "X-Shopify-Access-Token": access_token,
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def normalize_id(raw: Union[str, int, None]) -> str:
    """
    'gid://shopify/Product/123' and 123 / '123' all become '123'.
    Anything else is returned trimmed so the caller can decide.
    """
    if raw is None:
        return ""
    value = str(raw).strip()
    match = GID_PATTERN.match(value)
    if match:
        return match.group(2)
    return value


def to_gid(raw: Union[str, int], resource: str = "Product") -> str:
    value = str(raw).strip()
    if value.startswith("gid://"):
        return value
    return f"gid://shopify/{resource}/{normalize_id(value)}"


def strip_html(html: Optional[str]) -> str:
    if not html:
        return ""
    return HTML_TAG_PATTERN.sub("", html).strip()


def strip_data_uri(attachment: str) -> str:
    """'data:image/png;base64,AAAA' -> 'AAAA'"""
    return DATA_URI_PREFIX.sub("", attachment or "")


def flatten_edges(value: Any) -> Any:
    """Turn GraphQL connections ({"edges": [{"node": ...}]}) into plain lists, recursively."""
    if isinstance(value, dict):
        edges = value.get("edges")
        if isinstance(edges, list) and set(value.keys()) <= {"edges", "pageInfo"}:
            return [flatten_edges((e or {}).get("node")) for e in edges]
        return {k: flatten_edges(v) for k, v in value.items()}
    if isinstance(value, list):
        return [flatten_edges(v) for v in value]
    return value


async def graphql_request(
    http: httpx.AsyncClient,
    shop_domain: str,
    access_token: str,
    query: str,
    variables: Optional[dict] = None,
) -> dict:
    """POST to the Admin GraphQL endpoint; top-level "errors" in a 200 response also raise."""
    url = f"{_base_url(shop_domain)}/graphql.json"
    response = await send(
        http,
        "POST",
        url,
        json={"query": query, "variables": variables or {}},
        headers=_headers(access_token),
    )
    result = response.json()
    if result.get("errors"):
        raise RemoteFetchError("Shopify GraphQL errors", status=response.status_code, body=result["errors"])
    return result.get("data") or {}


def _raise_user_errors(payload: dict, message: str) -> None:
    errors = (payload or {}).get("userErrors") or []
    if errors:
        logger.warning("Shopify userErrors (%s): %s", message, errors)
        raise ValidationError(message, details=errors)


PRODUCT_QUERY = """
query product($id: ID!) {
  product(id: $id) {
    id
    title
    handle
    status
    tags
    vendor
    productType
    createdAt
    updatedAt
    description
    descriptionHtml
    featuredImage { url altText }
    images(first: 10) { edges { node { id url altText } } }
    options { id name values }
    variants(first: 50) {
      edges {
        node {
          id
          title
          price
          compareAtPrice
          sku
          barcode
          inventoryQuantity
          availableForSale
          selectedOptions { name value }
        }
      }
    }
    seo { title description }
    totalInventory
    tracksInventory
    onlineStoreUrl
  }
}
"""

PRODUCT_TAGS_QUERY = """
query productTags($id: ID!) {
  product(id: $id) { id tags }
}
"""

PRODUCT_UPDATE_MUTATION = """
mutation productUpdate($product: ProductUpdateInput!) {
  productUpdate(product: $product) {
    product { id title vendor productType descriptionHtml tags }
    userErrors { field message }
  }
}
"""

PRODUCT_DELETE_MUTATION = """
mutation productDelete($input: ProductDeleteInput!) {
  productDelete(input: $input) {
    deletedProductId
    userErrors { field message }
  }
}
"""


def product_with_metadata(product: dict) -> dict:
    """Replace raw tags with decoded classification fields."""
    metadata = default_codec.decode(product.get("tags"))
    out = dict(product)
    out["id"] = normalize_id(product.get("id"))
    if product.get("id") is not None:
        out["gid"] = to_gid(product["id"])
    out["tags"] = default_codec.strip(product.get("tags"))
    out["hsCode"] = {
        "suggestedCode": metadata.code,
        "confidence": metadata.confidence,
        "status": metadata.effective_status,
    }
    out["complianceStatus"] = metadata.effective_status
    return out


async def get_product(http: httpx.AsyncClient, shop_domain: str, access_token: str, product_id: str) -> dict:
    """
    Fetch one product by numeric id or GID.
    Returns the product with images/variants flattened and classification decoded.
    """
    data = await graphql_request(http, shop_domain, access_token, PRODUCT_QUERY, {"id": to_gid(product_id)})
    product = data.get("product")
    if not product:
        raise NotFoundError("Product not found", details=f"Product with ID {product_id} not found")
    return product_with_metadata(flatten_edges(product))


async def get_product_tags(http: httpx.AsyncClient, shop_domain: str, access_token: str, product_id: str) -> list[str]:
    data = await graphql_request(http, shop_domain, access_token, PRODUCT_TAGS_QUERY, {"id": to_gid(product_id)})
    product = data.get("product")
    if not product:
        raise NotFoundError("Product not found", details=f"Product with ID {product_id} not found")
    return product.get("tags") or []


async def update_product(
    http: httpx.AsyncClient,
    shop_domain: str,
    access_token: str,
    product_id: str,
    product_data: Optional[dict] = None,
    metadata: Optional[ClassificationMetadata] = None,
) -> dict:
    """
    Update basic fields and/or classification metadata in one productUpdate.
    Metadata fields given here override the product's current ones; existing
    classification tags are always stripped before the new ones are appended.
    """
    product_data = product_data or {}
    product_input: dict = {}
    if product_data.get("title"):
        product_input["title"] = product_data["title"]
    if product_data.get("body_html") is not None:
        product_input["descriptionHtml"] = product_data["body_html"]
    if product_data.get("vendor"):
        product_input["vendor"] = product_data["vendor"]
    if product_data.get("product_type"):
        product_input["productType"] = product_data["product_type"]

    if metadata is not None:
        current_tags = await get_product_tags(http, shop_domain, access_token, product_id)
        merged = default_codec.decode(current_tags).merged(metadata)
        product_input["tags"] = default_codec.encode(current_tags, merged)

    if not product_input:
        raise ValidationError("Nothing to update")

    product_input["id"] = to_gid(product_id)
    data = await graphql_request(http, shop_domain, access_token, PRODUCT_UPDATE_MUTATION, {"product": product_input})
    payload = data.get("productUpdate") or {}
    _raise_user_errors(payload, "Update failed")
    updated = payload.get("product")
    if not updated:
        raise NotFoundError("Product not found", details=f"Product with ID {product_id} not found")
    logger.info("Shopify product %s updated (fields=%s)", normalize_id(product_id), sorted(k for k in product_input if k != "id"))
    return product_with_metadata(updated)


async def set_product_classification(
    http: httpx.AsyncClient,
    shop_domain: str,
    access_token: str,
    product_id: str,
    metadata: ClassificationMetadata,
) -> dict:
    """Rewrite classification tags only."""
    return await update_product(http, shop_domain, access_token, product_id, metadata=metadata)


async def create_product(http: httpx.AsyncClient, shop_domain: str, access_token: str, product_data: dict) -> dict:
    """
    Create a product through REST (single call carries the first variant's price/sku and
    base64 images). Returns the created product with classification decoded.
    Classification tags in product_data are dropped; set them afterwards with
    update_product or the HS code save.
    """
    images = []
    for media in product_data.get("media") or []:
        source = (media or {}).get("originalSource") or ""
        if source.startswith("data:"):
            images.append({"attachment": strip_data_uri(source), "alt": media.get("alt") or ""})
        elif source:
            images.append({"src": source, "alt": media.get("alt") or ""})

    product = {
        "title": product_data.get("title") or "New Product",
        "body_html": product_data.get("body_html") or "",
        "vendor": product_data.get("vendor") or "",
        "product_type": product_data.get("product_type") or "",
        "status": "active",
        "variants": [{
            "price": str(product_data.get("price") or "0.00"),
            "sku": product_data.get("sku") or "",
            "inventory_management": "shopify",
        }],
    }
    if product_data.get("tags"):
        product["tags"] = ", ".join(default_codec.strip(product_data["tags"]))
    if images:
        product["images"] = images

    url = f"{_base_url(shop_domain)}/products.json"
    response = await send(http, "POST", url, json={"product": product}, headers=_headers(access_token))
    created = response.json().get("product") or {}
    logger.info("Shopify product created: %s", created.get("id"))
    return product_with_metadata(created)


async def delete_product(http: httpx.AsyncClient, shop_domain: str, access_token: str, product_id: str) -> str:
    data = await graphql_request(
        http, shop_domain, access_token, PRODUCT_DELETE_MUTATION, {"input": {"id": to_gid(product_id)}}
    )
    payload = data.get("productDelete") or {}
    _raise_user_errors(payload, "Delete failed")
    deleted = payload.get("deletedProductId")
    if not deleted:
        raise NotFoundError("Product not found", details=f"Product with ID {product_id} not found")
    return deleted


def attachment_size_bytes(attachment: str) -> int:
    """Decoded size of a base64 payload without decoding it."""
    b64 = strip_data_uri(attachment)
    padding = b64.count("=", max(len(b64) - 2, 0))
    return (len(b64) * 3) // 4 - padding


def is_valid_base64(attachment: str) -> bool:
    try:
        base64.b64decode(strip_data_uri(attachment), validate=True)
    except ValueError:
        return False
    return True
