"""
Remote catalog client: one page of products/orders at a time from Shopify.

Two pagination styles behind one interface:
- RestCatalogClient: GET {resource}.json?limit=N&since_id=<last id>
- GraphQLCatalogClient: {resource}(first: N, after: <endCursor>)
Selected by CATALOG_PAGINATION in get_catalog_client(). No retries, no caller state mutated.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from app.config import settings
from app.services.http_client import send
from app.services.shopify_service import _base_url, _headers, flatten_edges, graphql_request, normalize_id
from app.services.tag_codec import normalize_tags

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = settings.CATALOG_MAX_PAGE_SIZE
RESOURCES = ("products", "orders")


@dataclass
class CatalogItem:
    """One remote record: normalized id, normalized raw tags, every other field passed through."""
    id: str
    raw_tags: list[str]
    fields: dict = field(default_factory=dict)

    @classmethod
    def from_remote(cls, record: dict) -> "CatalogItem":
        fields = {k: v for k, v in record.items() if k not in ("id", "tags")}
        return cls(id=normalize_id(record.get("id")), raw_tags=normalize_tags(record.get("tags")), fields=fields)


@dataclass
class CatalogPage:
    items: list[CatalogItem]
    next_token: Optional[str] = None


class CatalogClient:
    """Base class; subclasses implement fetch_page for one pagination style."""

    style = ""

    def __init__(
        self,
        http: httpx.AsyncClient,
        shop_domain: str,
        access_token: str,
        resource: str = "products",
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        if resource not in RESOURCES:
            raise ValueError(f"Unsupported catalog resource: {resource}")
        self.http = http
        self.shop_domain = shop_domain
        self.access_token = access_token
        self.resource = resource
        self.max_page_size = max_page_size

    def _check_page_size(self, page_size: int) -> None:
        if page_size < 1 or page_size > self.max_page_size:
            raise ValueError(f"page_size must be between 1 and {self.max_page_size}, got {page_size}")

    async def fetch_page(self, page_token: Optional[str], page_size: int) -> CatalogPage:
        raise NotImplementedError


class RestCatalogClient(CatalogClient):
    style = "rest"

    async def fetch_page(self, page_token: Optional[str], page_size: int) -> CatalogPage:
        self._check_page_size(page_size)
        params: dict = {"limit": page_size}
        if self.resource == "orders":
            params["status"] = "any"
        if page_token:
            params["since_id"] = page_token
        url = f"{_base_url(self.shop_domain)}/{self.resource}.json"
        response = await send(self.http, "GET", url, params=params, headers=_headers(self.access_token))
        records = response.json().get(self.resource) or []
        items = [CatalogItem.from_remote(r) for r in records if isinstance(r, dict)]
        next_token = items[-1].id if items else None
        return CatalogPage(items=items, next_token=next_token)


PRODUCTS_PAGE_QUERY = """
query products($first: Int!, $after: String) {
  products(first: $first, after: $after) {
    edges {
      node {
        id
        title
        handle
        status
        tags
        vendor
        productType
        descriptionHtml
        createdAt
        updatedAt
        featuredImage { url altText }
        images(first: 5) { edges { node { url altText } } }
        variants(first: 5) { edges { node { id price sku inventoryQuantity } } }
      }
    }
    pageInfo { hasNextPage endCursor }
  }
}
"""

ORDERS_PAGE_QUERY = """
query orders($first: Int!, $after: String) {
  orders(first: $first, after: $after) {
    edges {
      node {
        id
        name
        tags
        email
        createdAt
        displayFinancialStatus
        displayFulfillmentStatus
        totalPriceSet { shopMoney { amount currencyCode } }
        customer { firstName lastName email }
      }
    }
    pageInfo { hasNextPage endCursor }
  }
}
"""

PAGE_QUERIES = {"products": PRODUCTS_PAGE_QUERY, "orders": ORDERS_PAGE_QUERY}


class GraphQLCatalogClient(CatalogClient):
    style = "graphql"

    async def fetch_page(self, page_token: Optional[str], page_size: int) -> CatalogPage:
        self._check_page_size(page_size)
        data = await graphql_request(
            self.http,
            self.shop_domain,
            self.access_token,
            PAGE_QUERIES[self.resource],
            {"first": page_size, "after": page_token},
        )
        connection = data.get(self.resource) or {}
        records = [flatten_edges((edge or {}).get("node")) for edge in connection.get("edges") or []]
        items = [CatalogItem.from_remote(r) for r in records if isinstance(r, dict)]
        page_info = connection.get("pageInfo") or {}
        next_token = page_info.get("endCursor") if page_info.get("hasNextPage") else None
        return CatalogPage(items=items, next_token=next_token)


CLIENT_STYLES = {
    RestCatalogClient.style: RestCatalogClient,
    GraphQLCatalogClient.style: GraphQLCatalogClient,
}


def get_catalog_client(
    http: httpx.AsyncClient,
    shop_domain: str,
    access_token: str,
    resource: str = "products",
    style: Optional[str] = None,
) -> CatalogClient:
    """Pick the pagination style from configuration (or explicit override)."""
    style = (style or settings.CATALOG_PAGINATION or "rest").lower()
    client_cls = CLIENT_STYLES.get(style)
    if client_cls is None:
        logger.warning("Unknown CATALOG_PAGINATION=%r, falling back to rest", style)
        client_cls = RestCatalogClient
    return client_cls(http, shop_domain, access_token, resource=resource)
