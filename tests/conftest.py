"""
Shared fixtures: in-memory SQLite session, a scripted Shopify/Dutify backend
over httpx.MockTransport, and a FastAPI TestClient wired to both.
"""
import json
import os

# Must be set before any app module reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "DEV"
os.environ["CATALOG_PAGINATION"] = "rest"
os.environ["HS_TAG_NAMESPACE"] = ""
os.environ["DUTIFY_API_KEY"] = "test-dutify-key"
os.environ["DUTIFY_BASE_URL"] = "https://dutify.test/api/v1"

import httpx
import pytest
from fastapi.testclient import TestClient

from app.database import Base, SessionLocal, engine, get_db
from app.services.catalog_client import CatalogClient, CatalogItem, CatalogPage
from app.services.http_client import get_http_client
from main import app

SHOP = "s.test"
TOKEN = "tok"
API_BASE = "/admin/api/2025-07"


class MockRemote:
    """
    Routes httpx requests by (method, path). A route is either a callable
    taking the request and returning an httpx.Response, or a JSON body.
    Unrouted requests get a 404.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method: str, path: str, body=None, status: int = 200):
        self.routes[(method.upper(), path)] = body if callable(body) else (status, body)

    def graphql(self, handler):
        """handler(query, variables) -> dict placed under "data" (or a full httpx.Response)."""

        def route(request: httpx.Request) -> httpx.Response:
            payload = json.loads(request.content)
            result = handler(payload["query"], payload.get("variables") or {})
            if isinstance(result, httpx.Response):
                return result
            return httpx.Response(200, json={"data": result})

        self.routes[("POST", f"{API_BASE}/graphql.json")] = route

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"errors": "Not Found"})
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, json=body)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def remote():
    return MockRemote()


@pytest.fixture
def http_client(remote):
    return httpx.AsyncClient(transport=httpx.MockTransport(remote))


@pytest.fixture
def client(db_session, http_client):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_client] = lambda: http_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class ScriptedCatalogClient(CatalogClient):
    """
    Returns pre-built pages in order; an Exception entry is raised instead.
    Past the end of the script the last entry repeats.
    """

    def __init__(self, pages, max_page_size: int = 250, resource: str = "products"):
        self.pages = pages
        self.shop_domain = SHOP
        self.access_token = TOKEN
        self.resource = resource
        self.max_page_size = max_page_size
        self.tokens = []

    @property
    def calls(self) -> int:
        return len(self.tokens)

    async def fetch_page(self, page_token, page_size):
        index = min(len(self.tokens), len(self.pages) - 1)
        self.tokens.append(page_token)
        page = self.pages[index]
        if isinstance(page, Exception):
            raise page
        next_token = page[-1].id if page else None
        return CatalogPage(items=list(page), next_token=next_token)


def build_items(count: int, start: int = 1, tags=None, title: str = "Item"):
    return [
        CatalogItem(id=str(i), raw_tags=list(tags or []), fields={"title": f"{title} {i}"})
        for i in range(start, start + count)
    ]


@pytest.fixture
def make_items():
    return build_items


@pytest.fixture
def scripted_client():
    return ScriptedCatalogClient
