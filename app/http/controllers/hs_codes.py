"""
HS code routes: Dutify detection, save, history, classification search
and the per-status product counts.
"""
import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.http.requests.schemas import (
    HsDetectRequest,
    HsSaveRequest,
    ProductRequest,
    ProductSearchRequest,
    ShopifyRequest,
    require,
)
from app.services import hs_code_service
from app.services.catalog_client import get_catalog_client
from app.services.catalog_sync import CollectionSynchronizer
from app.services.http_client import get_http_client
from app.services.tag_codec import STATUS_APPROVED, STATUS_MODIFIED, STATUS_PENDING

router = APIRouter()
counts_router = APIRouter()


@router.post("/hs-code/detect")
async def detect_hs_code(
    request: HsDetectRequest,
    http: httpx.AsyncClient = Depends(get_http_client),
    db: Session = Depends(get_db),
):
    require(request, "product_name", "description")
    return await hs_code_service.detect(http, db, request.product_name, request.description, request.category)


@router.post("/hs-code/detectProduct")
async def detect_product_hs_code(request: ProductRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential", "product_id")
    return await hs_code_service.detect_product(http, request.shop, request.credential, str(request.product_id))


@router.post("/hs-code/save")
async def save_product_hs_code(
    request: HsSaveRequest,
    http: httpx.AsyncClient = Depends(get_http_client),
    db: Session = Depends(get_db),
):
    require(request, "shop", "credential", "product_id", "product_name", "hs_code")
    return await hs_code_service.save(
        http,
        db,
        request.shop,
        request.credential,
        str(request.product_id),
        product_name=request.product_name,
        hs_code=request.hs_code,
        confidence=request.confidence,
        status=request.status,
        alternative_codes=request.alternative_codes,
    )


@router.post("/hs-code/history")
async def hs_code_history(db: Session = Depends(get_db)):
    return {"lookups": hs_code_service.history(db)}


@router.post("/products/search")
async def search_products(request: ProductSearchRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    """Classified products matching a search term (title, description or HS code)"""
    require(request, "shop", "credential")
    client = get_catalog_client(http, request.shop, request.credential, resource="products")
    result = await CollectionSynchronizer(client).search(
        request.search_term, request.filter, limit=settings.SEARCH_RESULT_LIMIT
    )
    return {"items": [item.summary() for item in result.items], "count": result.count}


async def _count(request: ShopifyRequest, http: httpx.AsyncClient, status: str) -> dict:
    require(request, "shop", "credential")
    count = await hs_code_service.count_by_status(http, request.shop, request.credential, status)
    return {"count": count}


@counts_router.post("/hs-code/pending-count")
async def pending_count(request: ShopifyRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    return await _count(request, http, STATUS_PENDING)


@counts_router.post("/hs-code/approved-count")
async def approved_count(request: ShopifyRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    return await _count(request, http, STATUS_APPROVED)


@counts_router.post("/hs-code/modified-count")
async def modified_count(request: ShopifyRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    return await _count(request, http, STATUS_MODIFIED)
