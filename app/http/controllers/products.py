"""
Shopify product routes: full listing/count through the collection synchronizer,
single-product get/update/create/delete.
"""
import logging

import httpx
from fastapi import APIRouter, Depends, status

from app.exceptions import ValidationError
from app.http.requests.schemas import (
    ProductCreateRequest,
    ProductListRequest,
    ProductRequest,
    ProductUpdateRequest,
    require,
)
from app.services import shopify_service
from app.services.catalog_client import get_catalog_client
from app.services.catalog_sync import CollectionSynchronizer
from app.services.http_client import get_http_client
from app.services.tag_codec import STATUSES, ClassificationMetadata

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/products/all")
async def list_products(request: ProductListRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    """Every product in the shop, optionally filtered by classification status"""
    require(request, "shop", "credential")
    client = get_catalog_client(http, request.shop, request.credential, resource="products")
    result = await CollectionSynchronizer(client).collect(request.filter)
    return {"items": [item.to_dict() for item in result.items], "count": result.count}


@router.post("/products/count")
async def count_products(request: ProductListRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential")
    client = get_catalog_client(http, request.shop, request.credential, resource="products")
    count = await CollectionSynchronizer(client).count(request.filter)
    return {"count": count}


@router.post("/products/get")
async def get_product(request: ProductRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential", "product_id")
    product = await shopify_service.get_product(http, request.shop, request.credential, str(request.product_id))
    return {"product": product}


@router.post("/products/update")
async def update_product(request: ProductUpdateRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    """Update basic fields and/or classification metadata"""
    require(request, "shop", "credential", "product_id")
    if request.product_data is None and request.metadata is None:
        raise ValidationError("Missing required parameters (productData or metadata)")

    metadata = None
    if request.metadata is not None:
        meta_status = (request.metadata.status or "").strip().lower() or None
        if meta_status is not None and meta_status not in STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
        try:
            metadata = ClassificationMetadata(
                code=request.metadata.hs_code,
                confidence=request.metadata.confidence,
                status=meta_status,
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e

    product_data = request.product_data.model_dump(exclude_none=True) if request.product_data else None
    updated = await shopify_service.update_product(
        http,
        request.shop,
        request.credential,
        str(request.product_id),
        product_data=product_data,
        metadata=metadata,
    )
    return {"success": True, "product": updated}


@router.post("/products/create", status_code=status.HTTP_201_CREATED)
async def create_product(request: ProductCreateRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential", "product_data")
    created = await shopify_service.create_product(
        http, request.shop, request.credential, request.product_data.model_dump(exclude_none=True)
    )
    return {"success": True, "product": created}


@router.post("/products/delete")
async def delete_product(request: ProductRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential", "product_id")
    deleted = await shopify_service.delete_product(http, request.shop, request.credential, str(request.product_id))
    return {"success": True, "deletedProductId": shopify_service.normalize_id(deleted)}
