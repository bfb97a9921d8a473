"""
Product image routes (Shopify REST)
"""
import httpx
from fastapi import APIRouter, Depends

from app.http.requests.schemas import ImageRequest, ImageWriteRequest, ProductRequest, require
from app.services import shopify_images
from app.services.http_client import get_http_client

router = APIRouter()


def _payload(request: ImageWriteRequest, include_id: bool = False) -> dict:
    return shopify_images.build_image_payload(
        src=request.src,
        attachment=request.attachment,
        alt=request.alt,
        position=request.position,
        variant_ids=request.variant_ids,
        image_id=str(request.image_id) if include_id and request.image_id is not None else None,
    )


@router.post("/images/list")
async def list_images(request: ProductRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential", "product_id")
    images = await shopify_images.list_images(http, request.shop, request.credential, str(request.product_id))
    return {"images": images, "count": len(images)}


@router.post("/image/get")
async def get_image(request: ImageRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential", "product_id", "image_id")
    image = await shopify_images.get_image(
        http, request.shop, request.credential, str(request.product_id), str(request.image_id)
    )
    return {"image": image}


@router.post("/image/create")
async def create_image(request: ImageWriteRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential", "product_id")
    image = await shopify_images.create_image(
        http, request.shop, request.credential, str(request.product_id), _payload(request)
    )
    return {"image": image}


@router.post("/image/update")
async def update_image(request: ImageWriteRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential", "product_id", "image_id")
    image = await shopify_images.update_image(
        http,
        request.shop,
        request.credential,
        str(request.product_id),
        str(request.image_id),
        _payload(request, include_id=True),
    )
    return {"image": image}


@router.post("/image/delete")
async def delete_image(request: ImageRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential", "product_id", "image_id")
    await shopify_images.delete_image(
        http, request.shop, request.credential, str(request.product_id), str(request.image_id)
    )
    return {"success": True}
