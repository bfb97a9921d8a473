"""
Shopify product images (REST Admin API).
"""
import logging
from typing import Optional

import httpx

from app.exceptions import AppError, NotFoundError, RemoteFetchError, ValidationError
from app.services.http_client import send
from app.services.shopify_service import (
    _base_url,
    _headers,
    attachment_size_bytes,
    is_valid_base64,
    normalize_id,
    strip_data_uri,
)

logger = logging.getLogger(__name__)

MAX_ATTACHMENT_BYTES = 20 * 1024 * 1024  # 20 MB


class AttachmentTooLargeError(AppError):
    status_code = 413


def _images_url(shop_domain: str, product_id: str, image_id: Optional[str] = None) -> str:
    base = f"{_base_url(shop_domain)}/products/{normalize_id(product_id)}/images"
    if image_id is not None:
        return f"{base}/{normalize_id(image_id)}.json"
    return f"{base}.json"


def build_image_payload(
    src: Optional[str] = None,
    attachment: Optional[str] = None,
    alt: Optional[str] = None,
    position: Optional[int] = None,
    variant_ids: Optional[list] = None,
    image_id: Optional[str] = None,
) -> dict:
    """Image body with unset keys dropped; base64 data-URI prefix removed and size checked."""
    if attachment:
        if attachment_size_bytes(attachment) > MAX_ATTACHMENT_BYTES:
            raise AttachmentTooLargeError("Attachment exceeds 20 MB limit")
        if not is_valid_base64(attachment):
            raise ValidationError("Attachment is not valid base64")
        attachment = strip_data_uri(attachment)
    image = {
        "id": int(normalize_id(image_id)) if image_id is not None and normalize_id(image_id).isdigit() else None,
        "src": src,
        "attachment": attachment,
        "alt": alt,
        "position": position,
        "variant_ids": variant_ids,
    }
    return {k: v for k, v in image.items() if v is not None}


async def list_images(http: httpx.AsyncClient, shop_domain: str, access_token: str, product_id: str) -> list[dict]:
    response = await send(http, "GET", _images_url(shop_domain, product_id), headers=_headers(access_token))
    return response.json().get("images") or []


async def get_image(http: httpx.AsyncClient, shop_domain: str, access_token: str, product_id: str, image_id: str) -> dict:
    try:
        response = await send(http, "GET", _images_url(shop_domain, product_id, image_id), headers=_headers(access_token))
    except RemoteFetchError as e:
        if e.status == 404:
            raise NotFoundError("Image not found") from e
        raise
    image = response.json().get("image")
    if not image:
        raise NotFoundError("Image not found")
    return image


async def create_image(
    http: httpx.AsyncClient, shop_domain: str, access_token: str, product_id: str, image: dict
) -> dict:
    if not image.get("src") and not image.get("attachment"):
        raise ValidationError("Provide either src or attachment")
    response = await send(
        http, "POST", _images_url(shop_domain, product_id), json={"image": image}, headers=_headers(access_token)
    )
    created = response.json().get("image") or {}
    logger.info("Shopify image %s created for product %s", created.get("id"), normalize_id(product_id))
    return created


async def update_image(
    http: httpx.AsyncClient, shop_domain: str, access_token: str, product_id: str, image_id: str, image: dict
) -> dict:
    try:
        response = await send(
            http,
            "PUT",
            _images_url(shop_domain, product_id, image_id),
            json={"image": image},
            headers=_headers(access_token),
        )
    except RemoteFetchError as e:
        if e.status == 404:
            raise NotFoundError("Image not found") from e
        raise
    return response.json().get("image") or {}


async def delete_image(
    http: httpx.AsyncClient, shop_domain: str, access_token: str, product_id: str, image_id: str
) -> None:
    try:
        await send(http, "DELETE", _images_url(shop_domain, product_id, image_id), headers=_headers(access_token))
    except RemoteFetchError as e:
        if e.status == 404:
            raise NotFoundError("Image not found") from e
        raise
    logger.info("Shopify image %s deleted from product %s", normalize_id(image_id), normalize_id(product_id))
