"""
HS code classification: detect via Dutify, save to Shopify tags + database, history, status counts.
"""
import logging
from typing import Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import PersistenceError, ValidationError
from app.models import HsLookup, ProductHsCode
from app.services import dutify_service
from app.services.catalog_client import get_catalog_client
from app.services.catalog_sync import CollectionSynchronizer
from app.services.persistence import insert, upsert
from app.services.shopify_service import get_product, normalize_id, set_product_classification, strip_html
from app.services.tag_codec import STATUS_PENDING, STATUSES, ClassificationMetadata

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10
MIN_DESCRIPTION_CHARS = 10


def lookup_description(title: str, description_html: Optional[str], category: Optional[str]) -> str:
    """Plain-text description for the lookup; too-short ones are replaced with a title/category sentence."""
    description = strip_html(description_html)
    if len(description) < MIN_DESCRIPTION_CHARS:
        description = f"{title} - {category or 'product'} for classification"
    return description


def _persistence_warning(result: dict, error: PersistenceError) -> dict:
    result["persisted"] = False
    result["warning"] = error.message
    return result


async def detect(
    http: httpx.AsyncClient,
    db: Session,
    product_name: str,
    description: str,
    category: Optional[str] = None,
) -> dict:
    """Free-text lookup; the suggestions are recorded in hs_lookups."""
    suggestions, source = await dutify_service.lookup_hs_code(
        http, description, product_name=product_name, category=category
    )
    result = {
        "success": True,
        "data": {"id": None, "suggestions": suggestions},
        "confidenceSource": source,
        "persisted": True,
    }
    try:
        row = insert(db, HsLookup, {
            "product_name": product_name,
            "product_description": description,
            "product_category": category or "",
            "suggestions": suggestions,
        })
        result["data"]["id"] = row.id
    except PersistenceError as e:
        _persistence_warning(result, e)
    return result


async def detect_product(http: httpx.AsyncClient, shop: str, access_token: str, product_id: str) -> dict:
    """Classify an existing Shopify product. Nothing is saved; the caller confirms via save()."""
    product = await get_product(http, shop, access_token, product_id)
    title = product.get("title") or ""
    category = product.get("productType") or ""
    description = lookup_description(title, product.get("descriptionHtml"), category)

    suggestions, source = await dutify_service.lookup_hs_code(http, description)
    if not suggestions:
        raise ValidationError("No HS code suggestions found")

    primary = suggestions[0]
    logger.info("HS code detected for product %s: %s (%s%%)", product["id"], primary["code"], primary["confidence"])
    return {
        "success": True,
        "productId": product["id"],
        "productName": title,
        "suggestedCode": primary["code"],
        "confidence": primary["confidence"],
        "confidenceSource": source,
        "alternatives": suggestions[1:],
        "status": STATUS_PENDING,
    }


def _parse_confidence(confidence) -> int:
    if confidence is None or confidence == "":
        return 0
    try:
        value = int(float(confidence))
    except (TypeError, ValueError) as e:
        raise ValidationError("confidence must be a number between 0 and 100") from e
    if not 0 <= value <= 100:
        raise ValidationError("confidence must be a number between 0 and 100")
    return value


async def save(
    http: httpx.AsyncClient,
    db: Session,
    shop: str,
    access_token: str,
    product_id: str,
    product_name: str,
    hs_code: str,
    confidence=None,
    status: str = STATUS_PENDING,
    alternative_codes: Optional[list] = None,
) -> dict:
    """
    Write the classification to the product's tags first, then record it.
    Shopify is the source of truth: a database failure after a successful
    tag update is reported as a warning, not an error.
    """
    status = (status or STATUS_PENDING).strip().lower()
    if status not in STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(STATUSES)}")
    confidence_value = _parse_confidence(confidence)

    try:
        metadata = ClassificationMetadata(code=hs_code, confidence=confidence_value, status=status)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    product = await get_product(http, shop, access_token, product_id)
    updated = await set_product_classification(http, shop, access_token, product_id, metadata)

    description = strip_html(product.get("descriptionHtml"))
    category = product.get("productType") or ""
    item_id = normalize_id(product_id)
    result = {"success": True, "product": updated, "persisted": True}
    try:
        row = upsert(
            db,
            ProductHsCode,
            {"product_id": item_id, "shop_domain": shop},
            {
                "product_name": product_name,
                "product_description": description,
                "product_category": category,
                "hs_code": metadata.code,
                "confidence": confidence_value,
                "status": status,
                "alternative_codes": alternative_codes or [],
            },
        )
        result["data"] = row.to_dict()
        insert(db, HsLookup, {
            "product_name": product_name,
            "product_description": description,
            "product_category": category,
            "suggestions": [{"code": metadata.code, "confidence": confidence_value, "description": ""}],
        })
    except PersistenceError as e:
        logger.warning("HS code for product %s saved to Shopify but not recorded: %s", item_id, e.message)
        result.setdefault("data", {
            "productId": item_id,
            "shopDomain": shop,
            "productName": product_name,
            "hsCode": metadata.code,
            "confidence": confidence_value,
            "status": status,
        })
        _persistence_warning(result, e)
    return result


def history(db: Session, limit: int = HISTORY_LIMIT) -> list[dict]:
    try:
        rows = db.query(HsLookup).order_by(HsLookup.created_at.desc()).limit(limit).all()
    except SQLAlchemyError as e:
        raise PersistenceError("Failed to fetch history", details=str(e)) from e
    return [row.to_dict() for row in rows]


async def count_by_status(http: httpx.AsyncClient, shop: str, access_token: str, status: str) -> int:
    client = get_catalog_client(http, shop, access_token, resource="products")
    return await CollectionSynchronizer(client).count(status)
