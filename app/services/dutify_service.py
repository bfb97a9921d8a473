"""
Dutify API client: HS code lookups and the landed cost calculator.
Auth is an X-API-KEY header from DUTIFY_API_KEY. Provider error payloads
(JSON:API style {"data": [{"type": "error", ...}]} or {"errors": [...]})
become RemoteFetchError with the provider's own message.
"""
import logging
import math
from typing import Optional

import httpx

from app.config import settings
from app.exceptions import RemoteFetchError, ValidationError
from app.services.http_client import send

logger = logging.getLogger(__name__)

CONFIDENCE_PROVIDER = "provider"
CONFIDENCE_DEFAULT = "default"


def _api_key() -> str:
    key = (settings.DUTIFY_API_KEY or "").strip()
    if not key:
        raise ValidationError("Dutify API key not configured")
    return key


def provider_error_message(payload) -> Optional[str]:
    """Pull a readable message out of a Dutify error payload, or None if it isn't one."""
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if isinstance(data, list):
        messages = []
        for item in data:
            if isinstance(item, dict) and item.get("type") == "error":
                attrs = item.get("attributes") or {}
                message = attrs.get("message") or "Unknown error"
                if attrs.get("attribute"):
                    message = f"{message} ({attrs['attribute']})"
                messages.append(message)
        if messages:
            return ", ".join(messages)
    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0] if isinstance(errors[0], dict) else {}
        return first.get("detail") or first.get("title") or "Dutify request failed"
    return None


async def _post(http: httpx.AsyncClient, path: str, body: dict, failure_message: str) -> dict:
    url = f"{settings.DUTIFY_BASE_URL}/{path.lstrip('/')}"
    headers = {"Content-Type": "application/json", "X-API-KEY": _api_key()}
    try:
        response = await send(http, "POST", url, service="Dutify", json=body, headers=headers)
    except RemoteFetchError as e:
        message = provider_error_message(e.body) or failure_message
        raise RemoteFetchError(message, status=e.status, body=e.body) from e

    payload = response.json()
    # Dutify sometimes reports errors with a 2xx status
    message = provider_error_message(payload)
    if message:
        logger.warning("Dutify %s returned error payload: %s", path, message)
        raise RemoteFetchError(message, status=response.status_code, body=payload)
    return payload


def _percent(confidence) -> int:
    """0..1 provider score -> 0..100 int, half rounded up."""
    try:
        value = float(confidence)
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, math.floor(value * 100 + 0.5)))


def parse_suggestions(payload: dict, fallback_confidence: Optional[int] = None) -> tuple[list[dict], str]:
    """
    Suggestions from data.attributes.suggestions; when absent, fall back to the
    included hs_lookup_item records, which carry no score. Those get the configured
    fallback confidence and the "default" confidence source.
    """
    data = payload.get("data")
    attributes = data.get("attributes") if isinstance(data, dict) else None
    suggestions = [
        {
            "code": s.get("hs_code"),
            "confidence": _percent(s.get("confidence")),
            "description": s.get("description") or "",
        }
        for s in (attributes or {}).get("suggestions") or []
        if isinstance(s, dict) and s.get("hs_code")
    ]
    if suggestions:
        return suggestions, CONFIDENCE_PROVIDER

    included = [i for i in payload.get("included") or [] if isinstance(i, dict) and i.get("type") == "hs_lookup_item"]
    if not included:
        return [], CONFIDENCE_PROVIDER

    if fallback_confidence is None:
        fallback_confidence = settings.DUTIFY_FALLBACK_CONFIDENCE
    logger.warning(
        "Dutify returned %s lookup item(s) without scores; using fallback confidence %s",
        len(included), fallback_confidence,
    )
    fallback = [
        {
            "code": (item.get("attributes") or {}).get("hs_code"),
            "confidence": fallback_confidence,
            "description": (item.get("attributes") or {}).get("description") or "",
        }
        for item in included
    ]
    return [s for s in fallback if s["code"]], CONFIDENCE_DEFAULT


async def lookup_hs_code(
    http: httpx.AsyncClient,
    description: str,
    product_name: Optional[str] = None,
    category: Optional[str] = None,
    country_code: str = "US",
) -> tuple[list[dict], str]:
    """POST /hs_lookups. Returns (suggestions, confidence source)."""
    if product_name:
        body = {
            "data": {
                "attributes": {
                    "product_name": product_name,
                    "product_description": description,
                    "product_category": category or "",
                    "country_code": country_code,
                }
            }
        }
    else:
        body = {"data": {"description": description, "country_code": country_code}}
    payload = await _post(http, "hs_lookups", body, "Failed to detect HS code")
    suggestions, source = parse_suggestions(payload)
    logger.info("Dutify HS lookup: %s suggestion(s) (confidence source=%s)", len(suggestions), source)
    return suggestions, source


async def calculate_landed_cost(
    http: httpx.AsyncClient,
    origin_country: str,
    destination_country: str,
    unit_price: float,
    quantity: int,
    shipping_cost: float = 0,
    insurance: float = 0,
    currency: str = "USD",
    product_title: str = "Product",
    hs_code: str = "",
) -> dict:
    """POST /landed_cost_calculator for a single line item. Returns the raw provider payload."""
    body = {
        "data": {
            "export_country_code": origin_country,
            "import_country_code": destination_country,
            "input_currency_code": currency,
            "shipping_cost": shipping_cost,
            "insurance_cost": insurance,
            "line_items": [
                {
                    "origin_country_code": origin_country,
                    "unit_price": unit_price,
                    "quantity": quantity,
                    "product_title": product_title,
                    "product_classification_hs": hs_code,
                }
            ],
        }
    }
    return await _post(http, "landed_cost_calculator", body, "Failed to calculate landed cost")
