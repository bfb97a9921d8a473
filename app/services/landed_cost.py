"""
Landed cost: provider-backed calculation (Dutify), offline estimate from fixed
per-country rate tables, and calculation history/stats.

Margin is the landed cost over the goods subtotal, in percent, compared in USD.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError, PersistenceError, ValidationError
from app.models import LandedCostCalculation
from app.services import dutify_service
from app.services.persistence import insert

logger = logging.getLogger(__name__)

SUPPORTED_COUNTRIES = (
    "US", "GB", "CA", "AU", "DE", "FR", "IT", "ES", "NL", "BE", "AT",
    "IE", "PT", "GR", "FI", "SE", "DK", "NO", "JP", "KR", "SG", "NZ",
)

EXCHANGE_RATES_TO_USD = {
    "USD": 1.0,
    "EUR": 1.09,
    "GBP": 1.27,
    "JPY": 0.0068,
    "CAD": 0.74,
    "AUD": 0.66,
    "CNY": 0.14,
    "INR": 0.012,
}

# Estimate tables (percent) keyed by destination country
ESTIMATE_DUTY_RATES = {"US": 3.5, "GB": 4.7, "DE": 5.1, "FR": 5.3, "CA": 4.2, "AU": 5.0, "JP": 6.1}
ESTIMATE_VAT_RATES = {"US": 0.0, "GB": 20.0, "DE": 19.0, "FR": 20.0, "CA": 5.0, "AU": 10.0, "JP": 10.0}
DEFAULT_DUTY_RATE = 5.0
DEFAULT_VAT_RATE = 15.0

HISTORY_LIMIT = 10

SOURCE_DUTIFY = "dutify"
SOURCE_ESTIMATE = "estimate"


@dataclass
class LandedCostRequest:
    product_value: float
    quantity: int
    origin_country: str
    destination_country: str
    shipping_cost: float = 0.0
    insurance: float = 0.0
    hs_code: str = ""
    description: str = ""
    product_title: str = ""
    currency: str = "USD"

    @property
    def subtotal(self) -> float:
        return self.product_value * self.quantity

    @property
    def unit_price(self) -> float:
        # productValue is per unit everywhere: subtotal, margin and the provider line item
        return self.product_value

    def validate(self, require_supported: bool = True) -> None:
        if not self.product_value or not self.quantity or not self.origin_country or not self.destination_country:
            raise ValidationError(
                "Missing required parameters. Please provide productValue, quantity, originCountry, and destinationCountry."
            )
        if self.product_value < 0 or self.quantity < 0 or self.shipping_cost < 0 or self.insurance < 0:
            raise ValidationError("Amounts and quantity must not be negative")
        if not require_supported:
            return
        supported = ", ".join(SUPPORTED_COUNTRIES)
        if self.origin_country not in SUPPORTED_COUNTRIES:
            raise ValidationError(f'Origin country "{self.origin_country}" is not supported. Supported countries: {supported}')
        if self.destination_country not in SUPPORTED_COUNTRIES:
            raise ValidationError(
                f'Destination country "{self.destination_country}" is not supported. Supported countries: {supported}'
            )

    def base_values(self) -> dict:
        return {
            "product_value": self.product_value,
            "quantity": self.quantity,
            "shipping_cost": self.shipping_cost,
            "insurance": self.insurance,
            "origin_country": self.origin_country,
            "destination_country": self.destination_country,
            "hs_code": self.hs_code or "",
            "description": self.description or "",
            "product_title": self.product_title or "",
            "input_currency": self.currency,
        }


def margin_percent(subtotal: float, landed_total: float, input_currency: str = "USD", result_currency: str = "USD") -> float:
    """(landed - subtotal) / subtotal * 100, both sides converted to USD. 0 when the subtotal is 0."""
    if result_currency == input_currency == "USD":
        return ((landed_total - subtotal) / subtotal) * 100 if subtotal > 0 else 0.0
    landed_usd = landed_total * EXCHANGE_RATES_TO_USD.get(result_currency, 1.0)
    subtotal_usd = subtotal * EXCHANGE_RATES_TO_USD.get(input_currency, 1.0)
    return ((landed_usd - subtotal_usd) / subtotal_usd) * 100 if subtotal_usd > 0 else 0.0


def _float(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _save(db: Session, values: dict, result: dict) -> dict:
    try:
        row = insert(db, LandedCostCalculation, values)
        result["data"] = row.to_dict()
    except PersistenceError as e:
        logger.warning("Landed cost calculation computed but not recorded: %s", e.message)
        result["data"] = values
        result["persisted"] = False
        result["warning"] = e.message
    return result


def values_from_dutify(req: LandedCostRequest, payload: dict) -> dict:
    """Map the calculator response onto a history row."""
    attributes = (payload.get("data") or {}).get("attributes") or {}
    line_item = next(
        (i for i in payload.get("included") or [] if isinstance(i, dict) and i.get("type") == "landed_cost_result_item"),
        {},
    )
    line_attrs = line_item.get("attributes") or {}
    result_currency = attributes.get("currency_code") or req.currency

    subtotal = req.subtotal
    total = _float(attributes.get("landed_cost_total"))
    duties = _float(attributes.get("duty_total"))
    taxes = _float(attributes.get("sales_tax_total"))

    values = req.base_values()
    values.update({
        "hs_code": line_attrs.get("hs_code") or req.hs_code or "",
        "currency": result_currency,
        "source": SOURCE_DUTIFY,
        "total_landed_cost": total,
        "total_duties": duties,
        "total_taxes": taxes,
        "total_fees": _float(attributes.get("additional_tax_and_charges_total")),
        "item_duty_rate": (duties / subtotal) * 100 if duties > 0 and subtotal > 0 else 0.0,
        "item_duty_amount": duties,
        "item_vat_rate": (taxes / subtotal) * 100 if taxes > 0 and subtotal > 0 else 0.0,
        "item_vat_amount": taxes,
        "margin": margin_percent(subtotal, total, req.currency, result_currency),
        "full_response": payload,
    })
    return values


async def calculate(http: httpx.AsyncClient, db: Session, req: LandedCostRequest) -> dict:
    req.validate()
    payload = await dutify_service.calculate_landed_cost(
        http,
        origin_country=req.origin_country,
        destination_country=req.destination_country,
        unit_price=req.unit_price,
        quantity=req.quantity,
        shipping_cost=req.shipping_cost,
        insurance=req.insurance,
        currency=req.currency,
        product_title=req.product_title or req.description or "Product",
        hs_code=req.hs_code or "",
    )
    values = values_from_dutify(req, payload)
    logger.info(
        "Landed cost %s -> %s: %.2f %s (margin %.1f%%)",
        req.origin_country, req.destination_country, values["total_landed_cost"], values["currency"], values["margin"],
    )
    return _save(db, values, {"success": True, "dutifyResponse": payload, "persisted": True})


def estimate_values(req: LandedCostRequest) -> dict:
    """Offline estimate: duty on the subtotal, VAT on subtotal + duty + shipping."""
    subtotal = req.subtotal
    duty_rate = ESTIMATE_DUTY_RATES.get(req.destination_country, DEFAULT_DUTY_RATE)
    vat_rate = ESTIMATE_VAT_RATES.get(req.destination_country, DEFAULT_VAT_RATE)
    duty_amount = subtotal * (duty_rate / 100)
    vat_amount = (subtotal + duty_amount + req.shipping_cost) * (vat_rate / 100)
    total = subtotal + duty_amount + vat_amount + req.shipping_cost + req.insurance

    breakdown = {
        "origin_country": req.origin_country,
        "destination_country": req.destination_country,
        "currency": req.currency,
        "total_landed_cost": total,
        "total_duties": duty_amount,
        "total_taxes": vat_amount,
        "total_fees": 0.0,
        "items": [{
            "hs_code": req.hs_code or "",
            "description": req.description or "Product",
            "quantity": req.quantity,
            "unit_price": req.unit_price,
            "duty_rate": duty_rate,
            "duty_amount": duty_amount,
            "vat_rate": vat_rate,
            "vat_amount": vat_amount,
            "shipping_cost": req.shipping_cost,
            "insurance": req.insurance,
        }],
    }
    values = req.base_values()
    values.update({
        "currency": req.currency,
        "source": SOURCE_ESTIMATE,
        "total_landed_cost": total,
        "total_duties": duty_amount,
        "total_taxes": vat_amount,
        "total_fees": 0.0,
        "item_duty_rate": duty_rate,
        "item_duty_amount": duty_amount,
        "item_vat_rate": vat_rate,
        "item_vat_amount": vat_amount,
        "margin": margin_percent(subtotal, total),
        "full_response": breakdown,
    })
    return values


def estimate(db: Session, req: LandedCostRequest) -> dict:
    req.validate(require_supported=False)
    values = estimate_values(req)
    return _save(db, values, {"success": True, "dutifyResponse": values["full_response"], "persisted": True})


def history(db: Session, limit: int = HISTORY_LIMIT) -> list[dict]:
    try:
        rows = (
            db.query(LandedCostCalculation)
            .order_by(LandedCostCalculation.created_at.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        raise PersistenceError("Failed to fetch history", details=str(e)) from e
    return [row.to_dict() for row in rows]


def stats(db: Session, now: Optional[datetime] = None) -> dict:
    """Calculations since midnight UTC, average duty rate and margin over all rows (1 decimal, as strings)."""
    now = now or datetime.now(timezone.utc)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    try:
        today = (
            db.query(func.count(LandedCostCalculation.id))
            .filter(LandedCostCalculation.created_at >= start_of_day)
            .scalar()
        )
        avg_duty, avg_margin = db.query(
            func.avg(LandedCostCalculation.item_duty_rate),
            func.avg(LandedCostCalculation.margin),
        ).one()
    except SQLAlchemyError as e:
        raise PersistenceError("Failed to fetch stats", details=str(e)) from e
    return {
        "calculationsToday": today or 0,
        "avgDutyRate": f"{float(avg_duty or 0):.1f}",
        "avgMargin": f"{float(avg_margin or 0):.1f}",
    }


def get_calculation(db: Session, calculation_id: str) -> dict:
    try:
        row = db.query(LandedCostCalculation).filter(LandedCostCalculation.id == calculation_id).first()
    except SQLAlchemyError as e:
        raise PersistenceError("Failed to fetch calculation", details=str(e)) from e
    if row is None:
        raise NotFoundError("Calculation not found")
    return row.to_dict()
