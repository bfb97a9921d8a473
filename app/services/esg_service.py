"""
ESG scoring for products, keyed by the vendor's stock symbol.
Scores come from a fixed table; unknown symbols get the default row.
"""
import logging
from typing import Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import PersistenceError, ValidationError
from app.models import ProductEsgScore, RiskLevel
from app.services.persistence import upsert
from app.services.shopify_service import get_product

logger = logging.getLogger(__name__)

VENDOR_SYMBOLS = {
    "nike": "NKE",
    "apple": "AAPL",
    "microsoft": "MSFT",
    "amazon": "AMZN",
    "google": "GOOGL",
    "alphabet": "GOOGL",
    "tesla": "TSLA",
    "meta": "META",
    "netflix": "NFLX",
}

# symbol -> (total, environment, social, governance)
ESG_SCORES = {
    "NKE": (61.2, 73.1, 68.5, 42.0),
    "AAPL": (56.04, 73.21, 45.81, 56.06),
    "MSFT": (64.8, 71.2, 62.1, 61.1),
    "AMZN": (52.3, 68.9, 48.2, 39.8),
    "GOOGL": (58.7, 69.4, 52.3, 54.4),
    "TSLA": (45.2, 62.1, 41.8, 31.7),
}
DEFAULT_ESG_SCORES = (55.0, 65.0, 50.0, 50.0)


def vendor_symbol(vendor: Optional[str]) -> Optional[str]:
    return VENDOR_SYMBOLS.get((vendor or "").strip().lower())


def risk_level(score: float) -> str:
    if score >= 70:
        return RiskLevel.LOW.value
    if score >= 50:
        return RiskLevel.MEDIUM.value
    return RiskLevel.HIGH.value


def esg_scores(symbol: str) -> dict:
    total, environment, social, governance = ESG_SCORES.get(symbol, DEFAULT_ESG_SCORES)
    return {
        "esg_score": total,
        "environment_score": environment,
        "social_score": social,
        "governance_score": governance,
    }


async def process_product(http: httpx.AsyncClient, db: Session, shop: str, access_token: str, product_id: str) -> dict:
    product = await get_product(http, shop, access_token, product_id)
    vendor = product.get("vendor") or ""
    symbol = vendor_symbol(vendor)
    if not symbol:
        raise ValidationError(f"No stock symbol found for vendor: {vendor}")

    scores = esg_scores(symbol)
    level = risk_level(scores["esg_score"])
    result = {
        "success": True,
        "productId": product["id"],
        "productTitle": product.get("title"),
        "vendor": vendor,
        "vendorSymbol": symbol,
        "esgScore": scores["esg_score"],
        "environmentScore": scores["environment_score"],
        "socialScore": scores["social_score"],
        "governanceScore": scores["governance_score"],
        "riskLevel": level,
        "persisted": True,
    }
    try:
        upsert(
            db,
            ProductEsgScore,
            {"product_id": product["id"], "shop_domain": shop},
            {
                "product_title": product.get("title"),
                "vendor": vendor,
                "vendor_symbol": symbol,
                "risk_level": level,
                **scores,
            },
        )
    except PersistenceError as e:
        logger.warning("ESG score for product %s computed but not recorded: %s", product["id"], e.message)
        result["persisted"] = False
        result["warning"] = e.message
    logger.info("ESG processed for product %s (%s): %s, risk %s", product["id"], symbol, scores["esg_score"], level)
    return result


def _scores_for_shop(db: Session, shop: str) -> list[ProductEsgScore]:
    try:
        return (
            db.query(ProductEsgScore)
            .filter(ProductEsgScore.shop_domain == shop)
            .order_by(ProductEsgScore.last_updated.desc())
            .all()
        )
    except SQLAlchemyError as e:
        raise PersistenceError("Failed to fetch ESG data", details=str(e)) from e


def list_scores(db: Session, shop: str) -> list[dict]:
    return [row.to_dict() for row in _scores_for_shop(db, shop)]


def _avg(values: list[float]) -> float:
    return round(sum(values) / len(values), 1) if values else 0


def summary(db: Session, shop: str) -> dict:
    rows = _scores_for_shop(db, shop)
    distribution = {level.value: 0 for level in RiskLevel}
    for row in rows:
        distribution[row.risk_level] = distribution.get(row.risk_level, 0) + 1
    return {
        "totalProducts": len(rows),
        "averageESGScore": _avg([r.esg_score or 0 for r in rows]),
        "riskDistribution": distribution,
        "averageScores": {
            "environmental": _avg([r.environment_score or 0 for r in rows]),
            "social": _avg([r.social_score or 0 for r in rows]),
            "governance": _avg([r.governance_score or 0 for r in rows]),
        },
    }
