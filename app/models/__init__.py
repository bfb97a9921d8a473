"""
SQLAlchemy models for classification results, lookup/calculation history and ESG scores.
All model and enum definitions live here for simplicity and to avoid circular imports.
"""
from sqlalchemy import Column, String, Integer, Float, DateTime, Text, JSON, UniqueConstraint
from sqlalchemy.sql import func
from app.database import Base
from datetime import datetime, timezone
import enum
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Enums
class ClassificationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    MODIFIED = "modified"

class RiskLevel(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Models
class ProductHsCode(Base):
    """Latest HS classification per (product, shop). Written only after a successful save."""
    __tablename__ = "product_hs_codes"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id = Column("product_id", String, nullable=False, index=True)
    shop_domain = Column("shop_domain", String, nullable=False, index=True)
    product_name = Column("product_name", String, nullable=False)
    product_description = Column("product_description", Text, nullable=True)
    product_category = Column("product_category", String, nullable=True)
    hs_code = Column("hs_code", String, nullable=False)
    confidence = Column("confidence", Integer, default=0, nullable=False)
    status = Column("status", String, default=ClassificationStatus.PENDING.value, nullable=False)
    alternative_codes = Column("alternative_codes", JSON, nullable=True)
    updated_at = Column("updated_at", DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now())

    __table_args__ = (UniqueConstraint("product_id", "shop_domain", name="product_hs_codes_product_shop_unique"),)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "shopDomain": self.shop_domain,
            "productName": self.product_name,
            "productDescription": self.product_description or "",
            "productCategory": self.product_category or "",
            "hsCode": self.hs_code,
            "confidence": self.confidence,
            "status": self.status,
            "alternativeCodes": self.alternative_codes or [],
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class HsLookup(Base):
    """Append-only history of HS code lookups."""
    __tablename__ = "hs_lookups"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    product_name = Column("product_name", String, nullable=False)
    product_description = Column("product_description", Text, nullable=True)
    product_category = Column("product_category", String, nullable=True)
    suggestions = Column("suggestions", JSON, nullable=False, default=list)
    created_at = Column("created_at", DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_name": self.product_name,
            "product_category": self.product_category or "",
            "suggestions": self.suggestions or [],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class LandedCostCalculation(Base):
    """Append-only history of landed cost calculations (provider-backed or estimated)."""
    __tablename__ = "landed_cost_calculations"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    product_value = Column("product_value", Float, default=0, nullable=False)
    quantity = Column("quantity", Integer, default=0, nullable=False)
    shipping_cost = Column("shipping_cost", Float, default=0, nullable=False)
    insurance = Column("insurance", Float, default=0, nullable=False)
    origin_country = Column("origin_country", String(2), nullable=True)
    destination_country = Column("destination_country", String(2), nullable=False)
    hs_code = Column("hs_code", String, nullable=True)
    description = Column("description", Text, nullable=True)
    product_title = Column("product_title", String, nullable=True)
    currency = Column("currency", String(3), default="USD", nullable=False)
    input_currency = Column("input_currency", String(3), default="USD", nullable=False)
    source = Column("source", String, default="dutify", nullable=False)  # dutify | estimate

    total_landed_cost = Column("total_landed_cost", Float, default=0, nullable=False)
    total_duties = Column("total_duties", Float, default=0, nullable=False)
    total_taxes = Column("total_taxes", Float, default=0, nullable=False)
    total_fees = Column("total_fees", Float, default=0, nullable=False)

    item_duty_rate = Column("item_duty_rate", Float, default=0, nullable=False)
    item_duty_amount = Column("item_duty_amount", Float, default=0, nullable=False)
    item_vat_rate = Column("item_vat_rate", Float, default=0, nullable=False)
    item_vat_amount = Column("item_vat_amount", Float, default=0, nullable=False)
    margin = Column("margin", Float, default=0, nullable=False)

    full_response = Column("full_response", JSON, nullable=True)
    created_at = Column("created_at", DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_value": self.product_value,
            "quantity": self.quantity,
            "shipping_cost": self.shipping_cost,
            "insurance": self.insurance,
            "origin_country": self.origin_country,
            "destination_country": self.destination_country,
            "hs_code": self.hs_code or "",
            "description": self.description or "",
            "product_title": self.product_title or "",
            "currency": self.currency,
            "input_currency": self.input_currency,
            "source": self.source,
            "total_landed_cost": self.total_landed_cost,
            "total_duties": self.total_duties,
            "total_taxes": self.total_taxes,
            "total_fees": self.total_fees,
            "item_duty_rate": self.item_duty_rate,
            "item_duty_amount": self.item_duty_amount,
            "item_vat_rate": self.item_vat_rate,
            "item_vat_amount": self.item_vat_amount,
            "margin": self.margin,
            "full_response": self.full_response,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class ProductEsgScore(Base):
    """Latest ESG score per (product, shop)."""
    __tablename__ = "product_esg_scores"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id = Column("product_id", String, nullable=False, index=True)
    shop_domain = Column("shop_domain", String, nullable=False, index=True)
    product_title = Column("product_title", String, nullable=True)
    vendor = Column("vendor", String, nullable=True)
    vendor_symbol = Column("vendor_symbol", String, nullable=True)
    esg_score = Column("esg_score", Float, default=0, nullable=False)
    environment_score = Column("environment_score", Float, default=0, nullable=False)
    social_score = Column("social_score", Float, default=0, nullable=False)
    governance_score = Column("governance_score", Float, default=0, nullable=False)
    risk_level = Column("risk_level", String, default=RiskLevel.MEDIUM.value, nullable=False)
    last_updated = Column("last_updated", DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now(), index=True)

    __table_args__ = (UniqueConstraint("product_id", "shop_domain", name="product_esg_scores_product_shop_unique"),)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "shop_domain": self.shop_domain,
            "product_title": self.product_title,
            "vendor": self.vendor,
            "vendor_symbol": self.vendor_symbol,
            "esg_score": self.esg_score,
            "environment_score": self.environment_score,
            "social_score": self.social_score,
            "governance_score": self.governance_score,
            "risk_level": self.risk_level,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }
