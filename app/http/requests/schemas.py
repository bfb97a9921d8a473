"""
Pydantic schemas for request validation (Http/Requests).

Bodies are camelCase JSON. Required-ness is checked in the handlers with
require() so that a missing field reads "Missing required parameters (...)"
instead of a field-level validation dump.
"""
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.exceptions import ValidationError

Identifier = Union[str, int]


def require(request: BaseModel, *fields: str) -> None:
    """Raise ValidationError naming every field (by its JSON name) that is missing or blank."""
    missing = []
    for name in fields:
        value = getattr(request, name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            info = type(request).model_fields.get(name)
            missing.append((info.alias if info and info.alias else name))
    if missing:
        raise ValidationError(f"Missing required parameters ({', '.join(missing)})")


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# Shopify-backed requests
class ShopifyRequest(RequestModel):
    shop: Optional[str] = None
    credential: Optional[str] = Field(
        None, alias="credential", validation_alias=AliasChoices("credential", "accessToken")
    )


class ProductListRequest(ShopifyRequest):
    filter: Optional[str] = None


class ProductRequest(ShopifyRequest):
    product_id: Optional[Identifier] = Field(
        None, alias="productId", validation_alias=AliasChoices("productId", "itemId")
    )


class ClassificationIn(RequestModel):
    hs_code: Optional[str] = Field(None, alias="hsCode")
    confidence: Optional[int] = Field(None, ge=0, le=100)
    status: Optional[str] = None


class ProductData(RequestModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    title: Optional[str] = None
    body_html: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    price: Optional[Union[str, float]] = None
    sku: Optional[str] = None
    tags: Optional[Union[str, list[str]]] = None
    media: Optional[list[dict[str, Any]]] = None


class ProductUpdateRequest(ProductRequest):
    product_data: Optional[ProductData] = Field(None, alias="productData")
    metadata: Optional[ClassificationIn] = None


class ProductCreateRequest(ShopifyRequest):
    product_data: Optional[ProductData] = Field(None, alias="productData")


# Images
class ImageRequest(ProductRequest):
    image_id: Optional[Identifier] = Field(None, alias="imageId")


class ImageWriteRequest(ImageRequest):
    src: Optional[str] = None
    attachment: Optional[str] = None
    alt: Optional[str] = None
    position: Optional[int] = None
    variant_ids: Optional[list[Identifier]] = None


# Orders
class OrderRequest(ShopifyRequest):
    order_id: Optional[Identifier] = Field(None, alias="orderId")


class OrderUpdateRequest(OrderRequest):
    order_data: Optional[dict[str, Any]] = Field(None, alias="orderData")


# HS codes
class HsDetectRequest(RequestModel):
    product_name: Optional[str] = Field(None, alias="productName")
    description: Optional[str] = None
    category: Optional[str] = None


class HsSaveRequest(ProductRequest):
    product_name: Optional[str] = Field(None, alias="productName")
    hs_code: Optional[str] = Field(None, alias="hsCode")
    confidence: Optional[Union[int, float, str]] = None
    status: str = "pending"
    alternative_codes: Optional[list[dict[str, Any]]] = Field(None, alias="alternativeCodes")


class ProductSearchRequest(ProductListRequest):
    search_term: Optional[str] = Field(None, alias="searchTerm")


# Landed cost
class LandedCostInput(RequestModel):
    product_value: Optional[float] = Field(None, alias="productValue")
    quantity: Optional[int] = None
    shipping_cost: float = Field(0, alias="shippingCost")
    insurance: float = 0
    origin_country: Optional[str] = Field(None, alias="originCountry")
    destination_country: Optional[str] = Field(None, alias="destinationCountry")
    hs_code: Optional[str] = Field(None, alias="hsCode")
    description: Optional[str] = None
    product_title: Optional[str] = Field(None, alias="productTitle")
    currency: str = "USD"


class CalculationIdRequest(RequestModel):
    id: Optional[str] = None


# ESG
class ShopRequest(RequestModel):
    shop: Optional[str] = None
