"""
Shopify order routes
"""
import httpx
from fastapi import APIRouter, Depends

from app.http.requests.schemas import OrderRequest, ProductListRequest, OrderUpdateRequest, require
from app.services import shopify_orders
from app.services.catalog_client import get_catalog_client
from app.services.catalog_sync import CollectionSynchronizer
from app.services.http_client import get_http_client

router = APIRouter()


@router.post("/orders/all")
async def list_orders(request: ProductListRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    """All orders (any status); same paging rules as products"""
    require(request, "shop", "credential")
    client = get_catalog_client(http, request.shop, request.credential, resource="orders")
    result = await CollectionSynchronizer(client).collect(request.filter)
    orders = []
    for item in result.items:
        order = item.to_dict()
        order["customerName"] = shopify_orders.order_customer_name(order)
        orders.append(order)
    return {"items": orders, "count": result.count}


@router.post("/orders/get")
async def get_order(request: OrderRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential", "order_id")
    order = await shopify_orders.get_order(http, request.shop, request.credential, str(request.order_id))
    return {"order": order}


@router.post("/orders/update")
async def update_order(request: OrderUpdateRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    require(request, "shop", "credential", "order_id", "order_data")
    order = await shopify_orders.update_order(
        http, request.shop, request.credential, str(request.order_id), request.order_data
    )
    return {"success": True, "order": order}


@router.post("/orders/details")
async def order_details(request: OrderRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    """Order plus shop name/address for invoices and packing lists"""
    require(request, "shop", "credential", "order_id")
    return await shopify_orders.get_order_details(http, request.shop, request.credential, str(request.order_id))
