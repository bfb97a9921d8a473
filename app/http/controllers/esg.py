"""
ESG routes
"""
import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.http.requests.schemas import ProductRequest, ShopRequest, require
from app.services import esg_service
from app.services.http_client import get_http_client

router = APIRouter()


@router.post("/process")
async def process_product_esg(
    request: ProductRequest,
    http: httpx.AsyncClient = Depends(get_http_client),
    db: Session = Depends(get_db),
):
    require(request, "shop", "credential", "product_id")
    return await esg_service.process_product(http, db, request.shop, request.credential, str(request.product_id))


@router.post("/products")
async def product_esg_scores(request: ShopRequest, db: Session = Depends(get_db)):
    require(request, "shop")
    return {"esgData": esg_service.list_scores(db, request.shop)}


@router.post("/summary")
async def esg_summary(request: ShopRequest, db: Session = Depends(get_db)):
    require(request, "shop")
    return esg_service.summary(db, request.shop)
