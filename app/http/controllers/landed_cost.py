"""
Landed cost routes: Dutify calculation, offline estimate, history and stats.
"""
import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.http.requests.schemas import CalculationIdRequest, LandedCostInput
from app.exceptions import ValidationError
from app.services import landed_cost
from app.services.http_client import get_http_client

router = APIRouter()


def _to_request(body: LandedCostInput) -> landed_cost.LandedCostRequest:
    return landed_cost.LandedCostRequest(
        product_value=body.product_value or 0,
        quantity=body.quantity or 0,
        origin_country=(body.origin_country or "").strip().upper(),
        destination_country=(body.destination_country or "").strip().upper(),
        shipping_cost=body.shipping_cost or 0,
        insurance=body.insurance or 0,
        hs_code=body.hs_code or "",
        description=body.description or "",
        product_title=body.product_title or "",
        currency=(body.currency or "USD").strip().upper(),
    )


@router.post("/landed-cost/calculate")
async def calculate_landed_cost(
    request: LandedCostInput,
    http: httpx.AsyncClient = Depends(get_http_client),
    db: Session = Depends(get_db),
):
    return await landed_cost.calculate(http, db, _to_request(request))


@router.post("/landed-cost/estimate")
async def estimate_landed_cost(request: LandedCostInput, db: Session = Depends(get_db)):
    """Offline estimate from fixed duty/VAT tables; no provider call"""
    return landed_cost.estimate(db, _to_request(request))


@router.post("/landed-cost/history")
async def landed_cost_history(db: Session = Depends(get_db)):
    return {"calculations": landed_cost.history(db)}


@router.post("/landed-cost/stats")
async def landed_cost_stats(db: Session = Depends(get_db)):
    return landed_cost.stats(db)


@router.post("/landed-cost/get")
async def get_landed_cost(request: CalculationIdRequest, db: Session = Depends(get_db)):
    if not request.id:
        raise ValidationError("Missing calculation ID")
    return landed_cost.get_calculation(db, request.id)
