"""
Shopify Catalog BFF - FastAPI Backend
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import status
from fastapi.encoders import jsonable_encoder
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn
import logging

from routes.api import register_routes
from app.database import engine, Base
from app.config import settings
from app.exceptions import AppError
from app.services.http_client import create_http_client
from app import models  # noqa: F401  (registers tables on Base.metadata)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Shopify Catalog BFF",
    description="Product classification, landed cost and ESG API over Shopify",
    version="1.0.0",
    docs_url="/docs" if settings.IS_DEVELOPMENT else None,  # Disable docs in production
    redoc_url="/redoc" if settings.IS_DEVELOPMENT else None,
)

# Log startup information
logger.info("🚀 Starting Shopify Catalog BFF")
logger.info("📊 Environment: %s", settings.ENV)
logger.info("🌐 Production: %s", settings.IS_PRODUCTION)
logger.info("🔗 Host: %s:%s", settings.HOST, settings.PORT)
logger.info("📄 Catalog pagination: %s (page size %s, max %s pages)",
            settings.CATALOG_PAGINATION, settings.CATALOG_PAGE_SIZE, settings.SYNC_MAX_PAGES)

# Startup config validation (warn only)
if not (settings.DATABASE_URL or "").strip():
    logger.warning("⚠️ DATABASE_URL is not set. Database operations will fail.")
if not (settings.DUTIFY_API_KEY or "").strip():
    logger.warning("⚠️ DUTIFY_API_KEY is not set. HS code detection and landed cost calculation will return 400.")


def get_cors_headers(request: Request) -> dict:
    """CORS headers for error responses, which bypass CORSMiddleware when raised from handlers"""
    origin = request.headers.get("origin", "")
    allowed_origins = settings.ALLOWED_ORIGINS
    if origin and origin in allowed_origins:
        return {"Access-Control-Allow-Origin": origin, "Access-Control-Allow-Credentials": "true"}
    return {}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(exc.to_response()),
        headers=get_cors_headers(request),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Validation error: %s", exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation error: Please check your request format",
            "details": jsonable_encoder(exc.errors()),
        },
        headers=get_cors_headers(request),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Routing errors (404, 405) in the same error shape; keeps Allow on 405"""
    headers = get_cors_headers(request)
    if exc.headers:
        headers.update(exc.headers)
    detail = exc.detail
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        detail = f"Method {request.method} Not Allowed"
    return JSONResponse(status_code=exc.status_code, content={"error": detail}, headers=headers)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "details": str(exc) if settings.IS_DEVELOPMENT else None,
        },
        headers=get_cors_headers(request),
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)
logger.info("✅ CORS configured for %s origin(s)", len(settings.ALLOWED_ORIGINS))

register_routes(app, settings)


@app.on_event("startup")
async def startup() -> None:
    """Create tables and the shared HTTP client."""
    Base.metadata.create_all(bind=engine)
    app.state.http_client = create_http_client()
    logger.info("HTTP client ready (timeout %ss)", settings.REMOTE_TIMEOUT_SECONDS)


@app.on_event("shutdown")
async def shutdown() -> None:
    client = getattr(app.state, "http_client", None)
    if client is not None:
        await client.aclose()
        app.state.http_client = None


@app.get("/health")
async def health():
    """Health check endpoint. Includes DB connectivity check."""
    db_status = "ok"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Health check DB ping failed: %s", e)
        db_status = "error"
    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "service": "api",
        "db": db_status,
        "environment": settings.ENV,
        "production": settings.IS_PRODUCTION,
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.IS_DEVELOPMENT,  # Auto-reload only in development
        log_level=settings.LOG_LEVEL.lower()
    )
