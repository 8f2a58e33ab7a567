import json
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError

from config import settings
from db import init_db, is_sqlite
from core.errors import StoreUnavailable
from core.logging import setup_logging, RequestIdMiddleware
from api.alerts.views import router as alerts_router
from api.assets.views import router as assets_router
from api.custody.views import router as custody_router
from api.dashboard.views import router as dashboard_router
from api.holders.views import router as holders_router

setup_logging(settings.LOG_LEVEL)
logger = structlog.get_logger(__name__)


def get_cors_origins() -> list[str]:
    """Get CORS origins from settings or use defaults."""
    cors_env = settings.CORS_ORIGINS

    # Try to parse as JSON array
    if cors_env:
        try:
            origins = json.loads(cors_env)
            if isinstance(origins, list):
                return origins
        except json.JSONDecodeError:
            # If not valid JSON, treat as comma-separated
            return [o.strip() for o in cors_env.split(",") if o.strip()]

    # Default origins for development
    return [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("startup", app_env=settings.APP_ENV, facility_timezone=settings.FACILITY_TIMEZONE)
    if is_sqlite(settings.DATABASE_URL):
        await init_db()
    yield
    logger.info("shutdown")


app = FastAPI(
    title="Asset Custody API",
    description="Custody tracking and compliance alerts for company and personal laptops",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error("store_unavailable", path=request.url.path, message=exc.message)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": exc.to_detail()},
    )


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def store_connection_handler(request: Request, exc: Exception):
    logger.error("store_connection_failed", path=request.url.path, error=str(exc))
    detail = StoreUnavailable("The entity store is unavailable; retry later").to_detail()
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": detail},
    )


# Business endpoints
app.include_router(holders_router, prefix="/api/v1")
app.include_router(assets_router, prefix="/api/v1")
app.include_router(custody_router, prefix="/api/v1")
app.include_router(alerts_router, prefix="/api/v1")
app.include_router(dashboard_router, prefix="/api/v1")


# Health check endpoint
@app.get("/health", tags=["system"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
