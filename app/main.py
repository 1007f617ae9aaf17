# app/main.py
"""
FastAPI application entry point.
Includes CORS, optional API key auth, request timing, error handlers, and routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import health, vehicles
from app.database import create_tables
from app.config import settings
from app.services.fleet_service import StoreError
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="FleetSync API",
    description="Fleet register with MOT expiry tracking, VOR status and new-vehicle emails.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional shared API key for /api routes (X-API-Key header).
    Health check and docs stay open. Set API_KEY in .env; leave empty to disable.
    """
    open_paths = {"/", "/api/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.open_paths or request.method == "OPTIONS" or not settings.API_KEY:
            return await call_next(request)

        if request.headers.get("X-API-Key") != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


# Checks settings.API_KEY per request, so it is a no-op while the key is empty
app.add_middleware(APIKeyMiddleware)

# ── CORS (dashboard client is served from another origin) ───────────────────
# Added after the key check so it wraps it: 401s carry CORS headers too
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "X-API-Key"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(vehicles.router, prefix="/api", tags=["🚛 Vehicles"])
app.include_router(health.router,   prefix="/api", tags=["💚 Health"])


@app.get("/", include_in_schema=False)
def root():
    return {"message": "FleetSync API is running"}


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚛 FleetSync backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"📧 Creation emails: {'enabled' if settings.NOTIFY_API_KEY else 'disabled'}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 FleetSync backend shutting down...")
