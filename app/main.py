# app/main.py
"""
FastAPI application entry point.
Includes API-key middleware, error handlers, all routers, and the
startup/shutdown hooks that own the OTP snapshot and the expiry scanner.
"""

import os
import time
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from app import dependencies
from app.routers import checkin, parkings, season, health
from app.database import create_tables
from app.config import settings
from app.exceptions import ParkingError
from app.utils.logger import get_logger

logger = get_logger(__name__)

PUBLIC_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "public")

app = FastAPI(
    title="Parking Check-in API",
    description="Vehicle check-in with mobile OTP, expiry reminders and overstay notices.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (check-in page may be served from another host) ────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional API key for operator endpoints (listing, export, season passes, reports).
    Customer-facing OTP/check-in endpoints and the season redirect page stay open.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    protected_paths = {"/api/parkings", "/api/export", "/api/season", "/api/send-daily-report"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path not in self.protected_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(ParkingError)
async def parking_error_handler(request: Request, exc: ParkingError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.__cause__ or exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies get the same 400 as missing fields, never a 422
    logger.info(f"Rejected body on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Missing fields"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(checkin.router,  prefix="/api", tags=["🔑 OTP + Check-in"])
app.include_router(parkings.router, prefix="/api", tags=["🅿️  Records"])
app.include_router(season.router,   prefix="/api", tags=["🎫 Season passes"])
app.include_router(health.router,   prefix="/api", tags=["💚 Health"])
app.include_router(season.page_router)

# Check-in page + assets; mounted last so it never shadows the API
if os.path.isdir(PUBLIC_DIR):
    app.mount("/", StaticFiles(directory=PUBLIC_DIR, html=True), name="public")


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Parking check-in backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    dependencies.otp_store.load()
    dependencies.scanner.start()
    logger.info(f"📱 SMS: {'live' if settings.SMS_ENABLED else 'log-only'} | "
                f"📧 Email: {'live' if settings.EMAIL_ENABLED else 'log-only'}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Parking check-in backend shutting down...")
    await dependencies.scanner.stop()
    dependencies.otp_store.snapshot()
