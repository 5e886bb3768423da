"""
FastAPI application for the Freerider reservation backend.

Wires the customer, vehicle, reservation and health routers under /api/v1,
the optional API key check, request timing, error handlers and the background
task that purges expired reservation holds.

Run with:  uvicorn freerider.main:app --host 0.0.0.0 --port 8080
"""

import asyncio
import contextlib
import time
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from freerider.config import settings
from freerider.database import SessionLocal, create_tables
from freerider.errors import ResultError
from freerider.routers import customers, health, reservations, vehicles
from freerider.routers.deps import get_factory
from freerider.services.hold_sweeper import run_hold_sweeper
from freerider.utils.logger import get_logger

logger = get_logger(__name__)

API_PREFIX = "/api/v1"

app = FastAPI(
    title="Freerider Reservation API",
    description="Customers, vehicles and the Inquired → InquiryConfirmed → Booked reservation protocol.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the booking front-end in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API key ──────────────────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    X-API-Key header (or ?api_key=) check against settings.API_KEY.
    Read on every request, so an empty API_KEY switches the check off.
    """
    open_paths = {f"{API_PREFIX}/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        expected = settings.API_KEY
        if not expected or request.url.path in self.open_paths:
            return await call_next(request)

        supplied = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if supplied != expected:
            logger.warning(f"Rejected {request.method} {request.url.path}: bad API key")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


app.add_middleware(APIKeyMiddleware)


@app.middleware("http")
async def time_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({elapsed_ms:.2f}ms)")
    return response


# ── Error handlers ───────────────────────────────────────────────────────────
@app.exception_handler(ResultError)
async def result_error_handler(request: Request, exc: ResultError):
    """A Result unwrapped on a failure still maps to 400/404/409."""
    return JSONResponse(status_code=exc.failure.kind.status_code, content={"detail": exc.failure.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


for module, tag in ((customers, "Customers"), (vehicles, "Vehicles"),
                    (reservations, "Reservations"), (health, "Health")):
    app.include_router(module.router, prefix=API_PREFIX, tags=[tag])


# ── Lifecycle ────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Freerider backend starting up...")
    create_tables()
    logger.info("✅ Tables customer, vehicle, reservation, cancelled_hold ready")

    app.state.hold_sweeper = asyncio.create_task(
        run_hold_sweeper(
            SessionLocal,
            get_factory(),
            settings.HOLD_SWEEP_INTERVAL_SECONDS,
            hold_timeout=timedelta(minutes=settings.HOLD_TIMEOUT_MINUTES),
        ),
        name="hold-sweeper",
    )
    logger.info(f"⏱  Holds last {settings.HOLD_TIMEOUT_MINUTES} min "
                f"({settings.RESERVATION_TIMEZONE} wall clock)")
    logger.info(f"🌐 Serving http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}{API_PREFIX} (docs at /docs)")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Freerider backend shutting down...")
    sweeper = getattr(app.state, "hold_sweeper", None)
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("freerider.main:app", host=settings.BACKEND_IP, port=settings.BACKEND_PORT)
