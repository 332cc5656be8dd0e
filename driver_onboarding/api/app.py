"""
FastAPI application factory.

* Registers routes for the verification wizard, driver availability,
  notifications and admin.
* Maps domain errors to HTTP responses.
* Owns the location simulator: created on startup, every running driver
  task cancelled on shutdown.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from driver_onboarding.api.middleware import limiter
from driver_onboarding.api.routes import admin, drivers, notifications, verification
from driver_onboarding.domain.errors import (
    AlreadyVerifiedError,
    DriverNotFound,
    InvalidStepTransition,
    NotVerifiedError,
    UnknownFieldError,
    ValidationError,
    VerificationError,
)
from driver_onboarding.domain.gate import VERIFICATION_ENTRY
from driver_onboarding.infrastructure.locks import LockNotAcquired
from driver_onboarding.infrastructure.redis_client import close_redis
from driver_onboarding.workers.location_simulator import build_simulator

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type, int] = {
    ValidationError: 422,
    UnknownFieldError: 422,
    NotVerifiedError: 403,
    DriverNotFound: 404,
    InvalidStepTransition: 409,
    AlreadyVerifiedError: 409,
}


async def verification_error_handler(
    request: Request, exc: VerificationError
) -> JSONResponse:
    status_code = next(
        (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)),
        400,
    )
    body: dict = {"detail": str(exc)}
    if isinstance(exc, ValidationError):
        body["missing_fields"] = list(exc.missing)
    if isinstance(exc, NotVerifiedError):
        body["redirect_to"] = VERIFICATION_ENTRY
    return JSONResponse(status_code=status_code, content=body)


async def lock_error_handler(request: Request, exc: LockNotAcquired) -> JSONResponse:
    logger.info("Rejected concurrent edit: %s", exc)
    return JSONResponse(
        status_code=409,
        content={"detail": "Verification is being edited in another session"},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the location simulator on startup; on shutdown stop every
    driver task, then close the Redis pool."""
    app.state.tracker = build_simulator()
    yield
    await app.state.tracker.stop_all()
    await close_redis()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Driver Onboarding API",
        description=(
            "Driver verification wizard with persisted progress, and the "
            "availability gate that keeps unverified drivers offline."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(VerificationError, verification_error_handler)
    app.add_exception_handler(LockNotAcquired, lock_error_handler)

    # Routers
    app.include_router(verification.router, prefix="/api/v1")
    app.include_router(drivers.router, prefix="/api/v1")
    app.include_router(notifications.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
