import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from scorecard.api.v1.router import router as api_v1_router
from scorecard.core.cache import connect_redis
from scorecard.core.config import settings as app_settings
from scorecard.core.exceptions import (
    DuplicateError,
    ForbiddenError,
    ScorecardError,
    UnauthorizedError,
    UnavailableError,
    ValidationError,
)
from scorecard.core.rate_limit import limiter

# Configure logging
logging.basicConfig(level=app_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared Redis client for the life of the process."""
    app.state.redis = await connect_redis(app_settings.REDIS_URL)
    yield
    if app.state.redis is not None:
        await app.state.redis.aclose()
        logger.info("Redis client closed")


app = FastAPI(
    title="Sales Scorecard",
    description="Hierarchical sales-staff evaluations with weighted behavioral scoring",
    version="0.1.0",
    debug=app_settings.DEBUG,
    lifespan=lifespan,
)

# Attach rate limiter state so slowapi middleware can find it
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware – restricted to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


def _error_response(exc: ScorecardError) -> JSONResponse:
    content = {"detail": exc.detail, "type": exc.kind}
    if isinstance(exc, DuplicateError) and exc.evaluation_id:
        content["evaluation_id"] = exc.evaluation_id
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning("Invalid evaluation data: %s", exc.detail)
    return _error_response(exc)


@app.exception_handler(ForbiddenError)
async def forbidden_handler(request: Request, exc: ForbiddenError):
    logger.warning("Forbidden on %s: %s", request.url.path, exc.detail)
    return _error_response(exc)


@app.exception_handler(DuplicateError)
async def duplicate_handler(request: Request, exc: DuplicateError):
    logger.warning("Duplicate evaluation detected: %s", exc.detail)
    return _error_response(exc)


@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(request: Request, exc: UnauthorizedError):
    logger.warning("Unauthorized on %s: %s", request.url.path, exc.detail)
    return _error_response(exc)


@app.exception_handler(UnavailableError)
async def unavailable_handler(request: Request, exc: UnavailableError):
    logger.error("Service unavailable: %s", exc.detail)
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": jsonable_encoder(exc.errors()),
            "type": "validation_error",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected/unhandled exceptions.

    Returns a generic 500 response so that raw stack traces are never
    leaked to the client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )
