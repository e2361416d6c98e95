import logging
import time
import traceback
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, ENVIRONMENT, IS_PRODUCTION, SECURITY_HEADERS_ENABLED
from .database import Base, engine, get_db
from .domain.admin import router as admin_router
from .domain.appointments import router as appointments_router
from .domain.auth import router as auth_router
from .domain.diagnostics import router as tests_router
from .domain.doctors import router as doctors_router
from .domain.payments import router as payments_router
from .domain.payments import webhooks_router as razorpay_webhooks_router
from .domain.support import router as support_router
from .domain.users import router as users_router
from .rate_limiter import create_rate_limiter, get_redis_client
from .security_headers import SecurityHeadersMiddleware
from .shared.responses import error_response, success_response

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

STARTED_AT = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    if get_redis_client() is not None:
        logger.info("Redis connection established")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="MediBook API", version="1.0.0", lifespan=lifespan)


# ============================================================================
# ERROR FORMATTING
# ============================================================================


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Every classified failure leaves as {success: false, message}"""
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc.status_code}: {message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation error for {request.url.path}: {errors}")

    summary = "; ".join(f"{e['field']}: {e['message']}" if e["field"] else e["message"] for e in errors)
    return JSONResponse(
        status_code=400,
        content=error_response(f"Validation failed: {summary}", errors=errors),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} - Unhandled error: {exc}", exc_info=exc)

    message = "Internal Server Error" if IS_PRODUCTION else str(exc) or "Internal Server Error"
    extra = {}
    if ENVIRONMENT == "development":
        extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=error_response(message, **extra))


# ============================================================================
# MIDDLEWARE
# ============================================================================


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise

    if response.status_code >= 400:
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({(time.time() - start) * 1000:.0f}ms)"
        )
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

origins = [origin.strip() for origin in ALLOWED_ORIGINS.split(",") if origin.strip()]
logger.info(f"CORS allowed origins: {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
API_PREFIX = "/api"

# Per-IP budget across the API (RATE_LIMIT_MAX_REQUESTS per RATE_LIMIT_WINDOW_SECONDS);
# the webhook receiver has its own limiter
api_rate_limiter = create_rate_limiter(key_prefix="api")
api_dependencies = [Depends(api_rate_limiter)]

for api_router in (
    auth_router,
    users_router,
    doctors_router,
    tests_router,
    appointments_router,
    payments_router,
    admin_router,
    support_router,
):
    app.include_router(api_router, prefix=API_PREFIX, dependencies=api_dependencies)
app.include_router(razorpay_webhooks_router, prefix=API_PREFIX)


@app.get("/")
async def root():
    return {"message": "MediBook API", "version": app.version}


@app.get("/health")
async def health():
    return success_response(
        data={
            "status": "OK",
            "timestamp": datetime.utcnow().isoformat(),
            "uptime": round(time.time() - STARTED_AT, 2),
            "environment": ENVIRONMENT,
        }
    )


@app.get("/health/db")
async def health_db(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(status_code=503, content=error_response("Database unavailable"))
    return success_response(data={"database": "connected"})
