import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import models so they're registered with SQLAlchemy Base
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, ENVIRONMENT, LOG_LEVEL, SECURITY_HEADERS_ENABLED
from .database import Base, engine
from .domain.appointments.router import router as appointments_router
from .domain.auth.router import router as auth_router
from .domain.doctors.router import router as doctors_router
from .domain.patients.router import router as patients_router
from .security_headers import SecurityHeadersMiddleware
from .shared.errors import AppError
from .shared.responses import error_response, success_response

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("passlib").setLevel(logging.ERROR)

API_PREFIX = "/api"

HTTP_ERROR_TYPES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    429: "RATE_LIMIT_EXCEEDED",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Clinic Appointments API", version="1.0.0", lifespan=lifespan)


# ============================================================================
# ERROR HANDLERS
# ============================================================================


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.message, exc.error_type, exc.details),
    )


def _validation_details(exc: RequestValidationError) -> list[dict]:
    details = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        field = ".".join(loc) or "body"
        # Never echo submitted passwords; a missing field's input is the whole body
        echo = error.get("type") != "missing" and "password" not in field.lower()
        value = error.get("input") if echo else None
        details.append({"field": field, "message": message, "value": value})
    return details


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Render request validation failures as VALIDATION_ERROR (400), except a
    malformed Authorization header which is an authentication failure (401)
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content=error_response("Access token is required", "UNAUTHORIZED"),
            )

    details = _validation_details(exc)
    logger.warning(f"Validation error for {request.url.path}: {details}")
    return JSONResponse(
        status_code=400,
        content=error_response("Validation failed", "VALIDATION_ERROR", details),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Route {request.url.path} not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(message, HTTP_ERROR_TYPES.get(exc.status_code, "HTTP_ERROR")),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=409,
        content=error_response("Duplicate value for a unique field", "CONFLICT"),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} - Error: {exc}")
    details = str(exc) if ENVIRONMENT == "development" else None
    return JSONResponse(
        status_code=500,
        content=error_response("Internal server error", "SERVER_ERROR", details),
    )


# ============================================================================
# MIDDLEWARE
# ============================================================================

if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(patients_router, prefix=API_PREFIX)
app.include_router(doctors_router, prefix=API_PREFIX)
app.include_router(appointments_router, prefix=API_PREFIX)


@app.get("/")
def root():
    return success_response(
        "Clinic Appointments API is running",
        {
            "version": app.version,
            "endpoints": {
                "auth": f"{API_PREFIX}/auth",
                "patients": f"{API_PREFIX}/patients",
                "doctors": f"{API_PREFIX}/doctors",
                "appointments": f"{API_PREFIX}/appointments",
            },
        },
    )


@app.get("/health")
def health():
    return success_response("Server is healthy", {"status": "healthy", "environment": ENVIRONMENT})
