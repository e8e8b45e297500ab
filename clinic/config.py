import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")

# "development" exposes exception text in 500 responses
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Separate key for refresh tokens; falls back to SECRET_KEY
REFRESH_SECRET_KEY = os.getenv("REFRESH_SECRET_KEY", SECRET_KEY)
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "30"))

# Frontend origins allowed by CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")

SECURITY_HEADERS_ENABLED = _env_bool("SECURITY_HEADERS_ENABLED", "true")

# Rate limiting (register/login)
RATE_LIMIT_ENABLED = _env_bool("RATE_LIMIT_ENABLED", "true")
AUTH_RATE_LIMIT = int(os.getenv("AUTH_RATE_LIMIT", "100"))
AUTH_RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("AUTH_RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))

# Scheduling
SLOT_BUFFER_MINUTES = int(os.getenv("SLOT_BUFFER_MINUTES", "30"))
DEFAULT_CONSULTATION_FEE = float(os.getenv("DEFAULT_CONSULTATION_FEE", "100"))
DEFAULT_APPOINTMENT_DURATION = int(os.getenv("DEFAULT_APPOINTMENT_DURATION", "30"))
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))
NOTIFICATION_LIMIT = int(os.getenv("NOTIFICATION_LIMIT", "10"))
# Check bookings against the doctor's posted weekly hours
ENFORCE_DOCTOR_AVAILABILITY = _env_bool("ENFORCE_DOCTOR_AVAILABILITY", "false")
# Reject status changes that skip the scheduled -> confirmed -> in-progress -> completed flow
ENFORCE_STATUS_WORKFLOW = _env_bool("ENFORCE_STATUS_WORKFLOW", "false")
ALLOW_ADMIN_APPOINTMENT_ACCESS = _env_bool("ALLOW_ADMIN_APPOINTMENT_ACCESS", "false")
