import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./medibook.db")

# "development" | "production" | "test"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

# JWT Configuration - CRITICAL: No default secrets in production
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    import warnings

    warnings.warn(
        "JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    JWT_SECRET = "INSECURE-DEV-JWT-SECRET-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET")
if not JWT_REFRESH_SECRET:
    import warnings

    warnings.warn(
        "JWT_REFRESH_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    JWT_REFRESH_SECRET = "INSECURE-DEV-REFRESH-SECRET-CHANGE-IN-PRODUCTION"  # noqa: S105

JWT_ALGORITHM = "HS256"
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))
JWT_REFRESH_EXPIRES_DAYS = int(os.getenv("JWT_REFRESH_EXPIRES_DAYS", "7"))

# Razorpay Configuration
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
RAZORPAY_WEBHOOK_SECRET = os.getenv("RAZORPAY_WEBHOOK_SECRET")
if not RAZORPAY_WEBHOOK_SECRET:
    import warnings

    warnings.warn(
        "RAZORPAY_WEBHOOK_SECRET not set! Webhooks are accepted unverified outside production "
        "and rejected in production",
        RuntimeWarning,
        stacklevel=2,
    )
RAZORPAY_API_BASE = os.getenv("RAZORPAY_API_BASE", "https://api.razorpay.com/v1")
PAYMENT_CURRENCIES = ("INR", "USD", "EUR")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR").upper()
if PAYMENT_CURRENCY not in PAYMENT_CURRENCIES:
    raise ValueError(f"PAYMENT_CURRENCY must be one of: {', '.join(PAYMENT_CURRENCIES)}")
# Razorpay auto-captures by default; enable when the account authorizes only
RAZORPAY_CAPTURE_ON_VERIFY = os.getenv("RAZORPAY_CAPTURE_ON_VERIFY", "false").lower() == "true"
# Serve a synthetic order when the gateway is unreachable (availability over strictness)
PAYMENT_GATEWAY_FALLBACK = os.getenv("PAYMENT_GATEWAY_FALLBACK", "true").lower() == "true"

# CORS
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173")

# Rate limiting - disable only for local testing
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))
REDIS_URL = os.getenv("REDIS_URL")

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

# Pagination
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
