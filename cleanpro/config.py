import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cleanpro.db")

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = "HS256"
CUSTOMER_TOKEN_EXPIRE_HOURS = int(os.getenv("CUSTOMER_TOKEN_EXPIRE_HOURS", "168"))  # 7 days
ADMIN_TOKEN_EXPIRE_HOURS = int(os.getenv("ADMIN_TOKEN_EXPIRE_HOURS", "8"))
PASSWORD_RESET_MAX_AGE = int(os.getenv("PASSWORD_RESET_MAX_AGE", "3600"))

# Account lockout after repeated failed logins
MAX_LOGIN_ATTEMPTS = int(os.getenv("MAX_LOGIN_ATTEMPTS", "5"))
LOCKOUT_MINUTES = int(os.getenv("LOCKOUT_MINUTES", "15"))

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Cloudflare R2 Configuration (service/product images, gallery media)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "cleanpro")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL")  # Optional CDN / public bucket domain

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "CleanPro <noreply@cleanpro.example>")
BUSINESS_NAME = os.getenv("BUSINESS_NAME", "CleanPro Cleaning Services")

# Admin bootstrap one-time codes
# "redis" survives restarts and works across instances; "memory" is single-instance only
OTP_STORE_BACKEND = os.getenv("OTP_STORE_BACKEND", "redis").lower()
ADMIN_OTP_TTL_SECONDS = int(os.getenv("ADMIN_OTP_TTL_SECONDS", "86400"))
ADMIN_OTP_MAX_ATTEMPTS = int(os.getenv("ADMIN_OTP_MAX_ATTEMPTS", "5"))

# Rate limiting on auth endpoints (requires Redis when enabled)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# Booking policy
# Same-day cutoff was historically enforced only in the browser; off by default server-side
BOOKING_ENFORCE_SAME_DAY_CUTOFF = (
    os.getenv("BOOKING_ENFORCE_SAME_DAY_CUTOFF", "false").lower() == "true"
)
BOOKING_SAME_DAY_CUTOFF = os.getenv("BOOKING_SAME_DAY_CUTOFF", "12:00")
BOOKING_DEFAULT_TIME = os.getenv("BOOKING_DEFAULT_TIME", "09:00")
