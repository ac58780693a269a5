import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cabinbuddy.db")

# Supabase-issued access tokens (HS256, signed with the project's JWT secret)
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
if not SUPABASE_JWT_SECRET:
    import warnings

    warnings.warn(
        "SUPABASE_JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    SUPABASE_JWT_SECRET = "INSECURE-DEV-JWT-SECRET-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")

# Frontend base URL for links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Cloudflare R2 Configuration (documents, receipts, checklist images, backups)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "cabinbuddy")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL")  # Public bucket domain for checklist images
BACKUP_BUCKET_PREFIX = os.getenv("BACKUP_BUCKET_PREFIX", "organization-backups")
BACKUP_RETENTION_COUNT = int(os.getenv("BACKUP_RETENTION_COUNT", "3"))

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "CabinBuddy <noreply@cabinbuddy.org>")

# Rotation defaults used when an organization has not configured its own
DEFAULT_MAX_TIME_SLOTS = int(os.getenv("DEFAULT_MAX_TIME_SLOTS", "2"))
DEFAULT_MAX_NIGHTS = int(os.getenv("DEFAULT_MAX_NIGHTS", "7"))
DEFAULT_SELECTION_DAYS = int(os.getenv("DEFAULT_SELECTION_DAYS", "14"))
DEFAULT_SECONDARY_SELECTION_DAYS = int(os.getenv("DEFAULT_SECONDARY_SELECTION_DAYS", "7"))
DEFAULT_SECONDARY_MAX_PERIODS = int(os.getenv("DEFAULT_SECONDARY_MAX_PERIODS", "1"))

# Rate limiting for unauthenticated endpoints (fails open when Redis is down)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
REDIS_URL = os.getenv("REDIS_URL")

# Comma-separated list of allowed browser origins
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]

IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"
