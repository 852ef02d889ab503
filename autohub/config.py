"""Environment-driven settings.

Values are read once at import time; a `.env` file in the working directory is
loaded first when present.
"""
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 5))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 10))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local").lower()
MEDIA_ROOT = os.getenv("MEDIA_ROOT", os.path.join(os.getcwd(), "public"))
MEDIA_BASE_URL = os.getenv("MEDIA_BASE_URL", "/")

S3_BUCKET = os.getenv("S3_BUCKET")
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL")
S3_ACCESS_KEY_ID = os.getenv("S3_ACCESS_KEY_ID")
S3_SECRET_ACCESS_KEY = os.getenv("S3_SECRET_ACCESS_KEY")
S3_REGION = os.getenv("S3_REGION", "auto")
S3_PUBLIC_BASE_URL = os.getenv("S3_PUBLIC_BASE_URL", "")

JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production-0123456789abcdef")
JWT_ISSUER = os.getenv("JWT_ISSUER", "autohub-admin-portal")
JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", 8))

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
