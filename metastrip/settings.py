# metastrip/settings.py
from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent
STATIC_DIR = Path(os.getenv("STATIC_DIR", BASE_DIR / "static"))

MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", 10 * 1024 * 1024))
# Allowance for multipart boundaries and part headers on top of the file itself
UPLOAD_OVERHEAD_BYTES = int(os.getenv("UPLOAD_OVERHEAD_BYTES", 64 * 1024))

# Token bucket per client: CAPACITY requests, refilled in full every WINDOW
RATE_LIMIT_CAPACITY = int(os.getenv("RATE_LIMIT_CAPACITY", 10))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", 60))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8080))

API_PREFIX = "/api/images"
HEALTH_MESSAGE = "Metadata Stripper API is running"
