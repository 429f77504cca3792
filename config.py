"""Runtime settings for the converter service.

All values are read from environment variables (a local .env file is
loaded first) with defaults that work for local development.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _str(key: str, default: str) -> str:
    return os.getenv(key, default)


def _bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# ---------- FIGMA API ----------

FIGMA_TOKEN = os.getenv("FIGMA_TOKEN")
FIGMA_API_BASE = _str("FIGMA_API_BASE", "https://api.figma.com/v1")
FIGMA_REQUEST_TIMEOUT = _float("FIGMA_REQUEST_TIMEOUT", 60.0)

# /v1/images accepts a limited number of ids per call
FIGMA_IMAGE_BATCH_SIZE = _int("FIGMA_IMAGE_BATCH_SIZE", 40)
FIGMA_IMAGE_MAX_RETRIES = _int("FIGMA_IMAGE_MAX_RETRIES", 2)
FIGMA_IMAGE_RETRY_BACKOFF = _float("FIGMA_IMAGE_RETRY_BACKOFF", 2.0)
FIGMA_BITMAP_SCALE = _int("FIGMA_BITMAP_SCALE", 2)

# ---------- STORAGE ----------

MONGO_URI = _str("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = _str("MONGO_DB", "figma_to_code")

OUTPUT_DIR = _str("OUTPUT_DIR", "generated_site")
ZIP_PATH = _str("ZIP_PATH", "figma_site.zip")
PUBLIC_BASE_URL = _str("PUBLIC_BASE_URL", "http://127.0.0.1:8000")

# ---------- LOGGING ----------

LOG_DIR = _str("LOG_DIR", "logs")
LOG_LEVEL = _str("LOG_LEVEL", "INFO")

# ---------- CLASSIFIER POLICY ----------

# Text nodes that carry masks, complex strokes, blends or blurs are exported
# as assets instead of live text when this is on.
CLASSIFIER_DOWNGRADE_TEXT = _bool("CLASSIFIER_DOWNGRADE_TEXT", True)

# Only solid fills may render as markup when this is on.
CLASSIFIER_STRICT_FILLS = _bool("CLASSIFIER_STRICT_FILLS", False)
