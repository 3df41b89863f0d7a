"""
Environment configuration.

Every setting can be overridden by the matching CLI flag of `mancala serve`.

    MANCALA_ENV       development | production
    HOST              bind address (default 0.0.0.0)
    PORT              bind port (default 3002)
    BASE_PATH         URL prefix when served behind a proxy, e.g. /8-bit-mancala
    ALLOWED_ORIGINS   comma-separated CORS origins (default *)
    LOG_LEVEL         logging level name (default INFO)
"""

import os
import re


def normalize_base_path(value: str | None) -> str:
    """
    '' and '/' mean no prefix; anything else becomes '/a/b' with
    duplicate slashes collapsed and no trailing slash.
    """
    trimmed = (value or "").strip()
    if not trimmed or trimmed == "/":
        return ""
    collapsed = re.sub(r"/+", "/", trimmed).strip("/")
    return f"/{collapsed}" if collapsed else ""


def parse_origins(value: str | None) -> list[str]:
    origins = [o.strip() for o in (value or "*").split(",")]
    return [o for o in origins if o] or ["*"]


MANCALA_ENV = os.getenv("MANCALA_ENV", "development")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3002"))
BASE_PATH = normalize_base_path(os.getenv("BASE_PATH", ""))
ALLOWED_ORIGINS = parse_origins(os.getenv("ALLOWED_ORIGINS", "*"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
