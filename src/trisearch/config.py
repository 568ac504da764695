"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[2]
OUTPUT_BASE: Path = Path(os.getenv("TRISEARCH_OUTPUT_DIR", str(PROJECT_ROOT / "out")))

# ── Proxy (all three or none) ─────────────────────────────────────────────
PROXY_SERVER: str = os.getenv("PROXY_SERVER", "")
PROXY_USERNAME: str = os.getenv("PROXY_USERNAME", "")
PROXY_PASSWORD: str = os.getenv("PROXY_PASSWORD", "")
# Empty string disables the exit-IP check.
PROXY_CHECK_URL: str = os.getenv("TRISEARCH_PROXY_CHECK_URL", "https://lumtest.com/myip.json")

# ── Target site ───────────────────────────────────────────────────────────
SITE_HOME_URL = "https://www.tiktok.com/"
SEARCH_PAGE_URL = "https://www.tiktok.com/search"
SEARCH_API_URL = "https://www.tiktok.com/api/search/general/full/"
LOCALE: str = os.getenv("TRISEARCH_LOCALE", "ja-JP")
REGION: str = os.getenv("TRISEARCH_REGION", "JP")
ACCEPT_LANGUAGE: str = f"{LOCALE},{LOCALE.split('-')[0]};q=0.9,en-US;q=0.8,en;q=0.7"

# Latest Windows Chrome builds first; one per session index.
USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/132.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
)

# ── Sessions & pacing (seconds) ───────────────────────────────────────────
SESSION_COUNT = 3
PER_SESSION_TARGET: int = int(os.getenv("TRISEARCH_PER_SESSION_TARGET", "15"))
PAGE_SIZE: int = int(os.getenv("TRISEARCH_PAGE_SIZE", "12"))
MAX_RETRIES: int = int(os.getenv("TRISEARCH_MAX_RETRIES", "3"))
REQUEST_DELAY_MIN = 1.5
REQUEST_DELAY_MAX = 3.5
RETRY_BACKOFF = 5.0
SETTLE_DELAY_MIN = 1.0
SETTLE_DELAY_MAX = 3.0
SESSION_DELAY_MIN = 3.0
SESSION_DELAY_MAX = 5.0

# ── Browser ───────────────────────────────────────────────────────────────
HEADLESS: bool = _env_bool("TRISEARCH_HEADLESS", True)
NAV_TIMEOUT_MS: int = int(os.getenv("TRISEARCH_NAV_TIMEOUT_MS", "120000"))
BROWSER_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--window-size=1920,1080",
    f"--lang={LOCALE}",
)
VIEWPORT: dict[str, int] = {"width": 1920, "height": 1080}

ALLOWED_RESOURCE_TYPES: frozenset[str] = frozenset({"document", "script", "xhr", "fetch"})
BLOCKED_RESOURCE_TYPES: frozenset[str] = frozenset({"image", "media", "stylesheet", "font"})
TRACKING_HOSTS: tuple[str, ...] = (
    "google-analytics.com",
    "analytics.google.com",
    "googletagmanager.com",
    "doubleclick.net",
)

# ── Comments ──────────────────────────────────────────────────────────────
COMMENT_API_PATH = "/api/comment/list/"
COMMENT_SCROLL_PX = 800
COMMENT_WAIT = 3.0
COMMENT_RETRIES = 1
COMMENT_RETRY_DELAY = 2.0
