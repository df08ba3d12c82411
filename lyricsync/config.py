"""Config & Constants"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (one level up from lyricsync/)
_ROOT = Path(__file__).parent.parent
load_dotenv(_ROOT / ".env")

# ─── Paths ────────────────────────────────────────────────────────────────────
ROOT_DIR = _ROOT
DATA_DIR = ROOT_DIR / os.getenv("DATA_DIR", "data")
CACHE_FILE = DATA_DIR / "lyrics_cache.json"
SESSION_FILE = DATA_DIR / "session.json"
ERRORS_LOG = DATA_DIR / "errors.log"

# ─── Catalog (LRCLIB) ─────────────────────────────────────────────────────────
CATALOG_HOST = os.getenv("CATALOG_HOST", "https://lrclib.net").rstrip("/")
CATALOG_TIMEOUT = float(os.getenv("CATALOG_TIMEOUT", "10"))
USER_AGENT = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)
CLIENT_NAME = os.getenv("CLIENT_NAME", "lyricsync/0.1 (Unofficial)")

# ─── Cache ────────────────────────────────────────────────────────────────────
_DAY_MS = 24 * 60 * 60 * 1000
CACHE_KEY_PREFIX = "lyric_"
TTL_REVALIDATE_MS = int(os.getenv("TTL_REVALIDATE_DAYS", "30")) * _DAY_MS
TTL_EXPIRE_MS = int(os.getenv("TTL_EXPIRE_DAYS", "365")) * _DAY_MS
# Hits refresh lastAccessed at most this often
TOUCH_INTERVAL_MS = int(os.getenv("TOUCH_INTERVAL_MINUTES", "60")) * 60 * 1000
# JSON stores rewrite their file at most once per interval, and on shutdown
FLUSH_INTERVAL = float(os.getenv("FLUSH_INTERVAL", "2"))

# ─── Session store ────────────────────────────────────────────────────────────
STORE_KEY = "activePlayers"
MONITORED_DOMAIN = os.getenv("MONITORED_DOMAIN", "music.youtube.com")

# ─── Track sessions ───────────────────────────────────────────────────────────
# 20 × 100ms = 2s before giving up on a duration
DURATION_MAX_RETRIES = int(os.getenv("DURATION_MAX_RETRIES", "20"))
DURATION_RETRY_DELAY = float(os.getenv("DURATION_RETRY_DELAY", "0.1"))

APP_VERSION = "0.1.0"

# ─── Web server ──────────────────────────────────────────────────────────────
WEB_HOST = os.getenv("WEB_HOST", "127.0.0.1")
WEB_PORT = int(os.getenv("WEB_PORT", "8888"))
SERVICE_URL = os.getenv("SERVICE_URL", f"http://{WEB_HOST}:{WEB_PORT}").rstrip("/")

# ─── Dev mode ─────────────────────────────────────────────────────────────────
DEV_MODE = os.getenv("DEV_MODE", "1").strip() in ("1", "true", "yes")
