"""
Runtime configuration read from environment variables.
"""
import os

from evergreeners.constants import CORS_ALLOWED_ORIGINS, DEFAULT_LEADERBOARD_LIMIT, DEFAULT_LOG_DIRECTORY_PROD


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


DATABASE_URL = os.getenv("EVERGREENERS_DATABASE_URL", "sqlite:///./evergreeners.db")

# API Key protecting the endpoints. Keep the real value in the environment.
API_KEY = os.getenv("EVERGREENERS_API_KEY", "your-secret-key-change-me")

# Timezone and day boundary used to derive "today" and "yesterday"
TIMEZONE = os.getenv("EVERGREENERS_TIMEZONE", "UTC")
DAY_START_TIME = os.getenv("EVERGREENERS_DAY_START_TIME", "00:00")

LOG_DIR = os.getenv("EVERGREENERS_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("EVERGREENERS_LOG_FILE", "app.log")

SCHEDULER_ENABLED = _get_bool("EVERGREENERS_SCHEDULER_ENABLED", True)
RECOMPUTE_TIME = os.getenv("EVERGREENERS_RECOMPUTE_TIME", "00:05")

LEADERBOARD_LIMIT = _get_int("EVERGREENERS_LEADERBOARD_LIMIT", DEFAULT_LEADERBOARD_LIMIT)

CORS_ORIGINS = CORS_ALLOWED_ORIGINS + [
    origin.strip()
    for origin in os.getenv("EVERGREENERS_CORS_ORIGINS", "").split(",")
    if origin.strip()
]
