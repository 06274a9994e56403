import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./pickem.db")

# Auth
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", "30"))

# Token required by the authoritative results endpoints. Unset disables them.
RESULTS_ADMIN_TOKEN = os.getenv("RESULTS_ADMIN_TOKEN")

CLIENT_ORIGIN = os.getenv("CLIENT_ORIGIN", "http://localhost:5173")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Wiki ingestion
WIKI_API_BASE = os.getenv("WIKI_API_BASE", "https://liquipedia.net/rocketleague/api.php")
WIKI_TIMEOUT_SECONDS = float(os.getenv("WIKI_TIMEOUT_SECONDS", "15"))
WIKI_USER_AGENT = os.getenv("WIKI_USER_AGENT", "rlcs-pickem/1.0 (results sync)")
RESULTS_SYNC_ENABLED = _env_bool("RESULTS_SYNC_ENABLED", True)
RESULTS_SYNC_INTERVAL_SECONDS = float(os.getenv("RESULTS_SYNC_INTERVAL_SECONDS", "300"))
CATALOG_TTL_SECONDS = float(os.getenv("CATALOG_TTL_SECONDS", "600"))

# Read-time recompute keeps the leaderboard exact at the cost of a full pass per read.
LEADERBOARD_RECOMPUTE_ON_READ = _env_bool("LEADERBOARD_RECOMPUTE_ON_READ", True)
