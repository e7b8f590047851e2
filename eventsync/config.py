# config.py
import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Server
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", 8000))

# Storage
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./eventsync.db")
DB_TIMEOUT_SECONDS = float(os.getenv("DB_TIMEOUT_SECONDS", 10))

# Auth
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@campus.edu")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

# AI collaborator
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
AI_ENABLED = bool(GEMINI_API_KEY)
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", 20))

# Booking policy
PENDING_REQUEST_TTL_HOURS = float(os.getenv("PENDING_REQUEST_TTL_HOURS", 72))
SEED_SAMPLE_VENUES = _env_flag("SEED_SAMPLE_VENUES")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = _env_flag("LOG_JSON")


@lru_cache()
def get_model_client():
    """Model client shared by every agent, built on first use."""
    from autogen_ext.models.openai import OpenAIChatCompletionClient

    return OpenAIChatCompletionClient(
        model=GEMINI_MODEL,
        api_key=GEMINI_API_KEY,
    )
