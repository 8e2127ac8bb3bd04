# config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME = os.getenv("PROJECT_NAME", "PeerTalk")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./peertalk.db")

    # Подпись cookie сессии (SessionMiddleware)
    SECRET_KEY = os.getenv("SECRET_KEY", "peertalk-dev-secret-change-me")
    SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", str(60 * 60 * 24 * 30)))

    SEED_DEMO_DATA = _bool(os.getenv("SEED_DEMO_DATA", "true"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    CHAT_POLL_INTERVAL_MS = int(os.getenv("CHAT_POLL_INTERVAL_MS", "3000"))
    INBOX_POLL_INTERVAL_MS = int(os.getenv("INBOX_POLL_INTERVAL_MS", "5000"))


settings = Settings()
