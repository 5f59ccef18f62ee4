import os
from datetime import timedelta


def _database_url() -> str:
    raw_db_url = os.getenv("DATABASE_URL")
    if not raw_db_url:
        # Local dev fallback: SQLite file
        return "sqlite:///pulse.db"
    # Hosted Postgres URLs still use the old scheme; SQLAlchemy wants postgresql://
    if raw_db_url.startswith("postgres://"):
        raw_db_url = raw_db_url.replace("postgres://", "postgresql://", 1)
    return raw_db_url


class Config:
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # The session cookie is the only thing tying a browser to its profile
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me-dev-secret")
    PERMANENT_SESSION_LIFETIME = timedelta(days=int(os.getenv("SESSION_DAYS", "30")))
    SESSION_COOKIE_SAMESITE = "Lax"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Friend requests: N per rolling window, per sender
    FRIEND_REQUEST_RATE_LIMIT = int(os.getenv("FRIEND_REQUEST_RATE_LIMIT", "20"))
    FRIEND_REQUEST_RATE_WINDOW_SECONDS = int(os.getenv("FRIEND_REQUEST_RATE_WINDOW_SECONDS", "3600"))

    CHALLENGE_MESSAGE_MAX_LENGTH = 200

    # Streak day boundaries are computed in this zone
    APP_TIMEZONE = os.getenv("APP_TIMEZONE", "UTC")


RESEND_API_KEY = os.getenv("RESEND_API_KEY", None)
RESEND_FROM_EMAIL = os.getenv("RESEND_FROM_EMAIL", "Pulse <onboarding@resend.dev>")
