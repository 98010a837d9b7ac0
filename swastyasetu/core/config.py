import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./swastyasetu.db")
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@swastyasetu.com").strip().lower()
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:5173"])

BOOKING_RANGE_DAYS = int(os.getenv("BOOKING_RANGE_DAYS", "30"))
CHAT_POLL_INTERVAL_SECONDS = float(os.getenv("CHAT_POLL_INTERVAL_SECONDS", "5"))


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if APP_ENV.lower() == "production" and not ADMIN_PASSWORD:
        raise RuntimeError("ADMIN_PASSWORD must be set in production.")
    if CHAT_POLL_INTERVAL_SECONDS <= 0:
        raise RuntimeError("CHAT_POLL_INTERVAL_SECONDS must be positive.")
