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
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./auth.db")

APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:4000").rstrip("/")
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")
CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), [APP_BASE_URL])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
SESSION_EXPIRES_DAYS = int(os.getenv("SESSION_EXPIRES_DAYS", "7"))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "auth-token")

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

TWO_FACTOR_ISSUER = os.getenv("TWO_FACTOR_ISSUER", "NextLogin")
TWO_FACTOR_SETUP_MINUTES = int(os.getenv("TWO_FACTOR_SETUP_MINUTES", "10"))

# none | image
LOGIN_CHALLENGE = os.getenv("LOGIN_CHALLENGE", "none").strip().lower()

SMTP_HOST = os.getenv("SMTP_HOST", "")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_USE_TLS = _get_bool(os.getenv("SMTP_USE_TLS"), default=False)
SMTP_START_TLS = _get_bool(os.getenv("SMTP_START_TLS"), default=True)
SMTP_TIMEOUT = float(os.getenv("SMTP_TIMEOUT", "10"))
FROM_EMAIL = os.getenv("FROM_EMAIL", "noreply@yourapp.com")


def is_production() -> bool:
    return APP_ENV.lower() == "production"


def is_development() -> bool:
    return APP_ENV.lower() == "development"


def validate_runtime_config() -> None:
    if is_production() and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if LOGIN_CHALLENGE not in {"none", "image"}:
        raise RuntimeError(f"Unsupported LOGIN_CHALLENGE '{LOGIN_CHALLENGE}'.")
