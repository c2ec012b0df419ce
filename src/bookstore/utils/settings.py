"""Runtime settings, read from the environment on every access.

Values are looked up lazily so that tests can override them with
``monkeypatch.setenv`` without reloading modules.
"""

import os
from pathlib import Path

_DEV_AUTH_SECRET = "bookstore-dev-secret-change-me"


def environment() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower()


def is_production() -> bool:
    return environment() == "production"


def database_url() -> str | None:
    return os.getenv("DATABASE_URL")


def auth_secret() -> str:
    return os.getenv("AUTH_SECRET", _DEV_AUTH_SECRET)


def token_ttl_minutes() -> int:
    return int(os.getenv("AUTH_TOKEN_TTL_MINUTES", "1440"))


def reset_token_ttl_minutes() -> int:
    return int(os.getenv("RESET_TOKEN_TTL_MINUTES", "30"))


def password_hash_iterations() -> int:
    return int(os.getenv("PASSWORD_HASH_ITERATIONS", "210000"))


def upload_dir() -> Path:
    return Path(os.getenv("UPLOAD_DIR", "uploads"))


def frontend_url() -> str:
    return os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")


def paymongo_secret_key() -> str | None:
    return os.getenv("PAYMONGO_SECRET_KEY")


def paymongo_public_key() -> str | None:
    return os.getenv("PAYMONGO_PUBLIC_KEY")


def paymongo_webhook_secret() -> str | None:
    return os.getenv("PAYMONGO_WEBHOOK_SECRET")


def paymongo_base_url() -> str:
    return os.getenv("PAYMONGO_BASE_URL", "https://api.paymongo.com/v1").rstrip("/")
