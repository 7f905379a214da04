# shop_service/app/config.py
import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def build_database_url() -> str:
    """DATABASE_URL целиком или собранный из SHOP_DB_* переменных."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    return (
        f"postgresql+asyncpg://{os.getenv('SHOP_DB_USER', 'postgres')}:{os.getenv('SHOP_DB_PASSWORD', 'postgres')}"
        f"@{os.getenv('SHOP_DB_HOST', 'localhost')}:{os.getenv('SHOP_DB_PORT', '5432')}/{os.getenv('SHOP_DB_NAME', 'olive_shop')}"
    )


DATABASE_URL = build_database_url()
SQL_ECHO = _as_bool(os.getenv("SQL_ECHO", "false"))

def read_token_secret() -> str:
    """TOKEN_SECRET, затем JWT_SECRET, затем значение по умолчанию."""
    return os.getenv("TOKEN_SECRET") or os.getenv("JWT_SECRET") or "fallback-secret-key"


TOKEN_SECRET = read_token_secret()
TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", "24"))

# Адреса фронтенда через запятую
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

SEED_DEMO_DATA = _as_bool(os.getenv("SEED_DEMO_DATA", "true"))
SERVER_PORT = int(os.getenv("SERVER_PORT", "2022"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def setup_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
