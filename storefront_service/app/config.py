# storefront_service/app/config.py
import logging
import os

from dotenv import load_dotenv

load_dotenv()

SHOP_SERVICE_URL = os.getenv("SHOP_SERVICE_URL", "http://localhost:2022")
TIMEOUT = float(os.getenv("TIMEOUT", "5"))  # Максимальное время ожидания ответа в секундах
STOREFRONT_PORT = int(os.getenv("STOREFRONT_PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def setup_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
