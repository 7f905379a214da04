# shop_service/app/db/database.py
import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from shop_service.app.config import DATABASE_URL, SQL_ECHO

logger = logging.getLogger(__name__)


def make_engine(url: str = DATABASE_URL, echo: bool = SQL_ECHO) -> AsyncEngine:
    """Асинхронный движок; для Postgres проверяем соединения из пула перед выдачей."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def make_session_factory(bind: AsyncEngine):
    return sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = make_engine()
SessionLocal = make_session_factory(engine)

# Базовый класс для моделей
Base = declarative_base()


# Сессия на запрос; незакоммиченное откатывается при ошибке
async def get_db():
    async with SessionLocal() as session:
        try:
            yield session
        except Exception:
            logger.debug("Rolling back session after failed request")
            await session.rollback()
            raise
