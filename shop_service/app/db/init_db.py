# shop_service/app/db/init_db.py
import logging
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from shop_service.app.config import SEED_DEMO_DATA
from shop_service.app.db.database import engine, Base, SessionLocal
from shop_service.app.db.models import Product

logger = logging.getLogger(__name__)

_UNSPLASH = "https://images.unsplash.com/{}?w=400&h=500&fit=crop&crop=center"

DEMO_CATALOG = [
    {
        "name": "Premium Cotton Hoodie",
        "description": "Ultra-soft cotton blend hoodie perfect for casual wear. Features a relaxed fit and modern design.",
        "price": Decimal("89.99"),
        "category": "Hoodies",
        "image_url": _UNSPLASH.format("photo-1556821840-3a63f95609a7"),
        "stock_quantity": 15,
    },
    {
        "name": "Classic Denim Jacket",
        "description": "Timeless denim jacket with vintage wash. Perfect for layering and creating effortless style.",
        "price": Decimal("129.99"),
        "category": "Jackets",
        "image_url": _UNSPLASH.format("photo-1544966503-7cc5ac882d5f"),
        "stock_quantity": 8,
    },
    {
        "name": "Silk Blouse",
        "description": "Elegant silk blouse with flowing design. Perfect for office wear or special occasions.",
        "price": Decimal("149.99"),
        "category": "Blouses",
        "image_url": _UNSPLASH.format("photo-1594633312681-425c7b97ccd1"),
        "stock_quantity": 12,
    },
    {
        "name": "High-Waist Jeans",
        "description": "Premium denim jeans with high-waist cut. Flattering fit that pairs with any top.",
        "price": Decimal("119.99"),
        "category": "Jeans",
        "image_url": _UNSPLASH.format("photo-1541099649105-f69ad21f3246"),
        "stock_quantity": 20,
    },
    {
        "name": "Casual T-Shirt",
        "description": "Comfortable cotton t-shirt with modern fit. Available in multiple colors.",
        "price": Decimal("29.99"),
        "category": "T-Shirts",
        "image_url": _UNSPLASH.format("photo-1521572163474-6864f9cf17ab"),
        "stock_quantity": 0,
    },
    {
        "name": "Formal Blazer",
        "description": "Sophisticated blazer perfect for business meetings and formal events.",
        "price": Decimal("199.99"),
        "category": "Blazers",
        "image_url": _UNSPLASH.format("photo-1507003211169-0a1dd7228f2d"),
        "stock_quantity": 6,
    },
]


async def seed_demo_catalog(db: AsyncSession) -> int:
    """Заполняет пустую таблицу товаров демо-каталогом."""
    count = await db.execute(select(func.count()).select_from(Product))
    if count.scalar_one() > 0:
        return 0
    db.add_all([Product(**item) for item in DEMO_CATALOG])
    await db.commit()
    logger.info("Seeded %s demo products", len(DEMO_CATALOG))
    return len(DEMO_CATALOG)


async def init_db(bind=engine, session_factory=SessionLocal, seed: bool = SEED_DEMO_DATA):
    async with bind.begin() as conn:
        # Создание всех таблиц
        await conn.run_sync(Base.metadata.create_all)
    if seed:
        async with session_factory() as session:
            await seed_demo_catalog(session)
