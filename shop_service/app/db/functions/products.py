# shop_service/app/db/functions/products.py
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from shop_service.app.db.models import Product
from shop_service.app.db.schemas import CreateProductInput, UpdateProductInput

logger = logging.getLogger(__name__)


# Получение всех активных товаров
async def get_products(db: AsyncSession):
    result = await db.execute(select(Product).filter(Product.is_active.is_(True)).order_by(Product.id))
    return result.scalars().all()


# Получение одного товара, неактивные не отдаются
async def get_product_by_id(db: AsyncSession, product_id: int):
    result = await db.execute(
        select(Product).filter(Product.id == product_id, Product.is_active.is_(True))
    )
    return result.scalar_one_or_none()


async def get_products_by_category(db: AsyncSession, category: str):
    result = await db.execute(
        select(Product)
        .filter(Product.category == category, Product.is_active.is_(True))
        .order_by(Product.id)
    )
    return result.scalars().all()


# Поиск подстроки в названии или описании без учета регистра
async def search_products(db: AsyncSession, query: str):
    search_term = f"%{query}%"
    logger.debug("search_products query=%r", query)
    result = await db.execute(
        select(Product)
        .filter(
            or_(Product.name.ilike(search_term), Product.description.ilike(search_term)),
            Product.is_active.is_(True),
        )
        .order_by(Product.id)
    )
    return result.scalars().all()


async def get_categories(db: AsyncSession):
    result = await db.execute(
        select(Product.category).filter(Product.is_active.is_(True)).distinct().order_by(Product.category)
    )
    return list(result.scalars().all())


# Создание нового товара
async def create_product(db: AsyncSession, product_data: CreateProductInput):
    new_product = Product(
        name=product_data.name,
        description=product_data.description,
        price=Decimal(str(product_data.price)),
        category=product_data.category,
        image_url=product_data.image_url,
        stock_quantity=product_data.stock_quantity,
        is_active=True,
    )
    db.add(new_product)
    await db.commit()  # Сохраняем в базу данных
    await db.refresh(new_product)  # Обновляем объект с последними данными из базы
    logger.info("Created product id=%s name=%r", new_product.id, new_product.name)
    return new_product


# Частичное обновление товара
async def update_product(db: AsyncSession, product_data: UpdateProductInput):
    result = await db.execute(select(Product).filter(Product.id == product_data.id))
    product = result.scalar_one_or_none()
    if not product:
        return None

    changes = product_data.model_dump(exclude_unset=True, exclude={"id"})
    for field, value in changes.items():
        # null в необязательном поле означает "не менять"
        if value is None:
            continue
        if field == "price":
            value = Decimal(str(value))
        setattr(product, field, value)
    product.updated_at = datetime.utcnow()

    await db.commit()
    await db.refresh(product)
    return product
