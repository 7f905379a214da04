# shop_service/app/db/functions/cart.py
import logging
from datetime import datetime
from decimal import Decimal

from fastapi import HTTPException
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import contains_eager

from shop_service.app.db.functions.users import get_user_by_id
from shop_service.app.db.models import CartItem, Product
from shop_service.app.db.schemas import AddToCartInput, CartItemWithProduct, CartWithProducts, UpdateCartItemInput

logger = logging.getLogger(__name__)


async def get_cart_items(db: AsyncSession, user_id: int):
    """Позиции корзины пользователя вместе с товарами."""
    result = await db.execute(
        select(CartItem)
        .join(CartItem.product)
        .options(contains_eager(CartItem.product))
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().all()


# Корзина с товарами и суммой по текущим ценам
async def get_cart_by_user_id(db: AsyncSession, user_id: int) -> CartWithProducts:
    cart_items = await get_cart_items(db, user_id)
    total_amount = sum((item.product.price * item.quantity for item in cart_items), Decimal("0"))
    return CartWithProducts(
        items=[CartItemWithProduct.model_validate(item) for item in cart_items],
        total_amount=total_amount,
    )


# Добавление товара в корзину
async def add_to_cart(db: AsyncSession, item_data: AddToCartInput):
    logger.debug("add_to_cart user_id=%s product_id=%s quantity=%s",
                 item_data.user_id, item_data.product_id, item_data.quantity)
    db_user = await get_user_by_id(db, item_data.user_id)
    if not db_user:
        raise HTTPException(status_code=404, detail="User not found")

    product = await db.execute(
        select(Product).filter(Product.id == item_data.product_id, Product.is_active.is_(True))
    )
    if product.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="Product not found or inactive")

    # Проверим, есть ли уже товар в корзине
    cart_item = await db.execute(
        select(CartItem).filter(CartItem.user_id == item_data.user_id, CartItem.product_id == item_data.product_id)
    )
    cart_item = cart_item.scalar_one_or_none()

    if cart_item:
        # Если товар уже есть в корзине, обновим его количество
        cart_item.quantity += item_data.quantity
        cart_item.updated_at = datetime.utcnow()
    else:
        cart_item = CartItem(user_id=item_data.user_id, product_id=item_data.product_id, quantity=item_data.quantity)
        db.add(cart_item)

    await db.commit()
    await db.refresh(cart_item)
    return cart_item


# Обновление количества товара в корзине
async def update_cart_item(db: AsyncSession, item_data: UpdateCartItemInput):
    result = await db.execute(select(CartItem).filter(CartItem.id == item_data.id))
    cart_item = result.scalar_one_or_none()
    if not cart_item:
        return None

    cart_item.quantity = item_data.quantity
    cart_item.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(cart_item)
    return cart_item


# Удаление позиции, только если она принадлежит пользователю
async def remove_from_cart(db: AsyncSession, cart_item_id: int, user_id: int) -> bool:
    result = await db.execute(
        delete(CartItem).where(CartItem.id == cart_item_id, CartItem.user_id == user_id)
    )
    await db.commit()
    return result.rowcount > 0


async def clear_cart(db: AsyncSession, user_id: int) -> bool:
    """Функция для очистки корзины пользователя"""
    result = await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
    await db.commit()
    return result.rowcount > 0
