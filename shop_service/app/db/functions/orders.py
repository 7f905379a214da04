# shop_service/app/db/functions/orders.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import List

from fastapi import HTTPException
from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from shop_service.app.db.functions.cart import get_cart_items
from shop_service.app.db.functions.users import get_user_by_id
from shop_service.app.db.models import CartItem, Order, OrderItem, OrderStatus, Product
from shop_service.app.db.schemas import (
    CheckoutInput,
    CreateOrderInput,
    Order as OrderSchema,
    OrderItemWithProduct,
    OrderLineInput,
    OrderWithItems,
)

logger = logging.getLogger(__name__)


async def _place_order(db: AsyncSession, user_id: int, shipping_address: str, billing_address: str,
                       lines: List[OrderLineInput]) -> Order:
    """
    Validates stock, computes the total and writes the order, its items and
    the stock decrements into the current transaction without committing.
    """
    db_user = await get_user_by_id(db, user_id)
    if not db_user:
        raise HTTPException(status_code=404, detail="User not found")

    # Повторяющиеся товары складываются в одну позицию
    quantities = {}
    for line in lines:
        quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

    total_amount = Decimal("0")
    validated = []
    for product_id, quantity in quantities.items():
        result = await db.execute(
            select(Product).filter(Product.id == product_id, Product.is_active.is_(True))
        )
        product = result.scalar_one_or_none()
        if not product:
            raise HTTPException(status_code=404, detail=f"Product {product_id} not found or inactive")
        if product.stock_quantity < quantity:
            raise HTTPException(
                status_code=400,
                detail=(f"Insufficient stock for product {product.name}. "
                        f"Available: {product.stock_quantity}, Requested: {quantity}"),
            )
        total_amount += product.price * quantity
        validated.append((product.id, product.price, quantity))

    # Создаем заказ
    new_order = Order(
        user_id=user_id,
        total_amount=total_amount,
        status=OrderStatus.pending,
        shipping_address=shipping_address,
        billing_address=billing_address,
    )
    db.add(new_order)
    await db.flush()

    # Добавляем элементы в заказ и списываем остатки
    for product_id, unit_price, quantity in validated:
        db.add(OrderItem(order_id=new_order.id, product_id=product_id, quantity=quantity, price=unit_price))
        await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity - quantity, updated_at=datetime.utcnow())
        )
    await db.flush()
    return new_order


# Функция для создания нового заказа
async def create_order(db: AsyncSession, order_data: CreateOrderInput) -> Order:
    try:
        new_order = await _place_order(
            db, order_data.user_id, order_data.shipping_address, order_data.billing_address, order_data.cart_items
        )
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error("Order creation failed for user_id=%s: %s", order_data.user_id, e)
        raise

    await db.refresh(new_order)
    logger.info("Created order id=%s user_id=%s total=%s", new_order.id, new_order.user_id, new_order.total_amount)
    return new_order


# Оформление заказа из корзины; корзина очищается в той же транзакции
async def process_checkout(db: AsyncSession, checkout_data: CheckoutInput) -> Order:
    cart_items = await get_cart_items(db, checkout_data.user_id)
    if not cart_items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    lines = [OrderLineInput(product_id=item.product_id, quantity=item.quantity) for item in cart_items]
    logger.info("Checkout user_id=%s items=%s payment_method=%s",
                checkout_data.user_id, len(lines), checkout_data.payment_method)
    try:
        new_order = await _place_order(
            db, checkout_data.user_id, checkout_data.shipping_address, checkout_data.billing_address, lines
        )
        await db.execute(delete(CartItem).where(CartItem.user_id == checkout_data.user_id))
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error("Checkout processing failed for user_id=%s: %s", checkout_data.user_id, e)
        raise

    await db.refresh(new_order)
    return new_order


def _order_with_items(order: Order) -> OrderWithItems:
    items = sorted(order.order_items, key=lambda item: item.id)
    return OrderWithItems(
        order=OrderSchema.model_validate(order),
        items=[OrderItemWithProduct.model_validate(item) for item in items],
    )


def _orders_query():
    return (
        select(Order)
        .options(selectinload(Order.order_items).selectinload(OrderItem.product))
        .execution_options(populate_existing=True)
    )


# Функция для получения всех заказов пользователя, новые первыми
async def get_orders_by_user_id(db: AsyncSession, user_id: int) -> List[OrderWithItems]:
    result = await db.execute(
        _orders_query().filter(Order.user_id == user_id).order_by(Order.created_at.desc(), Order.id.desc())
    )
    return [_order_with_items(order) for order in result.scalars().all()]


# Заказ отдается только его владельцу
async def get_order_by_id(db: AsyncSession, order_id: int, user_id: int):
    result = await db.execute(_orders_query().filter(Order.id == order_id, Order.user_id == user_id))
    order = result.scalar_one_or_none()
    if not order:
        return None
    return _order_with_items(order)


async def update_order_status(db: AsyncSession, order_id: int, status: OrderStatus):
    result = await db.execute(select(Order).filter(Order.id == order_id))
    order = result.scalar_one_or_none()
    if not order:
        return None

    order.status = status
    order.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(order)
    return order
