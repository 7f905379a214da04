# shop_service/app/db/schemas.py
from datetime import datetime
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, EmailStr, Field, field_validator

from shop_service.app.db.models import OrderStatus


def _check_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("image_url must be an absolute http(s) URL")
    return value


# Схемы пользователя
class RegisterUserInput(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)


class LoginUserInput(BaseModel):
    email: EmailStr
    password: str


class UserPublic(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    user: UserPublic
    token: str


# Схема для товара (Product)
class Product(BaseModel):
    id: int
    name: str
    description: str
    price: float
    category: str
    image_url: str
    stock_quantity: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CreateProductInput(BaseModel):
    name: str = Field(..., min_length=1)
    description: str
    price: float = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    image_url: str
    stock_quantity: int = Field(..., ge=0)

    @field_validator("image_url")
    @classmethod
    def image_url_must_be_http(cls, value):
        return _check_url(value)


class UpdateProductInput(BaseModel):
    id: int
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = None
    stock_quantity: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("image_url")
    @classmethod
    def image_url_must_be_http(cls, value):
        return _check_url(value)


# Схемы корзины
class CartItem(BaseModel):
    id: int
    user_id: int
    product_id: int
    quantity: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CartItemWithProduct(CartItem):
    product: Product


class CartWithProducts(BaseModel):
    items: List[CartItemWithProduct]
    total_amount: float


class AddToCartInput(BaseModel):
    user_id: int
    product_id: int
    quantity: int = Field(..., gt=0)


class UpdateCartItemInput(BaseModel):
    id: int
    quantity: int = Field(..., gt=0)


class RemoveFromCartInput(BaseModel):
    cart_item_id: int
    user_id: int


class UserIdInput(BaseModel):
    user_id: int


# Схема заказа
class Order(BaseModel):
    id: int
    user_id: int
    total_amount: float
    status: OrderStatus
    shipping_address: str
    billing_address: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# Схема для элементов заказа
class OrderItem(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: float
    created_at: datetime

    class Config:
        from_attributes = True


class OrderItemWithProduct(OrderItem):
    product: Product


class OrderWithItems(BaseModel):
    order: Order
    items: List[OrderItemWithProduct]


class OrderLineInput(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)


class CreateOrderInput(BaseModel):
    user_id: int
    shipping_address: str = Field(..., min_length=1)
    billing_address: str = Field(..., min_length=1)
    cart_items: List[OrderLineInput] = Field(..., min_length=1)


class CheckoutInput(BaseModel):
    user_id: int
    shipping_address: str = Field(..., min_length=1)
    billing_address: str = Field(..., min_length=1)
    payment_method: str = Field(..., min_length=1)


class UpdateOrderStatusInput(BaseModel):
    order_id: int
    status: OrderStatus


class HealthCheck(BaseModel):
    status: str
    timestamp: datetime
