# shop_service/app/main.py
import logging
from datetime import datetime, timezone
from typing import AsyncGenerator, List, Optional

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from shop_service.app.auth_utils import decode_access_token
from shop_service.app.config import CORS_ORIGINS, SERVER_PORT, setup_logging
from shop_service.app.db import functions
from shop_service.app.db.database import get_db
from shop_service.app.db.init_db import init_db
from shop_service.app.db.schemas import (
    AddToCartInput,
    AuthResponse,
    CartItem,
    CartWithProducts,
    CheckoutInput,
    CreateOrderInput,
    CreateProductInput,
    HealthCheck,
    LoginUserInput,
    Order,
    OrderWithItems,
    Product,
    RegisterUserInput,
    RemoveFromCartInput,
    UpdateCartItemInput,
    UpdateOrderStatusInput,
    UpdateProductInput,
    UserIdInput,
    UserPublic,
)

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/login")


async def lifespan(app: FastAPI) -> AsyncGenerator:
    await init_db()
    logger.info("shop_service started")
    yield


app = FastAPI(title="Olive shop service", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", response_model=HealthCheck)
@app.get("/api/healthcheck", response_model=HealthCheck)
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc)}


# Аутентификация
@app.post("/api/register", response_model=AuthResponse)
async def register(user_data: RegisterUserInput, db: AsyncSession = Depends(get_db)):
    return await functions.register_user(db, user_data)


@app.post("/api/login", response_model=AuthResponse)
async def login(credentials: LoginUserInput, db: AsyncSession = Depends(get_db)):
    return await functions.login_user(db, credentials)


@app.get("/api/get_user", response_model=Optional[UserPublic])
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await functions.get_user_by_id(db, user_id)


# Пользователь по токену из заголовка Authorization
@app.get("/api/me", response_model=Optional[UserPublic])
async def read_current_user(token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db)):
    user_id = decode_access_token(token)
    return await functions.get_user_by_id(db, user_id)


# Каталог
@app.get("/api/get_products", response_model=List[Product])
async def get_products(db: AsyncSession = Depends(get_db)):
    return await functions.get_products(db)


@app.get("/api/get_product", response_model=Optional[Product])
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    return await functions.get_product_by_id(db, product_id)


@app.get("/api/get_products_by_category", response_model=List[Product])
async def get_products_by_category(category: str, db: AsyncSession = Depends(get_db)):
    return await functions.get_products_by_category(db, category)


@app.get("/api/search_products", response_model=List[Product])
async def search_products(query: str = "", db: AsyncSession = Depends(get_db)):
    return await functions.search_products(db, query)


@app.get("/api/get_categories", response_model=List[str])
async def get_categories(db: AsyncSession = Depends(get_db)):
    return await functions.get_categories(db)


@app.post("/api/create_product", response_model=Product)
async def create_product(product: CreateProductInput, db: AsyncSession = Depends(get_db)):
    return await functions.create_product(db, product)


@app.post("/api/update_product", response_model=Optional[Product])
async def update_product(product: UpdateProductInput, db: AsyncSession = Depends(get_db)):
    return await functions.update_product(db, product)


# Корзина
@app.get("/api/get_cart", response_model=CartWithProducts)
async def get_cart(user_id: int, db: AsyncSession = Depends(get_db)):
    return await functions.get_cart_by_user_id(db, user_id)


@app.post("/api/add_to_cart", response_model=CartItem)
async def add_to_cart(item: AddToCartInput, db: AsyncSession = Depends(get_db)):
    return await functions.add_to_cart(db, item)


@app.post("/api/update_cart_item", response_model=Optional[CartItem])
async def update_cart_item(item: UpdateCartItemInput, db: AsyncSession = Depends(get_db)):
    return await functions.update_cart_item(db, item)


@app.post("/api/remove_from_cart", response_model=bool)
async def remove_from_cart(item: RemoveFromCartInput, db: AsyncSession = Depends(get_db)):
    return await functions.remove_from_cart(db, item.cart_item_id, item.user_id)


@app.post("/api/clear_cart", response_model=bool)
async def clear_cart(data: UserIdInput, db: AsyncSession = Depends(get_db)):
    return await functions.clear_cart(db, data.user_id)


# Заказы
@app.post("/api/create_order", response_model=Order)
async def create_order(order: CreateOrderInput, db: AsyncSession = Depends(get_db)):
    return await functions.create_order(db, order)


@app.post("/api/checkout", response_model=Order)
async def checkout(checkout_data: CheckoutInput, db: AsyncSession = Depends(get_db)):
    return await functions.process_checkout(db, checkout_data)


@app.get("/api/get_orders", response_model=List[OrderWithItems])
async def get_orders(user_id: int, db: AsyncSession = Depends(get_db)):
    return await functions.get_orders_by_user_id(db, user_id)


@app.get("/api/get_order", response_model=Optional[OrderWithItems])
async def get_order(order_id: int, user_id: int, db: AsyncSession = Depends(get_db)):
    return await functions.get_order_by_id(db, order_id, user_id)


@app.post("/api/update_order_status", response_model=Optional[Order])
async def update_order_status(data: UpdateOrderStatusInput, db: AsyncSession = Depends(get_db)):
    return await functions.update_order_status(db, data.order_id, data.status)


def run():
    import uvicorn

    setup_logging()
    uvicorn.run("shop_service.app.main:app", host="0.0.0.0", port=SERVER_PORT)


if __name__ == "__main__":
    run()
