import os

# Настройки должны быть выставлены до импорта shop_service
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["SEED_DEMO_DATA"] = "false"
os.environ.setdefault("TOKEN_SECRET", "test-secret")

from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from shop_service.app.db.database import Base, get_db, make_engine, make_session_factory
from shop_service.app.db.models import Product, User
from shop_service.app.main import app


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# FastAPI dependency override so endpoints use the per-test database
@pytest_asyncio.fixture
async def client(session_factory):
    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def user_id(db):
    user = User(email="test@example.com", password_hash="hashed_password", first_name="John", last_name="Doe")
    db.add(user)
    await db.commit()
    return user.id


@pytest_asyncio.fixture
async def product_ids(db):
    """Two active products: 29.99 x 50 in stock and 19.99 x 25 in stock."""
    first = Product(
        name="Test Product 1",
        description="Product for testing",
        price=Decimal("29.99"),
        category="Electronics",
        image_url="https://example.com/product1.jpg",
        stock_quantity=50,
        is_active=True,
    )
    second = Product(
        name="Test Product 2",
        description="Another test product",
        price=Decimal("19.99"),
        category="Books",
        image_url="https://example.com/product2.jpg",
        stock_quantity=25,
        is_active=True,
    )
    db.add_all([first, second])
    await db.commit()
    return first.id, second.id


@pytest_asyncio.fixture
async def inactive_product_id(db):
    product = Product(
        name="Retired Scarf",
        description="No longer sold",
        price=Decimal("15.00"),
        category="Accessories",
        image_url="https://example.com/scarf.jpg",
        stock_quantity=10,
        is_active=False,
    )
    db.add(product)
    await db.commit()
    return product.id
