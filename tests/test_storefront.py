import json

import httpx
import pytest
import pytest_asyncio

from storefront_service.app.api_client import ShopApiClient, ShopApiError
from storefront_service.app.demo_data import (
    DEMO_PRODUCTS,
    add_demo_cart_item,
    demo_cart_view,
    demo_categories,
    dump_demo_cart,
    filter_demo_products,
    get_demo_product,
    parse_demo_cart,
    remove_demo_cart_item,
    update_demo_cart_item,
)
from storefront_service.app.main import app as storefront_app, get_api_client

API_PRODUCTS = [
    {
        "id": 10,
        "name": "Wool Coat",
        "description": "Warm winter coat",
        "price": 249.0,
        "category": "Coats",
        "image_url": "https://example.com/coat.jpg",
        "stock_quantity": 4,
        "is_active": True,
        "created_at": "2024-01-01T00:00:00",
        "updated_at": "2024-01-01T00:00:00",
    },
]


def _offline_handler(request):
    raise httpx.ConnectError("connection refused", request=request)


def _online_handler(request):
    path = request.url.path
    if path == "/api/get_products":
        return httpx.Response(200, json=API_PRODUCTS)
    if path == "/api/get_categories":
        return httpx.Response(200, json=["Coats"])
    if path == "/api/get_product":
        return httpx.Response(200, content=b"null", headers={"content-type": "application/json"})
    if path == "/api/login":
        return httpx.Response(401, json={"detail": "Invalid email or password"})
    if path == "/api/get_cart":
        return httpx.Response(200, json={"items": [], "total_amount": 0.0})
    if path == "/api/checkout":
        return httpx.Response(400, json={"detail": "Cart is empty"})
    return httpx.Response(404, json={"detail": "Not Found"})


@pytest_asyncio.fixture
async def make_storefront():
    """Returns a factory building a storefront client backed by the given fake shop_service."""
    clients = []

    async def _make(handler, cookies=None):
        api = ShopApiClient(base_url="http://shop", transport=httpx.MockTransport(handler))
        storefront_app.dependency_overrides[get_api_client] = lambda: api
        client = httpx.AsyncClient(transport=httpx.ASGITransport(app=storefront_app), base_url="http://test",
                                   cookies=cookies)
        clients.append((client, api))
        return client

    yield _make
    for client, api in clients:
        await client.aclose()
        await api.aclose()
    storefront_app.dependency_overrides.clear()


def test_filter_demo_products():
    assert filter_demo_products() == DEMO_PRODUCTS
    assert [product["name"] for product in filter_demo_products(category="Jeans")] == ["High-Waist Jeans"]
    assert [product["name"] for product in filter_demo_products(search="DENIM")] == [
        "Classic Denim Jacket",
        "High-Waist Jeans",
    ]
    assert filter_demo_products(category="Jeans", search="hoodie") == []


def test_demo_lookup_helpers():
    assert demo_categories() == sorted(demo_categories())
    assert len(demo_categories()) == 6
    assert get_demo_product(6)["name"] == "Formal Blazer"
    assert get_demo_product(99) is None


@pytest.mark.asyncio
async def test_api_client_unavailable():
    api = ShopApiClient(base_url="http://shop", transport=httpx.MockTransport(_offline_handler))
    with pytest.raises(ShopApiError) as exc:
        await api.get_products()
    assert exc.value.unavailable
    await api.aclose()


@pytest.mark.asyncio
async def test_api_client_error_detail():
    api = ShopApiClient(base_url="http://shop", transport=httpx.MockTransport(_online_handler))
    with pytest.raises(ShopApiError) as exc:
        await api.login("a@example.com", "password123")
    assert exc.value.status_code == 401
    assert exc.value.detail == "Invalid email or password"
    assert not exc.value.unavailable

    assert await api.get_products() == API_PRODUCTS
    assert await api.get_product(1) is None
    await api.aclose()


@pytest.mark.asyncio
async def test_home_falls_back_to_demo_products(make_storefront):
    client = await make_storefront(_offline_handler)

    response = await client.get("/")
    assert response.status_code == 200
    assert "Showing demo products" in response.text
    assert "Premium Cotton Hoodie" in response.text

    response = await client.get("/", params={"category": "Jeans"})
    assert "High-Waist Jeans" in response.text
    assert "Premium Cotton Hoodie" not in response.text


@pytest.mark.asyncio
async def test_home_renders_api_products(make_storefront):
    client = await make_storefront(_online_handler)

    response = await client.get("/")
    assert response.status_code == 200
    assert "Wool Coat" in response.text
    assert "$249.00" in response.text
    assert "Showing demo products" not in response.text


@pytest.mark.asyncio
async def test_product_page(make_storefront):
    offline = await make_storefront(_offline_handler)
    response = await offline.get("/product/2")
    assert response.status_code == 200
    assert "Classic Denim Jacket" in response.text

    online = await make_storefront(_online_handler)
    response = await online.get("/product/2")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cart_requires_login(make_storefront):
    client = await make_storefront(_online_handler)
    for path in ("/cart", "/orders", "/checkout"):
        response = await client.get(path)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_cart_page_shows_generic_message_when_offline(make_storefront):
    client = await make_storefront(_offline_handler, cookies={"access_token": "t", "user_id": "1"})
    response = await client.get("/cart")
    assert response.status_code == 200
    assert "Something went wrong" in response.text


@pytest.mark.asyncio
async def test_login_falls_back_to_demo_session(make_storefront):
    client = await make_storefront(_offline_handler)
    response = await client.post("/login", data={"email": "demo@example.com", "password": "password123"})
    assert response.status_code == 303
    assert response.cookies.get("access_token") == "demo-token"
    assert response.cookies.get("user_id") == "1"


@pytest.mark.asyncio
async def test_login_shows_api_error(make_storefront):
    client = await make_storefront(_online_handler)
    response = await client.post("/login", data={"email": "demo@example.com", "password": "wrong-password"})
    assert response.status_code == 401
    assert "Invalid email or password" in response.text


@pytest.mark.asyncio
async def test_checkout_shows_api_error(make_storefront):
    client = await make_storefront(_online_handler, cookies={"access_token": "t", "user_id": "1"})
    response = await client.post("/checkout", data={"shipping_address": "1 Fashion Ave"})
    assert response.status_code == 400
    assert "Cart is empty" in response.text


@pytest.mark.asyncio
async def test_logout_clears_session(make_storefront):
    client = await make_storefront(_online_handler, cookies={"access_token": "t", "user_id": "1"})
    response = await client.get("/logout")
    assert response.status_code == 303
    assert response.headers["location"] == "/"


class FakeShop:
    """MockTransport handler that records every call and answers from a path -> (status, body) table."""

    def __init__(self, routes=None):
        self.routes = {
            "/api/get_products": (200, API_PRODUCTS),
            "/api/get_categories": (200, ["Coats"]),
            "/api/get_cart": (200, {"items": [], "total_amount": 0.0}),
        }
        self.routes.update(routes or {})
        self.calls = []

    def __call__(self, request):
        body = json.loads(request.content) if request.content else dict(request.url.params)
        self.calls.append((request.method, request.url.path, body))
        status, payload = self.routes.get(request.url.path, (404, {"detail": "Not Found"}))
        return httpx.Response(status, json=payload)

    def bodies(self, path):
        return [body for _, called_path, body in self.calls if called_path == path]


SESSION = {"access_token": "real-token", "user_id": "7", "user_email": "sam@example.com"}


@pytest.mark.asyncio
async def test_home_falls_back_when_catalog_is_empty(make_storefront):
    client = await make_storefront(FakeShop({"/api/get_products": (200, []), "/api/get_categories": (200, [])}))

    response = await client.get("/")
    assert "Showing demo products" in response.text
    assert "Formal Blazer" in response.text


@pytest.mark.asyncio
async def test_cart_add_calls_api(make_storefront):
    shop = FakeShop({"/api/add_to_cart": (200, {"id": 3, "user_id": 7, "product_id": 10, "quantity": 2})})
    client = await make_storefront(shop, cookies=SESSION)

    response = await client.post("/cart/add", data={"product_id": "10", "quantity": "2"})
    assert response.status_code == 303
    assert response.headers["location"] == "/cart"
    assert shop.bodies("/api/add_to_cart") == [{"user_id": 7, "product_id": 10, "quantity": 2}]


@pytest.mark.asyncio
async def test_cart_add_shows_api_error(make_storefront):
    shop = FakeShop({"/api/add_to_cart": (404, {"detail": "Product not found or inactive"})})
    client = await make_storefront(shop, cookies=SESSION)

    response = await client.post("/cart/add", data={"product_id": "99"})
    assert response.status_code == 400
    assert "Product not found or inactive" in response.text


@pytest.mark.asyncio
async def test_cart_update_and_remove_call_api(make_storefront):
    shop = FakeShop({
        "/api/update_cart_item": (200, {"id": 3, "user_id": 7, "product_id": 10, "quantity": 4}),
        "/api/remove_from_cart": (200, True),
    })
    client = await make_storefront(shop, cookies=SESSION)

    response = await client.post("/cart/update", data={"cart_item_id": "3", "quantity": "4"})
    assert response.status_code == 303
    assert shop.bodies("/api/update_cart_item") == [{"id": 3, "quantity": 4}]

    # нулевое количество удаляет позицию
    response = await client.post("/cart/update", data={"cart_item_id": "3", "quantity": "0"})
    assert response.status_code == 303
    assert shop.bodies("/api/remove_from_cart") == [{"cart_item_id": 3, "user_id": 7}]
    assert len(shop.bodies("/api/update_cart_item")) == 1

    response = await client.post("/cart/remove", data={"cart_item_id": "5"})
    assert response.status_code == 303
    assert response.headers["location"] == "/cart"
    assert shop.bodies("/api/remove_from_cart")[-1] == {"cart_item_id": 5, "user_id": 7}


@pytest.mark.asyncio
async def test_cart_page_lists_items(make_storefront):
    cart = {
        "items": [{"id": 3, "user_id": 7, "product_id": 10, "quantity": 2, "product": API_PRODUCTS[0]}],
        "total_amount": 498.0,
    }
    client = await make_storefront(FakeShop({"/api/get_cart": (200, cart)}), cookies=SESSION)

    response = await client.get("/cart")
    assert response.status_code == 200
    assert "Wool Coat" in response.text
    assert "$498.00" in response.text


@pytest.mark.asyncio
async def test_checkout_defaults_billing_to_shipping(make_storefront):
    shop = FakeShop({"/api/checkout": (200, {"id": 5, "status": "pending"})})
    client = await make_storefront(shop, cookies=SESSION)

    response = await client.post("/checkout", data={"shipping_address": "1 Fashion Ave"})
    assert response.status_code == 303
    assert response.headers["location"] == "/orders"
    assert shop.bodies("/api/checkout") == [{
        "user_id": 7,
        "shipping_address": "1 Fashion Ave",
        "billing_address": "1 Fashion Ave",
        "payment_method": "credit_card",
    }]


@pytest.mark.asyncio
async def test_orders_page_renders_history(make_storefront):
    orders = [{
        "order": {"id": 5, "user_id": 7, "status": "shipped", "total_amount": 89.99,
                  "created_at": "2024-03-01T10:00:00"},
        "items": [{"id": 1, "quantity": 1, "price": 89.99, "product": {"name": "Premium Cotton Hoodie"}}],
    }]
    shop = FakeShop({"/api/get_orders": (200, orders)})
    client = await make_storefront(shop, cookies=SESSION)

    response = await client.get("/orders")
    assert response.status_code == 200
    assert "Order #5" in response.text
    assert "shipped" in response.text
    assert "Premium Cotton Hoodie" in response.text
    assert "$89.99" in response.text
    assert shop.bodies("/api/get_orders") == [{"user_id": "7"}]


@pytest.mark.asyncio
async def test_signup_starts_session(make_storefront):
    shop = FakeShop({"/api/register": (200, {"token": "new-token", "user": {"id": 8, "email": "new@example.com"}})})
    client = await make_storefront(shop)

    response = await client.post("/signup", data={
        "email": "new@example.com", "password": "password123", "first_name": "New", "last_name": "Shopper",
    })
    assert response.status_code == 303
    assert response.cookies.get("access_token") == "new-token"
    assert response.cookies.get("user_id") == "8"
    assert shop.bodies("/api/register")[0]["first_name"] == "New"


@pytest.mark.asyncio
async def test_signup_shows_api_error(make_storefront):
    shop = FakeShop({"/api/register": (400, {"detail": "User with this email already exists"})})
    client = await make_storefront(shop)

    response = await client.post("/signup", data={
        "email": "taken@example.com", "password": "password123", "first_name": "A", "last_name": "B",
    })
    assert response.status_code == 400
    assert "User with this email already exists" in response.text


def test_demo_cart_helpers():
    lines = parse_demo_cart("4:1|1:2|99:1|bad|6:0")
    assert lines == [{"product_id": 4, "quantity": 1}, {"product_id": 1, "quantity": 2}]

    lines = add_demo_cart_item(lines, 4, 2)
    assert lines[0] == {"product_id": 4, "quantity": 3}
    assert add_demo_cart_item(lines, 99, 1) == lines

    lines = update_demo_cart_item(lines, 1, 0)
    assert dump_demo_cart(lines) == "4:3"

    cart = demo_cart_view(lines)
    assert cart["items"][0]["product"]["name"] == "High-Waist Jeans"
    assert cart["total_amount"] == pytest.approx(359.97)
    assert demo_cart_view(remove_demo_cart_item(lines, 4)) == {"items": [], "total_amount": 0}


@pytest.mark.asyncio
async def test_demo_session_keeps_cart_while_offline(make_storefront):
    client = await make_storefront(_offline_handler)

    response = await client.post("/login", data={"email": "demo@example.com", "password": "password123"})
    assert response.cookies.get("access_token") == "demo-token"

    for product_id in ("4", "4", "1"):
        response = await client.post("/cart/add", data={"product_id": product_id, "quantity": "1"})
        assert response.status_code == 303
        assert response.headers["location"] == "/cart"

    response = await client.get("/cart")
    assert response.status_code == 200
    assert "High-Waist Jeans" in response.text
    assert "Premium Cotton Hoodie" in response.text
    assert "$329.97" in response.text

    response = await client.post("/cart/update", data={"cart_item_id": "4", "quantity": "0"})
    assert response.status_code == 303
    response = await client.get("/cart")
    assert "High-Waist Jeans" not in response.text
    assert "$89.99" in response.text

    response = await client.post("/checkout", data={"shipping_address": "1 Fashion Ave"})
    assert response.status_code == 303
    assert response.headers["location"] == "/orders"

    response = await client.get("/cart")
    assert "Your cart is empty." in response.text

    response = await client.post("/checkout", data={"shipping_address": "1 Fashion Ave"})
    assert response.status_code == 400
    assert "Cart is empty" in response.text
