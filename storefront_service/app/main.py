# storefront_service/app/main.py
import logging
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, Form, Depends
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from storefront_service.app.api_client import ShopApiClient, ShopApiError
from storefront_service.app.config import STOREFRONT_PORT, setup_logging
from storefront_service.app.demo_data import (
    DEMO_TOKEN,
    DEMO_USER_ID,
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

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
GENERIC_ERROR = "Something went wrong. Please try again later."
DEMO_CART_COOKIE = "demo_cart"


async def lifespan(app: FastAPI) -> AsyncGenerator:
    app.state.api_client = ShopApiClient()
    yield
    await app.state.api_client.aclose()


app = FastAPI(title="Olive storefront", lifespan=lifespan)

# Templates and static files
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")


def get_api_client(request: Request) -> ShopApiClient:
    return request.app.state.api_client


def current_user(request: Request) -> Optional[dict]:
    """Пользователь из cookies или None."""
    token = request.cookies.get("access_token")
    user_id = request.cookies.get("user_id")
    if not token or not user_id or not user_id.isdigit():
        return None
    return {"id": int(user_id), "email": request.cookies.get("user_email", ""), "demo": token == DEMO_TOKEN}


def _render(request: Request, name: str, context: dict, status_code: int = 200):
    context.setdefault("user", current_user(request))
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def _login_redirect():
    return RedirectResponse(url="/login", status_code=303)


def _session_response(url: str, token: str, user: dict):
    response = RedirectResponse(url=url, status_code=303)
    response.set_cookie(key="access_token", value=token, httponly=True)
    response.set_cookie(key="user_id", value=str(user["id"]), httponly=True)
    response.set_cookie(key="user_email", value=user.get("email", ""), httponly=True)
    return response


def _demo_cart(request: Request):
    return parse_demo_cart(request.cookies.get(DEMO_CART_COOKIE))


def _demo_cart_redirect(url: str, lines):
    """Редирект с сохранением демо-корзины в cookie."""
    response = RedirectResponse(url=url, status_code=303)
    if lines:
        response.set_cookie(key=DEMO_CART_COOKIE, value=dump_demo_cart(lines), httponly=True)
    else:
        response.delete_cookie(DEMO_CART_COOKIE)
    return response


@app.get("/", response_class=HTMLResponse)
async def read_home(request: Request, category: Optional[str] = None, search: str = "",
                    api: ShopApiClient = Depends(get_api_client)):
    demo_mode = False
    try:
        if search:
            products = await api.search_products(search)
            if category:
                products = [product for product in products if product["category"] == category]
        elif category:
            products = await api.get_products_by_category(category)
        else:
            products = await api.get_products()
        categories = await api.get_categories()
    except ShopApiError as e:
        logger.warning("Backend not available, using demo products: %s", e.detail)
        demo_mode = True
        products = filter_demo_products(category, search)
        categories = demo_categories()

    # Пустой каталог тоже заменяется демо-товарами
    if not products and not category and not search and not demo_mode:
        logger.info("Catalog is empty, using demo products")
        demo_mode = True
        products = filter_demo_products()
        categories = demo_categories()

    return _render(request, "index.html", {
        "products": products,
        "categories": categories,
        "selected_category": category,
        "search": search,
        "demo_mode": demo_mode,
    })


@app.get("/product/{product_id}", response_class=HTMLResponse)
async def product_detail(request: Request, product_id: int, api: ShopApiClient = Depends(get_api_client)):
    try:
        product = await api.get_product(product_id)
    except ShopApiError as e:
        logger.warning("Backend not available, using demo product: %s", e.detail)
        product = get_demo_product(product_id)
    if not product:
        return _render(request, "message.html", {"message": "Product not found"}, status_code=404)
    return _render(request, "product.html", {"product": product})


@app.get("/cart", response_class=HTMLResponse)
async def get_cart(request: Request, api: ShopApiClient = Depends(get_api_client)):
    user = current_user(request)
    if not user:
        return _login_redirect()
    if user["demo"]:
        return _render(request, "cart.html", {"cart": demo_cart_view(_demo_cart(request)), "error": None,
                                              "demo_mode": True})
    try:
        cart = await api.get_cart(user["id"])
        error = None
    except ShopApiError:
        cart = {"items": [], "total_amount": 0}
        error = GENERIC_ERROR
    return _render(request, "cart.html", {"cart": cart, "error": error})


@app.post("/cart/add")
async def cart_add(request: Request, product_id: int = Form(...), quantity: int = Form(1),
                   api: ShopApiClient = Depends(get_api_client)):
    user = current_user(request)
    if not user:
        return _login_redirect()
    if user["demo"]:
        return _demo_cart_redirect("/cart", add_demo_cart_item(_demo_cart(request), product_id, quantity))
    try:
        await api.add_to_cart(user["id"], product_id, quantity)
    except ShopApiError as e:
        message = GENERIC_ERROR if e.unavailable else e.detail
        return _render(request, "message.html", {"message": message}, status_code=400)
    return RedirectResponse(url="/cart", status_code=303)


@app.post("/cart/update")
async def cart_update(request: Request, cart_item_id: int = Form(...), quantity: int = Form(...),
                      api: ShopApiClient = Depends(get_api_client)):
    user = current_user(request)
    if not user:
        return _login_redirect()
    if user["demo"]:
        return _demo_cart_redirect("/cart", update_demo_cart_item(_demo_cart(request), cart_item_id, quantity))
    try:
        if quantity > 0:
            await api.update_cart_item(cart_item_id, quantity)
        else:
            await api.remove_from_cart(cart_item_id, user["id"])
    except ShopApiError:
        return _render(request, "message.html", {"message": GENERIC_ERROR}, status_code=400)
    return RedirectResponse(url="/cart", status_code=303)


@app.post("/cart/remove")
async def cart_remove(request: Request, cart_item_id: int = Form(...), api: ShopApiClient = Depends(get_api_client)):
    user = current_user(request)
    if not user:
        return _login_redirect()
    if user["demo"]:
        return _demo_cart_redirect("/cart", remove_demo_cart_item(_demo_cart(request), cart_item_id))
    try:
        await api.remove_from_cart(cart_item_id, user["id"])
    except ShopApiError:
        return _render(request, "message.html", {"message": GENERIC_ERROR}, status_code=400)
    return RedirectResponse(url="/cart", status_code=303)


@app.get("/checkout", response_class=HTMLResponse)
async def checkout_form(request: Request, api: ShopApiClient = Depends(get_api_client)):
    user = current_user(request)
    if not user:
        return _login_redirect()
    if user["demo"]:
        return _render(request, "checkout.html", {"cart": demo_cart_view(_demo_cart(request)), "error": None})
    try:
        cart = await api.get_cart(user["id"])
    except ShopApiError:
        return _render(request, "message.html", {"message": GENERIC_ERROR}, status_code=503)
    return _render(request, "checkout.html", {"cart": cart, "error": None})


@app.post("/checkout", response_class=HTMLResponse)
async def checkout_submit(request: Request, shipping_address: str = Form(...), billing_address: str = Form(""),
                          payment_method: str = Form("credit_card"),
                          api: ShopApiClient = Depends(get_api_client)):
    user = current_user(request)
    if not user:
        return _login_redirect()
    # Адрес оплаты по умолчанию совпадает с адресом доставки
    billing_address = billing_address or shipping_address
    if user["demo"]:
        cart = demo_cart_view(_demo_cart(request))
        if not cart["items"]:
            return _render(request, "checkout.html", {"cart": cart, "error": "Cart is empty"}, status_code=400)
        logger.info("Demo checkout for %s: %s items, total %s", user["email"], len(cart["items"]),
                    cart["total_amount"])
        return _demo_cart_redirect("/orders", [])
    try:
        await api.checkout(user["id"], shipping_address, billing_address, payment_method)
    except ShopApiError as e:
        message = GENERIC_ERROR if e.unavailable else e.detail
        return _render(request, "checkout.html", {"cart": {"items": [], "total_amount": 0}, "error": message},
                       status_code=400)
    return RedirectResponse(url="/orders", status_code=303)


@app.get("/orders", response_class=HTMLResponse)
async def order_history(request: Request, api: ShopApiClient = Depends(get_api_client)):
    user = current_user(request)
    if not user:
        return _login_redirect()
    # В демо-режиме заказы не сохраняются
    if user["demo"]:
        return _render(request, "orders.html", {"orders": [], "error": None, "demo_mode": True})
    try:
        orders = await api.get_orders(user["id"])
        error = None
    except ShopApiError:
        orders = []
        error = GENERIC_ERROR
    return _render(request, "orders.html", {"orders": orders, "error": error})



@app.get("/login", response_class=HTMLResponse)
async def login(request: Request):
    return _render(request, "login.html", {"error": None})


@app.post("/login")
async def login_action(request: Request, email: str = Form(...), password: str = Form(...),
                       api: ShopApiClient = Depends(get_api_client)):
    try:
        result = await api.login(email, password)
    except ShopApiError as e:
        if e.unavailable:
            logger.warning("Backend not available, using demo login for %s", email)
            return _session_response("/", DEMO_TOKEN, {"id": DEMO_USER_ID, "email": email})
        return _render(request, "login.html", {"error": e.detail}, status_code=401)
    return _session_response("/", result["token"], result["user"])


@app.get("/signup", response_class=HTMLResponse)
async def signup(request: Request):
    return _render(request, "signup.html", {"error": None})


@app.post("/signup")
async def signup_action(request: Request, email: str = Form(...), password: str = Form(...),
                        first_name: str = Form(...), last_name: str = Form(...),
                        api: ShopApiClient = Depends(get_api_client)):
    try:
        result = await api.register(email, password, first_name, last_name)
    except ShopApiError as e:
        if e.unavailable:
            logger.warning("Backend not available, using demo registration for %s", email)
            return _session_response("/", DEMO_TOKEN, {"id": DEMO_USER_ID, "email": email})
        return _render(request, "signup.html", {"error": e.detail}, status_code=400)
    return _session_response("/", result["token"], result["user"])


@app.get("/logout")
async def logout():
    """Удаление токена и данных пользователя."""
    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie("access_token")
    response.delete_cookie("user_id")
    response.delete_cookie("user_email")
    response.delete_cookie(DEMO_CART_COOKIE)
    return response


def run():
    import uvicorn

    setup_logging()
    uvicorn.run("storefront_service.app.main:app", host="0.0.0.0", port=STOREFRONT_PORT)


if __name__ == "__main__":
    run()
