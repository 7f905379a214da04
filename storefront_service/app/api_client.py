# storefront_service/app/api_client.py
import logging
from typing import Any, Optional

import httpx

from storefront_service.app.config import SHOP_SERVICE_URL, TIMEOUT

logger = logging.getLogger(__name__)


class ShopApiError(Exception):
    """Ошибка обращения к shop_service.

    status_code is None when the service could not be reached at all.
    """

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code

    @property
    def unavailable(self) -> bool:
        return self.status_code is None


def _error_detail(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    if isinstance(detail, str):
        return detail
    if detail:
        return "Invalid input"
    return f"shop_service returned {response.status_code}"


class ShopApiClient:
    """Thin async wrapper around the shop_service RPC routes."""

    def __init__(self, base_url: str = SHOP_SERVICE_URL, timeout: float = TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def aclose(self):
        await self._client.aclose()

    async def _request(self, method: str, path: str, params: Optional[dict] = None,
                       json: Optional[dict] = None) -> Any:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            logger.warning("shop_service unavailable: %s %s: %s", method, path, e)
            raise ShopApiError(f"shop_service unavailable: {e}") from e

        if response.is_error:
            detail = _error_detail(response)
            logger.debug("shop_service error %s %s: %s %s", method, path, response.status_code, detail)
            raise ShopApiError(detail, status_code=response.status_code)
        return response.json()

    # Аутентификация
    async def register(self, email: str, password: str, first_name: str, last_name: str):
        return await self._request("POST", "/api/register", json={
            "email": email, "password": password, "first_name": first_name, "last_name": last_name,
        })

    async def login(self, email: str, password: str):
        return await self._request("POST", "/api/login", json={"email": email, "password": password})

    # Каталог
    async def get_products(self):
        return await self._request("GET", "/api/get_products")

    async def get_product(self, product_id: int):
        return await self._request("GET", "/api/get_product", params={"product_id": product_id})

    async def get_products_by_category(self, category: str):
        return await self._request("GET", "/api/get_products_by_category", params={"category": category})

    async def search_products(self, query: str):
        return await self._request("GET", "/api/search_products", params={"query": query})

    async def get_categories(self):
        return await self._request("GET", "/api/get_categories")

    # Корзина
    async def get_cart(self, user_id: int):
        return await self._request("GET", "/api/get_cart", params={"user_id": user_id})

    async def add_to_cart(self, user_id: int, product_id: int, quantity: int = 1):
        return await self._request("POST", "/api/add_to_cart", json={
            "user_id": user_id, "product_id": product_id, "quantity": quantity,
        })

    async def update_cart_item(self, cart_item_id: int, quantity: int):
        return await self._request("POST", "/api/update_cart_item", json={"id": cart_item_id, "quantity": quantity})

    async def remove_from_cart(self, cart_item_id: int, user_id: int):
        return await self._request("POST", "/api/remove_from_cart", json={
            "cart_item_id": cart_item_id, "user_id": user_id,
        })

    # Заказы
    async def checkout(self, user_id: int, shipping_address: str, billing_address: str, payment_method: str):
        return await self._request("POST", "/api/checkout", json={
            "user_id": user_id,
            "shipping_address": shipping_address,
            "billing_address": billing_address,
            "payment_method": payment_method,
        })

    async def get_orders(self, user_id: int):
        return await self._request("GET", "/api/get_orders", params={"user_id": user_id})
