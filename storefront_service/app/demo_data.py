# storefront_service/app/demo_data.py
# Демо-данные, которые показываются, когда shop_service недоступен
from typing import List, Optional

_UNSPLASH = "https://images.unsplash.com/{}?w=400&h=500&fit=crop&crop=center"

DEMO_USER_ID = 1
DEMO_TOKEN = "demo-token"

DEMO_PRODUCTS = [
    {"id": 1, "name": "Premium Cotton Hoodie",
     "description": "Ultra-soft cotton blend hoodie perfect for casual wear. Features a relaxed fit and modern design.",
     "price": 89.99, "category": "Hoodies", "image_url": _UNSPLASH.format("photo-1556821840-3a63f95609a7"),
     "stock_quantity": 15, "is_active": True},
    {"id": 2, "name": "Classic Denim Jacket",
     "description": "Timeless denim jacket with vintage wash. Perfect for layering and creating effortless style.",
     "price": 129.99, "category": "Jackets", "image_url": _UNSPLASH.format("photo-1544966503-7cc5ac882d5f"),
     "stock_quantity": 8, "is_active": True},
    {"id": 3, "name": "Silk Blouse",
     "description": "Elegant silk blouse with flowing design. Perfect for office wear or special occasions.",
     "price": 149.99, "category": "Blouses", "image_url": _UNSPLASH.format("photo-1594633312681-425c7b97ccd1"),
     "stock_quantity": 12, "is_active": True},
    {"id": 4, "name": "High-Waist Jeans",
     "description": "Premium denim jeans with high-waist cut. Flattering fit that pairs with any top.",
     "price": 119.99, "category": "Jeans", "image_url": _UNSPLASH.format("photo-1541099649105-f69ad21f3246"),
     "stock_quantity": 20, "is_active": True},
    {"id": 5, "name": "Casual T-Shirt",
     "description": "Comfortable cotton t-shirt with modern fit. Available in multiple colors.",
     "price": 29.99, "category": "T-Shirts", "image_url": _UNSPLASH.format("photo-1521572163474-6864f9cf17ab"),
     "stock_quantity": 0, "is_active": True},
    {"id": 6, "name": "Formal Blazer",
     "description": "Sophisticated blazer perfect for business meetings and formal events.",
     "price": 199.99, "category": "Blazers", "image_url": _UNSPLASH.format("photo-1507003211169-0a1dd7228f2d"),
     "stock_quantity": 6, "is_active": True},
]


def filter_demo_products(category: Optional[str] = None, search: str = "") -> List[dict]:
    products = DEMO_PRODUCTS
    if category:
        products = [product for product in products if product["category"] == category]
    if search:
        needle = search.lower()
        products = [
            product for product in products
            if needle in product["name"].lower() or needle in product["description"].lower()
        ]
    return products


def demo_categories() -> List[str]:
    return sorted({product["category"] for product in DEMO_PRODUCTS})


def get_demo_product(product_id: int) -> Optional[dict]:
    for product in DEMO_PRODUCTS:
        if product["id"] == product_id:
            return product
    return None


# Демо-корзина хранится в cookie вида "4:2|1:1" (product_id:quantity)
def parse_demo_cart(raw: Optional[str]) -> List[dict]:
    lines = []
    for chunk in (raw or "").split("|"):
        product_id, _, quantity = chunk.partition(":")
        if not product_id.isdigit() or not quantity.isdigit():
            continue
        if int(quantity) > 0 and get_demo_product(int(product_id)):
            lines.append({"product_id": int(product_id), "quantity": int(quantity)})
    return lines


def dump_demo_cart(lines: List[dict]) -> str:
    return "|".join(f"{line['product_id']}:{line['quantity']}" for line in lines)


def add_demo_cart_item(lines: List[dict], product_id: int, quantity: int) -> List[dict]:
    """Same merge rule as the real cart: a product already in the cart gets its quantity increased."""
    if quantity <= 0 or get_demo_product(product_id) is None:
        return lines
    for line in lines:
        if line["product_id"] == product_id:
            return [
                {**item, "quantity": item["quantity"] + quantity} if item is line else item
                for item in lines
            ]
    return lines + [{"product_id": product_id, "quantity": quantity}]


def update_demo_cart_item(lines: List[dict], product_id: int, quantity: int) -> List[dict]:
    if quantity <= 0:
        return remove_demo_cart_item(lines, product_id)
    return [{**line, "quantity": quantity} if line["product_id"] == product_id else line for line in lines]


def remove_demo_cart_item(lines: List[dict], product_id: int) -> List[dict]:
    return [line for line in lines if line["product_id"] != product_id]


def demo_cart_view(lines: List[dict]) -> dict:
    """Cart in the shape shop_service returns; the product id doubles as the cart item id."""
    items = []
    for line in lines:
        items.append({
            "id": line["product_id"],
            "user_id": DEMO_USER_ID,
            "product_id": line["product_id"],
            "quantity": line["quantity"],
            "product": get_demo_product(line["product_id"]),
        })
    total_amount = round(sum(item["product"]["price"] * item["quantity"] for item in items), 2)
    return {"items": items, "total_amount": total_amount}
