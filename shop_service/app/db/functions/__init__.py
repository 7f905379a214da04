# shop_service/app/db/functions/__init__.py
from shop_service.app.db.functions.users import get_user_by_id, get_user_by_email, register_user, login_user
from shop_service.app.db.functions.products import (
    get_products,
    get_product_by_id,
    get_products_by_category,
    search_products,
    get_categories,
    create_product,
    update_product,
)
from shop_service.app.db.functions.cart import (
    get_cart_items,
    get_cart_by_user_id,
    add_to_cart,
    update_cart_item,
    remove_from_cart,
    clear_cart,
)
from shop_service.app.db.functions.orders import (
    create_order,
    process_checkout,
    get_orders_by_user_id,
    get_order_by_id,
    update_order_status,
)
