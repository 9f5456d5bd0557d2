"""
Корзина покупателя.

Корзина хранится в подписанной сессии (SessionMiddleware) как список
позиций:

```
{
    "id": str,               # mattress-<hex>
    "name": str,             # "Матрас 90x200, 20см — A + B | Чехол: C"
    "price": int | float,    # цена на момент добавления
    "quantity": int,
    "configuration": dict,   # cover, size, height, layer1..N
    "path": str,             # сегмент URL конфигурации
}
```
"""

import uuid

from .dimensions import COVER_SLOT
from .state import ConfigView

SESSION_KEY = "cart"


def line_item(view: ConfigView):
    size, height = view.state.size, view.state.height
    cover_name = ""
    layer_names = []
    for row in view.breakdown:
        name = row["item"].plain_name if row["item"] else ""
        if row["slot"] == COVER_SLOT:
            cover_name = name
        else:
            layer_names.append(name)

    configuration = {
        "cover": cover_name,
        "size": size,
        "height": f"{height} см",
    }
    for index, name in enumerate(layer_names):
        configuration[f"layer{index + 1}"] = name
    names = [n for n in layer_names if n]

    return {
        "id": f"mattress-{uuid.uuid4().hex[:12]}",
        "name": f"Матрас {size}, {height}см — {' + '.join(names)} | Чехол: {cover_name}",
        "price": view.total,
        "quantity": 1,
        "configuration": configuration,
        "path": view.path,
    }


def get_cart(session):
    cart = session.get(SESSION_KEY)
    return cart if isinstance(cart, list) else []


def save_cart(session, cart):
    session[SESSION_KEY] = cart


def add_item(cart, item):
    """Такая же конфигурация уже в корзине -> увеличиваем количество."""
    for existing in cart:
        if existing["name"] == item["name"] and existing["configuration"] == item["configuration"]:
            existing["quantity"] += 1
            return cart
    cart.append(item)
    return cart


def update_quantity(cart, index: int, quantity: int):
    if quantity < 1 or not 0 <= index < len(cart):
        return cart
    cart[index]["quantity"] = quantity
    return cart


def remove_item(cart, index: int):
    if 0 <= index < len(cart):
        del cart[index]
    return cart


def cart_total(cart):
    return sum(item["price"] * item["quantity"] for item in cart)
