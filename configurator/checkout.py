import logging
import re
from typing import Dict, Iterable, Set

from telegram import Bot
from telegram.error import TelegramError

from .cart import cart_total

log = logging.getLogger(__name__)

# "+420 777 123 456", "777123456"; пробелы перед проверкой убираются
PHONE_RE = re.compile(r"^(\+420)?([0-9]{9})$")
SPACES_RE = re.compile(r"\s+")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
POSTAL_CODE_RE = re.compile(r"^[0-9]{3}\s?[0-9]{2}$")

DELIVERY_METHODS = {"pickup": "Самовывоз", "courier": "Курьер"}
PAYMENT_METHODS = {"card": "Картой", "cash": "Наличными", "transfer": "Переводом"}

CHECKOUT_FIELDS = [
    "name",
    "email",
    "phone",
    "delivery_method",
    "payment_method",
    "address",
    "city",
    "postal_code",
    "delivery_notes",
]


def parse_admin_ids(raw: str) -> Set[int]:
    ids: Set[int] = set()
    for part in (raw or "").split(","):
        part = part.strip()
        if part.isdigit():
            ids.add(int(part))
    return ids


def normalize_phone(raw):
    """Чешский номер -> "+420XXXXXXXXX", иначе пустая строка."""
    m = PHONE_RE.match(SPACES_RE.sub("", raw or ""))
    if not m:
        return ""
    return "+420" + m.group(2)


def clean_form(form) -> Dict[str, str]:
    data = {name: str(form.get(name) or "").strip() for name in CHECKOUT_FIELDS}
    data["delivery_method"] = data["delivery_method"] or "pickup"
    data["payment_method"] = data["payment_method"] or "card"
    return data


def validate_checkout(data: Dict[str, str]) -> Dict[str, str]:
    """Возвращает словарь ошибок по полям; пустой словарь — форма валидна."""
    errors = {}

    name = data.get("name", "")
    if not name:
        errors["name"] = "Имя обязательно"
    elif len(name) < 2:
        errors["name"] = "Имя должно содержать минимум 2 символа"

    email = data.get("email", "")
    if not email:
        errors["email"] = "Email обязателен"
    elif not EMAIL_RE.match(email):
        errors["email"] = "Неверный формат email"

    phone = data.get("phone", "")
    if not phone:
        errors["phone"] = "Телефон обязателен"
    elif not normalize_phone(phone):
        errors["phone"] = "Неверный формат телефона"

    if data.get("delivery_method") not in DELIVERY_METHODS:
        errors["delivery_method"] = "Неизвестный способ доставки"
    if data.get("payment_method") not in PAYMENT_METHODS:
        errors["payment_method"] = "Неизвестный способ оплаты"

    # адрес нужен только для курьерской доставки
    if data.get("delivery_method") == "courier":
        if not data.get("address"):
            errors["address"] = "Адрес обязателен для доставки"
        if not data.get("city"):
            errors["city"] = "Город обязателен для доставки"
        postal_code = data.get("postal_code", "")
        if not postal_code:
            errors["postal_code"] = "Почтовый индекс обязателен"
        elif not POSTAL_CODE_RE.match(postal_code):
            errors["postal_code"] = "Неверный формат почтового индекса (например: 110 00)"

    return errors


def format_price(value) -> str:
    return f"{value:,.0f}".replace(",", " ") + " Kč"


def format_order(data: Dict[str, str], cart) -> str:
    lines = [
        "🛏 Новый заказ",
        f"Имя: {data['name']}",
        f"Телефон: {normalize_phone(data['phone']) or data['phone']}",
        f"Email: {data['email']}",
        f"Доставка: {DELIVERY_METHODS.get(data['delivery_method'], data['delivery_method'])}",
        f"Оплата: {PAYMENT_METHODS.get(data['payment_method'], data['payment_method'])}",
    ]
    if data.get("delivery_method") == "courier":
        lines.append(f"Адрес: {data['address']}, {data['city']}, {data['postal_code']}")
    if data.get("delivery_notes"):
        lines.append(f"Комментарий: {data['delivery_notes']}")

    lines.append("")
    for i, item in enumerate(cart, start=1):
        lines.append(f"{i}. {item['name']} × {item['quantity']} — {format_price(item['price'] * item['quantity'])}")
        lines.append(f"   /configure/{item['path']}")
    lines.append("")
    lines.append(f"Итого: {format_price(cart_total(cart))}")
    return "\n".join(lines)


async def notify_admins(text: str, token: str, admin_ids: Iterable[int]) -> bool:
    """
    Отправляет заказ админам в Telegram. Не валит оформление заказа:
    если бот не настроен или Telegram недоступен, пишем в лог и
    возвращаем False.
    """
    admin_ids = list(admin_ids)
    if not token or not admin_ids:
        log.info("telegram notifications disabled, order:\n%s", text)
        return False

    sent = 0
    try:
        async with Bot(token) as bot:
            for chat_id in admin_ids:
                try:
                    await bot.send_message(chat_id=chat_id, text=text)
                    sent += 1
                except TelegramError as e:
                    log.exception("send order to %s failed: %s", chat_id, e)
    except TelegramError as e:
        log.exception("telegram bot unavailable: %s", e)
    return sent == len(admin_ids)
