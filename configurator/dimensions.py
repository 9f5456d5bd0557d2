"""
Справочные таблицы конфигуратора матраса.

Размеры, высоты и слоты заданы статически и не приходят из каталога:

```
SIZES          # упорядоченный список размеров "ШxД" (см)
HEIGHTS        # доступные высоты матраса (см)
LAYER_SLOTS    # высота -> список активных слотов наполнения
COVER_SLOT     # слот чехла, активен при любой высоте
```
"""

SIZES = [
    "80x190",
    "85x195",
    "80x200",
    "90x200",
    "100x200",
    "120x200",
    "140x200",
    "160x200",
    "180x200",
    "200x200",
]

HEIGHTS = [10, 20, 30]

DEFAULT_SIZE = SIZES[0]
DEFAULT_HEIGHT = 30

# ширина, начиная с которой матрас считается двуспальным
DOUBLE_WIDTH = 160

LAYER_SLOT_NAMES = ["layer-1", "layer-2", "layer-3"]
COVER_SLOT = "cover"

LAYER_SLOTS = {
    10: LAYER_SLOT_NAMES[:1],
    20: LAYER_SLOT_NAMES[:2],
    30: LAYER_SLOT_NAMES[:3],
}

SLOT_TITLES = {
    "layer-1": "Слой 1",
    "layer-2": "Слой 2",
    "layer-3": "Слой 3",
    COVER_SLOT: "Чехол",
}

HEIGHT_SUFFIX = "cm"

# разделитель частей сегмента конфигурации в URL
SEPARATOR = "-"


def size_kind(size: str) -> str:
    width = int(size.split("x", 1)[0])
    return "double" if width >= DOUBLE_WIDTH else "single"


def height_token(height: int) -> str:
    return f"{height}{HEIGHT_SUFFIX}"


def parse_height_token(token: str):
    """
    "30cm" -> 30. Возвращает None, если токен не в формате "<N>cm"
    или высота не из HEIGHTS.
    """
    if not token or not token.endswith(HEIGHT_SUFFIX):
        return None
    digits = token[: -len(HEIGHT_SUFFIX)]
    if not (digits.isascii() and digits.isdigit()):
        return None
    height = int(digits)
    if height not in HEIGHTS:
        return None
    return height
