"""Test configuration.

Ensure the project root is on sys.path so tests can import `configurator.*`
when executed from different working directories.
"""

import json
import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from configurator.catalog import parse_catalog, parse_descriptions, parse_mapping  # noqa: E402


def _per_size(base):
    sizes = ["80x190", "85x195", "80x200", "90x200", "100x200", "120x200", "140x200", "160x200", "180x200", "200x200"]
    return {size: base + 100 * i for i, size in enumerate(sizes)}


CATALOG_DATA = {
    "mattressLayers": [
        {"id": "foam", "name": "Пена HR", "slug": "foam", "icon": "/i/foam.webp", "prices": _per_size(3000)},
        {"id": "latex", "name": "Латекс", "slug": "latex", "prices": _per_size(5000)},
        {"id": "coir", "name": "Кокос", "slug": "coir", "price": 2500, "availableHeights": [20, 30]},
        {"id": "memory", "name": "Memory|foam", "slug": "memory", "prices": {"90x200": 4000}, "availableHeights": [10]},
        {"id": "foamsoft", "name": "Пена HR мягкая", "slug": "foam", "prices": _per_size(3200)},
    ],
    "covers": [
        {"id": "cotton", "name": "Хлопок", "slug": "cotton", "prices": _per_size(1500)},
        {"id": "tencel", "name": "Tencel", "slug": "tencel", "price": 2900},
    ],
}

MAPPING_DATA = {
    "layers": {"foam": "fm", "latex": "lx", "coir": "kk", "memory": "mf"},
    "covers": {"cotton": "ct", "tencel": "tc"},
}

DESCRIPTIONS_DATA = {
    "staticBlocks": [
        {"id": "delivery", "title": "Доставка", "description": "По всей Чехии", "order": 40},
        {"id": "warranty", "title": "Гарантия", "description": "10 лет", "order": 20},
        {"id": "faq", "title": "Вопросы", "description": "Без порядка"},
    ],
    "coverDescriptions": {
        "cotton": {"name": "Чехол из хлопка", "description": "Можно стирать", "image": "/img/cotton.webp"},
    },
    "foam": {
        "name": "HR пена высокой упругости",
        "description": "Держит форму",
        "image": "/img/foam.webp",
        "additionalBlocks": [
            {"id": "oeko", "title": "OEKO-TEX", "description": "Сертификат", "order": 30},
        ],
    },
    "latex": {
        "name": "Натуральный латекс",
        "description": "Эластичный",
        "additionalBlocks": [
            {"id": "oeko", "title": "OEKO-TEX (дубль)", "order": 30},
            {"id": "latex-care", "title": "Уход за латексом", "order": 10},
        ],
    },
}


@pytest.fixture
def catalog():
    return parse_catalog(CATALOG_DATA)


@pytest.fixture
def mapping():
    return parse_mapping(MAPPING_DATA)


@pytest.fixture
def descriptions():
    return parse_descriptions(DESCRIPTIONS_DATA)


@pytest.fixture
def catalog_dir(tmp_path):
    for name, data in (
        ("layers-config.json", CATALOG_DATA),
        ("url-mapping.json", MAPPING_DATA),
        ("layer-descriptions.json", DESCRIPTIONS_DATA),
    ):
        (tmp_path / name).write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return tmp_path
