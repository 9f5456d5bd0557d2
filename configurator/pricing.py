from typing import Any, Dict, List, Optional

from .catalog import Catalog, CatalogItem
from .compatibility import Selection, layer_slots
from .dimensions import COVER_SLOT, SLOT_TITLES


def price(item: Optional[CatalogItem], size: str):
    """Цена позиции для размера; нет позиции или нет цены для размера -> 0."""
    if item is None:
        return 0
    return item.prices.get(size, 0)


def resolve(catalog: Catalog, slot: str, item_id: Optional[str]) -> Optional[CatalogItem]:
    if slot == COVER_SLOT:
        return catalog.cover(item_id)
    return catalog.layer(item_id)


def total(selection: Selection, size: str, height: int, catalog: Catalog):
    amount = 0
    for slot in layer_slots(height) + [COVER_SLOT]:
        amount += price(resolve(catalog, slot, selection.get(slot)), size)
    return amount


def breakdown(selection: Selection, size: str, height: int, catalog: Catalog) -> List[Dict[str, Any]]:
    rows = []
    for slot in layer_slots(height) + [COVER_SLOT]:
        item = resolve(catalog, slot, selection.get(slot))
        rows.append(
            {
                "slot": slot,
                "title": SLOT_TITLES[slot],
                "item": item,
                "price": price(item, size),
            }
        )
    return rows
