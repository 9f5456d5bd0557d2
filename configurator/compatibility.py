import logging
from typing import Dict, List, Optional

from .catalog import Catalog, CatalogItem
from .dimensions import COVER_SLOT, LAYER_SLOTS

log = logging.getLogger(__name__)

Selection = Dict[str, Optional[str]]


def layer_slots(height: int) -> List[str]:
    try:
        return list(LAYER_SLOTS[height])
    except KeyError:
        raise ValueError(f"unknown height: {height!r}") from None


def active_slots(height: int) -> List[str]:
    """Слоты, активные при данной высоте; чехол всегда последний."""
    return layer_slots(height) + [COVER_SLOT]


def is_available(item: CatalogItem, height: int) -> bool:
    return height in item.available_heights


def available_layers(catalog: Catalog, height: int) -> List[CatalogItem]:
    return [layer for layer in catalog.layers if is_available(layer, height)]


def first_available_layer(catalog: Catalog, height: int) -> Optional[CatalogItem]:
    for layer in catalog.layers:
        if is_available(layer, height):
            return layer
    return None


def repair(selection: Selection, height: int, catalog: Catalog) -> Selection:
    """
    Приводит выбор в соответствие с высотой.

    Каждый активный слот наполнения, чей материал не предлагается при
    `height` (или не найден в каталоге), получает первый доступный материал
    в порядке каталога. Если доступных материалов нет, слот остаётся
    неразрешённым (None), это ошибка каталога, она логируется.
    Неактивные слоты и чехол не трогаем. Повторный вызов ничего не меняет.
    """
    repaired = dict(selection)
    fallback = first_available_layer(catalog, height)

    for slot in layer_slots(height):
        item = catalog.layer(repaired.get(slot))
        if item is not None and is_available(item, height):
            continue

        if fallback is None:
            if repaired.get(slot) is not None:
                log.warning("no layer available at %scm, slot %s left unresolved", height, slot)
            repaired[slot] = None
            continue

        if repaired.get(slot) != fallback.id:
            log.info("slot %s: %r -> %r at %scm", slot, repaired.get(slot), fallback.id, height)
        repaired[slot] = fallback.id

    return repaired


def validate(selection: Selection, catalog: Catalog) -> bool:
    for slot, item_id in selection.items():
        if slot == COVER_SLOT:
            continue
        if item_id is not None and catalog.layer(item_id) is None:
            return False
    return catalog.cover(selection.get(COVER_SLOT)) is not None


def unresolved_slots(selection: Selection, height: int) -> List[str]:
    return [slot for slot in layer_slots(height) if selection.get(slot) is None]
