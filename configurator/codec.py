"""
Кодирование конфигурации в последний сегмент URL и обратно.

    90x200-20cm-<ключ слоя 1>-<ключ слоя 2>-<ключ чехла>

Количество ключей слоёв всегда равно числу активных слотов для высоты.
Короткие ключи берутся из url-mapping.json; id без ключа пишется как есть.
decode() никогда не бросает исключений: путь приходит от пользователя.
"""

import logging
from typing import Iterable, List, NamedTuple, Optional

from .catalog import Catalog, UrlMapping
from .compatibility import Selection, layer_slots
from .dimensions import COVER_SLOT, HEIGHT_SUFFIX, SEPARATOR, SIZES, height_token, parse_height_token

log = logging.getLogger(__name__)


class DecodedConfig(NamedTuple):
    size: str
    height: int
    selection: Selection


def encode(size: str, height: int, selection: Selection, slots: Iterable[str], mapping: UrlMapping) -> str:
    parts = [size, height_token(height)]

    for slot in slots:
        if slot == COVER_SLOT:
            continue
        item_id = selection.get(slot)
        parts.append(mapping.layer_key(item_id) if item_id else "")

    cover_id = selection.get(COVER_SLOT)
    parts.append(mapping.cover_key(cover_id) if cover_id else "")

    return SEPARATOR.join(parts)


def decode(path: str, mapping: UrlMapping) -> Optional[DecodedConfig]:
    segment = (path or "").split("/")[-1]
    if not segment:
        return None

    parts = segment.split(SEPARATOR)
    if len(parts) < 3:
        return None

    size = parts[0]
    if size not in SIZES:
        log.debug("rejecting path %r: unknown size %r", segment, size)
        return None

    height = parse_height_token(parts[1])
    if height is None:
        log.debug("rejecting path %r: bad height %r", segment, parts[1])
        return None

    slots = layer_slots(height)
    if len(parts) != 2 + len(slots) + 1:
        log.debug("rejecting path %r: %d parts for %scm", segment, len(parts), height)
        return None

    selection = {}
    for slot, key in zip(slots, parts[2:]):
        selection[slot] = mapping.layer_id(key) if key else None
    cover_key = parts[-1]
    selection[COVER_SLOT] = mapping.cover_id(cover_key) if cover_key else None

    return DecodedConfig(size, height, selection)


def is_config_segment(segment: str) -> bool:
    return bool(segment) and "x" in segment and HEIGHT_SUFFIX in segment


def replace_config_segment(path: str, segment: str) -> str:
    """
    Подменяет сегмент конфигурации в конце пути, либо дописывает его,
    если путь заканчивается чем-то другим.
    """
    path = path or "/"
    head, _, last = path.rpartition("/")
    if is_config_segment(last):
        base = head or "/"
    else:
        base = path
    if base.endswith("/"):
        return base + segment
    return base + "/" + segment


def unencodable_ids(catalog: Catalog, mapping: UrlMapping) -> List[str]:
    """Позиции, чей ключ в URL содержит разделитель: такой путь не разобрать обратно."""
    bad = [item.id for item in catalog.layers if SEPARATOR in mapping.layer_key(item.id)]
    bad += [item.id for item in catalog.covers if SEPARATOR in mapping.cover_key(item.id)]
    return bad
