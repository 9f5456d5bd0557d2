"""
Состояние конфигуратора и переходы между состояниями.

Состояние меняется только через reduce(state, action, catalog):

    ChangeHeight(height)          — смена высоты + обязательный repair
    ChangeSize(size)              — влияет только на цену
    ChangeSlotItem(slot, item_id) — выбор материала/чехла

Цена, описания и путь URL не хранятся, а вычисляются из состояния
функцией derive_view().
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from . import codec, compatibility, descriptions, pricing
from .catalog import Catalog, DescriptionCatalog, UrlMapping
from .compatibility import Selection
from .dimensions import (
    COVER_SLOT,
    DEFAULT_HEIGHT,
    DEFAULT_SIZE,
    HEIGHTS,
    LAYER_SLOT_NAMES,
    SIZES,
    size_kind,
)

log = logging.getLogger(__name__)


class InvalidAction(ValueError):
    """Raised for an action that would put the configuration in an invalid state."""


@dataclass(frozen=True)
class ConfigState:
    size: str
    height: int
    selection: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def active_slots(self) -> List[str]:
        return compatibility.active_slots(self.height)

    @property
    def layer_slots(self) -> List[str]:
        return compatibility.layer_slots(self.height)


class ChangeHeight(NamedTuple):
    height: int


class ChangeSize(NamedTuple):
    size: str


class ChangeSlotItem(NamedTuple):
    slot: str
    item_id: str


Action = Union[ChangeHeight, ChangeSize, ChangeSlotItem]


def default_selection(catalog: Catalog) -> Selection:
    selection = {slot: catalog.default_layer_id for slot in LAYER_SLOT_NAMES}
    selection[COVER_SLOT] = catalog.default_cover_id
    return selection


def default_state(catalog: Catalog) -> ConfigState:
    selection = compatibility.repair(default_selection(catalog), DEFAULT_HEIGHT, catalog)
    return ConfigState(size=DEFAULT_SIZE, height=DEFAULT_HEIGHT, selection=selection)


def restore_state(path: str, catalog: Catalog, mapping: UrlMapping) -> Tuple[ConfigState, bool]:
    """
    Состояние из пути URL. Возвращает (state, restored); restored=False
    означает, что путь не разобран или ссылается на неизвестные позиции
    и взяты значения по умолчанию.
    """
    decoded = codec.decode(path, mapping)
    if decoded is None:
        return default_state(catalog), False

    if not compatibility.validate(decoded.selection, catalog):
        log.info("path %r references unknown catalog items, using defaults", path)
        return default_state(catalog), False

    selection = default_selection(catalog)
    for slot, item_id in decoded.selection.items():
        if item_id is not None:
            selection[slot] = item_id

    selection = compatibility.repair(selection, decoded.height, catalog)
    return ConfigState(size=decoded.size, height=decoded.height, selection=selection), True


def reduce(state: ConfigState, action: Action, catalog: Catalog) -> ConfigState:
    if isinstance(action, ChangeHeight):
        if action.height not in HEIGHTS:
            raise InvalidAction(f"unknown height: {action.height!r}")
        selection = compatibility.repair(state.selection, action.height, catalog)
        return ConfigState(size=state.size, height=action.height, selection=selection)

    if isinstance(action, ChangeSize):
        if action.size not in SIZES:
            raise InvalidAction(f"unknown size: {action.size!r}")
        return ConfigState(size=action.size, height=state.height, selection=dict(state.selection))

    if isinstance(action, ChangeSlotItem):
        return _change_slot_item(state, action, catalog)

    raise InvalidAction(f"unsupported action: {action!r}")


def _change_slot_item(state: ConfigState, action: ChangeSlotItem, catalog: Catalog) -> ConfigState:
    if action.slot == COVER_SLOT:
        if catalog.cover(action.item_id) is None:
            raise InvalidAction(f"unknown cover: {action.item_id!r}")
    elif action.slot in state.layer_slots:
        item = catalog.layer(action.item_id)
        if item is None:
            raise InvalidAction(f"unknown layer: {action.item_id!r}")
        if not compatibility.is_available(item, state.height):
            raise InvalidAction(f"{item.id!r} is not offered at {state.height}cm")
    else:
        raise InvalidAction(f"slot {action.slot!r} is not active at {state.height}cm")

    selection = dict(state.selection)
    selection[action.slot] = action.item_id
    return ConfigState(size=state.size, height=state.height, selection=selection)


# =========================
# Derived view
# =========================
@dataclass(frozen=True)
class ConfigView:
    state: ConfigState
    path: str
    total: Any
    breakdown: List[Dict[str, Any]]
    dynamic_blocks: List[descriptions.DescriptionBlock]
    cover_block: Optional[descriptions.DescriptionBlock]
    info_blocks: List[descriptions.DescriptionBlock]
    unresolved: List[str]
    options: Dict[str, list]

    @property
    def complete(self) -> bool:
        return not self.unresolved

    def to_dict(self) -> Dict[str, Any]:
        def block(b):
            return {
                "kind": b.kind,
                "key": b.key,
                "title": b.title,
                "body": b.body,
                "image": b.image,
                "order": b.order,
            }

        return {
            "size": self.state.size,
            "height": self.state.height,
            "kind": size_kind(self.state.size),
            "path": self.path,
            "selection": {slot: self.state.selection.get(slot) for slot in self.state.active_slots},
            "total": self.total,
            "breakdown": [
                {
                    "slot": row["slot"],
                    "title": row["title"],
                    "item": row["item"].id if row["item"] else None,
                    "name": row["item"].plain_name if row["item"] else None,
                    "price": row["price"],
                }
                for row in self.breakdown
            ],
            "complete": self.complete,
            "unresolved": list(self.unresolved),
            "dynamicBlocks": [block(b) for b in self.dynamic_blocks],
            "coverBlock": block(self.cover_block) if self.cover_block else None,
            "infoBlocks": [block(b) for b in self.info_blocks],
        }


def encode_state(state: ConfigState, mapping: UrlMapping) -> str:
    return codec.encode(state.size, state.height, state.selection, state.active_slots, mapping)


def derive_view(
    state: ConfigState,
    catalog: Catalog,
    mapping: UrlMapping,
    description_catalog: DescriptionCatalog,
) -> ConfigView:
    result = descriptions.aggregate(state.selection, state.height, catalog, description_catalog)
    options = {slot: compatibility.available_layers(catalog, state.height) for slot in state.layer_slots}
    options[COVER_SLOT] = list(catalog.covers)

    return ConfigView(
        state=state,
        path=encode_state(state, mapping),
        total=pricing.total(state.selection, state.size, state.height, catalog),
        breakdown=pricing.breakdown(state.selection, state.size, state.height, catalog),
        dynamic_blocks=result.dynamic_blocks,
        cover_block=descriptions.cover_block(catalog.cover(state.selection.get(COVER_SLOT)), description_catalog),
        info_blocks=result.info_blocks,
        unresolved=compatibility.unresolved_slots(state.selection, state.height),
        options=options,
    )
