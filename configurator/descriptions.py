"""
Description blocks shown under the price.

For the current build we produce:

* dynamic blocks — one per distinct material among the active layers.
  Identical materials are merged even when they are not adjacent, so
  layers 1 and 3 of foam give a single "Слой 1 и 3: ..." block;
* info blocks — the always-shown static blocks plus the additional blocks
  linked from every used material, de-duplicated by block id and sorted
  by ``order`` (blocks without an order go last).

The cover description is not part of this result; the page places it
between the two lists.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, NamedTuple, Optional

from .catalog import Catalog, CatalogItem, DescriptionCatalog
from .compatibility import Selection, layer_slots

DEFAULT_ORDER = 1000

LAYER_LABEL = "Слой"
AND = "и"


@dataclass(frozen=True)
class DescriptionBlock:
    kind: str
    key: str
    title: str
    body: str = ""
    image: str = ""
    order: int = DEFAULT_ORDER


class DescriptionResult(NamedTuple):
    dynamic_blocks: List[DescriptionBlock]
    info_blocks: List[DescriptionBlock]


@dataclass
class _Group:
    key: str
    item: CatalogItem
    positions: List[int]


def grouping_key(item: CatalogItem, position: int) -> str:
    return item.slug or item.name or f"unknown-{position}"


def humanize_positions(positions: List[int]) -> str:
    if not positions:
        return ""
    if len(positions) == 1:
        return f"{LAYER_LABEL} {positions[0]}"
    head = ", ".join(str(p) for p in positions[:-1])
    return f"{LAYER_LABEL} {head} {AND} {positions[-1]}"


def _order(raw: Mapping[str, Any]) -> int:
    order = raw.get("order")
    if isinstance(order, (int, float)) and not isinstance(order, bool):
        return order
    return DEFAULT_ORDER


def group_layers(selection: Selection, height: int, catalog: Catalog) -> List[_Group]:
    groups = {}
    for index, slot in enumerate(layer_slots(height)):
        item = catalog.layer(selection.get(slot))
        if item is None:
            continue
        position = index + 1
        key = grouping_key(item, position)
        if key in groups:
            groups[key].positions.append(position)
        else:
            groups[key] = _Group(key=key, item=item, positions=[position])
    return list(groups.values())


def _material_entry(descriptions: DescriptionCatalog, item: CatalogItem):
    return descriptions.material(item.slug, item.name)


def _dynamic_block(group: _Group, descriptions: DescriptionCatalog) -> DescriptionBlock:
    entry = _material_entry(descriptions, group.item) or {}
    name = str(entry.get("name") or group.item.plain_name or "")
    return DescriptionBlock(
        kind="dynamic",
        key="dyn-{}-{}".format(group.key, "-".join(str(p) for p in group.positions)),
        title=f"{humanize_positions(group.positions)}: {name}".strip(),
        body=str(entry.get("description") or ""),
        image=str(entry.get("image") or group.item.icon or ""),
    )


def _static_blocks(descriptions: DescriptionCatalog) -> List[DescriptionBlock]:
    blocks = [
        DescriptionBlock(
            kind="static",
            key=f"static-{raw.get('id')}",
            title=str(raw.get("title") or ""),
            body=str(raw.get("description") or ""),
            image=str(raw.get("image") or ""),
            order=_order(raw),
        )
        for raw in descriptions.static_blocks
    ]
    return sorted(blocks, key=lambda b: b.order)


def _additional_blocks(groups: List[_Group], descriptions: DescriptionCatalog) -> List[DescriptionBlock]:
    blocks = []
    seen_ids = set()
    for group in groups:
        entry = _material_entry(descriptions, group.item)
        if not entry or not isinstance(entry.get("additionalBlocks"), list):
            continue
        for raw in entry["additionalBlocks"]:
            if not isinstance(raw, dict):
                continue
            block_id = raw.get("id")
            if block_id in seen_ids:
                continue
            seen_ids.add(block_id)
            blocks.append(
                DescriptionBlock(
                    kind="additional",
                    key=f"add-{block_id}",
                    title=str(raw.get("title") or ""),
                    body=str(raw.get("description") or ""),
                    image=str(raw.get("image") or ""),
                    order=_order(raw),
                )
            )
    return blocks


def aggregate(
    selection: Selection,
    height: int,
    catalog: Catalog,
    descriptions: DescriptionCatalog,
) -> DescriptionResult:
    groups = group_layers(selection, height, catalog)
    dynamic = [_dynamic_block(g, descriptions) for g in groups]

    # сортировка устойчивая: при равном order статические идут раньше
    info = sorted(
        _static_blocks(descriptions) + _additional_blocks(groups, descriptions),
        key=lambda b: b.order,
    )
    return DescriptionResult(dynamic_blocks=dynamic, info_blocks=info)


def cover_block(cover: Optional[CatalogItem], descriptions: DescriptionCatalog) -> Optional[DescriptionBlock]:
    if cover is None:
        return None
    raw = descriptions.cover_descriptions.get(cover.id)
    if not isinstance(raw, dict):
        return None
    return DescriptionBlock(
        kind="cover",
        key=f"cover-{cover.id}",
        title=str(raw.get("name") or raw.get("title") or cover.plain_name),
        body=str(raw.get("description") or ""),
        image=str(raw.get("image") or cover.icon or ""),
    )
