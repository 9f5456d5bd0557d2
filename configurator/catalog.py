"""
Catalog records for the mattress configurator.

Three JSON documents describe the sellable world:

    layers-config.json       — {"mattressLayers": [...], "covers": [...]}
    url-mapping.json         — {"layers": {id: key}, "covers": {id: key}}
    layer-descriptions.json  — {"staticBlocks": [...], "coverDescriptions": {...},
                                <slug or name>: {...}}

The documents are validated with the pydantic models below and turned into
immutable objects. Two legacy shapes are normalized on validation so that
the rest of the engine only ever sees one:

* a scalar ``price`` becomes a per-size table with the same value for every
  size (``prices`` wins when both are present);
* a missing ``availableHeights`` becomes ``ALL_HEIGHTS``.

Malformed documents raise ``CatalogError``.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .dimensions import HEIGHTS, SEPARATOR, SIZES

ALL_HEIGHTS = frozenset(HEIGHTS)

LINE_BREAK_RE = re.compile(r"\n|\|")


class CatalogError(ValueError):
    """Raised when a catalog document does not have the expected shape."""


@dataclass(frozen=True)
class CatalogItem:
    id: str
    name: str
    slug: str = ""
    icon: str = ""
    prices: Mapping[str, float] = field(default_factory=dict)
    available_heights: frozenset = ALL_HEIGHTS

    @property
    def name_lines(self) -> List[str]:
        """Display name split on manual line breaks ('\\n' or '|')."""
        return [part.strip() for part in LINE_BREAK_RE.split(self.name or "")]

    @property
    def plain_name(self) -> str:
        return " ".join(p for p in self.name_lines if p)


@dataclass(frozen=True)
class Catalog:
    layers: Tuple[CatalogItem, ...]
    covers: Tuple[CatalogItem, ...]

    def __post_init__(self):
        object.__setattr__(self, "_layers_by_id", {item.id: item for item in self.layers})
        object.__setattr__(self, "_covers_by_id", {item.id: item for item in self.covers})

    def layer(self, item_id: Optional[str]) -> Optional[CatalogItem]:
        if item_id is None:
            return None
        return self._layers_by_id.get(item_id)

    def cover(self, item_id: Optional[str]) -> Optional[CatalogItem]:
        if item_id is None:
            return None
        return self._covers_by_id.get(item_id)

    @property
    def default_layer_id(self) -> Optional[str]:
        return self.layers[0].id if self.layers else None

    @property
    def default_cover_id(self) -> Optional[str]:
        return self.covers[0].id if self.covers else None


@dataclass(frozen=True)
class UrlMapping:
    layers: Mapping[str, str]
    covers: Mapping[str, str]

    def __post_init__(self):
        object.__setattr__(self, "reverse_layers", {v: k for k, v in self.layers.items()})
        object.__setattr__(self, "reverse_covers", {v: k for k, v in self.covers.items()})

    def layer_key(self, item_id: str) -> str:
        return self.layers.get(item_id) or item_id

    def cover_key(self, item_id: str) -> str:
        return self.covers.get(item_id) or item_id

    def layer_id(self, key: str) -> str:
        return self.reverse_layers.get(key) or key

    def cover_id(self, key: str) -> str:
        return self.reverse_covers.get(key) or key


@dataclass(frozen=True)
class DescriptionCatalog:
    static_blocks: Tuple[Mapping[str, Any], ...] = ()
    cover_descriptions: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    materials: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def material(self, *keys) -> Optional[Mapping[str, Any]]:
        """First material entry found among ``keys`` (slug, then name)."""
        for key in keys:
            if key and key in self.materials:
                return self.materials[key]
        return None


# =========================
# Document schemas
# =========================
Number = Union[int, float]


class ItemDoc(BaseModel):
    """Слой или чехол из layers-config.json."""

    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    slug: Optional[str] = None
    icon: Optional[str] = None
    image: Optional[str] = None
    price: Optional[Number] = None
    prices: Optional[Dict[str, Number]] = None
    available_heights: FrozenSet[int] = Field(ALL_HEIGHTS, alias="availableHeights")

    @field_validator("available_heights", mode="before")
    @classmethod
    def all_heights_when_missing(cls, value):
        if value is None:
            return ALL_HEIGHTS
        if not isinstance(value, (list, tuple)):
            raise ValueError("availableHeights must be a list")
        return value

    @model_validator(mode="after")
    def spread_legacy_price(self):
        # старая структура: одна цена на все размеры
        if self.prices is None:
            self.prices = {size: self.price for size in SIZES} if self.price else {}
        return self


class CatalogDoc(BaseModel):
    layers: List[ItemDoc] = Field(..., alias="mattressLayers")
    covers: List[ItemDoc]


class MappingDoc(BaseModel):
    layers: Dict[str, str] = Field(default_factory=dict)
    covers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("layers", "covers", mode="before")
    @classmethod
    def empty_when_null(cls, value):
        return {} if value is None else value

    @field_validator("layers", "covers")
    @classmethod
    def keys_fit_in_url(cls, value: Dict[str, str]):
        for item_id, key in value.items():
            if not key or SEPARATOR in key:
                raise ValueError(f"short key {key!r} of {item_id!r} cannot be used in a URL")
        return value


class BlockDoc(BaseModel):
    """Статический или дополнительный информационный блок."""

    id: Optional[Union[str, int]] = None
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    order: Optional[Number] = None


class MaterialDoc(BaseModel):
    """Описание материала (по slug или имени) или чехла (по id)."""

    name: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    additional_blocks: Optional[List[BlockDoc]] = Field(None, alias="additionalBlocks")


class DescriptionsDoc(BaseModel):
    # остальные ключи верхнего уровня - описания материалов
    model_config = ConfigDict(extra="allow")

    static_blocks: List[BlockDoc] = Field(default_factory=list, alias="staticBlocks")
    cover_descriptions: Dict[str, MaterialDoc] = Field(default_factory=dict, alias="coverDescriptions")


def _validate(model, data, what: str):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise CatalogError(f"invalid {what}: {e}") from e


def _dump(doc: BaseModel) -> Dict[str, Any]:
    return doc.model_dump(by_alias=True)


# =========================
# Parsers
# =========================
def _to_item(doc: ItemDoc) -> CatalogItem:
    return CatalogItem(
        id=doc.id,
        name=doc.name or "",
        slug=doc.slug or "",
        icon=doc.icon or doc.image or "",
        prices=MappingProxyType(dict(doc.prices or {})),
        available_heights=frozenset(doc.available_heights),
    )


def parse_item(raw: Dict[str, Any]) -> CatalogItem:
    return _to_item(_validate(ItemDoc, raw, "catalog item"))


def parse_catalog(data: Dict[str, Any]) -> Catalog:
    doc = _validate(CatalogDoc, data, "catalog")
    return Catalog(
        layers=tuple(_to_item(item) for item in doc.layers),
        covers=tuple(_to_item(item) for item in doc.covers),
    )


def parse_mapping(data: Dict[str, Any]) -> UrlMapping:
    doc = _validate(MappingDoc, data, "url mapping")
    return UrlMapping(layers=doc.layers, covers=doc.covers)


def parse_descriptions(data: Dict[str, Any]) -> DescriptionCatalog:
    doc = _validate(DescriptionsDoc, data, "description catalog")
    materials = {
        key: _dump(_validate(MaterialDoc, value, f"description of {key!r}"))
        for key, value in (doc.model_extra or {}).items()
        if isinstance(value, dict)
    }
    return DescriptionCatalog(
        static_blocks=tuple(_dump(block) for block in doc.static_blocks),
        cover_descriptions={key: _dump(entry) for key, entry in doc.cover_descriptions.items()},
        materials=materials,
    )
