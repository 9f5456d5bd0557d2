"""
Loading of the three catalog documents.

The documents are fetched concurrently (local paths are read from disk,
http(s) sources are downloaded with requests) and the engine only starts
once all three are parsed. Any single failure fails the whole load; a
partially loaded catalog is never installed.

``Runtime`` holds the loaded bundle for the web app. Once closed (app torn
down before the load finished) it ignores late results.
"""

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from .catalog import (
    Catalog,
    CatalogError,
    DescriptionCatalog,
    UrlMapping,
    parse_catalog,
    parse_descriptions,
    parse_mapping,
)
from .codec import unencodable_ids

log = logging.getLogger(__name__)

DEFAULT_CATALOG_DIR = Path(__file__).resolve().parent.parent / "data"


class CatalogLoadError(RuntimeError):
    """Raised when any of the catalog documents cannot be fetched or parsed."""


@dataclass(frozen=True)
class CatalogSources:
    config: str
    mapping: str
    descriptions: str
    timeout: float = 10.0

    @classmethod
    def from_dir(cls, directory, timeout: float = 10.0) -> "CatalogSources":
        directory = Path(directory)
        return cls(
            config=str(directory / "layers-config.json"),
            mapping=str(directory / "url-mapping.json"),
            descriptions=str(directory / "layer-descriptions.json"),
            timeout=timeout,
        )

    @classmethod
    def from_env(cls) -> "CatalogSources":
        defaults = cls.from_dir(os.getenv("CATALOG_DIR", "").strip() or DEFAULT_CATALOG_DIR)
        try:
            timeout = float(os.getenv("CATALOG_TIMEOUT", "10"))
        except ValueError:
            timeout = 10.0
        return cls(
            config=os.getenv("CATALOG_CONFIG_URL", "").strip() or defaults.config,
            mapping=os.getenv("URL_MAPPING_URL", "").strip() or defaults.mapping,
            descriptions=os.getenv("DESCRIPTIONS_URL", "").strip() or defaults.descriptions,
            timeout=timeout,
        )


@dataclass(frozen=True)
class CatalogBundle:
    catalog: Catalog
    mapping: UrlMapping
    descriptions: DescriptionCatalog


def is_remote(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def fetch_json(source: str, timeout: float = 10.0) -> Dict[str, Any]:
    """Read one document; raises CatalogLoadError on any failure."""
    try:
        if is_remote(source):
            resp = requests.get(source, timeout=timeout)
            if not resp.ok:
                raise CatalogLoadError(f"{source}: HTTP {resp.status_code}")
            return resp.json()
        with open(source, "r", encoding="utf-8") as f:
            return json.load(f)
    except CatalogLoadError:
        raise
    except (OSError, ValueError, requests.RequestException) as e:
        raise CatalogLoadError(f"{source}: {e}") from e


async def load_bundle(sources: CatalogSources) -> CatalogBundle:
    log.info("loading catalog: %s | %s | %s", sources.config, sources.mapping, sources.descriptions)
    config_raw, mapping_raw, desc_raw = await asyncio.gather(
        asyncio.to_thread(fetch_json, sources.config, sources.timeout),
        asyncio.to_thread(fetch_json, sources.mapping, sources.timeout),
        asyncio.to_thread(fetch_json, sources.descriptions, sources.timeout),
    )
    try:
        bundle = CatalogBundle(
            catalog=parse_catalog(config_raw),
            mapping=parse_mapping(mapping_raw),
            descriptions=parse_descriptions(desc_raw),
        )
    except CatalogError as e:
        raise CatalogLoadError(str(e)) from e

    bad_ids = unencodable_ids(bundle.catalog, bundle.mapping)
    if bad_ids:
        log.warning("items without a URL-safe short key, their links will not restore: %s", ", ".join(bad_ids))

    log.info(
        "catalog loaded: %d layers, %d covers",
        len(bundle.catalog.layers),
        len(bundle.catalog.covers),
    )
    return bundle


class Runtime:
    def __init__(self):
        self.bundle: Optional[CatalogBundle] = None
        self.error: Optional[str] = None
        self.closed = False

    @property
    def ready(self) -> bool:
        return self.bundle is not None

    def install(self, bundle: CatalogBundle) -> bool:
        if self.closed:
            log.info("runtime closed, ignoring late catalog load")
            return False
        self.bundle = bundle
        self.error = None
        return True

    def fail(self, error) -> None:
        if self.closed:
            return
        self.bundle = None
        self.error = str(error)

    def close(self) -> None:
        self.closed = True

    async def load(self, sources: CatalogSources) -> bool:
        try:
            bundle = await load_bundle(sources)
        except CatalogLoadError as e:
            log.error("catalog load failed: %s", e)
            self.fail(e)
            return False
        return self.install(bundle)
