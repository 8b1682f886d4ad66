# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Image URL discovery from page markup and embedded JSON.

Sources, in document order per source:
  1. <img>/<source> src, srcset and lazy-load data-* attributes
  2. og:image / twitter:image / itemprop=image meta
  3. JSON-LD Product.image
  4. generic JSON walk (image-ish keys or image file extensions)

URLs are resolved against the page URL and de-duplicated; the hint text of
every occurrence is merged so the scorers see all of it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from typing import Any
from urllib.parse import urljoin, urlsplit

from lxml.html import HtmlElement

from sizepicker import ImageCandidate
from sizepicker.extractors import parse_html
from sizepicker.extractors.json_tables import iter_document_json

logger = logging.getLogger(__name__)

MAX_URL_LENGTH = 2048
MAX_JSON_NODES = 3000
MAX_HINT_LENGTH = 200

_URL_ATTRS = (
    "src",
    "data-src",
    "data-lazy-src",
    "data-lazy",
    "data-original",
    "data-zoom-image",
    "data-large-image",
    "data-full-image",
    "data-src-large",
    "data-high-res",
    "data-image",
    "ec-data-src",  # cafe24
)
_SRCSET_ATTRS = ("srcset", "data-srcset")
_HINT_ATTRS = ("alt", "title", "class", "id")

_META_IMAGE_KEYS = frozenset({
    "og:image",
    "og:image:url",
    "og:image:secure_url",
    "twitter:image",
    "twitter:image:src",
})  # fmt: skip

_PRODUCT_TYPES = ("Product", "IndividualProduct", "ProductGroup")

_IMAGE_KEY_RE = re.compile(r"image|img|thumb|photo|picture", re.IGNORECASE)
_IMAGE_EXT_RE = re.compile(r"\.(?:jpe?g|png|webp|gif|avif|bmp)(?:[?#]|$)", re.IGNORECASE)
_DROPPED_SCHEMES = ("data:", "javascript:", "blob:", "about:")


# --- URL helpers ---


def _is_valid_url(url: Any) -> str | None:
    """Validate URL: must be string, <=2048 chars, http(s) or protocol-relative."""
    if not isinstance(url, str) or len(url) > MAX_URL_LENGTH:
        return None
    return url if url.startswith(("http://", "https://", "//")) else None


def resolve_image_url(raw: Any, base_url: str = "") -> str | None:
    """Absolute http(s) URL for a raw attribute value, or None."""
    if not isinstance(raw, str):
        return None
    value = raw.strip()
    if not value or value.lower().startswith(_DROPPED_SCHEMES):
        return None
    try:
        url = urljoin(base_url, value) if base_url else value
        if url.startswith("//"):
            url = "https:" + url
        urlsplit(url)  # raises on unbalanced IPv6 brackets
    except ValueError:
        return None
    return _is_valid_url(url)


def parse_srcset(srcset: str) -> list[str]:
    """URLs in a srcset, largest descriptor first."""
    entries: list[tuple[str, float]] = []
    for part in srcset.split(","):
        tokens = part.strip().split()
        if not tokens:
            continue
        size = 0.0
        if len(tokens) > 1:
            m = re.match(r"(\d+(?:\.\d+)?)", tokens[1])
            if m:
                size = float(m.group(1))
        entries.append((tokens[0], size))
    entries.sort(key=lambda e: e[1], reverse=True)
    return [url for url, _ in entries]


class _Collector:
    """Ordered URL -> hint accumulator."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url
        self._hints: dict[str, list[str]] = {}

    def add(self, raw: Any, hint: str = "") -> None:
        url = resolve_image_url(raw, self.base_url)
        if url is None:
            return
        hints = self._hints.setdefault(url, [])
        hint = hint.strip()
        if hint and hint not in hints:
            hints.append(hint)

    def candidates(self) -> list[ImageCandidate]:
        return [ImageCandidate(url=url, hint=" ".join(hints)[:MAX_HINT_LENGTH]) for url, hints in self._hints.items()]


# --- Sources ---


def _element_hint(el: HtmlElement) -> str:
    parts = [el.get(name) or "" for name in _HINT_ATTRS]
    return " ".join(p for p in parts if p)


def _collect_tags(doc: HtmlElement, out: _Collector) -> None:
    for el in doc.iter("img", "source"):
        hint = _element_hint(el)
        if el.tag == "source":
            parent = el.getparent()
            if parent is not None:
                hint = f"{hint} {_element_hint(parent)}".strip()
        for attr in _URL_ATTRS:
            value = el.get(attr)
            if value:
                out.add(value, hint)
        for attr in _SRCSET_ATTRS:
            value = el.get(attr)
            if value:
                for url in parse_srcset(value):
                    out.add(url, hint)


def _collect_meta(doc: HtmlElement, out: _Collector) -> None:
    for el in doc.iter("meta"):
        key = (el.get("property") or el.get("name") or "").strip().lower()
        if key in _META_IMAGE_KEYS or el.get("itemprop") == "image":
            out.add(el.get("content"), key or "itemprop:image")
    for el in doc.iter("link"):
        if el.get("itemprop") == "image" or (el.get("rel") or "").lower() == "image_src":
            out.add(el.get("href"), "itemprop:image")


def _find_type_in_jsonld(data: Any, type_names: tuple[str, ...], max_depth: int = 5) -> Iterator[Mapping]:
    """Every object with a matching @type (handles @graph, arrays, list types)."""
    if max_depth <= 0:
        return
    if isinstance(data, list):
        for item in data:
            yield from _find_type_in_jsonld(item, type_names, max_depth - 1)
        return
    if not isinstance(data, Mapping):
        return
    if "@graph" in data:
        yield from _find_type_in_jsonld(data["@graph"], type_names, max_depth - 1)
    schema_type = data.get("@type", "")
    if isinstance(schema_type, list):
        if any(t in type_names for t in schema_type):
            yield data
    elif schema_type in type_names:
        yield data


def _jsonld_images(image: Any, max_depth: int = 3) -> Iterator[Any]:
    if isinstance(image, list):
        if max_depth <= 0:
            return
        for item in image:
            yield from _jsonld_images(item, max_depth - 1)
    elif isinstance(image, Mapping):
        u = image.get("url")
        yield u if u is not None else image.get("contentUrl")
    else:
        yield image


def _collect_json(payloads: list[Any], out: _Collector) -> None:
    for payload in payloads:
        for product in _find_type_in_jsonld(payload, _PRODUCT_TYPES):
            for url in _jsonld_images(product.get("image")):
                out.add(url, "json-ld product")

    visited = 0
    stack: list[tuple[str, Any]] = [("", p) for p in reversed(payloads)]
    while stack and visited < MAX_JSON_NODES:
        key, node = stack.pop()
        visited += 1
        if isinstance(node, Mapping):
            stack.extend((str(k), v) for k, v in reversed(list(node.items())))
        elif isinstance(node, list):
            stack.extend((key, v) for v in reversed(node))
        elif isinstance(node, str) and (_IMAGE_EXT_RE.search(node) or (_IMAGE_KEY_RE.search(key) and "/" in node)):
            out.add(node, key)


def discover_image_candidates(html: str | bytes | None, base_url: str = "") -> list[ImageCandidate]:
    """Unscored image candidates in discovery order, de-duplicated by resolved URL."""
    doc = parse_html(html)
    if doc is None:
        return []
    out = _Collector(base_url)
    _collect_tags(doc, out)
    _collect_meta(doc, out)
    _collect_json(list(iter_document_json(doc)), out)
    candidates = out.candidates()
    logger.debug("discovered %d image candidates", len(candidates))
    return candidates
