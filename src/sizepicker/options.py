# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Size options scraped from a product page's buy-box controls.

These are the ground truth for ``align_and_validate_size_table_by_option_labels``:
whatever the page lets a shopper pick is what the size table must describe.
"""

from __future__ import annotations

import logging
import re

from lxml.html import HtmlElement

from sizepicker.extractors import parse_html
from sizepicker.labels import normalize_comparable_size_label
from sizepicker.text import normalize_cell

logger = logging.getLogger(__name__)

_SIZE_CONTROL_RE = re.compile(r"size|사이즈|option|옵션", re.IGNORECASE)
_CONTROL_ATTRS = ("name", "id", "class", "aria-label", "title", "data-name")
_VALUE_ATTRS = ("data-size", "data-option-value")

# "- [필수] 옵션을 선택해 주세요 -", "Select size", "-------"
_PLACEHOLDER_RE = re.compile(r"선택|select|choose|^[-=\s*]+$", re.IGNORECASE)
# "[품절]", "(+1,000원)", "- 품절", "(sold out)"
_ANNOTATION_RE = re.compile(
    r"\[[^\]]*\]|\((?:[+-]\s*[\d,]+\s*원?|품절|sold\s*out|재입고[^)]*)\)|\s-\s*(?:품절|sold\s*out).*$",
    re.IGNORECASE,
)


def _clean_option(text: str) -> str:
    return normalize_cell(_ANNOTATION_RE.sub(" ", normalize_cell(text)))


def _is_size_control(select: HtmlElement) -> bool:
    values = [select.get(name) or "" for name in _CONTROL_ATTRS]
    label_id = select.get("id")
    if label_id:
        for label in select.getroottree().iter("label"):
            if label.get("for") == label_id:
                values.append(label.text_content())
    return bool(_SIZE_CONTROL_RE.search(" ".join(values)))


def scrape_size_options(html: str | bytes | None) -> list[str]:
    """Size option labels in page order, placeholders and stock/price notes removed."""
    doc = parse_html(html)
    if doc is None:
        return []

    raw: list[str] = []
    for select in doc.iter("select"):
        if not _is_size_control(select):
            continue
        raw.extend(option.text_content() for option in select.iter("option"))
    for attr in _VALUE_ATTRS:
        raw.extend(el.get(attr) or "" for el in doc.xpath(f"//*[@{attr}]"))

    options: list[str] = []
    seen: set[str] = set()
    for text in raw:
        label = _clean_option(text)
        if not label or _PLACEHOLDER_RE.search(label):
            continue
        key = normalize_comparable_size_label(label)
        if key in seen:
            continue
        seen.add(key)
        options.append(label)

    if options:
        logger.debug("size options: %s", options)
    return options
