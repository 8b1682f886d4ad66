# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Structured-data (JSON) extractor.

Page-state payloads (``__NEXT_DATA__``, ``window.__STATE__ = {...}``, JSON-LD)
are schemaless, so the walker is a bounded worklist: a stack plus a visit
counter shared across every root. Recognized shapes:
  (a) {"headers": [...], "rows": [[...]]}
  (b) [[h1, h2, ...], [v1, v2, ...], ...]          row 0 = headers
  (c) [{"size": "S", "chest": 52}, {"size": "M", ...}]
  (d) {"S": {"chest": 52}, "M": {"chest": 54}}
Only the single best-scoring candidate is returned.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from lxml.html import HtmlElement

from sizepicker import CandidateSource, TableCandidate
from sizepicker.extractors import make_candidate, parse_html
from sizepicker.labels import is_likely_measurement_label_loose, is_likely_size_label
from sizepicker.text import normalize_cell, parse_number

logger = logging.getLogger(__name__)

MAX_VISITED_NODES = 3000
MIN_LABEL_FRACTION = 0.6
MIN_NUMERIC_FRACTION = 0.6

_JSON_SCRIPT_TYPES = frozenset({"application/json", "application/ld+json"})

# window.__APOLLO_STATE__ = {...}; / window.__INITIAL_STATE__={...}
_WINDOW_ASSIGN_RE = re.compile(r"window\.(__[A-Za-z0-9_]+__)\s*=\s*")

_SIZE_KEY_HINT_RE = re.compile(r"size|사이즈|option|옵션|name|label", re.IGNORECASE)
_NON_MEASUREMENT_KEY_RE = re.compile(
    r"(?:^|_)(?:id|idx|no|seq|sort|order)$|price|stock|qty|quantity|count|sku|code|amount|재고|가격",
    re.IGNORECASE,
)


# --- Embedded payload discovery ---


def iter_embedded_json(html: str | bytes | None) -> Iterator[Any]:
    """Parsed JSON payloads from ``<script>`` tags. Malformed payloads are skipped."""
    doc = parse_html(html)
    if doc is not None:
        yield from iter_document_json(doc)


def iter_document_json(doc: HtmlElement) -> Iterator[Any]:
    """Same as ``iter_embedded_json`` for an already parsed document."""
    decoder = json.JSONDecoder()
    for script in doc.iter("script"):
        text = (script.text or "").strip()
        if not text:
            continue
        script_type = (script.get("type") or "").split(";")[0].strip().lower()
        if script_type in _JSON_SCRIPT_TYPES or script.get("id") == "__NEXT_DATA__":
            try:
                yield json.loads(text)
            except (ValueError, RecursionError):
                logger.debug("skipping malformed %s payload", script_type or "script")
            continue
        for m in _WINDOW_ASSIGN_RE.finditer(text):
            try:
                value, _ = decoder.raw_decode(text, m.end())
            except (ValueError, RecursionError):
                logger.debug("skipping non-JSON assignment to window.%s", m.group(1))
                continue
            yield value


# --- Shape recognizers ---


def _scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _is_numeric(value: Any) -> bool:
    return _scalar(value) and parse_number(value) is not None


def _fraction(values: list[Any], predicate) -> float:
    if not values:
        return 0.0
    return sum(1 for v in values if predicate(v)) / len(values)


def _headers_rows_shape(node: Mapping) -> dict | None:
    headers = node.get("headers")
    rows = node.get("rows")
    if isinstance(headers, list) and isinstance(rows, list) and (headers or rows):
        return {"headers": headers, "rows": rows}
    return None


def _array_of_arrays_shape(node: list) -> dict | None:
    if len(node) < 2 or not all(isinstance(r, list) for r in node):
        return None
    if not all(_scalar(c) or c is None for r in node for c in r):
        return None
    return {"headers": node[0], "rows": node[1:]}


def _common_keys(objects: list[Mapping]) -> list[str]:
    keys = [k for k in objects[0] if isinstance(k, str)]
    return [k for k in keys if all(k in obj for obj in objects[1:])]


def _pick_size_key(objects: list[Mapping], keys: list[str]) -> str | None:
    best_key: str | None = None
    best_score = 0.0
    for key in keys:
        if is_likely_measurement_label_loose(key) or _NON_MEASUREMENT_KEY_RE.search(key):
            continue
        values = [obj[key] for obj in objects]
        fraction = _fraction(values, lambda v: _scalar(v) and is_likely_size_label(v))
        if fraction < MIN_LABEL_FRACTION:
            continue
        score = fraction + (0.5 if _SIZE_KEY_HINT_RE.search(key) else 0.0)
        if score > best_score:
            best_key, best_score = key, score
    return best_key


def _array_of_objects_shape(node: list) -> dict | None:
    if len(node) < 2 or not all(isinstance(o, Mapping) for o in node):
        return None
    keys = _common_keys(node)
    size_key = _pick_size_key(node, keys)
    if size_key is None:
        return None
    measurement_keys = [
        k
        for k in keys
        if k != size_key
        and not _NON_MEASUREMENT_KEY_RE.search(k)
        and _fraction([obj[k] for obj in node], _is_numeric) >= MIN_NUMERIC_FRACTION
    ]
    if not measurement_keys:
        return None
    headers = ["", *(normalize_cell(obj[size_key]) for obj in node)]
    rows = [[key, *(obj[key] if _scalar(obj[key]) else "" for obj in node)] for key in measurement_keys]
    return {"headers": headers, "rows": rows}


def _size_map_shape(node: Mapping) -> dict | None:
    if len(node) < 2:
        return None
    entries = [(k, v) for k, v in node.items() if isinstance(k, str)]
    sized = [(k, v) for k, v in entries if is_likely_size_label(k) and isinstance(v, Mapping)]
    if len(sized) < 2 or len(sized) < MIN_LABEL_FRACTION * len(entries):
        return None
    measurement_keys: list[str] = []
    for _, inner in sized:
        for key, value in inner.items():
            if isinstance(key, str) and key not in measurement_keys and _is_numeric(value):
                measurement_keys.append(key)
    if not measurement_keys:
        return None
    headers = ["", *(size for size, _ in sized)]
    rows = [
        [key, *(inner[key] if _scalar(inner.get(key)) else "" for _, inner in sized)]
        for key in measurement_keys
    ]
    return {"headers": headers, "rows": rows}


def _shapes_at(node: Any) -> Iterator[dict]:
    if isinstance(node, Mapping):
        for shape in (_headers_rows_shape(node), _size_map_shape(node)):
            if shape is not None:
                yield shape
    elif isinstance(node, list):
        for shape in (_array_of_arrays_shape(node), _array_of_objects_shape(node)):
            if shape is not None:
                yield shape


# --- Walker ---


def extract_json_table_candidates(roots: Iterable[Any]) -> list[TableCandidate]:
    """Best table found anywhere in ``roots`` (at most one candidate)."""
    best: TableCandidate | None = None
    visited = 0
    stack: list[Any] = []
    for root in roots:
        stack.append(root)
        while stack:
            if visited >= MAX_VISITED_NODES:
                logger.debug("json walk stopped after %d nodes", visited)
                return [best] if best is not None else []
            node = stack.pop()
            visited += 1
            for raw in _shapes_at(node):
                cand = make_candidate(raw, CandidateSource.JSON)
                if cand is not None and (best is None or cand.score > best.score):
                    best = cand
            if isinstance(node, Mapping):
                stack.extend(v for v in reversed(list(node.values())) if isinstance(v, (Mapping, list)))
            elif isinstance(node, list):
                stack.extend(v for v in reversed(node) if isinstance(v, (Mapping, list)))
    return [best] if best is not None else []
