# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Free-text extractor for size charts written as prose or line lists.

Patterns, in priority order:
  (a) indexed rows        [95] 가슴:52/어깨:45/총장:70
  (b) size header + body  S / M / L
                          가슴: 50/52/54
  (c) header block        SIZE(총장/가슴/어깨)
                          S: 68/50/44
  (d) bare size header    size S M L
                          가슴 50 52 54
Each match is standardized and scored; the best wins (ties: earlier pattern).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from sizepicker import CandidateSource, TableCandidate
from sizepicker.extractors import make_candidate, parse_html
from sizepicker.labels import is_likely_size_label
from sizepicker.text import normalize_cell

logger = logging.getLogger(__name__)

_DROP_TAGS = ("script", "style", "noscript", "template", "svg")
_BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt", "figcaption", "figure",
    "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "li", "main", "nav",
    "ol", "p", "pre", "section", "table", "tr", "ul", "br",
})  # fmt: skip
_CELL_TAGS = frozenset({"td", "th"})

_NUMBER = r"-?\d+(?:\.\d+)?"
_NUMBER_RE = re.compile(_NUMBER)
_TOKEN_SPLIT_RE = re.compile(r"\s*[/|,]\s*|\s+")

# Boundary: the measurement body ends where material/shipping/detail copy starts
_BOUNDARY_RE = re.compile(
    r"^\s*\*|소재|원단|혼용|material|fabric|배송|shipping|delivery|세탁|care|상세|detail|모델|model|주의|note",
    re.IGNORECASE,
)

_INDEXED_ROW_RE = re.compile(r"^\s*[\[(]\s*([^\])]{1,16}?)\s*[\])]\s*(.+)$")
_PAIR_RE = re.compile(rf"([^\d:：/|,]+?)\s*[:：]?\s*({_NUMBER})")

_LABELED_LINE_RE = re.compile(r"^\s*([^:：\d][^:：]{0,30}?)\s*[:：]\s*(.+)$")
_SIZE_ROW_RE = re.compile(r"^\s*([^:：]{1,16}?)\s*[:：]\s*(.+)$")
_SIZE_WORD_PREFIX_RE = re.compile(r"^\s*(?:size|사이즈)\s*[:：]?\s*", re.IGNORECASE)
_HEADER_BLOCK_RE = re.compile(r"^\s*(?:size|사이즈)\s*[(\[]([^)\]]+)[)\]]\s*[:：]?\s*$", re.IGNORECASE)
_BARE_HEADER_RE = re.compile(r"^\s*(?:size|사이즈)\s*[:：]?\s+(.+)$", re.IGNORECASE)
_LOOSE_LINE_RE = re.compile(rf"^\s*([^\d]+?)\s*[:：]?\s*((?:{_NUMBER}[^\d\n]*?)+)$")


# --- Markup -> text ---


def html_to_text(html: str | bytes | None) -> str:
    """Visible text with one line per block element; scripts and styles dropped."""
    doc = parse_html(html)
    if doc is None:
        return ""
    for el in [e for e in doc.iter(*_DROP_TAGS)]:
        if el.getparent() is not None:
            el.drop_tree()
    for el in doc.iter():
        if not isinstance(el.tag, str):
            continue
        if el.tag in _BLOCK_TAGS:
            el.tail = "\n" + (el.tail or "")
        elif el.tag in _CELL_TAGS:
            el.tail = " " + (el.tail or "")
    lines = (normalize_cell(line) for line in doc.text_content().splitlines())
    return "\n".join(line for line in lines if line)


# --- Helpers ---


def _split_tokens(text: str) -> list[str]:
    return [t for t in _TOKEN_SPLIT_RE.split(text.strip()) if t]


def _size_tokens(text: str) -> list[str] | None:
    """Tokens of a header line when it is nothing but 2+ size labels."""
    tokens = _split_tokens(text)
    if len(tokens) >= 2 and all(is_likely_size_label(t) for t in tokens):
        return tokens
    return None


def _values(text: str) -> list[str]:
    return [normalize_cell(v) for v in _split_tokens(text)]


def _table(headers: list[str], rows: list[list[str]]) -> dict:
    return {"headers": headers, "rows": rows}


# --- Patterns ---


def _indexed_rows(lines: list[str]) -> list[dict]:
    sizes: list[str] = []
    values: dict[str, dict[str, str]] = {}
    for line in lines:
        m = _INDEXED_ROW_RE.match(line)
        if not m or not is_likely_size_label(m.group(1)):
            continue
        pairs = _PAIR_RE.findall(m.group(2))
        if not pairs:
            continue
        size = normalize_cell(m.group(1))
        if size not in sizes:
            sizes.append(size)
        for label, value in pairs:
            values.setdefault(normalize_cell(label), {})[size] = value
    if len(sizes) < 2 or not values:
        return []
    rows = [[label, *(by_size.get(s, "") for s in sizes)] for label, by_size in values.items()]
    return [_table(["", *sizes], rows)]


def _size_header_with_body(lines: list[str]) -> list[dict]:
    tables = []
    for idx, line in enumerate(lines):
        sizes = _size_tokens(_SIZE_WORD_PREFIX_RE.sub("", line))
        if sizes is None:
            continue
        rows: list[list[str]] = []
        for body in lines[idx + 1 :]:
            if _BOUNDARY_RE.search(body):
                break
            m = _LABELED_LINE_RE.match(body)
            if not m or not _NUMBER_RE.search(m.group(2)):
                break
            rows.append([m.group(1), *_values(m.group(2))])
        if rows:
            tables.append(_table(["", *sizes], rows))
    return tables


def _header_block(lines: list[str]) -> list[dict]:
    tables = []
    for idx, line in enumerate(lines):
        m = _HEADER_BLOCK_RE.match(line)
        if not m:
            continue
        measurements = _split_tokens(m.group(1).replace(" ", ""))
        if not measurements:
            continue
        rows: list[list[str]] = []
        for body in lines[idx + 1 :]:
            row = _SIZE_ROW_RE.match(body)
            if not row or not is_likely_size_label(row.group(1)):
                break
            rows.append([row.group(1), *_values(row.group(2))])
        if rows:
            # sizes run down the rows here; standardization transposes
            tables.append(_table(["", *measurements], rows))
    return tables


def _bare_size_header(lines: list[str]) -> list[dict]:
    tables = []
    for idx, line in enumerate(lines):
        m = _BARE_HEADER_RE.match(line)
        if not m:
            continue
        sizes = _size_tokens(m.group(1))
        if sizes is None:
            continue
        rows: list[list[str]] = []
        for body in lines[idx + 1 :]:
            if _BOUNDARY_RE.search(body):
                break
            row = _LOOSE_LINE_RE.match(body)
            if not row:
                break
            rows.append([row.group(1), *_NUMBER_RE.findall(row.group(2))])
        if rows:
            tables.append(_table(["", *sizes], rows))
    return tables


_PATTERNS: tuple[Callable[[list[str]], list[dict]], ...] = (
    _indexed_rows,
    _size_header_with_body,
    _header_block,
    _bare_size_header,
)


def extract_text_table_candidates(text: str | None) -> list[TableCandidate]:
    """Best free-text table (at most one candidate)."""
    if not text:
        return []
    lines = [normalize_cell(line) for line in text.splitlines()]
    lines = [line for line in lines if line]

    best: TableCandidate | None = None
    for pattern in _PATTERNS:
        for raw in pattern(lines):
            cand = make_candidate(raw, CandidateSource.TEXT)
            if cand is not None and (best is None or cand.score > best.score):
                best = cand
    if best is not None:
        logger.debug("text table: %d headers, score %d", len(best.table.headers), best.score)
    return [best] if best is not None else []
