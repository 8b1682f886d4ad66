# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""HTML ``<table>`` extractor.

Every table on the page becomes a raw ``{headers, rows}`` candidate: the first
``<tr>`` is the header row, the remaining rows are data. Tables whose
surroundings talk about sizes (caption, class/id/summary of the table or its
ancestors, the preceding sibling's text) get a small score boost.

A header row plus one data row is enough. Single-measurement charts (a
``가슴`` row under ``95 / 100 / 105``) are common on product pages and must
survive next to multi-row navigation tables.
"""

from __future__ import annotations

import logging
import re

from lxml.html import HtmlElement

from sizepicker import CandidateSource, TableCandidate
from sizepicker.extractors import make_candidate, parse_html
from sizepicker.text import normalize_cell

logger = logging.getLogger(__name__)

KEYWORD_BOOST = 2
MIN_TABLE_ROWS = 2  # header row + at least one data row
MAX_COLSPAN = 12
_ANCESTOR_DEPTH = 4
_CONTEXT_TEXT_LIMIT = 300

_SIZE_CONTEXT_RE = re.compile(
    r"size|사이즈|치수|실측|measure|측정|sizing|cm\b",
    re.IGNORECASE,
)

_ROW_XPATH = "./tr | ./thead/tr | ./tbody/tr | ./tfoot/tr"


def _cell_text(cell: HtmlElement) -> str:
    return normalize_cell(" ".join(cell.itertext()))


def _colspan(cell: HtmlElement) -> int:
    try:
        span = int(cell.get("colspan") or 1)
    except ValueError:
        return 1
    return min(max(span, 1), MAX_COLSPAN)


def _table_rows(table: HtmlElement) -> list[list[str]]:
    rows: list[list[str]] = []
    for tr in table.xpath(_ROW_XPATH):
        cells: list[str] = []
        for cell in tr:
            if cell.tag not in ("td", "th"):
                continue
            cells.append(_cell_text(cell))
            cells.extend([""] * (_colspan(cell) - 1))
        if cells:
            rows.append(cells)
    return rows


def _has_size_context(table: HtmlElement) -> bool:
    caption = table.find("caption")
    if caption is not None and _SIZE_CONTEXT_RE.search(caption.text_content()):
        return True

    el: HtmlElement | None = table
    for _ in range(_ANCESTOR_DEPTH + 1):
        if el is None:
            break
        attrs = " ".join(el.get(name) or "" for name in ("class", "id", "summary"))
        if attrs and _SIZE_CONTEXT_RE.search(attrs):
            return True
        el = el.getparent()

    prev = table.getprevious()
    while prev is not None and not isinstance(prev.tag, str):
        prev = prev.getprevious()  # comments / processing instructions
    if prev is not None and _SIZE_CONTEXT_RE.search(prev.text_content()[:_CONTEXT_TEXT_LIMIT]):
        return True
    return False


def extract_html_table_candidates(html: str | bytes | None) -> list[TableCandidate]:
    """Scored candidates for every plausible ``<table>`` in document order."""
    doc = parse_html(html)
    if doc is None:
        return []

    candidates: list[TableCandidate] = []
    for table in doc.iter("table"):
        rows = _table_rows(table)
        if len(rows) < MIN_TABLE_ROWS:
            continue
        boost = KEYWORD_BOOST if _has_size_context(table) else 0
        cand = make_candidate({"headers": rows[0], "rows": rows[1:]}, CandidateSource.HTML_TABLE, boost=boost)
        if cand is not None:
            candidates.append(cand)

    logger.debug("html tables: %d candidates", len(candidates))
    return candidates
