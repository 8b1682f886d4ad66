# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Candidate scoring, selection, and size-option alignment.

All extractors feed the same rubric; ``select_best_candidate`` is a pure
reducer over their output. Alignment against the page's own size options is
the strictest gate and rejects tables whose size headers do not correspond to
what the product actually sells.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

from sizepicker import SizeTable, TableCandidate
from sizepicker.labels import (
    is_alpha_size_label,
    is_likely_measurement_label,
    is_likely_measurement_label_loose,
    is_likely_size_label,
    is_numeric_size_label,
    normalize_comparable_size_label,
)
from sizepicker.text import normalize_cell, parse_number

logger = logging.getLogger(__name__)

REJECTED = -1

MIN_HEADERS = 3
MIN_ROWS = 1
PLAUSIBLE_MIN = 0.0
PLAUSIBLE_MAX = 400.0

W_SIZE_HEADER = 3
W_MEASUREMENT_ROW = 3
W_HINTED_ROW = 2
W_ROW = 1
MIXED_SIZE_PENALTY = 5

# Alignment thresholds
MIN_ALIGNED_MATCHES = 2
MAX_UNMATCHED_RATIO = 0.4


def score_size_table_candidate(table: SizeTable | None) -> int:
    """Rubric score for a standardized table; ``REJECTED`` (-1) when implausible."""
    if table is None or len(table.headers) < MIN_HEADERS or len(table.rows) < MIN_ROWS:
        return REJECTED

    measurement_rows = 0
    hinted_rows = 0
    numeric_total = 0
    numeric_plausible = 0
    for row in table.rows:
        label = row[0] if row else ""
        if is_likely_measurement_label(label):
            measurement_rows += 1
        elif is_likely_measurement_label_loose(label):
            hinted_rows += 1
        for cell in row[1:]:
            value = parse_number(cell)
            if value is None:
                continue
            numeric_total += 1
            if PLAUSIBLE_MIN <= value <= PLAUSIBLE_MAX:
                numeric_plausible += 1

    if measurement_rows + hinted_rows == 0:
        return REJECTED
    if numeric_total and numeric_plausible * 2 < numeric_total:
        return REJECTED

    size_headers = [h for h in table.size_labels if is_likely_size_label(h)]
    score = (
        len(size_headers) * W_SIZE_HEADER
        + measurement_rows * W_MEASUREMENT_ROW
        + hinted_rows * W_HINTED_ROW
        + len(table.rows) * W_ROW
    )
    has_alpha = any(is_alpha_size_label(h) for h in size_headers)
    has_numeric = any(is_numeric_size_label(h) for h in size_headers)
    if has_alpha and has_numeric:
        score -= MIXED_SIZE_PENALTY
    return score


def select_best_candidate(candidates: Iterable[TableCandidate]) -> TableCandidate | None:
    """Highest non-negative score wins; ties go to the more structural source."""
    best: TableCandidate | None = None
    for cand in candidates:
        if cand.score < 0:
            continue
        if best is None or (cand.score, -cand.source.priority) > (best.score, -best.source.priority):
            best = cand
    if best is not None:
        logger.debug("selected %s candidate (score=%d)", best.source, best.score)
    return best


# --- Size-option alignment ---


def _is_sequential_numeric(labels: Sequence[str]) -> bool:
    if not labels or not all(label.isascii() and label.isdigit() for label in labels):
        return False
    values = [int(label) for label in labels]
    return values[0] in (0, 1) and all(b - a == 1 for a, b in zip(values, values[1:]))


def _dedupe_options(options: Iterable[object]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for opt in options:
        label = normalize_cell(opt)
        key = normalize_comparable_size_label(label)
        if not label or key in seen:
            continue
        seen.add(key)
        result.append(label)
    return result


def align_and_validate_size_table_by_option_labels(
    table: SizeTable,
    known_size_options: Iterable[object],
) -> SizeTable | None:
    """Re-project size columns onto the page's size options, or reject the table (None)."""
    options = _dedupe_options(known_size_options)
    if not options:
        return table

    size_headers = [normalize_cell(h) for h in table.size_labels]
    if not size_headers:
        return None

    if len(size_headers) == len(options) and _is_sequential_numeric(size_headers):
        return SizeTable(headers=[table.headers[0], *options], rows=[list(r) for r in table.rows])

    header_keys = [normalize_comparable_size_label(h) for h in size_headers]
    used: set[int] = set()
    pairs: list[tuple[str, int]] = []  # (option label, source column index within size headers)
    for option in options:
        key = normalize_comparable_size_label(option)
        for idx, header_key in enumerate(header_keys):
            if idx not in used and header_key == key:
                used.add(idx)
                pairs.append((option, idx))
                break

    smaller = min(len(size_headers), len(options))
    required = MIN_ALIGNED_MATCHES if smaller >= 4 else max(1, math.ceil(smaller / 2))
    if len(pairs) < required:
        logger.info("size options rejected table: %d/%d matches", len(pairs), required)
        return None
    unmatched = len(size_headers) - len(pairs)
    if unmatched > MAX_UNMATCHED_RATIO * len(size_headers):
        logger.info("size options rejected table: %d of %d headers unmatched", unmatched, len(size_headers))
        return None

    headers = [table.headers[0], *(option for option, _ in pairs)]
    rows = []
    for row in table.rows:
        label = row[0] if row else ""
        rows.append([label, *(row[idx + 1] if idx + 1 < len(row) else "" for _, idx in pairs)])
    return SizeTable(headers=headers, rows=rows)
