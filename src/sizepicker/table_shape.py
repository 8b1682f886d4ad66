# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Table shape normalization: coercion, rectangular rows, orientation, canonical form.

Pipeline (standardize_size_table):
  1. Coerce raw input ({headers, rows} mapping, JSON text, SizeTable)
  2. Score as-given vs transposed orientation, keep the higher (ties: as-given)
  3. Rectangularize, force headers[0] to the item label, uppercase size headers
  4. Canonicalize row labels, strip value units, pin the total-length row
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from sizepicker import SizeTable
from sizepicker.aliases import ITEM_LABEL, TOTAL_LENGTH
from sizepicker.errors import ContractError
from sizepicker.labels import (
    is_likely_measurement_label_loose,
    is_likely_size_label,
    normalize_measurement_label,
)
from sizepicker.text import normalize_cell, strip_value_unit

logger = logging.getLogger(__name__)

# Orientation weights. Relative order is what matters: size hits dominate,
# measurement-in-header is slightly weaker evidence, bare numbers weakest.
W_SIZE_IN_COLUMNS = 4
W_MEASUREMENT_IN_ROWS = 4
W_SIZE_IN_ROWS = 4
W_MEASUREMENT_IN_COLUMNS = 3
W_NUMERIC_ROW_HEADER = 2


_BARE_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")


def _is_bare_number(text: str) -> bool:
    return bool(_BARE_NUMBER_RE.match(text))


# --- Coercion ---


def _as_cell_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [normalize_cell(v) for v in value]
    return []


def coerce_raw_table(value: Any) -> SizeTable | None:
    """Accept a SizeTable, a ``{headers, rows}`` mapping, or JSON text of one.

    Non-list rows become empty rows. Returns None when nothing usable parses.
    """
    if value is None:
        return None
    if isinstance(value, SizeTable):
        parsed: Any = value.to_dict()
    elif isinstance(value, (str, bytes)):
        try:
            parsed = json.loads(value)
        except (ValueError, RecursionError):
            logger.debug("raw table is not valid JSON (%d chars)", len(value))
            return None
    else:
        parsed = value

    if not isinstance(parsed, Mapping):
        return None

    headers = _as_cell_list(parsed.get("headers"))
    raw_rows = parsed.get("rows")
    rows = [_as_cell_list(r) for r in raw_rows] if isinstance(raw_rows, (list, tuple)) else []
    if not headers and not rows:
        return None
    return SizeTable(headers=headers, rows=rows)


# --- Shape helpers ---


def make_rectangular_rows(rows: Sequence[Sequence[Any]], width: int) -> list[list[str]]:
    """Pad short rows with "" and truncate long ones to exactly ``width`` cells."""
    if width < 0:
        raise ContractError(f"width must be >= 0, got {width}")
    result: list[list[str]] = []
    for row in rows:
        cells = [normalize_cell(c) for c in row] if isinstance(row, (list, tuple)) else []
        cells = cells[:width]
        if len(cells) < width:
            cells.extend([""] * (width - len(cells)))
        result.append(cells)
    return result


def _max_width(table: SizeTable) -> int:
    return max([len(table.headers), *(len(r) for r in table.rows)], default=0)


def transpose_table(table: SizeTable) -> SizeTable:
    """Swap rows and columns; the header row becomes the first column."""
    width = _max_width(table)
    if width == 0 or (not table.headers and not table.rows):
        return SizeTable(headers=[], rows=[])
    matrix = make_rectangular_rows([table.headers, *table.rows], width)
    columns = [list(col) for col in zip(*matrix, strict=True)]
    return SizeTable(headers=columns[0], rows=columns[1:])


def table_orientation_score(table: SizeTable) -> int:
    """Positive when sizes run along columns (canonical), negative when they run along rows."""
    size_in_columns = 0
    measurement_in_columns = 0
    for header in table.headers[1:]:
        if is_likely_size_label(header):
            size_in_columns += 1
        if is_likely_measurement_label_loose(header):
            measurement_in_columns += 1

    size_in_rows = 0
    measurement_in_rows = 0
    numeric_row_headers = 0
    for row in table.rows:
        if not row:
            continue
        first = normalize_cell(row[0])
        if is_likely_size_label(first):
            size_in_rows += 1
        if is_likely_measurement_label_loose(first):
            measurement_in_rows += 1
        if first and _is_bare_number(first):
            numeric_row_headers += 1

    return (
        size_in_columns * W_SIZE_IN_COLUMNS
        + measurement_in_rows * W_MEASUREMENT_IN_ROWS
        - size_in_rows * W_SIZE_IN_ROWS
        - measurement_in_columns * W_MEASUREMENT_IN_COLUMNS
        - numeric_row_headers * W_NUMERIC_ROW_HEADER
    )


def sort_measurement_rows(rows: Sequence[Sequence[str]]) -> list[list[str]]:
    """Pin the total-length row to index 0; everything else keeps its order."""
    result = [list(r) for r in rows]
    for idx, row in enumerate(result):
        if row and normalize_measurement_label(row[0]) == TOTAL_LENGTH:
            if idx > 0:
                result.insert(0, result.pop(idx))
            break
    return result


# --- Entry point ---


def standardize_size_table(raw: Any) -> SizeTable | None:
    """Canonical rectangular table from any raw ``{headers, rows}`` shape, or None."""
    table = coerce_raw_table(raw)
    if table is None:
        return None

    transposed = transpose_table(table)
    as_given_score = table_orientation_score(table)
    transposed_score = table_orientation_score(transposed)
    chosen = transposed if transposed_score > as_given_score else table
    if chosen is transposed:
        logger.debug("transposing table (score %d > %d)", transposed_score, as_given_score)

    width = _max_width(chosen)
    if width == 0:
        return None

    headers = make_rectangular_rows([chosen.headers], width)[0]
    headers = [ITEM_LABEL, *(h.upper() for h in headers[1:])]

    rows: list[list[str]] = []
    for row in make_rectangular_rows(chosen.rows, width):
        if not any(row):
            continue
        rows.append([normalize_measurement_label(row[0]), *(strip_value_unit(c) for c in row[1:])])

    return SizeTable(headers=headers, rows=sort_measurement_rows(rows))
