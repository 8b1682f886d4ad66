# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Cell-level text normalization shared by every extractor.

``normalize_cell`` produces display values; ``normalize_alias_key`` produces
dictionary lookup keys and is never shown to users.
"""

from __future__ import annotations

import re
from typing import Any

# Zero-width chars, bidi overrides, C0/C1 controls (tab/newline handled as whitespace)
_CONTROL_CHAR_RE = re.compile(
    r"[\u200B-\u200F\u202A-\u202E\u2060-\u2069\uFEFF\uFFF9-\uFFFB"
    r"\u0000-\u0008\u000E-\u001F\u007F-\u009F]"
)

_WS_RE = re.compile(r"\s+")

# (...), [...], {...}, full-width （...） and 【...】
_BRACKETED_RE = re.compile(r"\([^()]*\)|\[[^\[\]]*\]|\{[^{}]*\}|（[^（）]*）|【[^【】]*】")

_NON_KEY_CHAR_RE = re.compile(r"[^0-9a-z가-힣]")

_VALUE_WITH_UNIT_RE = re.compile(
    r"^(-?\d+(?:\.\d+)?)\s*(?:cm|mm|inch|in|\"|센치|센티|㎝)?$",
    re.IGNORECASE,
)


def normalize_cell(value: Any) -> str:
    """Coerce to string, drop control chars, collapse whitespace, trim. Never raises."""
    if value is None:
        return ""
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, float):
        text = str(int(value)) if value.is_integer() else repr(value)
    elif isinstance(value, str):
        text = value
    else:
        try:
            text = str(value)
        except Exception:
            return ""
    text = _CONTROL_CHAR_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def normalize_alias_key(value: Any) -> str:
    """Lookup key: lowercase, bracketed qualifiers removed, only [0-9a-z가-힣] kept."""
    text = normalize_cell(value).lower()
    # Nested brackets: strip innermost first until stable
    prev = None
    while prev != text:
        prev = text
        text = _BRACKETED_RE.sub("", text)
    return _NON_KEY_CHAR_RE.sub("", text)


def strip_value_unit(value: Any) -> str:
    """``"52cm"`` -> ``"52"``. Non-numeric cells are returned normalized but otherwise untouched."""
    text = normalize_cell(value)
    m = _VALUE_WITH_UNIT_RE.match(text)
    return m.group(1) if m else text


def parse_number(value: Any) -> float | None:
    """Numeric value of a measurement cell (unit suffix allowed), else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    m = _VALUE_WITH_UNIT_RE.match(normalize_cell(value).replace(",", ""))
    if not m:
        return None
    try:
        return float(m.group(1))
    except ValueError:
        return None
