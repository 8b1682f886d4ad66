# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Size / measurement label classification.

Two confidence tiers for measurement labels:
  strict  (is_likely_measurement_label): resolves through the alias maps.
      High precision; used where a label must become a canonical row name.
  loose   (is_likely_measurement_label_loose): strict OR contains a known
      measurement token. Used by orientation scoring, which has to tolerate
      labels the alias maps have not seen yet.

``is_likely_size_label`` favours precision: a false positive flips the
orientation decision for the whole table.
"""

from __future__ import annotations

import re
from typing import Any

from sizepicker.aliases import (
    ALIAS_MAP,
    INFERENCE_RULES,
    LOOSE_MEASUREMENT_TOKENS,
    TOTAL_LENGTH,
    TOTAL_LENGTH_CONTAINS_TERMS,
    TOTAL_LENGTH_KEYS,
    WORD_START_TOKENS,
)
from sizepicker.text import normalize_alias_key, normalize_cell

# --- Size labels ---

_ALPHA_SIZE = r"(?:X{0,3}S|M|X{0,3}L|[2-5]XL|[2-4]XS|FREE|F|ONE\s?SIZE|OS|프리)"
_ANNOTATION = r"(?:\s*[\(\[][^\)\]]{1,20}[\)\]])?"
_SIZE_SUFFIX = r"(?:\s*SIZE)?"
_NUMERIC = r"\d{1,3}(?:\.5)?"

_ALPHA_SIZE_RE = re.compile(rf"^{_ALPHA_SIZE}{_SIZE_SUFFIX}{_ANNOTATION}$", re.IGNORECASE)
_NUMERIC_SIZE_RE = re.compile(rf"^({_NUMERIC}){_ANNOTATION}$")
_REGION_SIZE_RE = re.compile(r"^(?:EU|US|UK|IT|FR|JP|KR|KOR)\s*\d{1,3}(?:\.5)?$", re.IGNORECASE)
_WAIST_INSEAM_RE = re.compile(r"^W\s*\d{2}(?:\s*[/xX×]\s*L\s*\d{2})?$", re.IGNORECASE)
_COMBO_SIZE_RE = re.compile(
    rf"^(?:{_ALPHA_SIZE}\s*[-/]\s*\d{{2,3}}|\d{{2,3}}\s*[-/]\s*{_ALPHA_SIZE})$",
    re.IGNORECASE,
)

_MAX_NUMERIC_SIZE = 400

# "M(95)", "95(M)", "M SIZE", "SIZE M"
_COMPARABLE_ANNOTATION_RE = re.compile(r"\s*[\(\[][^\)\]]*[\)\]]\s*")
_COMPARABLE_SIZE_WORD_RE = re.compile(r"^\s*(?:SIZE|사이즈)\s*|\s*(?:SIZE|사이즈)\s*$")

# --- Measurement labels ---

# Repeated so that "cm cm 가슴" and "cm 가슴" canonicalize identically
_LEADING_UNIT_RE = re.compile(r"^(?:(?:cm|mm|inch|in)(?:\s+|\s*[:.)\]/\-]\s*))+(?=\D)", re.IGNORECASE)


def _token_pattern(token: str) -> str:
    escaped = re.escape(token)
    return rf"(?<![a-z]){escaped}" if token in WORD_START_TOKENS else escaped


_LOOSE_MEASUREMENT_RE = re.compile("|".join(_token_pattern(t) for t in LOOSE_MEASUREMENT_TOKENS), re.IGNORECASE)
_INFERENCE_RES = tuple((re.compile(_token_pattern(needle)), canonical) for needle, canonical in INFERENCE_RULES)


def is_likely_size_label(value: Any) -> bool:
    """True for S/M/L-style, numeric (0-400), region-prefixed, W/L and alpha-numeric combo sizes."""
    text = normalize_cell(value)
    if not text or len(text) > 32:
        return False
    if _ALPHA_SIZE_RE.match(text):
        return True
    m = _NUMERIC_SIZE_RE.match(text)
    if m:
        return float(m.group(1)) <= _MAX_NUMERIC_SIZE
    return bool(_REGION_SIZE_RE.match(text) or _WAIST_INSEAM_RE.match(text) or _COMBO_SIZE_RE.match(text))


def is_alpha_size_label(value: Any) -> bool:
    text = normalize_cell(value)
    return bool(text) and bool(_ALPHA_SIZE_RE.match(text) or _COMBO_SIZE_RE.match(text))


def is_numeric_size_label(value: Any) -> bool:
    m = _NUMERIC_SIZE_RE.match(normalize_cell(value))
    return bool(m) and float(m.group(1)) <= _MAX_NUMERIC_SIZE


def normalize_comparable_size_label(value: Any) -> str:
    """Bare size token for equality checks: ``M(95)`` -> ``M``, ``95(M)`` -> ``95``, ``M SIZE`` -> ``M``."""
    text = normalize_cell(value).upper()
    stripped = _COMPARABLE_ANNOTATION_RE.sub(" ", text).strip()
    if stripped:
        text = stripped
    stripped = _COMPARABLE_SIZE_WORD_RE.sub("", text).strip()
    if stripped:
        text = stripped
    return text.replace(" ", "")


def _strip_leading_unit(text: str) -> str:
    return _LEADING_UNIT_RE.sub("", text).strip()


def _resolve_alias(key: str) -> str | None:
    """Alias-map resolution only (total length first, then the general map)."""
    if not key:
        return None
    if key in TOTAL_LENGTH_KEYS:
        return TOTAL_LENGTH
    if any(term in key for term in TOTAL_LENGTH_CONTAINS_TERMS):
        return TOTAL_LENGTH
    return ALIAS_MAP.get(key)


def _infer_from_english(text: str) -> str | None:
    lowered = text.lower()
    for pattern, canonical in _INFERENCE_RES:
        if pattern.search(lowered):
            return canonical
    return None


def normalize_measurement_label(raw: Any) -> str:
    """Canonical measurement label, or the sanitized raw text when nothing matches."""
    text = _strip_leading_unit(normalize_cell(raw))
    key = normalize_alias_key(text)
    return _resolve_alias(key) or _infer_from_english(text) or text


def is_likely_measurement_label(value: Any) -> bool:
    """Strict tier: the label resolves through the alias maps."""
    key = normalize_alias_key(_strip_leading_unit(normalize_cell(value)))
    return _resolve_alias(key) is not None


def is_likely_measurement_label_loose(value: Any) -> bool:
    """Loose tier: strict, or the label contains a measurement token (ko/en)."""
    text = normalize_cell(value)
    if not text:
        return False
    return is_likely_measurement_label(text) or bool(_LOOSE_MEASUREMENT_RE.search(text))
