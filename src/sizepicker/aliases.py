# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Measurement vocabulary: surface forms (ko/en) -> canonical Korean labels.

Surface forms are written the way they appear on pages and keyed with
``normalize_alias_key`` once at import. The resulting maps are read-only
(MappingProxyType) and shared by every request.

Supported languages: ko, en
"""

from __future__ import annotations

from types import MappingProxyType

from sizepicker.text import normalize_alias_key

ITEM_LABEL = "항목"
TOTAL_LENGTH = "총장"

# ---------------------------------------------------------------------------
# Total length, checked before the general map
# ---------------------------------------------------------------------------

TOTAL_LENGTH_TERMS: tuple[str, ...] = (
    # ko
    "총장",
    "총기장",
    "총 길이",
    "기장",
    "전장",
    "전체길이",
    "전체 기장",
    "옷길이",
    "뒷기장",
    "상의총장",
    "하의총장",
    # en
    "Length",
    "Total Length",
    "Full Length",
    "Body Length",
    "Back Length",
    "Garment Length",
)

# Substring containment is only safe for tokens that never appear inside other
# labels ("기장" alone would swallow "소매기장").
TOTAL_LENGTH_CONTAINS_TERMS: tuple[str, ...] = (
    "총장",
    "총기장",
    "총길이",
    "전체길이",
    "totallength",
    "fulllength",
    "bodylength",
)

# ---------------------------------------------------------------------------
# General measurement aliases
# ---------------------------------------------------------------------------

MEASUREMENT_TERMS: dict[str, tuple[str, ...]] = {
    "어깨": (
        "어깨",
        "어깨너비",
        "어깨넓이",
        "어깨단면",
        "어깨길이",
        "Shoulder",
        "Shoulders",
        "Shoulder Width",
    ),
    "가슴": (
        "가슴",
        "가슴단면",
        "가슴둘레",
        "가슴너비",
        "가슴폭",
        "품",
        "Chest",
        "Chest Width",
        "Bust",
        "Pit to Pit",
    ),
    "소매": (
        "소매",
        "소매길이",
        "소매기장",
        "팔길이",
        "Sleeve",
        "Sleeve Length",
    ),
    "소매통": (
        "소매통",
        "소매단면",
        "소매폭",
        "팔통",
        "팔뚝",
        "Sleeve Width",
        "Biceps",
    ),
    "소매단": (
        "소매단",
        "소매끝",
        "소맷단",
        "Cuff",
        "Cuff Width",
    ),
    "화장": (
        "화장",
        "화장길이",
    ),
    "암홀": (
        "암홀",
        "암홀단면",
        "진동",
        "진동둘레",
        "Armhole",
    ),
    "목둘레": (
        "목둘레",
        "목너비",
        "넥",
        "Neck",
        "Neck Width",
    ),
    "허리": (
        "허리",
        "허리단면",
        "허리둘레",
        "허리너비",
        "Waist",
        "Waist Width",
    ),
    "엉덩이": (
        "엉덩이",
        "엉덩이단면",
        "엉덩이둘레",
        "힙",
        "힙단면",
        "힙둘레",
        "Hip",
        "Hips",
        "Hip Width",
    ),
    "허벅지": (
        "허벅지",
        "허벅지단면",
        "허벅지둘레",
        "Thigh",
        "Thigh Width",
    ),
    "밑위": (
        "밑위",
        "밑위길이",
        "앞밑위",
        "Rise",
        "Front Rise",
    ),
    "밑단": (
        "밑단",
        "밑단단면",
        "밑단둘레",
        "밑단폭",
        "Hem",
        "Hem Width",
        "Leg Opening",
    ),
    "인심": (
        "인심",
        "안기장",
        "안쪽기장",
        "Inseam",
    ),
}

# ---------------------------------------------------------------------------
# English substring inference, last resort before falling back to raw text.
# Order matters: more specific needles first.
# ---------------------------------------------------------------------------

INFERENCE_RULES: tuple[tuple[str, str], ...] = (
    ("armhole", "암홀"),
    ("inseam", "인심"),
    ("shoulder", "어깨"),
    ("sleeve", "소매"),
    ("chest", "가슴"),
    ("bust", "가슴"),
    ("waist", "허리"),
    ("thigh", "허벅지"),
    ("hip", "엉덩이"),
    ("rise", "밑위"),
    ("hem", "밑단"),
    ("neck", "목둘레"),
    ("length", TOTAL_LENGTH),
)

# Short needles that also occur inside unrelated words ("shipping", "sunrise",
# "chemical"): only matched at the start of a word.
WORD_START_TOKENS: frozenset[str] = frozenset({"hip", "rise", "hem", "neck", "cuff"})

# Loose tier: any of these tokens marks a row label as measurement-like.
LOOSE_MEASUREMENT_TOKENS: tuple[str, ...] = (
    # ko
    "총장",
    "기장",
    "길이",
    "어깨",
    "가슴",
    "소매",
    "화장",
    "암홀",
    "진동",
    "목둘레",
    "허리",
    "엉덩이",
    "힙",
    "허벅지",
    "밑위",
    "밑단",
    "인심",
    "단면",
    "둘레",
    "너비",
    # en
    "length",
    "shoulder",
    "chest",
    "bust",
    "sleeve",
    "armhole",
    "neck",
    "waist",
    "hip",
    "thigh",
    "rise",
    "hem",
    "inseam",
    "width",
    "cuff",
)


def _build_alias_map() -> MappingProxyType:
    table: dict[str, str] = {}
    for canonical, terms in MEASUREMENT_TERMS.items():
        table[normalize_alias_key(canonical)] = canonical
        for term in terms:
            table.setdefault(normalize_alias_key(term), canonical)
    return MappingProxyType(table)


TOTAL_LENGTH_KEYS: frozenset[str] = frozenset(normalize_alias_key(t) for t in TOTAL_LENGTH_TERMS)
ALIAS_MAP: MappingProxyType = _build_alias_map()
CANONICAL_LABELS: frozenset[str] = frozenset((TOTAL_LENGTH, *MEASUREMENT_TERMS))
