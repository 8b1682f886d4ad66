# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Role-specific image candidate scoring.

The same URL is scored independently for two roles: the main product photo
and the size-chart image. Each role rewards its own vocabulary (ko/en) found
in the URL path or the hint text and penalizes the other role's vocabulary.
Shared penalties: non-content directories, .gif/.svg, small query-string
width/height hints.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from urllib.parse import urlsplit

from sizepicker import ImageCandidate

logger = logging.getLogger(__name__)

# (pattern, weight)
_PRODUCT_TOKENS: tuple[tuple[str, int], ...] = (
    # en
    (r"og:image|json-ld product|itemprop:image", 4),
    (r"\bmain\b|[/_-]main[/_.-]", 3),
    (r"/big/|\bbig\b", 3),
    (r"product|goods|item", 2),
    (r"\bfront\b|[/_-]front[/_.-]", 2),
    (r"large|zoom|original", 2),
    # ko
    (r"대표|메인|상품", 2),
)
_SIZE_CHART_TOKENS: tuple[tuple[str, int], ...] = (
    # en
    (r"size", 5),
    (r"chart|guide", 3),
    (r"measure|spec", 3),
    (r"\bcm\b|[/_-]cm[/_.-]", 1),
    (r"detail|info", 1),
    # ko
    (r"사이즈|실측|치수", 5),
    (r"상세", 1),
)

_THUMBNAIL_RE = re.compile(r"thumb|/tiny/|/small/|/list/|_s\.\w+$", re.IGNORECASE)
_NON_CONTENT_RE = re.compile(
    r"/(?:skin|layout|icons?|sprites?|logo|banner|btn|button|common|design|_wg|emoticon)s?(?:/|_|\.|$)|sprite|favicon",
    re.IGNORECASE,
)
_BAD_EXT_RE = re.compile(r"\.(?:gif|svg)(?:$|[?#])", re.IGNORECASE)
_QUERY_DIM_RE = re.compile(r"[?&](?:w|width|h|height|size|resize)=(\d+)", re.IGNORECASE)

_CAFE24_THUMB_RE = re.compile(r"/web/product/(?:tiny|small|medium|list)/")
_CAFE24_EXTRA_THUMB_RE = re.compile(r"/web/product/extra/small/")

# Serves only skin/decoration assets
DECORATIVE_HOSTS = frozenset({"img.echosting.cafe24.com"})

OPPOSITE_VOCAB_PENALTY = 4
THUMBNAIL_PENALTY = 2
NON_CONTENT_PENALTY = 6
BAD_EXTENSION_PENALTY = 5
SMALL_DIMENSION_PENALTY = 4
PRODUCT_MIN_QUERY_DIM = 300
SIZE_CHART_MIN_QUERY_DIM = 200


def _token_score(text: str, tokens: tuple[tuple[str, int], ...]) -> int:
    return sum(weight for pattern, weight in tokens if re.search(pattern, text, re.IGNORECASE))


def _shared_penalties(url: str, min_query_dim: int) -> int:
    penalty = 0
    if _NON_CONTENT_RE.search(url):
        penalty += NON_CONTENT_PENALTY
    if _BAD_EXT_RE.search(url):
        penalty += BAD_EXTENSION_PENALTY
    dims = [int(v) for v in _QUERY_DIM_RE.findall(url) if len(v) <= 6]
    if dims and min(dims) < min_query_dim:
        penalty += SMALL_DIMENSION_PENALTY
    return penalty


def score_product_image_candidate(url: str, hint: str = "") -> int:
    text = f"{url} {hint}"
    score = _token_score(text, _PRODUCT_TOKENS)
    if _token_score(text, _SIZE_CHART_TOKENS) >= 3:
        score -= OPPOSITE_VOCAB_PENALTY
    if _THUMBNAIL_RE.search(url):
        score -= THUMBNAIL_PENALTY
    return score - _shared_penalties(url, PRODUCT_MIN_QUERY_DIM)


def score_size_chart_image_candidate(url: str, hint: str = "") -> int | None:
    """Size-chart score, or None for hosts that never serve content images."""
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return None
    if host in DECORATIVE_HOSTS:
        return None
    text = f"{url} {hint}"
    score = _token_score(text, _SIZE_CHART_TOKENS)
    if re.search(r"\bmain\b|[/_-]main[/_.-]|\bfront\b|대표|메인|og:image", text, re.IGNORECASE):
        score -= OPPOSITE_VOCAB_PENALTY
    return score - _shared_penalties(url, SIZE_CHART_MIN_QUERY_DIM)


def add_image_resolution_variants(urls: Iterable[str]) -> list[str]:
    """Insert the full-size Cafe24 URL before each thumbnail URL; order otherwise kept."""
    result: list[str] = []
    seen: set[str] = set()
    for url in urls:
        variant = None
        if _CAFE24_EXTRA_THUMB_RE.search(url):
            variant = _CAFE24_EXTRA_THUMB_RE.sub("/web/product/extra/big/", url, count=1)
        elif _CAFE24_THUMB_RE.search(url):
            variant = _CAFE24_THUMB_RE.sub("/web/product/big/", url, count=1)
        for u in (variant, url):
            if u and u not in seen:
                seen.add(u)
                result.append(u)
    return result


def _with_variants(candidates: Iterable[ImageCandidate]) -> list[ImageCandidate]:
    hints: dict[str, str] = {}
    for cand in candidates:
        for url in add_image_resolution_variants([cand.url]):
            hints.setdefault(url, cand.hint)
    return [ImageCandidate(url=url, hint=hint) for url, hint in hints.items()]


def rank_product_images(candidates: Iterable[ImageCandidate]) -> list[ImageCandidate]:
    """Variants added, scored for the product-photo role, best first (stable)."""
    scored = [
        ImageCandidate(url=c.url, score=score_product_image_candidate(c.url, c.hint), hint=c.hint)
        for c in _with_variants(candidates)
    ]
    scored.sort(key=lambda c: c.score, reverse=True)
    return scored


def rank_size_chart_images(candidates: Iterable[ImageCandidate]) -> list[ImageCandidate]:
    """Variants added, scored for the size-chart role, hard rejects dropped, best first."""
    scored: list[ImageCandidate] = []
    for cand in _with_variants(candidates):
        score = score_size_chart_image_candidate(cand.url, cand.hint)
        if score is None:
            logger.debug("size chart candidate rejected: %s", cand.url)
            continue
        scored.append(ImageCandidate(url=cand.url, score=score, hint=cand.hint))
    scored.sort(key=lambda c: c.score, reverse=True)
    return scored
