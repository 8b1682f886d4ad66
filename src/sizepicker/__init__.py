# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Size Picker: size-chart extraction and normalization for product pages.

Turns arbitrary product pages, embedded JSON, free text, or vision output into
a rectangular size table:
- headers: ["항목", <size labels>...]
- rows: [<canonical measurement label>, <values>...]

Also ranks product-photo and size-chart image candidates and validates them
with header-only dimension sniffing.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import StrEnum


@dataclass(frozen=True)
class SizeTable:
    """A size chart: sizes run along columns, measurements along rows."""

    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    @property
    def size_labels(self) -> list[str]:
        return self.headers[1:]

    def to_dict(self) -> dict:
        return {"headers": list(self.headers), "rows": [list(r) for r in self.rows]}


class CandidateSource(StrEnum):
    """Which extractor proposed a table candidate."""

    HTML_TABLE = "html_table"
    JSON = "json"
    TEXT = "text"
    VISION = "vision"

    @property
    def priority(self) -> int:
        """Tie-break rank (lower wins): structural reliability order."""
        return _SOURCE_PRIORITY[self]


_SOURCE_PRIORITY: dict[CandidateSource, int] = {
    CandidateSource.HTML_TABLE: 0,
    CandidateSource.JSON: 1,
    CandidateSource.TEXT: 2,
    CandidateSource.VISION: 3,
}


@dataclass(frozen=True, slots=True)
class TableCandidate:
    """A standardized table proposed by one extractor, with its rubric score."""

    table: SizeTable
    source: CandidateSource
    score: int


@dataclass(frozen=True, slots=True)
class ImageCandidate:
    """An image URL found on a page. ``score`` is set by role-specific ranking."""

    url: str
    score: int = 0
    hint: str = ""  # alt/class/meta key text near the URL

    def __str__(self) -> str:
        return f"[{self.score}] {self.url}"


@dataclass(frozen=True)
class ImagePayload:
    """A fetched and validated image, handed to the caller for storage."""

    source_url: str
    mime_type: str
    data: bytes = field(repr=False)
    width: int | None = None
    height: int | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict:
        return {
            "sourceUrl": self.source_url,
            "mimeType": self.mime_type,
            "base64": base64.b64encode(self.data).decode("ascii"),
            "width": self.width,
            "height": self.height,
        }


@dataclass
class ExtractionResult:
    """Everything one page extraction produced. ``None`` fields mean "not found"."""

    url: str
    table: SizeTable | None = None
    table_source: CandidateSource | None = None
    product_image: ImagePayload | None = None
    size_chart_image: ImagePayload | None = None
    size_options: list[str] = field(default_factory=list)
    timings: dict[str, float] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)  # degraded mode notices

    @property
    def found_anything(self) -> bool:
        return self.table is not None or self.product_image is not None or self.size_chart_image is not None

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "sizeTable": self.table.to_dict() if self.table else None,
            "tableSource": str(self.table_source) if self.table_source else None,
            "productImage": self.product_image.to_dict() if self.product_image else None,
            "sizeChartImage": self.size_chart_image.to_dict() if self.size_chart_image else None,
            "sizeOptions": list(self.size_options),
            "timings": dict(self.timings),
            "warnings": list(self.warnings),
        }
