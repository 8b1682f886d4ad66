# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Boundary to the external vision/LLM collaborator.

The collaborator is a black box: it receives an ``ImagePayload`` and returns
whatever it produced (a mapping, JSON text, fenced JSON, or a raw
Gemini-style ``generateContent`` response). Everything it returns is treated
as untrusted and goes through the same standardization and scoring gate as
page-scraped tables.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from sizepicker import ImagePayload, SizeTable
from sizepicker.selector import align_and_validate_size_table_by_option_labels, score_size_table_candidate
from sizepicker.table_shape import standardize_size_table

logger = logging.getLogger(__name__)

# Instruction + response schema for collaborators that call a structured-output model.
SIZE_TABLE_PROMPT = (
    "Analyze this clothing size chart image and extract table data. "
    "Return JSON only. If headers are in English, translate to Korean "
    "(e.g., Chest -> 가슴둘레, Length -> 총장, Shoulder -> 어깨너비, Sleeve -> 소매길이). "
    "Keep headers as short labels and rows as plain string values."
)
SIZE_TABLE_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "required": ["headers", "rows"],
    "properties": {
        "headers": {"type": "ARRAY", "items": {"type": "STRING"}},
        "rows": {"type": "ARRAY", "items": {"type": "ARRAY", "items": {"type": "STRING"}}},
    },
}

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)
MAX_ENVELOPE_DEPTH = 4


@runtime_checkable
class VisionTableExtractor(Protocol):
    async def __call__(self, image: ImagePayload) -> Any: ...


def _gemini_text(response: Mapping) -> str | None:
    """First text part of ``candidates[0].content.parts``."""
    candidates = response.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], Mapping):
        return None
    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, Mapping) else None
    if not isinstance(parts, list):
        return None
    for part in parts:
        if isinstance(part, Mapping) and isinstance(part.get("text"), str):
            return part["text"]
    return None


def _loads(text: str) -> Any:
    text = text.strip()
    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1)
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        logger.debug("vision output is not JSON (%d chars)", len(text))
        return None


def parse_vision_output(raw: Any, _depth: int = 0) -> Mapping | None:
    """Raw ``{headers, rows}`` mapping from any collaborator output shape, else None."""
    if _depth > MAX_ENVELOPE_DEPTH:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        raw = _loads(raw)
    if not isinstance(raw, Mapping):
        return None
    if "candidates" in raw and "headers" not in raw:
        text = _gemini_text(raw)
        return parse_vision_output(text, _depth + 1) if text is not None else None
    if isinstance(raw.get("data"), Mapping) and "headers" not in raw:
        return parse_vision_output(raw["data"], _depth + 1)  # {"ok": true, "data": {...}} envelopes
    return raw if "headers" in raw or "rows" in raw else None


def table_from_vision_output(raw: Any, size_options: Iterable[object] | None = None) -> SizeTable | None:
    """Parse, standardize, gate with the shared rubric, then align to known options."""
    parsed = parse_vision_output(raw)
    if parsed is None:
        return None
    table = standardize_size_table(parsed)
    if table is None or score_size_table_candidate(table) < 0:
        logger.info("vision table rejected by rubric")
        return None
    if size_options:
        return align_and_validate_size_table_by_option_labels(table, size_options)
    return table
