# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Table candidate extractors.

Each extractor reads one substrate (HTML tables, embedded JSON, free text)
and returns standardized, scored ``TableCandidate`` objects. Rejected tables
never leave the extractor.
"""

from __future__ import annotations

import logging
from typing import Any

from lxml import etree
from lxml.html import HtmlElement, fromstring

from sizepicker import CandidateSource, TableCandidate
from sizepicker.selector import score_size_table_candidate
from sizepicker.table_shape import standardize_size_table

logger = logging.getLogger(__name__)


def make_candidate(raw: Any, source: CandidateSource, *, boost: int = 0) -> TableCandidate | None:
    """Standardize + score a raw table. ``boost`` applies only to accepted tables."""
    table = standardize_size_table(raw)
    if table is None:
        return None
    score = score_size_table_candidate(table)
    if score < 0:
        logger.debug("%s candidate rejected (%d headers, %d rows)", source, len(table.headers), len(table.rows))
        return None
    return TableCandidate(table=table, source=source, score=score + boost)


def parse_html(html: str | bytes | None) -> HtmlElement | None:
    """lxml document for arbitrary page markup; None for empty or unparsable input."""
    if not html or not html.strip():
        return None
    try:
        return fromstring(html)
    except ValueError:
        # str input carrying an XML encoding declaration
        if isinstance(html, str):
            try:
                return fromstring(html.encode("utf-8"))
            except (etree.LxmlError, ValueError):
                return None
        return None
    except etree.LxmlError:
        return None
