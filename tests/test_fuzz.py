# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Property-based fuzz tests using Hypothesis.

Verifies invariants hold for arbitrary inputs across cell normalization,
table standardization, image header sniffing and the page extractors.
"""

from __future__ import annotations

try:
    from hypothesis import HealthCheck, example, given, settings
    from hypothesis import strategies as st
except ImportError:
    import pytest

    pytest.skip("hypothesis not installed", allow_module_level=True)

import pytest

from sizepicker.aliases import ITEM_LABEL
from sizepicker.extractors.html_tables import extract_html_table_candidates
from sizepicker.extractors.json_tables import extract_json_table_candidates, iter_embedded_json
from sizepicker.extractors.text_tables import extract_text_table_candidates, html_to_text
from sizepicker.images.dimensions import sniff_image_dimensions, sniff_image_mime
from sizepicker.images.discovery import discover_image_candidates
from sizepicker.labels import normalize_comparable_size_label, normalize_measurement_label
from sizepicker.options import scrape_size_options
from sizepicker.selector import score_size_table_candidate
from sizepicker.table_shape import standardize_size_table
from sizepicker.text import normalize_alias_key, normalize_cell, parse_number

# ---------------------------------------------------------------------------
# Module-level strategies
# ---------------------------------------------------------------------------

GENERAL_TEXT = st.text(min_size=0, max_size=500)

HTML_LIKE = st.text(
    alphabet=st.characters(
        whitelist_categories=("L", "N", "P", "Z"),
        whitelist_characters="<>/=\"'&;#!.- \n\t",
    ),
    min_size=10,
    max_size=3000,
)

CELL = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(-1000, 1000),
    st.floats(allow_nan=False, allow_infinity=False),
    st.sampled_from(["S", "M", "L", "XL", "95", "100", "가슴", "총장", "chest", "52cm", "FREE", ""]),
    st.text(max_size=20),
)

RAW_TABLE = st.fixed_dictionaries(
    {
        "headers": st.lists(CELL, max_size=8),
        "rows": st.lists(st.lists(CELL, max_size=8), max_size=8),
    }
)

FUZZ_SETTINGS = settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow], deadline=None)


# ---------------------------------------------------------------------------
# Text normalization
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestNormalizeFuzz:
    @FUZZ_SETTINGS
    @given(value=st.one_of(CELL, st.binary(max_size=50), st.lists(st.integers(), max_size=3)))
    def test_normalize_cell_never_raises(self, value):
        result = normalize_cell(value)
        assert isinstance(result, str)
        assert result == result.strip()

    @FUZZ_SETTINGS
    @given(text=GENERAL_TEXT)
    @example(text="\u200b M \u202e")
    @example(text="\t\n ")
    def test_normalize_cell_idempotent(self, text):
        once = normalize_cell(text)
        assert normalize_cell(once) == once

    @FUZZ_SETTINGS
    @given(text=GENERAL_TEXT)
    def test_alias_key_charset(self, text):
        key = normalize_alias_key(text)
        assert all(c.isdigit() or "a" <= c <= "z" or "가" <= c <= "힣" for c in key)

    @FUZZ_SETTINGS
    @given(text=GENERAL_TEXT)
    @example(text="Shipping \u00b2\u00b3")
    def test_label_helpers_never_raise(self, text):
        assert isinstance(normalize_measurement_label(text), str)
        assert isinstance(normalize_comparable_size_label(text), str)
        number = parse_number(text)
        assert number is None or isinstance(number, float)


# ---------------------------------------------------------------------------
# Table standardization
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestStandardizeFuzz:
    @FUZZ_SETTINGS
    @given(raw=RAW_TABLE)
    @example(raw="[" * 100_000 + "]" * 100_000)
    def test_result_is_rectangular(self, raw):
        table = standardize_size_table(raw)
        if table is None:
            return
        assert table.headers[0] == ITEM_LABEL
        assert all(len(row) == len(table.headers) for row in table.rows)
        assert all(any(row) for row in table.rows)

    @FUZZ_SETTINGS
    @given(raw=st.one_of(RAW_TABLE, CELL, st.lists(st.lists(CELL, max_size=5), max_size=5)))
    def test_score_never_raises(self, raw):
        score = score_size_table_candidate(standardize_size_table(raw))
        assert isinstance(score, int)
        assert score >= -1


# ---------------------------------------------------------------------------
# Image header sniffing
# ---------------------------------------------------------------------------

MAGIC = st.sampled_from([b"", b"\x89PNG\r\n\x1a\n", b"\xff\xd8", b"RIFF\x00\x00\x00\x00WEBP", b"GIF89a"])


@pytest.mark.fuzz
class TestDimensionsFuzz:
    @FUZZ_SETTINGS
    @given(prefix=MAGIC, body=st.binary(max_size=256))
    def test_sniffers_never_raise(self, prefix, body):
        data = prefix + body
        dims = sniff_image_dimensions(data)
        assert dims is None or (dims.width > 0 and dims.height > 0)
        mime = sniff_image_mime(data)
        assert mime is None or mime.startswith("image/")


# ---------------------------------------------------------------------------
# Page extractors
# ---------------------------------------------------------------------------


@pytest.mark.fuzz
class TestExtractorsFuzz:
    @FUZZ_SETTINGS
    @given(html=HTML_LIKE)
    @example(html="<table><tr><td colspan='9999'>x</td></tr></table>")
    @example(html="<script>window.__STATE__ = {\"size\": [</script>")
    @example(html='<script type="application/json">' + "[" * 100_000 + "]" * 100_000 + "</script>")
    @example(html='<img src="http://[broken/size_chart.jpg">')
    def test_extractors_never_raise(self, html):
        for cand in extract_html_table_candidates(html):
            assert cand.table.headers[0] == ITEM_LABEL
        extract_text_table_candidates(html_to_text(html))
        extract_json_table_candidates(iter_embedded_json(html))
        assert isinstance(scrape_size_options(html), list)

    @FUZZ_SETTINGS
    @given(html=HTML_LIKE)
    @example(html='<img src="http://[broken/size_chart.jpg"><img src="/a.jpg">')
    def test_image_discovery_urls_absolute(self, html):
        for cand in discover_image_candidates(html, "https://shop.example.com/p/1"):
            assert cand.url.startswith(("http://", "https://"))
