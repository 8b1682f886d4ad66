# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for candidate scoring, selection, and size-option alignment."""

from __future__ import annotations

import pytest

from sizepicker import CandidateSource, SizeTable, TableCandidate
from sizepicker.selector import (
    REJECTED,
    align_and_validate_size_table_by_option_labels,
    score_size_table_candidate,
    select_best_candidate,
)

TEE = SizeTable(
    headers=["항목", "S", "M", "L"],
    rows=[["총장", "68", "70", "72"], ["가슴", "55", "57", "59"]],
)


def _cand(score: int, source: CandidateSource = CandidateSource.HTML_TABLE) -> TableCandidate:
    return TableCandidate(table=TEE, source=source, score=score)


class TestScore:
    def test_rubric(self):
        # 3 size headers * 3 + 2 strict rows * 3 + 2 rows
        assert score_size_table_candidate(TEE) == 17

    def test_hinted_row_scores_less_than_strict(self):
        table = SizeTable(headers=["항목", "S", "M"], rows=[["Back Rise", "20", "21"]])
        # 2 * 3 + 1 hinted * 2 + 1 row
        assert score_size_table_candidate(table) == 9

    @pytest.mark.parametrize(
        "table",
        [
            None,
            SizeTable(headers=["항목", "S"], rows=[["가슴", "50"]]),
            SizeTable(headers=["항목", "S", "M"], rows=[]),
            SizeTable(headers=["항목", "Home", "Shop"], rows=[["New", "Best", "Sale"]]),
        ],
    )
    def test_rejected(self, table):
        assert score_size_table_candidate(table) == REJECTED

    def test_implausible_numbers_rejected(self):
        table = SizeTable(headers=["항목", "S", "M", "L"], rows=[["가슴", "12000", "13000", "52"]])
        assert score_size_table_candidate(table) == REJECTED

    def test_mixed_alpha_numeric_headers_penalized(self):
        clean = SizeTable(headers=["항목", "S", "M"], rows=[["가슴", "50", "52"]])
        mixed = SizeTable(headers=["항목", "S", "95"], rows=[["가슴", "50", "52"]])
        assert score_size_table_candidate(clean) - score_size_table_candidate(mixed) == 5


class TestSelectBest:
    def test_highest_score_wins(self):
        best = select_best_candidate([_cand(5), _cand(12, CandidateSource.TEXT), _cand(7)])
        assert best.score == 12

    def test_tie_goes_to_structural_source(self):
        cands = [_cand(10, CandidateSource.TEXT), _cand(10, CandidateSource.JSON), _cand(10, CandidateSource.VISION)]
        assert select_best_candidate(cands).source is CandidateSource.JSON

    def test_negative_scores_ignored(self):
        assert select_best_candidate([_cand(-1), _cand(-5)]) is None

    def test_empty(self):
        assert select_best_candidate([]) is None

    def test_order_independent(self):
        cands = [_cand(10, CandidateSource.TEXT), _cand(10, CandidateSource.HTML_TABLE)]
        assert select_best_candidate(cands) == select_best_candidate(list(reversed(cands)))


class TestAlignment:
    def test_no_options_returns_table_unchanged(self):
        assert align_and_validate_size_table_by_option_labels(TEE, []) is TEE

    def test_reorders_to_option_order(self):
        aligned = align_and_validate_size_table_by_option_labels(TEE, ["L", "M", "S"])
        assert aligned.headers == ["항목", "L", "M", "S"]
        assert aligned.rows == [["총장", "72", "70", "68"], ["가슴", "59", "57", "55"]]

    def test_annotated_options_match(self):
        aligned = align_and_validate_size_table_by_option_labels(TEE, ["S(90)", "M(95)", "L(100)"])
        assert aligned.headers == ["항목", "S(90)", "M(95)", "L(100)"]

    def test_duplicate_options_deduped(self):
        aligned = align_and_validate_size_table_by_option_labels(TEE, ["S", "s", "M", "L", "M"])
        assert aligned.headers == ["항목", "S", "M", "L"]

    def test_sequential_numeric_headers_replaced(self):
        table = SizeTable(headers=["항목", "1", "2", "3"], rows=[["가슴", "50", "52", "54"]])
        aligned = align_and_validate_size_table_by_option_labels(table, ["S", "M", "L"])
        assert aligned.headers == ["항목", "S", "M", "L"]
        assert aligned.rows == [["가슴", "50", "52", "54"]]

    def test_superscript_digit_headers_are_not_sequential(self):
        table = SizeTable(headers=["항목", "²", "³"], rows=[["가슴", "50", "52"]])
        assert align_and_validate_size_table_by_option_labels(table, ["S", "M"]) is None

    def test_unrelated_options_reject(self):
        assert align_and_validate_size_table_by_option_labels(TEE, ["95", "100", "105"]) is None

    def test_too_many_unmatched_headers_reject(self):
        table = SizeTable(
            headers=["항목", "XS", "S", "M", "L", "XL"],
            rows=[["가슴", "48", "50", "52", "54", "56"]],
        )
        # 2 of 5 match; 3 unmatched > 0.4 * 5
        assert align_and_validate_size_table_by_option_labels(table, ["S", "M"]) is None

    def test_partial_match_within_tolerance(self):
        table = SizeTable(
            headers=["항목", "S", "M", "L", "XL", "XXL"],
            rows=[["가슴", "50", "52", "54", "56", "58"]],
        )
        aligned = align_and_validate_size_table_by_option_labels(table, ["S", "M", "L", "XL"])
        assert aligned.headers == ["항목", "S", "M", "L", "XL"]
        assert aligned.rows == [["가슴", "50", "52", "54", "56"]]

    def test_table_without_size_headers_rejects(self):
        assert align_and_validate_size_table_by_option_labels(SizeTable(headers=["항목"], rows=[]), ["S"]) is None
