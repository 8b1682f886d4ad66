# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for SIZEPICKER_* environment configuration."""

from __future__ import annotations

import logging

import pytest

from sizepicker.settings import Settings


class TestFromEnv:
    def test_defaults(self):
        assert Settings.from_env({}) == Settings()

    def test_overrides(self):
        env = {
            "SIZEPICKER_FETCH_TIMEOUT": "2.5",
            "SIZEPICKER_REQUEST_DEADLINE": "30",
            "SIZEPICKER_MAX_IMAGE_BYTES": "5000000",
            "SIZEPICKER_MAX_CANDIDATE_ATTEMPTS": "3",
            "SIZEPICKER_SIZE_CHART_MAX_ASPECT": "12",
            "SIZEPICKER_USER_AGENT": "  sizepicker-test/1.0  ",
        }
        s = Settings.from_env(env)
        assert s.fetch_timeout == 2.5
        assert s.request_deadline == 30.0
        assert s.max_image_bytes == 5_000_000
        assert s.max_candidate_attempts == 3
        assert s.size_chart_max_aspect == 12.0
        assert s.user_agent == "sizepicker-test/1.0"

    @pytest.mark.parametrize(
        "name,value",
        [
            ("SIZEPICKER_FETCH_TIMEOUT", "fast"),
            ("SIZEPICKER_FETCH_TIMEOUT", "0"),
            ("SIZEPICKER_FETCH_TIMEOUT", "nan"),
            ("SIZEPICKER_FETCH_TIMEOUT", "inf"),
            ("SIZEPICKER_REQUEST_DEADLINE", "0"),
            ("SIZEPICKER_MAX_IMAGE_BYTES", "-1"),
            ("SIZEPICKER_MAX_IMAGE_BYTES", "1.5"),
            ("SIZEPICKER_PRODUCT_MIN_WIDTH", "-300"),
            ("SIZEPICKER_MAX_CANDIDATE_ATTEMPTS", ""),
        ],
    )
    def test_invalid_values_keep_defaults(self, name, value):
        assert Settings.from_env({name: value}) == Settings()

    def test_invalid_value_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="sizepicker.settings"):
            Settings.from_env({"SIZEPICKER_FETCH_TIMEOUT": "fast"})
        assert "SIZEPICKER_FETCH_TIMEOUT" in caplog.text

    def test_inverted_byte_bounds_reset_both(self):
        s = Settings.from_env({"SIZEPICKER_MIN_IMAGE_BYTES": "9000", "SIZEPICKER_MAX_IMAGE_BYTES": "100"})
        assert (s.min_image_bytes, s.max_image_bytes) == (Settings().min_image_bytes, Settings().max_image_bytes)

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("SIZEPICKER_MAX_CANDIDATE_ATTEMPTS", "4")
        assert Settings.from_env().max_candidate_attempts == 4


class TestConstraints:
    def test_role_constraints(self):
        s = Settings()
        product = s.product_constraints()
        chart = s.size_chart_constraints()
        assert (product.min_width, product.min_height, product.max_aspect_ratio) == (300, 300, 3.0)
        assert (chart.min_width, chart.min_height, chart.max_aspect_ratio) == (300, 150, 8.0)
        assert product.max_bytes == chart.max_bytes == 15 * 1024 * 1024
        assert product.min_bytes == chart.min_bytes == 1024

    def test_frozen(self):
        with pytest.raises(AttributeError):
            Settings().fetch_timeout = 1.0  # type: ignore[misc]
