# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for PipelineTimer."""

from __future__ import annotations

from sizepicker.pipeline_timer import PipelineTimer


class TestPipelineTimer:
    def test_stage_tracking(self):
        timer = PipelineTimer()
        timer.stage("fetch_page")
        timer.stage("extract_tables")
        timer.stage("discover_images")
        timer.finalize()

        stages = timer.elapsed_per_stage()
        assert list(stages.keys()) == ["fetch_page", "extract_tables", "discover_images"]
        assert all(isinstance(v, float) for v in stages.values())

    def test_current_stage(self):
        timer = PipelineTimer()
        assert timer.current_stage is None

        timer.stage("fetch_page")
        assert timer.current_stage == "fetch_page"

        timer.stage("extract_tables")
        assert timer.current_stage == "extract_tables"

        timer.finalize()
        assert timer.current_stage is None

    def test_repeated_stage_accumulates(self):
        timer = PipelineTimer()
        timer.stage("vision")
        timer.stage("other")
        timer.stage("vision")
        timer.finalize()
        assert list(timer.elapsed_per_stage()) == ["vision", "other"]

    def test_timeout_report_structure(self):
        timer = PipelineTimer()
        timer.stage("fetch_page")
        timer.stage("fetch_product_image")  # fetch_page complete, image fetch starts

        report = timer.timeout_report()
        assert report["error"] == "timeout"
        assert report["timed_out_at"] == "fetch_product_image"
        assert len(report["completed_stages"]) == 1
        assert report["completed_stages"][0]["stage"] == "fetch_page"
        assert isinstance(report["total_ms"], float)
        assert "validation" in report["hint"]

    def test_timeout_report_no_stages(self):
        timer = PipelineTimer()
        report = timer.timeout_report()
        assert report["timed_out_at"] == "unknown"
        assert report["completed_stages"] == []
        assert report["timed_out_stage_ms"] == 0

    def test_hint_for_known_stages(self):
        assert "slow to respond" in PipelineTimer.hint_for_stage("fetch_page")
        assert "embedded JSON" in PipelineTimer.hint_for_stage("extract_tables")
        assert "Vision" in PipelineTimer.hint_for_stage("vision")

    def test_hint_for_unknown_stage(self):
        hint = PipelineTimer.hint_for_stage("custom_stage")
        assert "custom_stage" in hint

    def test_elapsed_includes_current_stage(self):
        timer = PipelineTimer()
        timer.stage("running")
        # Don't finalize: should still show up
        stages = timer.elapsed_per_stage()
        assert "running" in stages
        assert stages["running"] >= 0

    def test_finalize_idempotent(self):
        timer = PipelineTimer()
        timer.stage("a")
        timer.finalize()
        timer.finalize()  # second call should be no-op
        stages = timer.elapsed_per_stage()
        assert len(stages) == 1

    def test_total_ms_monotonic(self):
        timer = PipelineTimer()
        first = timer.total_ms()
        assert timer.total_ms() >= first >= 0
