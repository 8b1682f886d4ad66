# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Per-stage latency tracking for one extraction request.

Created outside asyncio.wait_for so it survives cancellation and can still
say which stage a timed-out request was stuck in.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

_STAGE_HINTS = {
    "fetch_page": "Product page is slow to respond or very large.",
    "extract_tables": "Page markup or embedded JSON is unusually large.",
    "discover_images": "Page references an unusually large number of images.",
    "fetch_product_image": "Product image candidates are slow or keep failing validation.",
    "fetch_size_chart_image": "Size chart image candidates are slow or keep failing validation.",
    "vision": "Vision collaborator is slow to answer.",
}


@dataclass(slots=True)
class StageRecord:
    name: str
    start_ns: int
    end_ns: int = 0

    @property
    def elapsed_ms(self) -> float:
        return round((self.end_ns - self.start_ns) / 1e6, 1)


class PipelineTimer:
    """Track stage transitions: ``stage()`` closes the previous stage and opens the next."""

    __slots__ = ("_stages", "_current", "_start_ns")

    def __init__(self) -> None:
        self._stages: list[StageRecord] = []
        self._current: StageRecord | None = None
        self._start_ns: int = time.monotonic_ns()

    def stage(self, name: str) -> None:
        now = time.monotonic_ns()
        if self._current is not None:
            self._current.end_ns = now
            self._stages.append(self._current)
        self._current = StageRecord(name=name, start_ns=now)

    def finalize(self) -> None:
        """End the current stage. Safe to call more than once."""
        if self._current is not None:
            self._current.end_ns = time.monotonic_ns()
            self._stages.append(self._current)
            self._current = None

    @property
    def current_stage(self) -> str | None:
        return self._current.name if self._current else None

    def elapsed_per_stage(self) -> dict[str, float]:
        """{stage_name: elapsed_ms}, including the running stage. Repeated names accumulate."""
        now = time.monotonic_ns()
        result: dict[str, float] = {}
        for s in self._stages:
            result[s.name] = round(result.get(s.name, 0.0) + s.elapsed_ms, 1)
        if self._current is not None:
            running = round((now - self._current.start_ns) / 1e6, 1)
            result[self._current.name] = round(result.get(self._current.name, 0.0) + running, 1)
        return result

    def total_ms(self) -> float:
        return round((time.monotonic_ns() - self._start_ns) / 1e6, 1)

    def timeout_report(self) -> dict:
        """Structured diagnostic for a request that ran out of time."""
        now = time.monotonic_ns()
        current = self.current_stage or "unknown"
        return {
            "error": "timeout",
            "completed_stages": [{"stage": s.name, "ms": s.elapsed_ms} for s in self._stages],
            "timed_out_at": current,
            "timed_out_stage_ms": round((now - self._current.start_ns) / 1e6, 1) if self._current else 0,
            "total_ms": round((now - self._start_ns) / 1e6, 1),
            "hint": self.hint_for_stage(current),
        }

    @staticmethod
    def hint_for_stage(stage: str) -> str:
        return _STAGE_HINTS.get(stage, f"Timed out during '{stage}' stage.")
