# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Runtime configuration from ``SIZEPICKER_*`` environment variables.

Every variable is optional. Unparsable or negative values are ignored with a
warning and the default stays in effect.

    SIZEPICKER_FETCH_TIMEOUT          seconds per page / image request (10)
    SIZEPICKER_REQUEST_DEADLINE       seconds for one whole URL extraction (60)
    SIZEPICKER_MAX_IMAGE_BYTES        upper bound per image (15 MiB)
    SIZEPICKER_MIN_IMAGE_BYTES        lower bound per image (1 KiB)
    SIZEPICKER_MAX_CANDIDATE_ATTEMPTS images tried per role (8)
    SIZEPICKER_PRODUCT_MIN_WIDTH      / _MIN_HEIGHT / _MAX_ASPECT
    SIZEPICKER_SIZE_CHART_MIN_WIDTH   / _MIN_HEIGHT / _MAX_ASPECT
    SIZEPICKER_USER_AGENT
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from contextlib import suppress
from dataclasses import dataclass, fields, replace

from sizepicker.images.fetcher import ImageConstraints

logger = logging.getLogger(__name__)

ENV_PREFIX = "SIZEPICKER_"
_POSITIVE_FIELDS = frozenset({"fetch_timeout", "request_deadline"})

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


@dataclass(frozen=True, slots=True)
class Settings:
    fetch_timeout: float = 10.0
    request_deadline: float = 60.0
    max_image_bytes: int = 15 * 1024 * 1024
    min_image_bytes: int = 1024
    max_candidate_attempts: int = 8
    product_min_width: int = 300
    product_min_height: int = 300
    product_max_aspect: float = 3.0
    size_chart_min_width: int = 300
    size_chart_min_height: int = 150
    size_chart_max_aspect: float = 8.0
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper(), "").strip()
            if not raw:
                continue
            if f.name == "user_agent":
                overrides[f.name] = raw
                continue
            caster = float if f.type in ("float", float) else int
            value = None
            with suppress(ValueError):
                value = caster(raw)
            if value is None or not math.isfinite(value) or value < 0 or (f.name in _POSITIVE_FIELDS and value == 0):
                logger.warning("ignoring %s%s=%r", ENV_PREFIX, f.name.upper(), raw)
                continue
            overrides[f.name] = value
        defaults = cls()
        settings = replace(defaults, **overrides)
        if settings.min_image_bytes > settings.max_image_bytes:
            logger.warning("min image bytes exceeds max image bytes, keeping defaults for both")
            settings = replace(
                settings, min_image_bytes=defaults.min_image_bytes, max_image_bytes=defaults.max_image_bytes
            )
        return settings

    def product_constraints(self) -> ImageConstraints:
        return ImageConstraints(
            min_bytes=self.min_image_bytes,
            max_bytes=self.max_image_bytes,
            min_width=self.product_min_width,
            min_height=self.product_min_height,
            max_aspect_ratio=self.product_max_aspect,
        )

    def size_chart_constraints(self) -> ImageConstraints:
        return ImageConstraints(
            min_bytes=self.min_image_bytes,
            max_bytes=self.max_image_bytes,
            min_width=self.size_chart_min_width,
            min_height=self.size_chart_min_height,
            max_aspect_ratio=self.size_chart_max_aspect,
        )
