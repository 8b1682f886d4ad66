# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Serial, rank-ordered image download with validation.

Candidates are tried one at a time in rank order and the first one that
passes every check wins. Each attempt is bounded by ``asyncio.wait_for``;
a failed or slow candidate just advances the loop. Checks, in order:
  1. 2xx status
  2. Content-Type is image/*
  3. Content-Length (when sent), then streamed byte count, within bounds
  4. sniffed width/height/aspect within bounds (only when dimensions are known)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import StrEnum

import httpx

from sizepicker import ImageCandidate, ImagePayload
from sizepicker.errors import ContractError, FetchError
from sizepicker.images.dimensions import sniff_image_dimensions, sniff_image_mime

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0
DEFAULT_MAX_ATTEMPTS = 8
CHUNK_SIZE = 64 * 1024


class RejectReason(StrEnum):
    STATUS = "status"
    NOT_IMAGE = "not_image"
    TOO_LARGE = "too_large"
    TOO_SMALL = "too_small"
    DIMENSIONS = "dimensions"
    ASPECT = "aspect"


@dataclass(frozen=True, slots=True)
class ImageConstraints:
    """Validation bounds for one image role. ``None`` disables a bound."""

    min_bytes: int = 0
    max_bytes: int | None = None
    min_width: int = 0
    min_height: int = 0
    max_aspect_ratio: float | None = None

    def __post_init__(self) -> None:
        for name in ("min_bytes", "max_bytes", "min_width", "min_height", "max_aspect_ratio"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ContractError(f"{name} must be >= 0, got {value}")
        if self.max_bytes is not None and self.min_bytes > self.max_bytes:
            raise ContractError(f"min_bytes ({self.min_bytes}) exceeds max_bytes ({self.max_bytes})")

    def relaxed(self) -> ImageConstraints:
        """Second-pass bounds: dimension floors halved, aspect bound dropped."""
        return replace(self, min_width=self.min_width // 2, min_height=self.min_height // 2, max_aspect_ratio=None)


def _normalize_ct(content_type: str | None) -> str:
    return (content_type or "").split(";")[0].strip().lower()


def _parse_length(value: str | None) -> int | None:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


class ImageFetcher:
    """Downloads and validates image candidates through a shared httpx client."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if timeout_s <= 0:
            raise ContractError(f"timeout_s must be > 0, got {timeout_s}")
        if max_attempts < 0:
            raise ContractError(f"max_attempts must be >= 0, got {max_attempts}")
        self._client = client
        self.timeout_s = timeout_s
        self.max_attempts = max_attempts

    async def fetch(self, url: str, constraints: ImageConstraints) -> ImagePayload:
        """Download one URL and validate it. Raises FetchError on any rejection."""
        async with self._client.stream("GET", url) as response:
            if not response.is_success:
                raise FetchError(f"HTTP {response.status_code}", url=url, reason=RejectReason.STATUS)

            content_type = _normalize_ct(response.headers.get("content-type"))
            if not content_type.startswith("image/"):
                raise FetchError(f"content-type {content_type or 'n/a'}", url=url, reason=RejectReason.NOT_IMAGE)

            limit = constraints.max_bytes
            declared = _parse_length(response.headers.get("content-length"))
            if limit is not None and declared is not None and declared > limit:
                raise FetchError(f"{declared} B > {limit} B", url=url, reason=RejectReason.TOO_LARGE)

            buf = bytearray()
            async for chunk in response.aiter_bytes(CHUNK_SIZE):
                buf.extend(chunk)
                if limit is not None and len(buf) > limit:
                    raise FetchError(f"stream exceeded {limit} B", url=url, reason=RejectReason.TOO_LARGE)

        data = bytes(buf)
        if len(data) < constraints.min_bytes:
            raise FetchError(f"{len(data)} B < {constraints.min_bytes} B", url=url, reason=RejectReason.TOO_SMALL)

        dims = sniff_image_dimensions(data)
        if dims is not None:
            if dims.width < constraints.min_width or dims.height < constraints.min_height:
                raise FetchError(f"{dims.width}x{dims.height} below floor", url=url, reason=RejectReason.DIMENSIONS)
            if constraints.max_aspect_ratio is not None and dims.aspect_ratio > constraints.max_aspect_ratio:
                raise FetchError(f"aspect {dims.aspect_ratio:.2f}", url=url, reason=RejectReason.ASPECT)

        mime = content_type if content_type != "image/*" else (sniff_image_mime(data) or content_type)
        return ImagePayload(
            source_url=url,
            mime_type=mime,
            data=data,
            width=dims.width if dims else None,
            height=dims.height if dims else None,
        )

    async def first_valid(
        self,
        candidates: Iterable[ImageCandidate | str],
        constraints: ImageConstraints,
    ) -> ImagePayload | None:
        """First candidate (in the given order) that downloads and validates, else None."""
        attempts = 0
        for cand in candidates:
            if attempts >= self.max_attempts:
                logger.debug("image attempts exhausted (%d)", attempts)
                break
            url = cand.url if isinstance(cand, ImageCandidate) else cand
            attempts += 1
            try:
                payload = await asyncio.wait_for(self.fetch(url, constraints), timeout=self.timeout_s)
            except FetchError as e:
                logger.debug("image rejected (%s): %s %s", e.reason, url, e)
                continue
            except TimeoutError:
                logger.debug("image timed out after %.1fs: %s", self.timeout_s, url)
                continue
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logger.debug("image fetch failed: %s (%s)", url, type(e).__name__)
                continue
            logger.info("image accepted: %s (%d B, %sx%s)", url, payload.size_bytes, payload.width, payload.height)
            return payload
        return None
