# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Extraction orchestration.

Entry points:
  extract_size_table(source)   HTML or raw JSON text -> SizeTable | None
  extract_from_image(image)    vision collaborator output -> SizeTable | None
  extract_from_url(url)        page fetch -> table + product photo + size chart image

Only network calls suspend, and each one is bounded by a timeout. Failures
degrade to empty fields plus a warning on the result; untrusted content never
raises out of this module.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable
from contextlib import AsyncExitStack

import httpx

from sizepicker import CandidateSource, ExtractionResult, ImageCandidate, ImagePayload, SizeTable, TableCandidate
from sizepicker.errors import FetchError
from sizepicker.extractors.html_tables import extract_html_table_candidates
from sizepicker.extractors.json_tables import extract_json_table_candidates, iter_embedded_json
from sizepicker.extractors.text_tables import extract_text_table_candidates, html_to_text
from sizepicker.images.discovery import discover_image_candidates
from sizepicker.images.fetcher import ImageConstraints, ImageFetcher
from sizepicker.images.scoring import rank_product_images, rank_size_chart_images
from sizepicker.options import scrape_size_options
from sizepicker.pipeline_timer import PipelineTimer
from sizepicker.selector import align_and_validate_size_table_by_option_labels, select_best_candidate
from sizepicker.settings import Settings
from sizepicker.vision import VisionTableExtractor, table_from_vision_output

logger = logging.getLogger(__name__)


# --- Tables ---


def _as_text(source: str | bytes | None) -> str:
    if source is None:
        return ""
    if isinstance(source, bytes):
        return source.decode("utf-8", errors="replace")
    return source


def _parse_json_source(text: str) -> object | None:
    stripped = text.lstrip()
    if not stripped.startswith(("{", "[")):
        return None
    try:
        return json.loads(stripped)
    except (ValueError, RecursionError):
        return None


def extract_table_candidates(source: str | bytes | None) -> list[TableCandidate]:
    """Every extractor's accepted candidates for one source (HTML or raw JSON)."""
    text = _as_text(source)
    if not text.strip():
        return []
    parsed = _parse_json_source(text)
    if parsed is not None:
        return extract_json_table_candidates([parsed])
    return [
        *extract_html_table_candidates(text),
        *extract_json_table_candidates(iter_embedded_json(text)),
        *extract_text_table_candidates(html_to_text(text)),
    ]


def extract_table_candidate(
    source: str | bytes | None,
    *,
    size_options: Iterable[object] | None = None,
) -> TableCandidate | None:
    """Best candidate, aligned to ``size_options`` when given (rejection -> None)."""
    best = select_best_candidate(extract_table_candidates(source))
    if best is None:
        return None
    options = list(size_options or [])
    if not options:
        return best
    aligned = align_and_validate_size_table_by_option_labels(best.table, options)
    if aligned is None:
        return None
    return TableCandidate(table=aligned, source=best.source, score=best.score)


def extract_size_table(source: str | bytes | None, *, size_options: Iterable[object] | None = None) -> SizeTable | None:
    cand = extract_table_candidate(source, size_options=size_options)
    return cand.table if cand is not None else None


async def extract_from_image(
    image: ImagePayload,
    vision: VisionTableExtractor,
    *,
    size_options: Iterable[object] | None = None,
    timeout_s: float | None = None,
) -> SizeTable | None:
    """Run the vision collaborator on one image and gate its output like any other candidate."""
    try:
        raw = await asyncio.wait_for(vision(image), timeout=timeout_s)
    except TimeoutError:
        logger.warning("vision collaborator timed out after %.1fs", timeout_s or 0)
        return None
    except Exception as e:
        logger.warning("vision collaborator failed: %s: %s", type(e).__name__, e)
        return None
    return table_from_vision_output(raw, size_options)


# --- Images ---


async def _first_with_relaxed_retry(
    ranked: list[ImageCandidate],
    fetcher: ImageFetcher,
    constraints: ImageConstraints,
    role: str,
) -> ImagePayload | None:
    if not ranked:
        return None
    payload = await fetcher.first_valid(ranked, constraints)
    if payload is None:
        relaxed = constraints.relaxed()
        if relaxed != constraints:
            logger.info("no %s image passed validation, retrying with relaxed constraints", role)
            payload = await fetcher.first_valid(ranked, relaxed)
    return payload


async def find_product_image(
    html: str | bytes | None,
    base_url: str,
    fetcher: ImageFetcher,
    constraints: ImageConstraints,
    *,
    candidates: list[ImageCandidate] | None = None,
) -> ImagePayload | None:
    found = candidates if candidates is not None else discover_image_candidates(html, base_url)
    return await _first_with_relaxed_retry(rank_product_images(found), fetcher, constraints, "product")


async def find_size_chart_image(
    html: str | bytes | None,
    base_url: str,
    fetcher: ImageFetcher,
    constraints: ImageConstraints,
    *,
    candidates: list[ImageCandidate] | None = None,
    exclude: Iterable[str] = (),
) -> ImagePayload | None:
    """Like ``find_product_image`` for the size-chart role; ``exclude`` skips URLs already used."""
    found = candidates if candidates is not None else discover_image_candidates(html, base_url)
    skip = set(exclude)
    ranked = [c for c in rank_size_chart_images(found) if c.url not in skip]
    return await _first_with_relaxed_retry(ranked, fetcher, constraints, "size chart")


# --- URL pipeline ---


async def _fetch_page(client: httpx.AsyncClient, url: str, timeout_s: float) -> tuple[str, str]:
    """(html, final_url) or FetchError."""
    try:
        response = await asyncio.wait_for(client.get(url, follow_redirects=True), timeout=timeout_s)
    except TimeoutError as e:
        raise FetchError(f"timed out after {timeout_s:.1f}s", url=url, reason="timeout") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(f"{type(e).__name__}: {e}", url=url, reason="transport") from e
    if not response.is_success:
        raise FetchError(f"HTTP {response.status_code}", url=url, reason="status")
    return response.text, str(response.url)


async def extract_from_url(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
    vision: VisionTableExtractor | None = None,
    align_to_page_options: bool = False,
) -> ExtractionResult:
    """Fetch a product page and extract its size table and images. Never raises on bad content.

    The whole extraction is bounded by ``settings.request_deadline``. On expiry
    the fields filled so far are kept and a warning names the stuck stage.
    """
    settings = settings or Settings.from_env()
    result = ExtractionResult(url=url)
    timer = PipelineTimer()

    try:
        await asyncio.wait_for(
            _extract_into(result, timer, client, settings, vision, align_to_page_options),
            timeout=settings.request_deadline,
        )
    except TimeoutError:
        report = timer.timeout_report()
        logger.warning(
            "extraction of %s timed out in %s after %.1fms", url, report["timed_out_at"], report["total_ms"]
        )
        result.warnings.append(f"timed out during {report['timed_out_at']}: {report['hint']}")

    timer.finalize()
    result.timings = timer.elapsed_per_stage()
    logger.info(
        "extracted %s in %.1fms: table=%s product_image=%s size_chart_image=%s",
        url,
        timer.total_ms(),
        result.table_source,
        result.product_image is not None,
        result.size_chart_image is not None,
    )
    return result


async def _extract_into(
    result: ExtractionResult,
    timer: PipelineTimer,
    client: httpx.AsyncClient | None,
    settings: Settings,
    vision: VisionTableExtractor | None,
    align_to_page_options: bool,
) -> None:
    async with AsyncExitStack() as stack:
        if client is None:
            client = await stack.enter_async_context(
                httpx.AsyncClient(
                    timeout=settings.fetch_timeout,
                    follow_redirects=True,
                    headers={"User-Agent": settings.user_agent},
                )
            )

        timer.stage("fetch_page")
        try:
            html, final_url = await _fetch_page(client, result.url, settings.fetch_timeout)
        except FetchError as e:
            logger.warning("page fetch failed (%s): %s", e.reason, result.url)
            result.warnings.append(f"page fetch failed: {e}")
            return

        timer.stage("extract_tables")
        result.size_options = scrape_size_options(html)
        options = result.size_options if align_to_page_options else None
        best = select_best_candidate(extract_table_candidates(html))
        if best is not None:
            table = align_and_validate_size_table_by_option_labels(best.table, options) if options else best.table
            if table is None:
                result.warnings.append("size table rejected: headers do not match page size options")
            else:
                result.table, result.table_source = table, best.source

        timer.stage("discover_images")
        candidates = discover_image_candidates(html, final_url)
        fetcher = ImageFetcher(client, timeout_s=settings.fetch_timeout, max_attempts=settings.max_candidate_attempts)

        timer.stage("fetch_product_image")
        result.product_image = await find_product_image(
            html, final_url, fetcher, settings.product_constraints(), candidates=candidates
        )

        timer.stage("fetch_size_chart_image")
        used = [result.product_image.source_url] if result.product_image else []
        result.size_chart_image = await find_size_chart_image(
            html, final_url, fetcher, settings.size_chart_constraints(), candidates=candidates, exclude=used
        )

        if result.table is None and vision is not None and result.size_chart_image is not None:
            timer.stage("vision")
            # vision output is always checked against the page's own options when it has any
            table = await extract_from_image(
                result.size_chart_image, vision, size_options=result.size_options or None
            )
            if table is not None:
                result.table, result.table_source = table, CandidateSource.VISION
