# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Size Picker CLI: table, images, fetch commands. JSON on stdout, logs on stderr.

Usage:
    sizepicker table SOURCE [--options S,M,L]
    sizepicker images SOURCE [--role product|size-chart] [--base-url URL]
    sizepicker fetch URL [--align-options]

SOURCE is a file path or ``-`` for stdin.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from sizepicker.errors import SizePickerError
from sizepicker.images.discovery import discover_image_candidates
from sizepicker.images.scoring import rank_product_images, rank_size_chart_images
from sizepicker.logging_config import bind_request, configure
from sizepicker.pipeline import extract_from_url, extract_table_candidate
from sizepicker.settings import Settings

logger = logging.getLogger(__name__)


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8", errors="replace")


def _print_json(data: object) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _split_options(value: str | None) -> list[str]:
    if not value:
        return []
    return [o.strip() for o in value.split(",") if o.strip()]


def cmd_table(args: argparse.Namespace) -> int:
    """Extract the best size table from an HTML / JSON file."""
    cand = extract_table_candidate(_read_source(args.source), size_options=_split_options(args.options))
    if cand is None:
        _print_json({"sizeTable": None})
        return 1
    _print_json({"sizeTable": cand.table.to_dict(), "tableSource": str(cand.source), "score": cand.score})
    return 0


def cmd_images(args: argparse.Namespace) -> int:
    """Rank image candidates for one role without downloading them."""
    candidates = discover_image_candidates(_read_source(args.source), args.base_url or "")
    ranked = rank_product_images(candidates) if args.role == "product" else rank_size_chart_images(candidates)
    if args.limit:
        ranked = ranked[: args.limit]
    _print_json([{"url": c.url, "score": c.score, "hint": c.hint} for c in ranked])
    return 0 if ranked else 1


def cmd_fetch(args: argparse.Namespace) -> int:
    """Fetch a product page and run the full extraction."""
    bind_request(url=args.url)
    result = asyncio.run(
        extract_from_url(args.url, settings=Settings.from_env(), align_to_page_options=args.align_options)
    )
    data = result.to_dict()
    if not args.include_image_data:
        for key in ("productImage", "sizeChartImage"):
            if data[key] is not None:
                data[key].pop("base64", None)
    _print_json(data)
    return 0 if result.found_anything else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Size Picker CLI", prog="sizepicker")
    parser.add_argument("--log-level", default="WARNING", help="Root log level (default: WARNING)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines on stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_table = subparsers.add_parser("table", help="Extract a size table from an HTML or JSON file")
    p_table.add_argument("source", metavar="SOURCE", help="File path, or - for stdin")
    p_table.add_argument("--options", metavar="S,M,L", help="Known size options to align columns to")
    p_table.set_defaults(func=cmd_table)

    p_images = subparsers.add_parser("images", help="Rank image candidates found in an HTML file")
    p_images.add_argument("source", metavar="SOURCE", help="File path, or - for stdin")
    p_images.add_argument("--role", choices=["product", "size-chart"], default="product")
    p_images.add_argument("--base-url", metavar="URL", help="Page URL for resolving relative image URLs")
    p_images.add_argument("--limit", type=int, default=0, help="Show at most N candidates")
    p_images.set_defaults(func=cmd_images)

    p_fetch = subparsers.add_parser(
        "fetch",
        help="Fetch a product page and extract table + images",
        epilog="Configuration is read from SIZEPICKER_* environment variables.",
    )
    p_fetch.add_argument("url", metavar="URL")
    p_fetch.add_argument("--align-options", action="store_true", help="Validate the table against page size options")
    p_fetch.add_argument("--include-image-data", action="store_true", help="Include base64 image bytes in output")
    p_fetch.set_defaults(func=cmd_fetch)
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure(json_output=args.json_logs, level=args.log_level)

    try:
        code = args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except SizePickerError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
