# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Size Picker exception hierarchy.

Untrusted page content never raises: malformed input is skipped and missing
results are reported as ``None``. Exceptions are reserved for caller bugs
(ContractError) and for the internal per-candidate fetch signal (FetchError),
which the fetcher catches before it can reach the caller.
"""

from __future__ import annotations


class SizePickerError(Exception):
    """Base exception for all Size Picker errors."""


class ContractError(SizePickerError, ValueError):
    """Caller passed an argument that violates a documented contract (e.g. negative width)."""


class FetchError(SizePickerError):
    """A single upstream fetch failed (status, content-type, size, timeout)."""

    def __init__(self, message: str, *, url: str = "", reason: str = "") -> None:
        super().__init__(message)
        self.url = url
        self.reason = reason
