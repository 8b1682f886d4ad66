# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Image candidates: discovery on a page, role-specific ranking, fetch + validation."""
