"""Compact summaries of investigation findings."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional


def summarize(
    summary: Optional[str] = None,
    recommendations: Optional[Sequence[str]] = None,
    risks: Optional[Sequence[str]] = None,
) -> dict[str, Any]:
    """Return ``{summary, recommendations, risks}`` with empty defaults."""

    return {
        "summary": summary or "",
        "recommendations": list(recommendations or []),
        "risks": list(risks or []),
    }


__all__ = ["summarize"]
