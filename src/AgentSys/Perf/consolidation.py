"""Baseline consolidation at the end of an investigation."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from . import baseline_store
from .errors import PerfInputError


def consolidate_baseline(
    version: str, baseline: Mapping[str, Any], base_path: Path | str | None = None
) -> dict[str, Any]:
    """Record ``baseline`` as the reference for ``version`` (overwrites)."""

    if not version or not isinstance(version, str):
        raise PerfInputError("version is required")
    if not baseline or not isinstance(baseline, Mapping):
        raise PerfInputError("baseline is required")

    path = baseline_store.write_baseline(version, baseline, base_path)
    return {"version": version, "path": str(path)}


__all__ = ["consolidate_baseline"]
