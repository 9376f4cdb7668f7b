# === NAVMAP v1 ===
# {
#   "module": "AgentSys.Perf.baseline_store",
#   "purpose": "Filesystem storage of benchmark baselines keyed by version.",
#   "sections": [
#     {
#       "id": "assert-safe-baseline-version",
#       "name": "assert_safe_baseline_version",
#       "anchor": "function-assert-safe-baseline-version",
#       "kind": "function"
#     },
#     {
#       "id": "list-baselines",
#       "name": "list_baselines",
#       "anchor": "function-list-baselines",
#       "kind": "function"
#     },
#     {
#       "id": "read-baseline",
#       "name": "read_baseline",
#       "anchor": "function-read-baseline",
#       "kind": "function"
#     },
#     {
#       "id": "write-baseline",
#       "name": "write_baseline",
#       "anchor": "function-write-baseline",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Filesystem storage of benchmark baselines keyed by version.

Baselines are stored as ``<state-dir>/perf/baselines/<version>.json``. The
version doubles as a file name, so it is restricted to a conservative
character set. Writes overwrite the previous baseline for a version; a
corrupted or schema-invalid file is logged and read back as ``None``.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

from .env import get_perf_dir
from .errors import PerfInputError
from .io import read_json, write_json_atomic
from .logging import get_logger, log_event
from .schemas import assert_valid, validate_baseline

BASELINE_DIR = "baselines"
_SAFE_VERSION_PATTERN = re.compile(r"^[A-Za-z0-9._+-]+$")

_LOGGER = get_logger(__name__)


def assert_safe_baseline_version(version: Any) -> str:
    """Return ``version`` if it is safe to use as a file name."""

    if not version or not isinstance(version, str):
        raise PerfInputError("Baseline version is required")
    if any(token in version for token in ("..", "/", "\\", "\0")):
        raise PerfInputError("Baseline version contains invalid characters")
    if not _SAFE_VERSION_PATTERN.match(version):
        raise PerfInputError("Baseline version contains invalid characters")
    return version


def get_baseline_dir(base_path: Path | str | None = None) -> Path:
    """Return the baseline directory for ``base_path``."""

    return get_perf_dir(base_path) / BASELINE_DIR


def ensure_baseline_dir(base_path: Path | str | None = None) -> Path:
    """Create the baseline directory if needed and return it."""

    directory = get_baseline_dir(base_path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def get_baseline_path(version: str, base_path: Path | str | None = None) -> Path:
    """Return the JSON path storing ``version``."""

    safe_version = assert_safe_baseline_version(version)
    return ensure_baseline_dir(base_path) / f"{safe_version}.json"


def list_baselines(base_path: Path | str | None = None) -> list[str]:
    """Return recorded baseline versions in sorted order."""

    directory = ensure_baseline_dir(base_path)
    return sorted(path.stem for path in directory.glob("*.json") if path.is_file())


def read_baseline(version: str, base_path: Path | str | None = None) -> Optional[dict[str, Any]]:
    """Load the baseline for ``version``; missing or unreadable files yield ``None``."""

    baseline_path = get_baseline_path(version, base_path)
    if not baseline_path.exists():
        return None
    try:
        payload = read_json(baseline_path)
    except (OSError, ValueError) as exc:
        log_event(
            _LOGGER,
            "error",
            "Corrupted baseline file",
            path=str(baseline_path),
            error=str(exc),
            error_code="CORRUPT_STATE",
        )
        return None

    validation = validate_baseline(payload)
    if not validation.ok:
        log_event(
            _LOGGER,
            "error",
            "Invalid baseline file",
            path=str(baseline_path),
            errors=validation.errors,
            error_code="INVALID_STATE",
        )
        return None
    return payload


def write_baseline(
    version: str, baseline: Mapping[str, Any], base_path: Path | str | None = None
) -> Path:
    """Validate and persist ``baseline`` under ``version`` (overwrites)."""

    baseline_path = get_baseline_path(version, base_path)
    payload: dict[str, Any] = {
        "version": version,
        "recordedAt": datetime.now(timezone.utc).isoformat(),
        **dict(baseline),
    }
    assert_valid(validate_baseline(payload), "Invalid baseline payload")
    write_json_atomic(baseline_path, payload)
    log_event(_LOGGER, "info", "Baseline recorded", version=version, path=str(baseline_path))
    return baseline_path


__all__ = [
    "BASELINE_DIR",
    "assert_safe_baseline_version",
    "ensure_baseline_dir",
    "get_baseline_dir",
    "get_baseline_path",
    "list_baselines",
    "read_baseline",
    "write_baseline",
]
