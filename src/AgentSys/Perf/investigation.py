# === NAVMAP v1 ===
# {
#   "module": "AgentSys.Perf.investigation",
#   "purpose": "Investigation record and markdown log persisted in the perf state dir.",
#   "sections": [
#     {
#       "id": "phases",
#       "name": "PHASES",
#       "anchor": "variable-phases",
#       "kind": "data"
#     },
#     {
#       "id": "initialize-investigation",
#       "name": "initialize_investigation",
#       "anchor": "function-initialize-investigation",
#       "kind": "function"
#     },
#     {
#       "id": "read-investigation",
#       "name": "read_investigation",
#       "anchor": "function-read-investigation",
#       "kind": "function"
#     },
#     {
#       "id": "update-investigation",
#       "name": "update_investigation",
#       "anchor": "function-update-investigation",
#       "kind": "function"
#     },
#     {
#       "id": "append-investigation-log",
#       "name": "append_investigation_log",
#       "anchor": "function-append-investigation-log",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Investigation record and markdown log persisted in the perf state dir.

Layout under ``<state-dir>/perf``::

    investigation.json          current investigation record
    investigations/<id>.md      human-readable log, one section per event

The record is rewritten atomically on every update. The log is append-only;
each helper adds a ``## <Title> - <timestamp>`` section that quotes the user
instruction which triggered it, so the log doubles as an audit trail.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .env import get_perf_dir
from .errors import PerfInputError
from .io import read_json, write_json_atomic
from .logging import get_logger, log_event
from .schemas import assert_valid, validate_investigation_state

SCHEMA_VERSION = 1
INVESTIGATION_FILE = "investigation.json"
INVESTIGATIONS_DIR = "investigations"

PHASES: tuple[str, ...] = (
    "setup",
    "baseline",
    "breaking-point",
    "constraints",
    "hotspots",
    "code-paths",
    "profiling",
    "optimization",
    "decision",
    "consolidation",
)
STATUSES: tuple[str, ...] = ("in_progress", "completed", "aborted")

_LOGGER = get_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def get_investigation_path(base_path: Path | str | None = None) -> Path:
    """Return the path of the current investigation record."""

    return get_perf_dir(base_path) / INVESTIGATION_FILE


def get_investigation_log_path(id: str, base_path: Path | str | None = None) -> Path:
    """Return the markdown log path of investigation ``id``."""

    if not id or not isinstance(id, str) or "/" in id or "\\" in id or ".." in id:
        raise PerfInputError("investigation id must be a plain non-empty string")
    return get_perf_dir(base_path) / INVESTIGATIONS_DIR / f"{id}.md"


def _normalise_scenarios(raw: Any) -> list[dict[str, Any]]:
    if not raw:
        return []
    scenarios = []
    for entry in raw:
        if isinstance(entry, str):
            scenarios.append({"name": entry})
        else:
            scenarios.append(dict(entry))
    return scenarios


def initialize_investigation(
    input: Optional[Mapping[str, Any]] = None, base_path: Path | str | None = None
) -> dict[str, Any]:
    """Create and persist a fresh investigation record.

    ``input`` accepts ``scenario`` (description), ``metrics``,
    ``successCriteria``, ``scenarios`` and ``baselineVersion``.
    """

    options = dict(input or {})
    timestamp = _now()
    state: dict[str, Any] = {
        "schemaVersion": SCHEMA_VERSION,
        "id": f"perf-{uuid.uuid4().hex[:12]}",
        "status": "in_progress",
        "phase": PHASES[0],
        "createdAt": timestamp,
        "updatedAt": timestamp,
        "scenario": {
            "description": str(options.get("scenario") or ""),
            "metrics": list(options.get("metrics") or []),
            "successCriteria": str(options.get("successCriteria") or ""),
            "scenarios": _normalise_scenarios(options.get("scenarios")),
        },
        "baselineVersion": options.get("baselineVersion"),
        "history": [{"phase": PHASES[0], "at": timestamp}],
    }
    write_investigation(state, base_path)
    log_event(_LOGGER, "info", "Investigation initialised", investigation_id=state["id"])
    return state


def write_investigation(state: Mapping[str, Any], base_path: Path | str | None = None) -> Path:
    """Validate ``state`` and write it atomically."""

    assert_valid(validate_investigation_state(state), "Invalid investigation state")
    return write_json_atomic(get_investigation_path(base_path), dict(state))


def read_investigation(base_path: Path | str | None = None) -> Optional[dict[str, Any]]:
    """Return the current investigation, or ``None`` if absent or unreadable."""

    path = get_investigation_path(base_path)
    if not path.exists():
        return None
    try:
        state = read_json(path)
    except (OSError, ValueError) as exc:
        log_event(
            _LOGGER,
            "error",
            "Corrupted investigation state",
            path=str(path),
            error=str(exc),
            error_code="CORRUPT_STATE",
        )
        return None

    validation = validate_investigation_state(state)
    if not validation.ok:
        log_event(
            _LOGGER,
            "error",
            "Invalid investigation state",
            path=str(path),
            errors=validation.errors,
            error_code="INVALID_STATE",
        )
        return None
    return state


def update_investigation(
    updates: Mapping[str, Any], base_path: Path | str | None = None
) -> dict[str, Any]:
    """Merge ``updates`` into the current investigation and persist it."""

    state = read_investigation(base_path)
    if state is None:
        raise PerfInputError("no active investigation")
    status = updates.get("status")
    if status is not None and status not in STATUSES:
        raise PerfInputError(f"unknown status {status!r}")

    merged = {**state, **dict(updates)}
    if isinstance(updates.get("scenario"), Mapping):
        merged["scenario"] = {**state["scenario"], **dict(updates["scenario"])}
    merged["updatedAt"] = _now()
    write_investigation(merged, base_path)
    return merged


def advance_phase(phase: str, base_path: Path | str | None = None) -> dict[str, Any]:
    """Move the investigation to ``phase`` and record it in the history."""

    if phase not in PHASES:
        raise PerfInputError(f"unknown phase {phase!r}; expected one of {', '.join(PHASES)}")
    state = read_investigation(base_path)
    if state is None:
        raise PerfInputError("no active investigation")
    history = list(state.get("history") or [])
    history.append({"phase": phase, "at": _now()})
    return update_investigation({"phase": phase, "history": history}, base_path)


# --- Markdown log ---


def append_investigation_log(id: str, text: str, base_path: Path | str | None = None) -> Path:
    """Append ``text`` to the markdown log of investigation ``id``."""

    path = get_investigation_log_path(id, base_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    entry = text if text.endswith("\n") else f"{text}\n"
    with path.open("a", encoding="utf-8") as handle:
        handle.write(entry + "\n")
    return path


def _format_value(value: Any) -> str:
    if isinstance(value, (Mapping, list, tuple)):
        return f"`{json.dumps(value, sort_keys=True, default=str)}`"
    return str(value)


def _format_section(title: str, user_quote: Optional[str], fields: Sequence[tuple[str, Any]]) -> str:
    lines = [f"## {title} - {_now()}", ""]
    if user_quote:
        lines.append(f"> User quote: {user_quote}")
        lines.append("")
    for label, value in fields:
        if value is None:
            continue
        lines.append(f"- {label}: {_format_value(value)}")
    return "\n".join(lines)


def _append_section(
    id: str,
    title: str,
    user_quote: Optional[str],
    fields: Sequence[tuple[str, Any]],
    base_path: Path | str | None,
) -> Path:
    return append_investigation_log(id, _format_section(title, user_quote, fields), base_path)


def append_setup_log(
    *,
    id: str,
    user_quote: Optional[str] = None,
    scenario: Optional[str] = None,
    command: Optional[str] = None,
    version: Optional[str] = None,
    base_path: Path | str | None = None,
) -> Path:
    """Log the investigation setup."""

    return _append_section(
        id,
        "Setup",
        user_quote,
        [("Scenario", scenario), ("Command", command), ("Version", version)],
        base_path,
    )


def append_baseline_log(
    *,
    id: str,
    user_quote: Optional[str] = None,
    command: Optional[str] = None,
    metrics: Optional[Mapping[str, Any]] = None,
    baseline_path: Path | str | None = None,
    scenarios: Optional[Sequence[Any]] = None,
    base_path: Path | str | None = None,
) -> Path:
    """Log a recorded baseline."""

    return _append_section(
        id,
        "Baseline",
        user_quote,
        [
            ("Command", command),
            ("Metrics", dict(metrics) if metrics is not None else None),
            ("Baseline file", str(baseline_path) if baseline_path is not None else None),
            ("Scenarios", list(scenarios) if scenarios else None),
        ],
        base_path,
    )


def append_breaking_point_log(
    *,
    id: str,
    user_quote: Optional[str] = None,
    param_env: Optional[str] = None,
    min: Optional[int] = None,
    max: Optional[int] = None,
    breaking_point: Optional[int] = None,
    base_path: Path | str | None = None,
) -> Path:
    """Log a breaking-point search."""

    return _append_section(
        id,
        "Breaking Point",
        user_quote,
        [
            ("Parameter", param_env),
            ("Range", f"{min}..{max}" if min is not None and max is not None else None),
            ("Breaking point", breaking_point if breaking_point is not None else "none found"),
        ],
        base_path,
    )


def append_constraint_log(
    *,
    id: str,
    user_quote: Optional[str] = None,
    constraints: Optional[Mapping[str, Any]] = None,
    delta: Optional[Mapping[str, Any]] = None,
    base_path: Path | str | None = None,
) -> Path:
    """Log a constraint test."""

    return _append_section(
        id,
        "Constraints",
        user_quote,
        [("Constraints", constraints), ("Delta", delta)],
        base_path,
    )


def append_profiling_log(
    *,
    id: str,
    user_quote: Optional[str] = None,
    tool: Optional[str] = None,
    command: Optional[str] = None,
    artifacts: Optional[Sequence[str]] = None,
    hotspots: Optional[Sequence[str]] = None,
    base_path: Path | str | None = None,
) -> Path:
    """Log a profiling run."""

    return _append_section(
        id,
        "Profiling",
        user_quote,
        [
            ("Tool", tool),
            ("Command", command),
            ("Artifacts", ", ".join(artifacts) if artifacts else None),
            ("Hotspots", ", ".join(hotspots) if hotspots else None),
        ],
        base_path,
    )


def append_optimization_log(
    *,
    id: str,
    user_quote: Optional[str] = None,
    change: Optional[str] = None,
    delta: Optional[Mapping[str, Any]] = None,
    verdict: Optional[str] = None,
    base_path: Path | str | None = None,
) -> Path:
    """Log an optimization experiment."""

    return _append_section(
        id,
        "Optimization",
        user_quote,
        [("Change", change), ("Delta", delta), ("Verdict", verdict)],
        base_path,
    )


def append_decision_log(
    *,
    id: str,
    user_quote: Optional[str] = None,
    verdict: Optional[str] = None,
    rationale: Optional[str] = None,
    base_path: Path | str | None = None,
) -> Path:
    """Log a continue/stop decision."""

    return _append_section(
        id,
        "Decision",
        user_quote,
        [("Verdict", verdict), ("Rationale", rationale)],
        base_path,
    )


__all__ = [
    "PHASES",
    "SCHEMA_VERSION",
    "STATUSES",
    "advance_phase",
    "append_baseline_log",
    "append_breaking_point_log",
    "append_constraint_log",
    "append_decision_log",
    "append_investigation_log",
    "append_optimization_log",
    "append_profiling_log",
    "append_setup_log",
    "get_investigation_log_path",
    "get_investigation_path",
    "initialize_investigation",
    "read_investigation",
    "update_investigation",
    "write_investigation",
]
