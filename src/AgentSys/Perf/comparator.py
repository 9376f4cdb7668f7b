# === NAVMAP v1 ===
# {
#   "module": "AgentSys.Perf.comparator",
#   "purpose": "Delta computation between a baseline and a current metric snapshot.",
#   "sections": [
#     {
#       "id": "compare-baselines",
#       "name": "compare_baselines",
#       "anchor": "function-compare-baselines",
#       "kind": "function"
#     },
#     {
#       "id": "summarize-delta",
#       "name": "summarize_delta",
#       "anchor": "function-summarize-delta",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Delta computation between a baseline and a current metric snapshot."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from .schemas import is_metric_number


def _metrics_of(snapshot: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if not snapshot:
        return {}
    metrics = snapshot.get("metrics")
    return metrics if isinstance(metrics, Mapping) else {}


def _evaluate_delta(base_value: Any, current_value: Any) -> dict[str, Any]:
    """Return the delta record for a single metric."""

    if is_metric_number(base_value) and is_metric_number(current_value):
        delta = current_value - base_value
        percent = None if base_value == 0 else delta / base_value
        return {
            "baseline": base_value,
            "current": current_value,
            "delta": delta,
            "percent": percent,
        }
    return {
        "baseline": base_value,
        "current": current_value,
        "delta": None,
        "percent": None,
    }


def compare_baselines(
    baseline: Mapping[str, Any] | None, current: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Compare the flat ``metrics`` maps of ``baseline`` and ``current``.

    Every key present on either side appears in the result. ``percent`` is a
    fraction (``0.25`` for +25%) and is ``None`` when the baseline value is 0
    or either side is missing or not numeric.
    """

    baseline_metrics = _metrics_of(baseline)
    current_metrics = _metrics_of(current)
    keys = list(baseline_metrics)
    keys.extend(key for key in current_metrics if key not in baseline_metrics)

    deltas = {
        key: _evaluate_delta(baseline_metrics.get(key), current_metrics.get(key))
        for key in keys
    }
    return {
        "comparedAt": datetime.now(timezone.utc).isoformat(),
        "metrics": deltas,
    }


def summarize_delta(comparison: Mapping[str, Any] | None, *, limit: int = 3) -> str:
    """Render the largest relative changes as ``key +12.5%`` fragments."""

    metrics = (comparison or {}).get("metrics") or {}
    ranked = [
        (key, entry["percent"])
        for key, entry in metrics.items()
        if isinstance(entry, Mapping) and entry.get("percent") is not None
    ]
    if not ranked:
        return "n/a"
    ranked.sort(key=lambda item: (-abs(item[1]), item[0]))
    return ", ".join(f"{key} {percent * 100:+.1f}%" for key, percent in ranked[:limit])


__all__ = ["compare_baselines", "summarize_delta"]
