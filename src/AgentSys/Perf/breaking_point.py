# === NAVMAP v1 ===
# {
#   "module": "AgentSys.Perf.breaking_point",
#   "purpose": "Binary search for the parameter value at which a benchmark breaks.",
#   "sections": [
#     {
#       "id": "proberesult",
#       "name": "ProbeResult",
#       "anchor": "class-proberesult",
#       "kind": "class"
#     },
#     {
#       "id": "breakingpointresult",
#       "name": "BreakingPointResult",
#       "anchor": "class-breakingpointresult",
#       "kind": "class"
#     },
#     {
#       "id": "find-breaking-point",
#       "name": "find_breaking_point",
#       "anchor": "function-find-breaking-point",
#       "kind": "function"
#     },
#     {
#       "id": "run-breaking-point-search",
#       "name": "run_breaking_point_search",
#       "anchor": "function-run-breaking-point-search",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Binary search for the parameter value at which a benchmark breaks.

The probe (``runner``) is called with integer values between ``min_value``
and ``max_value``. For a monotonic probe (passes up to some value, fails from
there on) the search returns the lowest failing value, or ``None`` when the
probe passes across the whole range.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

from .benchmark import BINARY_SEARCH_MIN_DURATION, parse_metrics, run_benchmark
from .errors import BenchmarkError, PerfInputError
from .logging import get_logger, log_event

_LOGGER = get_logger(__name__)


@dataclass(slots=True)
class ProbeResult:
    """Outcome of a single probe at one parameter value."""

    ok: bool
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class BreakingPointResult:
    """Result of a breaking-point search."""

    breaking_point: int | None
    attempts: int
    history: list[dict[str, Any]] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-compatible representation."""

        return {
            "breakingPoint": self.breaking_point,
            "attempts": self.attempts,
            "history": list(self.history),
        }


Probe = Callable[[int], Union[ProbeResult, bool]]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _probe_ok(outcome: Union[ProbeResult, bool]) -> bool:
    if isinstance(outcome, ProbeResult):
        return outcome.ok
    return bool(outcome)


def find_breaking_point(min_value: int, max_value: int, runner: Probe) -> BreakingPointResult:
    """Find the lowest value in ``[min_value, max_value]`` at which ``runner`` fails."""

    if not _is_int(min_value) or not _is_int(max_value):
        raise PerfInputError("min and max must be integers")
    if not callable(runner):
        raise PerfInputError("runner must be callable")

    low, high = min_value, max_value
    breaking_point: int | None = None
    history: list[dict[str, Any]] = []

    while low <= high:
        mid = (low + high) // 2
        ok = _probe_ok(runner(mid))
        history.append({"value": mid, "ok": ok})
        if ok:
            low = mid + 1
        else:
            breaking_point = mid
            high = mid - 1

    return BreakingPointResult(
        breaking_point=breaking_point, attempts=len(history), history=history
    )


def run_breaking_point_search(
    command: str,
    param_env: str,
    min_value: int,
    max_value: int,
    *,
    env: dict[str, Any] | None = None,
    allow_short: bool = False,
) -> BreakingPointResult:
    """Search for the breaking point of ``command`` over the ``param_env`` variable.

    The value under test is exported as ``param_env``. A probe fails when the
    command exits non-zero, runs too briefly, or prints no valid metrics.
    """

    if not isinstance(command, str) or not command.strip():
        raise PerfInputError("command must be a non-empty string")
    if not isinstance(param_env, str) or not param_env.strip():
        raise PerfInputError("param_env must be a non-empty string")
    if not _is_int(min_value) or not _is_int(max_value):
        raise PerfInputError("min and max must be integers")

    def _probe(value: int) -> ProbeResult:
        try:
            result = run_benchmark(
                command,
                mode="binary-search",
                duration=BINARY_SEARCH_MIN_DURATION,
                env={**(env or {}), param_env: value},
                allow_short=allow_short,
            )
        except BenchmarkError as exc:
            log_event(_LOGGER, "info", "Breaking point probe failed", value=value, error=str(exc))
            return ProbeResult(ok=False, data={"error": str(exc)})

        parsed = parse_metrics(result.output)
        if not parsed.ok:
            return ProbeResult(ok=False, data={"error": parsed.error})
        return ProbeResult(ok=True, data={"metrics": parsed.metrics})

    return find_breaking_point(min_value, max_value, _probe)


__all__ = [
    "BreakingPointResult",
    "ProbeResult",
    "find_breaking_point",
    "run_breaking_point_search",
]
