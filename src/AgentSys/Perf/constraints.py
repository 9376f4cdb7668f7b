"""Constraint testing: the same benchmark with and without resource limits.

Limits travel to the benchmark as ``PERF_CPU_LIMIT`` and ``PERF_MEMORY_LIMIT``
environment variables; the benchmark itself is responsible for honouring
them, which keeps the helper portable across platforms.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from .benchmark import DEFAULT_MIN_DURATION, run_benchmark_series
from .comparator import compare_baselines
from .errors import PerfInputError

CPU_LIMIT_ENV = "PERF_CPU_LIMIT"
MEMORY_LIMIT_ENV = "PERF_MEMORY_LIMIT"


def run_constraint_test(
    command: str,
    constraints: Mapping[str, Any],
    *,
    duration: Optional[int] = None,
    min_duration: Optional[int] = None,
    runs: Optional[int] = None,
    aggregate: Optional[str] = None,
    env: Optional[Mapping[str, Any]] = None,
    allow_short: bool = False,
) -> dict[str, Any]:
    """Run the baseline series, then the constrained series, and diff them."""

    if not isinstance(command, str) or not command.strip():
        raise PerfInputError("command must be a non-empty string")
    if not isinstance(constraints, Mapping):
        raise PerfInputError("constraints must be an object")

    series_options: dict[str, Any] = {
        "duration": duration if duration is not None else DEFAULT_MIN_DURATION,
        "min_duration": min_duration,
        "runs": runs,
        "aggregate": aggregate,
        "allow_short": allow_short,
    }
    baseline = run_benchmark_series(command, env=dict(env or {}), **series_options)
    constrained = run_benchmark_series(
        command,
        env={
            **(env or {}),
            CPU_LIMIT_ENV: constraints.get("cpu"),
            MEMORY_LIMIT_ENV: constraints.get("memory"),
        },
        **series_options,
    )

    delta = compare_baselines({"metrics": baseline.metrics}, {"metrics": constrained.metrics})
    return {
        "constraints": dict(constraints),
        "baseline": {"metrics": baseline.metrics},
        "constrained": {"metrics": constrained.metrics},
        "delta": delta,
    }


__all__ = ["CPU_LIMIT_ENV", "MEMORY_LIMIT_ENV", "run_constraint_test"]
