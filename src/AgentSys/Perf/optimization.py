"""Optimization experiments: measure before and after a single change.

The helper never edits code. Benchmarks distinguish the two sides through
``PERF_EXPERIMENT`` (``0`` for the baseline, ``1`` for the experiment); the
caller applies the change externally and judges the verdict.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from .benchmark import DEFAULT_MIN_DURATION, run_benchmark, run_benchmark_series
from .checkpoint import is_working_tree_clean
from .comparator import compare_baselines
from .errors import CheckpointError, PerfInputError
from .logging import get_logger, log_event
from .settings import get_settings

EXPERIMENT_ENV = "PERF_EXPERIMENT"

_LOGGER = get_logger(__name__)


def run_optimization_experiment(
    command: str,
    change_summary: str,
    *,
    duration: Optional[int] = None,
    min_duration: Optional[int] = None,
    runs: Optional[int] = None,
    aggregate: Optional[str] = None,
    env: Optional[Mapping[str, Any]] = None,
    require_clean: bool = True,
    allow_short: bool = False,
    base_path: Path | str | None = None,
) -> dict[str, Any]:
    """Run baseline and experiment series around a warm-up run."""

    if not isinstance(command, str) or not command.strip():
        raise PerfInputError("command must be a non-empty string")
    if not isinstance(change_summary, str) or not change_summary.strip():
        raise PerfInputError("change_summary must be a non-empty string")

    if require_clean and not get_settings().allow_dirty:
        try:
            clean = is_working_tree_clean(base_path)
        except CheckpointError as exc:
            raise PerfInputError(
                f"cannot verify a clean working tree ({exc}); use --allow-dirty outside git"
            ) from exc
        if not clean:
            raise PerfInputError("working tree is dirty before experiment")

    resolved_duration = duration if duration is not None else DEFAULT_MIN_DURATION
    baseline_env = {**(env or {}), EXPERIMENT_ENV: "0"}
    experiment_env = {**(env or {}), EXPERIMENT_ENV: "1"}
    series_options: dict[str, Any] = {
        "duration": resolved_duration,
        "min_duration": min_duration,
        "runs": runs,
        "aggregate": aggregate,
        "allow_short": allow_short,
    }

    baseline = run_benchmark_series(command, env=baseline_env, **series_options)

    # Warm caches and JIT before the experiment samples are taken.
    run_mode = "oneshot" if runs and runs > 1 else "duration"
    run_benchmark(
        command,
        duration=resolved_duration,
        min_duration=min_duration,
        env=experiment_env,
        run_mode=run_mode,
        set_duration_env=run_mode != "oneshot",
        allow_short=allow_short,
    )
    experiment = run_benchmark_series(command, env=experiment_env, **series_options)

    delta = compare_baselines({"metrics": baseline.metrics}, {"metrics": experiment.metrics})
    log_event(_LOGGER, "info", "Optimization experiment finished", change=change_summary)
    return {
        "change": change_summary,
        "baseline": {"metrics": baseline.metrics},
        "experiment": {"metrics": experiment.metrics},
        "delta": delta,
        "verdict": "inconclusive",
    }


__all__ = ["EXPERIMENT_ENV", "run_optimization_experiment"]
