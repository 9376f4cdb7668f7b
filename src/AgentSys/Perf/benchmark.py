# === NAVMAP v1 ===
# {
#   "module": "AgentSys.Perf.benchmark",
#   "purpose": "Run benchmark commands sequentially and parse the metrics they print.",
#   "sections": [
#     {
#       "id": "benchmarkoptions",
#       "name": "BenchmarkOptions",
#       "anchor": "class-benchmarkoptions",
#       "kind": "class"
#     },
#     {
#       "id": "benchmarkresult",
#       "name": "BenchmarkResult",
#       "anchor": "class-benchmarkresult",
#       "kind": "class"
#     },
#     {
#       "id": "parseresult",
#       "name": "ParseResult",
#       "anchor": "class-parseresult",
#       "kind": "class"
#     },
#     {
#       "id": "normalize-benchmark-options",
#       "name": "normalize_benchmark_options",
#       "anchor": "function-normalize-benchmark-options",
#       "kind": "function"
#     },
#     {
#       "id": "run-benchmark",
#       "name": "run_benchmark",
#       "anchor": "function-run-benchmark",
#       "kind": "function"
#     },
#     {
#       "id": "parse-metrics",
#       "name": "parse_metrics",
#       "anchor": "function-parse-metrics",
#       "kind": "function"
#     },
#     {
#       "id": "run-benchmark-series",
#       "name": "run_benchmark_series",
#       "anchor": "function-run-benchmark-series",
#       "kind": "function"
#     },
#     {
#       "id": "capture-environment",
#       "name": "capture_environment",
#       "anchor": "function-capture-environment",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Run benchmark commands sequentially and parse the metrics they print.

Benchmarks are user-supplied shell commands. They receive the requested run
duration through ``PERF_RUN_DURATION`` and report results on stdout, either
as a JSON document between ``PERF_METRICS_START`` and ``PERF_METRICS_END``
markers or as ``PERF_METRICS key=value ...`` lines (``scenario=<name>``
routes the values of a line into ``metrics["scenarios"][name]``).

Runs are strictly sequential: parallel benchmarks compete for the same CPU
and memory and make every number meaningless.
"""

from __future__ import annotations

import json
import math
import os
import platform
import statistics
import subprocess
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import psutil

from .errors import BenchmarkError, PerfInputError
from .logging import get_logger, log_event
from .schemas import validate_baseline
from .settings import PerfSettings, get_settings

DEFAULT_MIN_DURATION = 60
BINARY_SEARCH_MIN_DURATION = 30
DEFAULT_DURATION_SLACK_SECONDS = 1

METRICS_MARKER = "PERF_METRICS"
METRICS_START_MARKER = "PERF_METRICS_START"
METRICS_END_MARKER = "PERF_METRICS_END"
RUN_DURATION_ENV = "PERF_RUN_DURATION"

BENCHMARK_MODES = ("full", "binary-search")
RUN_MODES = ("duration", "oneshot")

_AGGREGATORS: dict[str, Callable[[Sequence[float]], float]] = {
    "median": statistics.median,
    "mean": statistics.fmean,
    "min": min,
    "max": max,
}

_LOGGER = get_logger(__name__)


@dataclass(slots=True)
class BenchmarkOptions:
    """Normalised options for a single benchmark run."""

    mode: str
    duration: int
    min_duration: int
    warmup: int
    allow_short: bool = False
    run_mode: str = "duration"
    set_duration_env: bool = True
    env: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class BenchmarkResult:
    """Outcome of a successful benchmark run."""

    output: str
    duration: int
    warmup: int
    mode: str
    elapsed_seconds: float
    stderr: str = ""
    peak_rss_bytes: int | None = None
    success: bool = True

    def to_json(self) -> dict[str, Any]:
        """Return a JSON serialisable payload."""

        return {
            "success": self.success,
            "duration": self.duration,
            "warmup": self.warmup,
            "mode": self.mode,
            "elapsedSeconds": self.elapsed_seconds,
            "peakRssBytes": self.peak_rss_bytes,
        }


@dataclass(slots=True)
class ParseResult:
    """Metrics parsed from benchmark output, or the reason parsing failed."""

    ok: bool
    metrics: dict[str, Any] | None = None
    error: str | None = None


@dataclass(slots=True)
class SeriesResult:
    """Aggregated metrics from one or more sequential runs."""

    metrics: dict[str, Any]
    aggregate: str
    runs: list[BenchmarkResult] = field(default_factory=list)
    samples: list[dict[str, Any]] = field(default_factory=list)


def _stringify_env(env: Mapping[str, Any] | None) -> dict[str, str]:
    """Drop ``None`` values and coerce the rest to strings."""

    if not env:
        return {}
    return {str(key): str(value) for key, value in env.items() if value is not None}


def normalize_benchmark_options(
    *,
    mode: str | None = None,
    duration: int | float | None = None,
    min_duration: int | None = None,
    warmup: int | None = None,
    allow_short: bool = False,
    run_mode: str | None = None,
    set_duration_env: bool = True,
    env: Mapping[str, Any] | None = None,
    settings: PerfSettings | None = None,
) -> BenchmarkOptions:
    """Normalise benchmark options and enforce minimum durations."""

    settings = settings or get_settings()
    resolved_mode = mode or "full"
    if resolved_mode not in BENCHMARK_MODES:
        raise PerfInputError(f"Unknown benchmark mode {resolved_mode!r}")
    resolved_run_mode = run_mode or "duration"
    if resolved_run_mode not in RUN_MODES:
        raise PerfInputError(f"Unknown run mode {resolved_run_mode!r}")

    if min_duration is None:
        min_duration = (
            settings.binary_search_min_duration_s
            if resolved_mode == "binary-search"
            else settings.min_duration_s
        )
    resolved_duration = max(int(duration or min_duration), int(min_duration))

    return BenchmarkOptions(
        mode=resolved_mode,
        duration=resolved_duration,
        min_duration=int(min_duration),
        warmup=int(warmup or settings.default_warmup_s),
        allow_short=allow_short is True,
        run_mode=resolved_run_mode,
        set_duration_env=set_duration_env,
        env=_stringify_env(env),
    )


def _monitor_process_memory(proc: subprocess.Popen[str]) -> Callable[[], int | None] | None:
    """Start a psutil-based memory sampler and return a finaliser."""

    try:
        process = psutil.Process(proc.pid)
    except psutil.Error:  # pragma: no cover - process exited quickly
        return None

    rss_holder: dict[str, int] = {"value": 0}
    stop_event = threading.Event()

    def _poll() -> None:
        try:
            while not stop_event.is_set():
                try:
                    rss = process.memory_info().rss
                    rss_holder["value"] = max(rss_holder["value"], int(rss))
                    children = process.children(recursive=True)
                except psutil.Error:
                    break
                for child in children:
                    try:
                        rss = child.memory_info().rss
                        rss_holder["value"] = max(rss_holder["value"], int(rss))
                    except psutil.Error:
                        continue
                if proc.poll() is not None:
                    break
                if stop_event.wait(0.1):
                    break
        finally:
            stop_event.set()

    thread = threading.Thread(target=_poll, daemon=True)
    thread.start()

    def _finalise() -> int | None:
        stop_event.set()
        thread.join(timeout=1.0)
        return rss_holder["value"] or None

    return _finalise


def run_benchmark(command: str, **options: Any) -> BenchmarkResult:
    """Run ``command`` through the shell and return its output.

    Keyword options are those of :func:`normalize_benchmark_options`. In the
    ``duration`` run mode the command must keep running for at least the
    requested duration (minus one second of slack) unless short runs are
    allowed through ``allow_short`` or ``PERF_ALLOW_SHORT=1``.
    """

    if not isinstance(command, str) or not command.strip():
        raise PerfInputError("Benchmark command must be a non-empty string")

    settings = options.pop("settings", None) or get_settings()
    normalized = normalize_benchmark_options(settings=settings, **options)
    env = dict(os.environ)
    if normalized.set_duration_env:
        env[RUN_DURATION_ENV] = str(normalized.duration)
    env.update(normalized.env)

    log_event(
        _LOGGER,
        "debug",
        "Starting benchmark",
        command=command,
        mode=normalized.mode,
        run_mode=normalized.run_mode,
        duration=normalized.duration,
    )

    start = time.perf_counter()
    proc = subprocess.Popen(
        command,
        shell=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        env=env,
    )
    monitor = _monitor_process_memory(proc)
    stdout, stderr = proc.communicate()
    elapsed = time.perf_counter() - start
    peak_rss = monitor() if monitor else None

    if proc.returncode != 0:
        raise BenchmarkError(
            f"Benchmark command exited with code {proc.returncode}",
            exit_code=proc.returncode,
            stdout=stdout,
            stderr=stderr,
            elapsed_s=elapsed,
        )

    allow_short = normalized.allow_short or settings.allow_short
    if (
        normalized.run_mode == "duration"
        and not allow_short
        and elapsed + settings.duration_slack_s < normalized.duration
    ):
        raise BenchmarkError(
            f"Benchmark finished too quickly ({elapsed:.2f}s < {normalized.duration}s)",
            exit_code=proc.returncode,
            stdout=stdout,
            stderr=stderr,
            elapsed_s=elapsed,
        )

    return BenchmarkResult(
        output=stdout,
        stderr=stderr,
        duration=normalized.duration,
        warmup=normalized.warmup,
        mode=normalized.mode,
        elapsed_seconds=elapsed,
        peak_rss_bytes=peak_rss,
    )


def _validate_parsed_metrics(metrics: Any) -> ParseResult:
    validation = validate_baseline(
        {
            "version": "temp",
            "recordedAt": datetime.now(timezone.utc).isoformat(),
            "command": "temp",
            "metrics": metrics,
        }
    )
    if not validation.ok:
        return ParseResult(ok=False, error=f"Invalid metrics: {', '.join(validation.errors)}")
    return ParseResult(ok=True, metrics=metrics)


def _parse_number(raw: str) -> float | int | None:
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_line_metrics(output: str) -> ParseResult:
    """Parse ``PERF_METRICS key=value`` lines from ``output``."""

    metrics: dict[str, Any] = {}
    saw_marker = False

    for line in output.splitlines():
        marker_index = line.find(METRICS_MARKER)
        if marker_index == -1:
            continue
        saw_marker = True
        rest = line[marker_index + len(METRICS_MARKER):].strip()
        if not rest:
            continue

        scenario: Optional[str] = None
        line_metrics: dict[str, float | int] = {}
        for token in rest.split():
            key, sep, raw_value = token.partition("=")
            key = key.strip()
            if not sep or not key:
                continue
            if key == "scenario":
                scenario = raw_value.strip()
                continue
            value = _parse_number(raw_value.strip())
            if value is None:
                return ParseResult(ok=False, error=f"Metric {key} must be a number")
            line_metrics[key] = value

        if not line_metrics:
            continue
        if scenario:
            scenarios = metrics.setdefault("scenarios", {})
            scenarios.setdefault(scenario, {}).update(line_metrics)
        else:
            metrics.update(line_metrics)

    if not saw_marker:
        return ParseResult(ok=False, error="Metrics markers not found")
    return ParseResult(ok=True, metrics=metrics)


def parse_metrics(output: Any) -> ParseResult:
    """Parse metrics from benchmark output using ``PERF_METRICS`` markers."""

    if not isinstance(output, str):
        return ParseResult(ok=False, error="Output must be a string")

    start_index = output.find(METRICS_START_MARKER)
    end_index = output.find(METRICS_END_MARKER)
    if start_index != -1 and end_index != -1 and end_index > start_index:
        raw = output[start_index + len(METRICS_START_MARKER):end_index].strip()
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            return ParseResult(ok=False, error=f"Failed to parse metrics JSON: {exc}")
        return _validate_parsed_metrics(parsed)

    line_parsed = parse_line_metrics(output)
    if not line_parsed.ok:
        return line_parsed
    return _validate_parsed_metrics(line_parsed.metrics)


def aggregate_metrics(samples: Sequence[Mapping[str, Any]], aggregate: str = "median") -> dict[str, Any]:
    """Combine metric maps key by key with the ``aggregate`` reducer."""

    reducer = _AGGREGATORS.get(aggregate)
    if reducer is None:
        raise PerfInputError(
            f"aggregate must be one of {', '.join(sorted(_AGGREGATORS))}, got {aggregate!r}"
        )

    keys: list[str] = []
    for sample in samples:
        for key in sample:
            if key not in keys:
                keys.append(key)

    combined: dict[str, Any] = {}
    for key in keys:
        present = [sample[key] for sample in samples if key in sample]
        if key == "scenarios" and all(isinstance(value, Mapping) for value in present):
            names: list[str] = []
            for value in present:
                names.extend(name for name in value if name not in names)
            combined[key] = {
                name: aggregate_metrics(
                    [value[name] for value in present if name in value], aggregate
                )
                for name in names
            }
            continue
        numbers = [value for value in present if isinstance(value, (int, float))]
        if numbers:
            combined[key] = reducer(numbers)
    return combined


def run_benchmark_series(
    command: str,
    *,
    runs: int | None = None,
    aggregate: str | None = None,
    **options: Any,
) -> SeriesResult:
    """Run ``command`` ``runs`` times sequentially and aggregate the metrics.

    A single run uses the ``duration`` run mode. Multiple runs are one-shot
    invocations without ``PERF_RUN_DURATION`` so that the benchmark performs a
    fixed amount of work per sample.
    """

    resolved_runs = 1 if runs is None else runs
    if isinstance(resolved_runs, bool) or not isinstance(resolved_runs, int) or resolved_runs < 1:
        raise PerfInputError("runs must be a positive integer")
    resolved_aggregate = aggregate or "median"
    if resolved_aggregate not in _AGGREGATORS:
        raise PerfInputError(
            f"aggregate must be one of {', '.join(sorted(_AGGREGATORS))}, got {resolved_aggregate!r}"
        )

    if resolved_runs > 1:
        options.setdefault("run_mode", "oneshot")
        options.setdefault("set_duration_env", False)

    results: list[BenchmarkResult] = []
    samples: list[dict[str, Any]] = []
    for index in range(resolved_runs):
        result = run_benchmark(command, **dict(options))
        parsed = parse_metrics(result.output)
        if not parsed.ok:
            raise BenchmarkError(
                f"Run {index + 1}/{resolved_runs}: {parsed.error}",
                exit_code=0,
                stdout=result.output,
                stderr=result.stderr,
                elapsed_s=result.elapsed_seconds,
            )
        results.append(result)
        samples.append(parsed.metrics or {})

    metrics = samples[0] if resolved_runs == 1 else aggregate_metrics(samples, resolved_aggregate)
    return SeriesResult(
        metrics=metrics,
        aggregate=resolved_aggregate,
        runs=results,
        samples=samples,
    )


def capture_environment() -> dict[str, Any]:
    """Describe the host so baselines from different machines are not mixed up."""

    return {
        "platform": platform.system().lower(),
        "release": platform.release(),
        "arch": platform.machine(),
        "python": platform.python_version(),
        "cpuCount": psutil.cpu_count(logical=True),
        "memoryTotalBytes": psutil.virtual_memory().total,
    }


__all__ = [
    "BINARY_SEARCH_MIN_DURATION",
    "DEFAULT_DURATION_SLACK_SECONDS",
    "DEFAULT_MIN_DURATION",
    "BenchmarkOptions",
    "BenchmarkResult",
    "ParseResult",
    "SeriesResult",
    "aggregate_metrics",
    "capture_environment",
    "normalize_benchmark_options",
    "parse_line_metrics",
    "parse_metrics",
    "run_benchmark",
    "run_benchmark_series",
]
