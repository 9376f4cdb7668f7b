"""Running benchmark commands as subprocesses."""

from __future__ import annotations

import pytest

from AgentSys.Perf.benchmark import (
    normalize_benchmark_options,
    run_benchmark,
    run_benchmark_series,
)
from AgentSys.Perf.errors import BenchmarkError, PerfInputError
from AgentSys.Perf.settings import PerfSettings

pytestmark = pytest.mark.integration


def test_normalize_enforces_minimum_duration() -> None:
    options = normalize_benchmark_options(duration=5, settings=PerfSettings())

    assert options.duration == 60
    assert options.min_duration == 60
    assert options.warmup == 10


def test_normalize_uses_binary_search_minimum() -> None:
    options = normalize_benchmark_options(mode="binary-search", settings=PerfSettings())

    assert options.duration == 30


def test_normalize_rejects_unknown_mode() -> None:
    with pytest.raises(PerfInputError):
        normalize_benchmark_options(mode="quick")


def test_normalize_drops_none_env_values() -> None:
    options = normalize_benchmark_options(env={"A": 1, "B": None})

    assert options.env == {"A": "1"}


def test_run_benchmark_exports_duration_and_env(python_command) -> None:
    command = python_command(
        "import os; print('PERF_METRICS duration=' + os.environ['PERF_RUN_DURATION']"
        " + ' flag=' + os.environ['FLAG'])"
    )

    result = run_benchmark(command, duration=61, env={"FLAG": 7}, allow_short=True)

    assert "PERF_METRICS duration=61 flag=7" in result.output
    assert result.success
    assert result.duration == 61


def test_run_benchmark_rejects_short_runs(python_command) -> None:
    with pytest.raises(BenchmarkError, match="finished too quickly"):
        run_benchmark(python_command("print('PERF_METRICS rps=1')"))


def test_allow_short_from_environment(python_command, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PERF_ALLOW_SHORT", "1")

    result = run_benchmark(python_command("print('PERF_METRICS rps=1')"))

    assert "rps=1" in result.output


def test_non_zero_exit_raises(python_command) -> None:
    command = python_command("import sys; sys.stderr.write('bad'); sys.exit(3)")

    with pytest.raises(BenchmarkError) as excinfo:
        run_benchmark(command, allow_short=True)

    assert excinfo.value.exit_code == 3
    assert excinfo.value.stderr == "bad"


def test_empty_command_is_rejected() -> None:
    with pytest.raises(PerfInputError):
        run_benchmark("  ")


def test_series_aggregates_oneshot_runs(python_command, tmp_path) -> None:
    counter = tmp_path / "count"
    command = python_command(
        "import os, pathlib\n"
        f"p = pathlib.Path({str(counter)!r})\n"
        "n = int(p.read_text()) + 1 if p.exists() else 1\n"
        "p.write_text(str(n))\n"
        "assert 'PERF_RUN_DURATION' not in os.environ\n"
        "print(f'PERF_METRICS rps={n * 10}')"
    )

    series = run_benchmark_series(command, runs=3, aggregate="mean")

    assert series.metrics == {"rps": 20}
    assert [sample["rps"] for sample in series.samples] == [10, 20, 30]
    assert len(series.runs) == 3


def test_series_single_run_keeps_metrics(python_command) -> None:
    series = run_benchmark_series(
        python_command("print('PERF_METRICS rps=5')"), allow_short=True
    )

    assert series.metrics == {"rps": 5}
    assert series.aggregate == "median"


def test_series_fails_on_unparsable_output(python_command) -> None:
    with pytest.raises(BenchmarkError, match="Metrics markers not found"):
        run_benchmark_series(python_command("print('nothing')"), allow_short=True)


@pytest.mark.parametrize("runs", [0, -1, True, 1.5])
def test_series_rejects_invalid_runs(runs) -> None:
    with pytest.raises(PerfInputError):
        run_benchmark_series("echo hi", runs=runs)
