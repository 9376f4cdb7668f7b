"""Binary search for the lowest failing parameter value."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from AgentSys.Perf.breaking_point import (
    ProbeResult,
    find_breaking_point,
    run_breaking_point_search,
)
from AgentSys.Perf.errors import PerfInputError


def test_finds_lowest_failing_value() -> None:
    result = find_breaking_point(1, 100, lambda value: value < 37)

    assert result.breaking_point == 37
    assert result.attempts == len(result.history)
    assert result.attempts <= 7


def test_no_failure_returns_none() -> None:
    result = find_breaking_point(1, 10, lambda value: ProbeResult(ok=True))

    assert result.breaking_point is None
    assert result.to_json()["breakingPoint"] is None


def test_empty_range_never_probes() -> None:
    calls: list[int] = []

    result = find_breaking_point(5, 4, lambda value: calls.append(value) or True)

    assert result.breaking_point is None
    assert calls == []


@pytest.mark.parametrize(("low", "high"), [(1.5, 10), (1, "10"), (True, 10)])
def test_rejects_non_integer_bounds(low, high) -> None:
    with pytest.raises(PerfInputError):
        find_breaking_point(low, high, lambda value: True)


def test_rejects_non_callable_runner() -> None:
    with pytest.raises(PerfInputError):
        find_breaking_point(1, 2, "runner")


@given(
    low=st.integers(min_value=-50, max_value=50),
    span=st.integers(min_value=0, max_value=200),
    threshold=st.integers(min_value=-100, max_value=300),
)
def test_monotonic_predicate_yields_lowest_failure(low, span, threshold) -> None:
    high = low + span

    result = find_breaking_point(low, high, lambda value: value < threshold)

    expected = max(low, threshold) if threshold <= high else None
    assert result.breaking_point == expected


@pytest.mark.integration
def test_search_runs_command_with_parameter(python_command) -> None:
    command = python_command(
        "import os, sys\n"
        "n = int(os.environ['LOAD'])\n"
        "sys.exit(1) if n >= 6 else print(f'PERF_METRICS load={n}')"
    )

    result = run_breaking_point_search(command, "LOAD", 1, 10, allow_short=True)

    assert result.breaking_point == 6
    assert all(entry["ok"] == (entry["value"] < 6) for entry in result.history)


def test_search_validates_param_env() -> None:
    with pytest.raises(PerfInputError):
        run_breaking_point_search("echo hi", "", 1, 2)
