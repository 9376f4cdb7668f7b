"""Baseline comparison and delta summaries."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from AgentSys.Perf.comparator import compare_baselines, summarize_delta

metric_values = st.one_of(
    st.integers(min_value=-10_000, max_value=10_000),
    st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False),
)
metric_maps = st.dictionaries(st.text(min_size=1, max_size=8), metric_values, max_size=6)


def test_compare_reports_delta_and_percent() -> None:
    comparison = compare_baselines(
        {"metrics": {"latency_ms": 100, "rps": 50}},
        {"metrics": {"latency_ms": 125, "rps": 50}},
    )

    assert comparison["metrics"]["latency_ms"] == {
        "baseline": 100,
        "current": 125,
        "delta": 25,
        "percent": 0.25,
    }
    assert comparison["metrics"]["rps"]["percent"] == 0
    assert "comparedAt" in comparison


def test_zero_baseline_has_no_percent() -> None:
    comparison = compare_baselines({"metrics": {"errors": 0}}, {"metrics": {"errors": 3}})

    assert comparison["metrics"]["errors"]["delta"] == 3
    assert comparison["metrics"]["errors"]["percent"] is None


def test_one_sided_keys_are_kept() -> None:
    comparison = compare_baselines({"metrics": {"old": 1}}, {"metrics": {"new": 2}})

    assert comparison["metrics"]["old"]["current"] is None
    assert comparison["metrics"]["old"]["delta"] is None
    assert comparison["metrics"]["new"]["baseline"] is None


def test_missing_snapshots_compare_empty() -> None:
    assert compare_baselines(None, None)["metrics"] == {}


@given(baseline=metric_maps, current=metric_maps)
def test_every_key_is_compared(baseline, current) -> None:
    comparison = compare_baselines({"metrics": baseline}, {"metrics": current})

    assert set(comparison["metrics"]) == set(baseline) | set(current)
    for key, entry in comparison["metrics"].items():
        if key in baseline and key in current:
            assert entry["delta"] == current[key] - baseline[key]
            if baseline[key] == 0:
                assert entry["percent"] is None
            else:
                assert entry["percent"] == pytest.approx(entry["delta"] / baseline[key])


def test_summarize_delta_orders_by_magnitude() -> None:
    comparison = compare_baselines(
        {"metrics": {"a": 100, "b": 100, "c": 100, "d": 100}},
        {"metrics": {"a": 101, "b": 50, "c": 125, "d": 110}},
    )

    assert summarize_delta(comparison) == "b -50.0%, c +25.0%, d +10.0%"


def test_summarize_delta_without_percentages() -> None:
    assert summarize_delta(compare_baselines({"metrics": {"x": 0}}, {"metrics": {"x": 1}})) == "n/a"
    assert summarize_delta(None) == "n/a"
