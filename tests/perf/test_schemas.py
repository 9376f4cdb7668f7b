"""Validation rules for investigation records and baselines."""

from __future__ import annotations

import math

import pytest

from AgentSys.Perf.errors import SchemaValidationError
from AgentSys.Perf.schemas import (
    assert_valid,
    is_metric_number,
    validate_baseline,
    validate_investigation_state,
)


def _state(**overrides):
    state = {
        "schemaVersion": 1,
        "id": "perf-abc",
        "status": "in_progress",
        "phase": "setup",
        "scenario": {"description": "api latency", "metrics": ["p95"], "successCriteria": ""},
    }
    state.update(overrides)
    return state


def _baseline(**overrides):
    baseline = {
        "version": "v1",
        "recordedAt": "2024-01-01T00:00:00Z",
        "command": "node bench.js",
        "metrics": {"latency_ms": 12.5},
    }
    baseline.update(overrides)
    return baseline


def test_valid_investigation_state_passes() -> None:
    assert validate_investigation_state(_state()).ok


def test_investigation_state_reports_missing_fields() -> None:
    state = _state()
    del state["phase"]

    result = validate_investigation_state(state)

    assert not result.ok
    assert "missing phase" in result.errors


def test_investigation_scenarios_require_names() -> None:
    state = _state(
        scenario={
            "description": "",
            "metrics": [],
            "successCriteria": "",
            "scenarios": [{"name": "small"}, {"params": {"n": 1}}],
        }
    )

    result = validate_investigation_state(state)

    assert result.errors == ["scenario.scenarios[1].name must be a non-empty string"]


def test_non_object_state_is_rejected() -> None:
    assert validate_investigation_state(["nope"]).errors == ["state must be an object"]


def test_valid_baseline_passes() -> None:
    assert validate_baseline(_baseline()).ok


def test_baseline_metric_values_must_be_numbers() -> None:
    result = validate_baseline(_baseline(metrics={"latency_ms": "fast"}))

    assert result.errors == ["metric latency_ms must be a number"]


def test_baseline_scenario_metrics_are_validated() -> None:
    result = validate_baseline(
        _baseline(metrics={"scenarios": {"small": {"ops": 10}, "large": {"ops": None}}})
    )

    assert result.errors == ["metric large.ops must be a number"]


def test_baseline_env_must_be_an_object() -> None:
    result = validate_baseline(_baseline(env="linux"))

    assert "env must be an object when provided" in result.errors


def test_baseline_metrics_must_be_an_object() -> None:
    result = validate_baseline(_baseline(metrics=[1, 2]))

    assert "metrics must be an object" in result.errors


@pytest.mark.parametrize(
    ("value", "expected"),
    [(1, True), (2.5, True), (True, False), ("1", False), (math.nan, False), (None, False)],
)
def test_is_metric_number(value, expected) -> None:
    assert is_metric_number(value) is expected


def test_assert_valid_raises_with_all_errors() -> None:
    result = validate_baseline({"metrics": {}})

    with pytest.raises(SchemaValidationError) as excinfo:
        assert_valid(result, "Invalid baseline")

    assert "missing version" in excinfo.value.errors
    assert str(excinfo.value).startswith("Invalid baseline: ")
