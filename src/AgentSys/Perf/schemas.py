# === NAVMAP v1 ===
# {
#   "module": "AgentSys.Perf.schemas",
#   "purpose": "Field-level validation for baseline and investigation payloads.",
#   "sections": [
#     {
#       "id": "validationresult",
#       "name": "ValidationResult",
#       "anchor": "class-validationresult",
#       "kind": "class"
#     },
#     {
#       "id": "validate-investigation-state",
#       "name": "validate_investigation_state",
#       "anchor": "function-validate-investigation-state",
#       "kind": "function"
#     },
#     {
#       "id": "validate-baseline",
#       "name": "validate_baseline",
#       "anchor": "function-validate-baseline",
#       "kind": "function"
#     },
#     {
#       "id": "assert-valid",
#       "name": "assert_valid",
#       "anchor": "function-assert-valid",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Field-level validation for baseline and investigation payloads.

Both validators collect every problem they find instead of stopping at the
first one, so error messages shown to the user list all missing or mistyped
fields at once. Validation never raises; :func:`assert_valid` converts a
failed result into :class:`~AgentSys.Perf.errors.SchemaValidationError`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from .errors import SchemaValidationError

REQUIRED_INVESTIGATION_FIELDS = ("schemaVersion", "id", "status", "phase", "scenario")
REQUIRED_BASELINE_FIELDS = ("version", "recordedAt", "metrics", "command")


@dataclass(slots=True)
class ValidationResult:
    """Outcome of a validation pass."""

    ok: bool
    errors: list[str] = field(default_factory=list)


def is_object(value: Any) -> bool:
    """Return ``True`` for JSON objects (mappings)."""

    return isinstance(value, Mapping)


def is_metric_number(value: Any) -> bool:
    """Return ``True`` for real numbers usable as metric values."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_investigation_state(state: Any) -> ValidationResult:
    """Validate an investigation record."""

    if not is_object(state):
        return ValidationResult(ok=False, errors=["state must be an object"])

    errors: list[str] = []
    for name in REQUIRED_INVESTIGATION_FIELDS:
        if name not in state:
            errors.append(f"missing {name}")

    if not _is_non_empty_string(state.get("id")):
        errors.append("id must be a non-empty string")
    if not _is_non_empty_string(state.get("phase")):
        errors.append("phase must be a non-empty string")

    scenario = state.get("scenario")
    if not is_object(scenario):
        errors.append("scenario must be an object")
    else:
        if not isinstance(scenario.get("description"), str):
            errors.append("scenario.description must be a string")
        if not isinstance(scenario.get("metrics"), list):
            errors.append("scenario.metrics must be an array")
        if not isinstance(scenario.get("successCriteria"), str):
            errors.append("scenario.successCriteria must be a string")
        scenarios = scenario.get("scenarios")
        if scenarios is not None:
            if not isinstance(scenarios, list):
                errors.append("scenario.scenarios must be an array when provided")
            else:
                for index, entry in enumerate(scenarios):
                    if not is_object(entry):
                        errors.append(f"scenario.scenarios[{index}] must be an object")
                        continue
                    if not _is_non_empty_string(entry.get("name")):
                        errors.append(
                            f"scenario.scenarios[{index}].name must be a non-empty string"
                        )
                    params = entry.get("params")
                    if params is not None and not is_object(params):
                        errors.append(
                            f"scenario.scenarios[{index}].params must be an object when provided"
                        )

    return ValidationResult(ok=not errors, errors=errors)


def _validate_metrics(metrics: Mapping[str, Any], errors: list[str]) -> None:
    scenarios = metrics.get("scenarios")
    if scenarios is not None:
        if not is_object(scenarios):
            errors.append("metrics.scenarios must be an object when provided")
            return
        for scenario_name, scenario_metrics in scenarios.items():
            if not is_object(scenario_metrics):
                errors.append(f"metrics.scenarios.{scenario_name} must be an object")
                continue
            for key, value in scenario_metrics.items():
                if not is_metric_number(value):
                    errors.append(f"metric {scenario_name}.{key} must be a number")
        return

    for key, value in metrics.items():
        if not is_metric_number(value):
            errors.append(f"metric {key} must be a number")


def validate_baseline(baseline: Any) -> ValidationResult:
    """Validate a baseline record (also used for freshly parsed metrics)."""

    if not is_object(baseline):
        return ValidationResult(ok=False, errors=["baseline must be an object"])

    errors: list[str] = []
    for name in REQUIRED_BASELINE_FIELDS:
        if name not in baseline:
            errors.append(f"missing {name}")

    if not _is_non_empty_string(baseline.get("version")):
        errors.append("version must be a non-empty string")
    if not _is_non_empty_string(baseline.get("recordedAt")):
        errors.append("recordedAt must be an ISO8601 string")
    if not _is_non_empty_string(baseline.get("command")):
        errors.append("command must be a non-empty string")

    metrics = baseline.get("metrics")
    if not is_object(metrics):
        errors.append("metrics must be an object")
    else:
        _validate_metrics(metrics, errors)

    env = baseline.get("env")
    if env and not is_object(env):
        errors.append("env must be an object when provided")

    return ValidationResult(ok=not errors, errors=errors)


def assert_valid(result: ValidationResult, message: str) -> None:
    """Raise :class:`SchemaValidationError` when ``result`` is not ok."""

    if not result.ok:
        raise SchemaValidationError(message, errors=result.errors)


__all__ = [
    "REQUIRED_BASELINE_FIELDS",
    "REQUIRED_INVESTIGATION_FIELDS",
    "ValidationResult",
    "assert_valid",
    "is_metric_number",
    "is_object",
    "validate_baseline",
    "validate_investigation_state",
]
