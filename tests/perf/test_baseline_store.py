"""Versioned baseline persistence and consolidation."""

from __future__ import annotations

from pathlib import Path

import pytest

from AgentSys.Perf import baseline_store
from AgentSys.Perf.consolidation import consolidate_baseline
from AgentSys.Perf.errors import PerfInputError, SchemaValidationError


def _payload(**overrides):
    payload = {"command": "node bench.js", "metrics": {"latency_ms": 12}}
    payload.update(overrides)
    return payload


def test_write_then_read_baseline(state_root: Path) -> None:
    path = baseline_store.write_baseline("v1.2.0", _payload(), state_root)

    assert path == state_root / ".claude" / "perf" / "baselines" / "v1.2.0.json"
    stored = baseline_store.read_baseline("v1.2.0", state_root)
    assert stored["version"] == "v1.2.0"
    assert stored["metrics"] == {"latency_ms": 12}
    assert stored["recordedAt"]


def test_missing_baseline_reads_as_none(state_root: Path) -> None:
    assert baseline_store.read_baseline("v9", state_root) is None


def test_corrupt_baseline_reads_as_none(state_root: Path) -> None:
    path = baseline_store.get_baseline_path("broken", state_root)
    path.write_text("{not json", encoding="utf-8")

    assert baseline_store.read_baseline("broken", state_root) is None


def test_invalid_baseline_reads_as_none(state_root: Path) -> None:
    path = baseline_store.get_baseline_path("invalid", state_root)
    path.write_text('{"version": "invalid"}', encoding="utf-8")

    assert baseline_store.read_baseline("invalid", state_root) is None


def test_invalid_payload_is_not_written(state_root: Path) -> None:
    with pytest.raises(SchemaValidationError):
        baseline_store.write_baseline("v1", _payload(metrics={"rps": "many"}), state_root)

    assert baseline_store.list_baselines(state_root) == []


@pytest.mark.parametrize("version", ["", "../escape", "a/b", "v1 beta", "v1\\x", None])
def test_unsafe_versions_are_rejected(version, state_root: Path) -> None:
    with pytest.raises(PerfInputError):
        baseline_store.get_baseline_path(version, state_root)


def test_list_baselines_sorted(state_root: Path) -> None:
    for version in ("v2", "v1", "v10"):
        baseline_store.write_baseline(version, _payload(), state_root)

    assert baseline_store.list_baselines(state_root) == ["v1", "v10", "v2"]


def test_consolidate_overwrites_existing(state_root: Path) -> None:
    baseline_store.write_baseline("v1", _payload(), state_root)

    result = consolidate_baseline("v1", _payload(metrics={"latency_ms": 7}), state_root)

    assert result["version"] == "v1"
    assert Path(result["path"]).name == "v1.json"
    assert baseline_store.read_baseline("v1", state_root)["metrics"] == {"latency_ms": 7}


def test_consolidate_requires_payload(state_root: Path) -> None:
    with pytest.raises(PerfInputError):
        consolidate_baseline("v1", {}, state_root)


def test_undecodable_baseline_reads_as_none(state_root: Path) -> None:
    path = baseline_store.get_baseline_path("bad", state_root)
    path.write_bytes(b"\xff\xfe{not utf8")

    assert baseline_store.read_baseline("bad", state_root) is None
