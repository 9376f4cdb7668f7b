"""End-to-end checks of the ``agentsys-perf`` Typer application."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from AgentSys.Perf import checkpoint, profilers
from AgentSys.Perf.cli import app
from AgentSys.Perf.profilers.base import Profiler


@pytest.fixture()
def cli_runner() -> CliRunner:
    return CliRunner()


def _metrics_command(python_command, value: int) -> str:
    return python_command(f"print('PERF_METRICS latency_ms={value} rps=100')")


@pytest.mark.integration
def test_run_prints_metrics(cli_runner: CliRunner, python_command) -> None:
    result = cli_runner.invoke(app, ["run", _metrics_command(python_command, 12), "--allow-short"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["metrics"] == {"latency_ms": 12, "rps": 100}
    assert payload["run"]["success"] is True


@pytest.mark.integration
def test_run_failure_exits_with_two(cli_runner: CliRunner, python_command) -> None:
    result = cli_runner.invoke(
        app, ["run", python_command("import sys; sys.exit(5)"), "--allow-short"]
    )

    assert result.exit_code == 2


def test_run_rejects_malformed_env(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(app, ["run", "echo hi", "--env", "NOVALUE"])

    assert result.exit_code == 1


@pytest.mark.integration
def test_baseline_list_and_compare(cli_runner: CliRunner, python_command, state_root: Path) -> None:
    base = ["--base-path", str(state_root)]
    for version, value in (("v1", 100), ("v2", 125)):
        result = cli_runner.invoke(
            app,
            ["baseline", version, _metrics_command(python_command, value), "--allow-short", *base],
        )
        assert result.exit_code == 0, result.output

    listing = cli_runner.invoke(app, ["baselines", *base])
    assert listing.stdout.split() == ["v1", "v2"]

    stored = json.loads(
        (state_root / ".claude" / "perf" / "baselines" / "v1.json").read_text("utf-8")
    )
    assert stored["env"]["cpuCount"] >= 1

    compared = cli_runner.invoke(app, ["compare", "v1", "v2", *base])
    assert compared.exit_code == 0, compared.output
    deltas = json.loads(compared.stdout)["metrics"]
    assert deltas["latency_ms"]["percent"] == 0.25

    table = cli_runner.invoke(app, ["compare", "v1", "v2", "--table", *base])
    assert table.exit_code == 0
    assert "latency_ms" in table.stdout


def test_compare_missing_baseline(cli_runner: CliRunner, state_root: Path) -> None:
    result = cli_runner.invoke(app, ["compare", "v1", "v2", "--base-path", str(state_root)])

    assert result.exit_code == 1


def test_baseline_rejects_unsafe_version(cli_runner: CliRunner, state_root: Path) -> None:
    result = cli_runner.invoke(
        app, ["baseline", "../v1", "echo hi", "--base-path", str(state_root)]
    )

    assert result.exit_code == 1


@pytest.mark.integration
def test_breaking_point_command(cli_runner: CliRunner, python_command) -> None:
    command = python_command(
        "import os, sys\n"
        "n = int(os.environ['USERS'])\n"
        "sys.exit(1) if n > 3 else print('PERF_METRICS users=%d' % n)"
    )

    result = cli_runner.invoke(
        app,
        ["breaking-point", command, "--param-env", "USERS", "--min", "1", "--max", "8", "--allow-short"],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["breakingPoint"] == 4


def test_investigation_lifecycle(cli_runner: CliRunner, state_root: Path) -> None:
    base = ["--base-path", str(state_root)]

    init = cli_runner.invoke(
        app,
        [
            "investigate", "init",
            "--scenario", "checkout latency",
            "--metric", "p95",
            "--scenario-name", "small",
            *base,
        ],
    )
    assert init.exit_code == 0, init.output
    state = json.loads(init.stdout)
    assert state["scenario"]["metrics"] == ["p95"]

    phase = cli_runner.invoke(app, ["investigate", "phase", "baseline", *base])
    assert phase.stdout.strip() == f"{state['id']}: baseline"

    logged = cli_runner.invoke(app, ["investigate", "log", "Noted a GC spike", *base])
    assert logged.exit_code == 0
    assert "Noted a GC spike" in Path(logged.stdout.strip()).read_text("utf-8")

    shown = cli_runner.invoke(app, ["investigate", "show", *base])
    assert json.loads(shown.stdout)["phase"] == "baseline"


def test_investigate_show_without_state(cli_runner: CliRunner, state_root: Path) -> None:
    result = cli_runner.invoke(app, ["investigate", "show", "--base-path", str(state_root)])

    assert result.exit_code == 1


def test_checkpoint_skips_outside_repo(
    cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch, state_root: Path
) -> None:
    def _not_a_repo(args, *, cwd=None):
        raise OSError("git unavailable")

    monkeypatch.setattr(checkpoint, "_git", _not_a_repo)

    result = cli_runner.invoke(
        app, ["checkpoint", "baseline", "perf-1", "--base-path", str(state_root)]
    )

    assert result.exit_code == 0
    assert "not a git repo" in result.stdout


def test_code_paths_command(cli_runner: CliRunner, tmp_path: Path) -> None:
    repo_map = tmp_path / "repo-map.json"
    repo_map.write_text(
        json.dumps({"files": {"src/cart.js": {"symbols": {"fns": [{"name": "cartTotal"}]}}}}),
        encoding="utf-8",
    )

    result = cli_runner.invoke(app, ["code-paths", str(repo_map), "cart total is slow"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["paths"][0]["file"] == "src/cart.js"


def test_code_paths_missing_file(cli_runner: CliRunner, tmp_path: Path) -> None:
    result = cli_runner.invoke(app, ["code-paths", str(tmp_path / "missing.json"), "cart"])

    assert result.exit_code == 1


@pytest.mark.integration
def test_constraints_command(cli_runner: CliRunner, python_command) -> None:
    command = python_command(
        "import os\n"
        "print('PERF_METRICS latency_ms=' + ('30' if os.environ.get('PERF_MEMORY_LIMIT') else '10'))"
    )

    result = cli_runner.invoke(
        app, ["constraints", command, "--memory", "512MB", "--allow-short"]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["constraints"] == {"cpu": None, "memory": "512MB"}
    assert payload["delta"]["metrics"]["latency_ms"]["delta"] == 20


def test_constraints_failure_exits_with_two(cli_runner: CliRunner, python_command) -> None:
    result = cli_runner.invoke(
        app, ["constraints", python_command("print('no metrics')"), "--cpu", "1", "--allow-short"]
    )

    assert result.exit_code == 2


def test_optimize_outside_repository(
    cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.parent))

    result = cli_runner.invoke(
        app, ["optimize", "echo hi", "--change", "x", "--base-path", str(tmp_path)]
    )

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "cannot verify a clean working tree" in result.output


@pytest.mark.integration
def test_optimize_allow_dirty(cli_runner: CliRunner, python_command, tmp_path: Path) -> None:
    command = python_command(
        "import os\n"
        "print('PERF_METRICS latency_ms=' + ('8' if os.environ['PERF_EXPERIMENT'] == '1' else '10'))"
    )

    result = cli_runner.invoke(
        app,
        [
            "optimize", command,
            "--change", "memoise parser",
            "--allow-dirty",
            "--allow-short",
            "--base-path", str(tmp_path),
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["change"] == "memoise parser"
    assert payload["experiment"]["metrics"] == {"latency_ms": 8}


class _ShellProfiler(Profiler):
    id = "shell"
    tool = "sh"

    def __init__(self, command: str) -> None:
        self._command = command

    def build_command(self, **options):
        return self._command


def test_profile_command(
    cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr(profilers, "select_profiler", lambda repo: _ShellProfiler("true"))

    result = cli_runner.invoke(app, ["profile", "--repo-path", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {
        "tool": "shell",
        "command": "true",
        "hotspots": [],
        "artifacts": [],
    }


def test_profile_failure_exits_with_two(
    cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr(profilers, "select_profiler", lambda repo: _ShellProfiler("exit 3"))

    result = cli_runner.invoke(app, ["profile", "--repo-path", str(tmp_path)])

    assert result.exit_code == 2
