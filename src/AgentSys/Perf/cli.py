# === NAVMAP v1 ===
# {
#   "module": "AgentSys.Perf.cli",
#   "purpose": "Typer CLI exposing the performance investigation helpers.",
#   "sections": [
#     {
#       "id": "app",
#       "name": "app",
#       "anchor": "variable-app",
#       "kind": "data"
#     },
#     {
#       "id": "run-command",
#       "name": "run",
#       "anchor": "function-run",
#       "kind": "function"
#     },
#     {
#       "id": "baseline-command",
#       "name": "baseline",
#       "anchor": "function-baseline",
#       "kind": "function"
#     },
#     {
#       "id": "compare-command",
#       "name": "compare",
#       "anchor": "function-compare",
#       "kind": "function"
#     },
#     {
#       "id": "breaking-point-command",
#       "name": "breaking_point",
#       "anchor": "function-breaking-point",
#       "kind": "function"
#     },
#     {
#       "id": "investigate-app",
#       "name": "investigate_app",
#       "anchor": "variable-investigate-app",
#       "kind": "data"
#     }
#   ]
# }
# === /NAVMAP ===

"""Typer CLI exposing the performance investigation helpers.

Exit codes: ``0`` success, ``1`` invalid input or missing state, ``2``
benchmark failure or unparsable metrics.
"""

from __future__ import annotations

import contextlib
import json
from pathlib import Path
from typing import Annotated, Any, Iterator, Optional

import typer
from rich.console import Console
from rich.table import Table

from AgentSys.Perf import baseline_store, investigation
from AgentSys.Perf.benchmark import capture_environment, parse_metrics, run_benchmark, run_benchmark_series
from AgentSys.Perf.breaking_point import run_breaking_point_search
from AgentSys.Perf.checkpoint import commit_checkpoint
from AgentSys.Perf.code_paths import collect_code_paths
from AgentSys.Perf.comparator import compare_baselines
from AgentSys.Perf.constraints import run_constraint_test
from AgentSys.Perf.errors import BenchmarkError, PerfError, PerfInputError
from AgentSys.Perf.optimization import run_optimization_experiment
from AgentSys.Perf.profiling import run_profiling

app = typer.Typer(
    name="agentsys-perf",
    no_args_is_help=True,
    help="Performance investigation helpers: benchmarks, baselines, breaking points.",
    rich_markup_mode="rich",
)
investigate_app = typer.Typer(
    no_args_is_help=True, help="Manage the current investigation record and log."
)
app.add_typer(investigate_app, name="investigate")

_console = Console()

BasePathOption = Annotated[
    Optional[Path],
    typer.Option("--base-path", help="Project root holding the assistant state directory."),
]
AllowShortOption = Annotated[
    bool,
    typer.Option("--allow-short", help="Accept runs shorter than the requested duration."),
]
DurationOption = Annotated[
    Optional[int],
    typer.Option("--duration", min=1, help="Requested run duration in seconds."),
]
RunsOption = Annotated[
    Optional[int],
    typer.Option("--runs", min=1, help="Number of sequential runs to aggregate."),
]
AggregateOption = Annotated[
    Optional[str],
    typer.Option("--aggregate", help="Aggregation across runs: median, mean, min or max."),
]
EnvOption = Annotated[
    Optional[list[str]],
    typer.Option("--env", help="Extra KEY=VALUE passed to the benchmark (repeatable)."),
]


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _parse_env(pairs: Optional[list[str]]) -> dict[str, str]:
    env: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise PerfInputError(f"--env expects KEY=VALUE, got {pair!r}")
        env[key.strip()] = value
    return env


@contextlib.contextmanager
def _handle_errors() -> Iterator[None]:
    """Translate library errors into exit codes."""

    try:
        yield
    except PerfInputError as exc:
        typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    except BenchmarkError as exc:
        typer.secho(f"Benchmark failed: {exc}", err=True, fg=typer.colors.RED)
        if exc.stderr:
            typer.echo(exc.stderr.rstrip(), err=True)
        raise typer.Exit(code=2) from exc
    except PerfError as exc:
        typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc


@app.command()
def run(
    command: Annotated[str, typer.Argument(help="Shell command printing PERF_METRICS.")],
    duration: DurationOption = None,
    mode: Annotated[
        str, typer.Option("--mode", help="Benchmark mode: full or binary-search.")
    ] = "full",
    allow_short: AllowShortOption = False,
    env: EnvOption = None,
) -> None:
    """Run one benchmark and print the parsed metrics."""

    with _handle_errors():
        result = run_benchmark(
            command, mode=mode, duration=duration, allow_short=allow_short, env=_parse_env(env)
        )
        parsed = parse_metrics(result.output)
        if not parsed.ok:
            raise BenchmarkError(parsed.error or "Metrics could not be parsed", stdout=result.output)
        _echo_json({"run": result.to_json(), "metrics": parsed.metrics})


@app.command()
def baseline(
    version: Annotated[str, typer.Argument(help="Version label, e.g. v1.2.0.")],
    command: Annotated[str, typer.Argument(help="Shell command printing PERF_METRICS.")],
    duration: DurationOption = None,
    runs: RunsOption = None,
    aggregate: AggregateOption = None,
    allow_short: AllowShortOption = False,
    env: EnvOption = None,
    base_path: BasePathOption = None,
) -> None:
    """Run a benchmark series and record it as the baseline for VERSION."""

    with _handle_errors():
        baseline_store.assert_safe_baseline_version(version)
        series = run_benchmark_series(
            command,
            runs=runs,
            aggregate=aggregate,
            duration=duration,
            allow_short=allow_short,
            env=_parse_env(env),
        )
        path = baseline_store.write_baseline(
            version,
            {"command": command, "metrics": series.metrics, "env": capture_environment()},
            base_path,
        )
        _echo_json({"version": version, "path": str(path), "metrics": series.metrics})


@app.command("baselines")
def list_baselines(base_path: BasePathOption = None) -> None:
    """List recorded baseline versions."""

    for version in baseline_store.list_baselines(base_path):
        typer.echo(version)


def _render_comparison(comparison: dict[str, Any], title: str) -> None:
    table = Table(title=title)
    table.add_column("metric")
    table.add_column("baseline", justify="right")
    table.add_column("current", justify="right")
    table.add_column("delta", justify="right")
    table.add_column("change", justify="right")
    for key, entry in comparison["metrics"].items():
        percent = entry["percent"]
        table.add_row(
            key,
            "-" if entry["baseline"] is None else str(entry["baseline"]),
            "-" if entry["current"] is None else str(entry["current"]),
            "-" if entry["delta"] is None else f"{entry['delta']:g}",
            "-" if percent is None else f"{percent * 100:+.1f}%",
        )
    _console.print(table)


@app.command()
def compare(
    baseline_version: Annotated[str, typer.Argument(help="Reference baseline version.")],
    current_version: Annotated[str, typer.Argument(help="Baseline version to compare.")],
    table: Annotated[bool, typer.Option("--table", help="Render a table instead of JSON.")] = False,
    base_path: BasePathOption = None,
) -> None:
    """Compare two recorded baselines."""

    with _handle_errors():
        reference = baseline_store.read_baseline(baseline_version, base_path)
        current = baseline_store.read_baseline(current_version, base_path)
        missing = [
            version
            for version, payload in ((baseline_version, reference), (current_version, current))
            if payload is None
        ]
        if missing:
            raise PerfInputError(f"baseline not found or invalid: {', '.join(missing)}")
        comparison = compare_baselines(reference, current)
        if table:
            _render_comparison(comparison, f"{baseline_version} → {current_version}")
        else:
            _echo_json(comparison)


@app.command("breaking-point")
def breaking_point(
    command: Annotated[str, typer.Argument(help="Shell command printing PERF_METRICS.")],
    param_env: Annotated[str, typer.Option("--param-env", help="Variable receiving the value.")],
    min_value: Annotated[int, typer.Option("--min", help="Lowest value to probe.")],
    max_value: Annotated[int, typer.Option("--max", help="Highest value to probe.")],
    allow_short: AllowShortOption = False,
    env: EnvOption = None,
) -> None:
    """Binary-search the lowest parameter value at which the benchmark fails."""

    with _handle_errors():
        result = run_breaking_point_search(
            command,
            param_env,
            min_value,
            max_value,
            env=_parse_env(env),
            allow_short=allow_short,
        )
        _echo_json(result.to_json())


@app.command()
def constraints(
    command: Annotated[str, typer.Argument(help="Shell command printing PERF_METRICS.")],
    cpu: Annotated[Optional[str], typer.Option("--cpu", help="CPU limit, e.g. 1 or 0.5.")] = None,
    memory: Annotated[
        Optional[str], typer.Option("--memory", help="Memory limit, e.g. 1GB.")
    ] = None,
    duration: DurationOption = None,
    runs: RunsOption = None,
    aggregate: AggregateOption = None,
    allow_short: AllowShortOption = False,
    env: EnvOption = None,
) -> None:
    """Compare the benchmark with and without resource limits."""

    with _handle_errors():
        result = run_constraint_test(
            command,
            {"cpu": cpu, "memory": memory},
            duration=duration,
            runs=runs,
            aggregate=aggregate,
            env=_parse_env(env),
            allow_short=allow_short,
        )
        _echo_json(result)


@app.command()
def optimize(
    command: Annotated[str, typer.Argument(help="Shell command printing PERF_METRICS.")],
    change: Annotated[str, typer.Option("--change", help="Summary of the change under test.")],
    duration: DurationOption = None,
    runs: RunsOption = None,
    aggregate: AggregateOption = None,
    allow_dirty: Annotated[
        bool, typer.Option("--allow-dirty", help="Skip the clean working tree check.")
    ] = False,
    allow_short: AllowShortOption = False,
    env: EnvOption = None,
    base_path: BasePathOption = None,
) -> None:
    """Run an optimization experiment (baseline vs PERF_EXPERIMENT=1)."""

    with _handle_errors():
        result = run_optimization_experiment(
            command,
            change,
            duration=duration,
            runs=runs,
            aggregate=aggregate,
            env=_parse_env(env),
            require_clean=not allow_dirty,
            allow_short=allow_short,
            base_path=base_path,
        )
        _echo_json(result)


@app.command()
def profile(
    repo_path: Annotated[
        Optional[Path], typer.Option("--repo-path", help="Repository to profile.")
    ] = None,
    command: Annotated[
        Optional[str], typer.Option("--command", help="Command wrapped by the profiler.")
    ] = None,
    output: Annotated[Optional[str], typer.Option("--output", help="Profile artifact path.")] = None,
) -> None:
    """Run the profiler matching the repository language."""

    outcome = run_profiling(repo_path=repo_path, command=command, output=output)
    if not outcome.ok or outcome.result is None:
        typer.secho(f"Profiling failed: {outcome.error}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=2)
    _echo_json(outcome.result.to_json())


@app.command()
def checkpoint(
    phase: Annotated[str, typer.Argument(help="Completed investigation phase.")],
    investigation_id: Annotated[str, typer.Argument(help="Investigation id.")],
    baseline_version: Annotated[
        Optional[str], typer.Option("--baseline", help="Baseline version in use.")
    ] = None,
    delta: Annotated[Optional[str], typer.Option("--delta", help="Delta summary.")] = None,
    base_path: BasePathOption = None,
) -> None:
    """Commit a git checkpoint for an investigation phase."""

    with _handle_errors():
        result = commit_checkpoint(
            phase, investigation_id, baseline_version, delta, base_path=base_path
        )
    if result.ok:
        typer.echo(result.message)
    else:
        typer.echo(f"Skipped checkpoint: {result.reason}")


@app.command("code-paths")
def code_paths(
    repo_map: Annotated[Path, typer.Argument(help="Repo map JSON file.")],
    scenario: Annotated[str, typer.Argument(help="Scenario description.")],
    limit: Annotated[int, typer.Option("--limit", min=1, help="Maximum paths.")] = 12,
) -> None:
    """Rank repo-map files by scenario keywords."""

    try:
        payload = json.loads(repo_map.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        typer.secho(f"Error: cannot read repo map {repo_map}: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    _echo_json(collect_code_paths(payload, scenario, limit))


@investigate_app.command("init")
def investigate_init(
    scenario: Annotated[str, typer.Option("--scenario", help="Scenario description.")] = "",
    metric: Annotated[
        Optional[list[str]], typer.Option("--metric", help="Tracked metric (repeatable).")
    ] = None,
    success_criteria: Annotated[
        str, typer.Option("--success-criteria", help="When to stop investigating.")
    ] = "",
    scenario_name: Annotated[
        Optional[list[str]],
        typer.Option("--scenario-name", help="Named load scenario (repeatable)."),
    ] = None,
    base_path: BasePathOption = None,
) -> None:
    """Start a new investigation (replaces the current record)."""

    with _handle_errors():
        state = investigation.initialize_investigation(
            {
                "scenario": scenario,
                "metrics": metric or [],
                "successCriteria": success_criteria,
                "scenarios": scenario_name or [],
            },
            base_path,
        )
        _echo_json(state)


@investigate_app.command("show")
def investigate_show(base_path: BasePathOption = None) -> None:
    """Print the current investigation record."""

    state = investigation.read_investigation(base_path)
    if state is None:
        typer.secho("No active investigation", err=True, fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    _echo_json(state)


@investigate_app.command("phase")
def investigate_phase(
    phase: Annotated[str, typer.Argument(help="Phase to enter.")],
    base_path: BasePathOption = None,
) -> None:
    """Advance the current investigation to PHASE."""

    with _handle_errors():
        state = investigation.advance_phase(phase, base_path)
        typer.echo(f"{state['id']}: {state['phase']}")


@investigate_app.command("log")
def investigate_log(
    text: Annotated[str, typer.Argument(help="Markdown text to append.")],
    base_path: BasePathOption = None,
) -> None:
    """Append free text to the current investigation log."""

    with _handle_errors():
        state = investigation.read_investigation(base_path)
        if state is None:
            raise PerfInputError("no active investigation")
        path = investigation.append_investigation_log(state["id"], text, base_path)
        typer.echo(str(path))


def main() -> None:
    """Console script entry point."""

    app()


__all__ = ["app", "investigate_app", "main"]
