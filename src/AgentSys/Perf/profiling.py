"""Run the profiler selected for a repository and collect its artifacts."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from . import profilers
from .logging import get_logger, log_event

_LOGGER = get_logger(__name__)


@dataclass(slots=True)
class ProfilingResult:
    """Profiler invocation and what it produced."""

    tool: str
    command: str
    hotspots: list[str] = field(default_factory=list)
    artifacts: list[str] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        """Return a JSON serialisable payload."""

        return {
            "tool": self.tool,
            "command": self.command,
            "hotspots": list(self.hotspots),
            "artifacts": list(self.artifacts),
        }


@dataclass(slots=True)
class ProfilingOutcome:
    """Either a :class:`ProfilingResult` or the error that prevented one."""

    ok: bool
    result: Optional[ProfilingResult] = None
    error: Optional[str] = None


def run_profiling(
    *,
    repo_path: Path | str | None = None,
    command: Optional[str] = None,
    output: Optional[str] = None,
    profile_options: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, Any]] = None,
) -> ProfilingOutcome:
    """Run the profiler for ``repo_path``; failures are reported, not raised."""

    resolved_repo = Path(repo_path) if repo_path is not None else Path.cwd()
    profiler = profilers.select_profiler(resolved_repo)

    # Explicit command/output override the same keys in profile_options.
    build_options = dict(profile_options or {})
    build_options.update(
        {key: value for key, value in (("command", command), ("output", output)) if value is not None}
    )
    profile_command = profiler.build_command(**build_options)
    merged_env = {**os.environ, **{k: str(v) for k, v in (env or {}).items() if v is not None}}
    try:
        subprocess.run(
            profile_command,
            shell=True,
            cwd=str(resolved_repo),
            env=merged_env,
            check=True,
            capture_output=True,
            text=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        stderr = getattr(exc, "stderr", None)
        message = f"{exc}: {stderr.strip()}" if stderr else str(exc)
        log_event(
            _LOGGER,
            "warning",
            "Profiling command failed",
            tool=profiler.id,
            command=profile_command,
            error=message,
            error_code="PROFILING_FAILED",
        )
        return ProfilingOutcome(ok=False, error=message)

    parsed = profiler.parse_output()
    result = ProfilingResult(
        tool=profiler.id,
        command=profile_command,
        hotspots=list(parsed.hotspots),
        artifacts=list(parsed.artifacts),
    )
    return ProfilingOutcome(ok=True, result=result)


__all__ = ["ProfilingOutcome", "ProfilingResult", "run_profiling"]
