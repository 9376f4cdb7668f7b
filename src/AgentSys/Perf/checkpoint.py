"""Git checkpoint helpers for perf investigation phases.

Each completed phase can be recorded as a commit whose message follows
``perf: phase <phase> [<id>] baseline=<version> delta=<summary>``. Commits are
skipped (not failed) outside a git repository, on a clean tree, or when the
previous commit already carries the same message.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .env import get_perf_dir, resolve_base_path
from .errors import CheckpointError, PerfInputError
from .logging import get_logger, log_event

_LOGGER = get_logger(__name__)


@dataclass(slots=True)
class CheckpointResult:
    """Outcome of :func:`commit_checkpoint`."""

    ok: bool
    message: Optional[str] = None
    reason: Optional[str] = None


def _git(args: Sequence[str], *, cwd: Path | None = None) -> str:
    """Run ``git`` with ``args`` and return stripped stdout; raises on failure."""

    completed = subprocess.run(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        check=True,
        capture_output=True,
        text=True,
    )
    return completed.stdout.strip()


def is_working_tree_clean(base_path: Path | str | None = None) -> bool:
    """Return ``True`` when ``git status --porcelain`` reports nothing.

    Raises :class:`CheckpointError` when git is missing or ``base_path`` is not
    inside a repository.
    """

    base = resolve_base_path(base_path)
    try:
        return _git(["status", "--porcelain"], cwd=base) == ""
    except (OSError, subprocess.CalledProcessError) as exc:
        stderr = getattr(exc, "stderr", None)
        raise CheckpointError(
            f"git status failed in {base}: {(stderr or str(exc)).strip()}"
        ) from exc


def build_checkpoint_message(
    phase: str,
    id: str,
    baseline_version: Optional[str] = None,
    delta_summary: Optional[str] = None,
) -> str:
    """Build the checkpoint commit message for ``phase`` of investigation ``id``."""

    if not phase or not isinstance(phase, str):
        raise PerfInputError("phase is required")
    if not id or not isinstance(id, str):
        raise PerfInputError("id is required")

    baseline = baseline_version or "n/a"
    delta = delta_summary or "n/a"
    return f"perf: phase {phase} [{id}] baseline={baseline} delta={delta}"


def get_last_commit_message(base_path: Path | str | None = None) -> Optional[str]:
    """Return the most recent commit message, or ``None`` when unavailable."""

    try:
        return _git(["log", "-1", "--pretty=%B"], cwd=resolve_base_path(base_path))
    except (OSError, subprocess.CalledProcessError):
        return None


def get_recent_commits(limit: int = 5, base_path: Path | str | None = None) -> list[str]:
    """Return up to ``limit`` ``<hash> <subject>`` summaries, newest first."""

    count = max(1, int(limit)) if isinstance(limit, (int, float)) else 5
    try:
        output = _git(
            ["log", f"-{count}", "--pretty=format:%h %s"], cwd=resolve_base_path(base_path)
        )
    except (OSError, subprocess.CalledProcessError):
        return []
    return [line.strip() for line in output.splitlines() if line.strip()]


def is_duplicate_checkpoint(message: str, base_path: Path | str | None = None) -> bool:
    """Return ``True`` when the last commit already carries ``message``."""

    last = get_last_commit_message(base_path)
    if not last:
        return False
    return last.strip() == str(message or "").strip()


def commit_checkpoint(
    phase: str,
    id: str,
    baseline_version: Optional[str] = None,
    delta_summary: Optional[str] = None,
    *,
    base_path: Path | str | None = None,
) -> CheckpointResult:
    """Stage perf state and commit a checkpoint for ``phase``."""

    base = resolve_base_path(base_path)
    try:
        _git(["rev-parse", "--is-inside-work-tree"], cwd=base)
    except (OSError, subprocess.CalledProcessError):
        return CheckpointResult(ok=False, reason="not a git repo")

    if is_working_tree_clean(base):
        return CheckpointResult(ok=False, reason="nothing to commit")

    message = build_checkpoint_message(phase, id, baseline_version, delta_summary)
    if is_duplicate_checkpoint(message, base):
        return CheckpointResult(ok=False, reason="duplicate checkpoint")

    perf_dir = get_perf_dir(base)
    try:
        _git(["add", "-A", "--", str(perf_dir)], cwd=base)
    except subprocess.CalledProcessError:
        try:
            _git(["add", "-A"], cwd=base)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise CheckpointError(f"git add failed: {getattr(exc, 'stderr', None) or exc}") from exc

    try:
        _git(["commit", "-m", message], cwd=base)
    except subprocess.CalledProcessError as exc:
        raise CheckpointError(f"git commit failed: {exc.stderr or exc}") from exc

    log_event(_LOGGER, "info", "Recorded perf checkpoint", phase=phase, investigation_id=id)
    return CheckpointResult(ok=True, message=message)


__all__ = [
    "CheckpointResult",
    "build_checkpoint_message",
    "commit_checkpoint",
    "get_last_commit_message",
    "get_recent_commits",
    "is_duplicate_checkpoint",
    "is_working_tree_clean",
]
