# === NAVMAP v1 ===
# {
#   "module": "AgentSys.Perf.errors",
#   "purpose": "Exception hierarchy shared by the performance investigation helpers.",
#   "sections": [
#     {
#       "id": "perferror",
#       "name": "PerfError",
#       "anchor": "class-perferror",
#       "kind": "class"
#     },
#     {
#       "id": "perfinputerror",
#       "name": "PerfInputError",
#       "anchor": "class-perfinputerror",
#       "kind": "class"
#     },
#     {
#       "id": "schemavalidationerror",
#       "name": "SchemaValidationError",
#       "anchor": "class-schemavalidationerror",
#       "kind": "class"
#     },
#     {
#       "id": "benchmarkerror",
#       "name": "BenchmarkError",
#       "anchor": "class-benchmarkerror",
#       "kind": "class"
#     },
#     {
#       "id": "checkpointerror",
#       "name": "CheckpointError",
#       "anchor": "class-checkpointerror",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Exception hierarchy shared by the performance investigation helpers.

Callers distinguish invalid input (a programming or usage mistake surfaced
before any work happens) from benchmark failures (the user's command exited
non-zero, ran too briefly, or printed metrics we could not read) and from
persisted payloads that failed schema validation. Parsing helpers never raise
these; they return result objects with ``ok=False`` instead.
"""

from __future__ import annotations

from typing import Optional, Sequence

__all__ = [
    "PerfError",
    "PerfInputError",
    "SchemaValidationError",
    "BenchmarkError",
    "CheckpointError",
]


class PerfError(RuntimeError):
    """Base exception for performance investigation failures."""


class PerfInputError(PerfError, ValueError):
    """Raised when caller-supplied arguments are missing or malformed."""


class SchemaValidationError(PerfError):
    """Raised when a baseline or investigation payload fails validation."""

    def __init__(self, message: str, *, errors: Optional[Sequence[str]] = None) -> None:
        self.errors = tuple(errors or ())
        if self.errors:
            message = f"{message}: {', '.join(self.errors)}"
        super().__init__(message)


class BenchmarkError(PerfError):
    """Raised when a benchmark command fails or produces unusable output."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        elapsed_s: Optional[float] = None,
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.elapsed_s = elapsed_s


class CheckpointError(PerfError):
    """Raised when git refuses to record a checkpoint commit."""
