"""Common interface for language-specific profiler descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ProfileOutput:
    """Hotspots and artifact paths extracted after a profiling run."""

    tool: str
    hotspots: list[str] = field(default_factory=list)
    artifacts: list[str] = field(default_factory=list)


class Profiler:
    """Describe how to wrap a command with a language profiler.

    Subclasses set ``id``/``tool`` and the defaults used when the caller
    omits ``command`` or ``output``.
    """

    id: str = ""
    tool: str = ""
    default_command: str = ""
    default_output: str = ""

    def build_command(self, **options: Any) -> str:
        """Return the shell command that runs the profiler."""

        raise NotImplementedError

    def parse_output(self) -> ProfileOutput:
        """Return hotspots/artifacts; descriptors without a parser report none."""

        return ProfileOutput(tool=self.id)

    def _resolve(self, options: dict[str, Any]) -> tuple[str, str]:
        command = options.get("command") or self.default_command
        output = options.get("output") or self.default_output
        return str(command), str(output)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
