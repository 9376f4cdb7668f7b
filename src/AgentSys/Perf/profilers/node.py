"""Node.js ``--cpu-prof`` profiler descriptor."""

from __future__ import annotations

from typing import Any

from .base import Profiler


class NodeProfiler(Profiler):
    id = "node"
    tool = "--cpu-prof"
    default_command = "node"
    default_output = "node.cpuprofile"

    def build_command(self, **options: Any) -> str:
        command, output = self._resolve(options)
        trimmed = command.strip()
        if trimmed.startswith("node "):
            rest = trimmed[len("node "):]
            return f"node --cpu-prof --cpu-prof-name={output} {rest}".strip()
        return f"{command} --cpu-prof --cpu-prof-name={output}".strip()


PROFILER = NodeProfiler()
