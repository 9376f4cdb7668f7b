"""Linux ``perf record`` descriptor used for Rust binaries."""

from __future__ import annotations

from typing import Any

from .base import Profiler


class RustProfiler(Profiler):
    id = "perf"
    tool = "perf"
    default_command = "perf record"
    default_output = "perf.data"

    def build_command(self, **options: Any) -> str:
        command, output = self._resolve(options)
        target = options.get("target") or "./target/release/app"
        return f"{command} -o {output} {target}"


PROFILER = RustProfiler()
