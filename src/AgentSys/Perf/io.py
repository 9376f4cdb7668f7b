# === NAVMAP v1 ===
# {
#   "module": "AgentSys.Perf.io",
#   "purpose": "Atomic file helpers for perf state and baselines.",
#   "sections": [
#     {
#       "id": "atomic-write",
#       "name": "atomic_write",
#       "anchor": "function-atomic-write",
#       "kind": "function"
#     },
#     {
#       "id": "write-json-atomic",
#       "name": "write_json_atomic",
#       "anchor": "function-write-json-atomic",
#       "kind": "function"
#     },
#     {
#       "id": "read-json",
#       "name": "read_json",
#       "anchor": "function-read-json",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Atomic file helpers for perf state and baselines."""

from __future__ import annotations

import contextlib
import json
import os
import uuid
from pathlib import Path
from typing import Any, Iterator, TextIO


def temp_path_for(path: Path) -> Path:
    """Return a hidden sibling path used as the staging file for ``path``."""

    return path.with_name(f".{path.name}.{uuid.uuid4().hex[:12]}.tmp")


@contextlib.contextmanager
def atomic_write(path: Path) -> Iterator[TextIO]:
    """Write to a temporary file and atomically replace the destination."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = temp_path_for(path)
    try:
        with tmp.open("w", encoding="utf-8") as handle:
            yield handle
            handle.flush()
            os.fsync(handle.fileno())
        tmp.replace(path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def write_json_atomic(path: Path, data: Any, *, indent: int = 2) -> Path:
    """Serialise ``data`` as JSON and write it to ``path`` atomically."""

    with atomic_write(path) as handle:
        json.dump(data, handle, indent=indent)
    return path


def read_json(path: Path) -> Any:
    """Load JSON from ``path``; decoding errors propagate to the caller."""

    return json.loads(path.read_text(encoding="utf-8"))


__all__ = ["atomic_write", "read_json", "temp_path_for", "write_json_atomic"]
