"""Argument splitting for ``/perf`` slash-command input.

Host assistants pass slash-command arguments either as one raw string or as a
pre-split token list. Raw strings are split on whitespace honouring single and
double quotes (a backslash escapes the next character inside quotes). Token
lists are regrouped so that free-text flags such as ``--quote`` or
``--change`` swallow every following token up to the next flag.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

GREEDY_FLAGS = frozenset({"--quote", "--change", "--scenario", "--command", "--rationale"})


def _parse_argv(tokens: Sequence[Any]) -> list[str]:
    args: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if not token:
            continue
        token = str(token)
        if not token.startswith("--"):
            args.append(token)
            continue

        args.append(token)
        if index >= len(tokens):
            continue
        if token in GREEDY_FLAGS:
            value_tokens: list[str] = []
            while index < len(tokens) and not str(tokens[index]).startswith("--"):
                value_tokens.append(str(tokens[index]))
                index += 1
            if value_tokens:
                args.append(" ".join(value_tokens))
            continue
        if not str(tokens[index]).startswith("--"):
            args.append(str(tokens[index]))
            index += 1
    return args


def parse_arguments(raw: Any) -> list[str]:
    """Split ``raw`` slash-command arguments into a token list."""

    if isinstance(raw, (list, tuple)):
        return _parse_argv(raw)
    if not raw or not isinstance(raw, str):
        return []

    args: list[str] = []
    current = ""
    quote: str | None = None
    escaped = False

    for ch in raw:
        if escaped:
            current += ch
            escaped = False
            continue
        if ch == "\\" and quote:
            escaped = True
            continue
        if quote:
            if ch == quote:
                quote = None
            else:
                current += ch
            continue
        if ch in ("'", '"'):
            quote = ch
            continue
        if ch.isspace():
            if current:
                args.append(current)
                current = ""
            continue
        current += ch

    if current:
        args.append(current)
    return args


__all__ = ["GREEDY_FLAGS", "parse_arguments"]
