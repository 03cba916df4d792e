# Copyright 2025 CrownOps Engineering
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Argument registration and output helpers for the CLI."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any, Protocol

from conswol._internal.utils import consume

if TYPE_CHECKING:
    from conswol.core.types import BuildResult, Diagnostic


class _TextStream(Protocol):
    def write(self, s: str, /) -> int: ...


class ArgumentRegistrar(Protocol):
    def add_argument(self, *args: Any, **kwargs: Any) -> object: ...


def _select_stream(*, err: bool = False) -> _TextStream:
    return sys.stderr if err else sys.stdout


def echo(message: str, *, newline: bool = True, err: bool = False) -> None:
    """Write a message to stdout/stderr."""
    stream = _select_stream(err=err)
    consume(stream.write(message))
    if newline:
        consume(stream.write("\n"))


def register_argument(
    registrar: ArgumentRegistrar,
    *args: Any,
    **kwargs: Any,
) -> None:
    """Register an argument on a parser/argument group, discarding the action handle.

    Args:
        registrar: Parser or argument group on which to register the option.
        *args: Positional flags and option strings forwarded to ``add_argument``.
        **kwargs: Keyword options forwarded to ``add_argument``.
    """
    consume(registrar.add_argument(*args, **kwargs))


def diagnostic_payload(diagnostic: Diagnostic) -> dict[str, object]:
    return {
        "file": str(diagnostic.file) if diagnostic.file is not None else None,
        "line": diagnostic.line,
        "column": diagnostic.column,
        "severity": diagnostic.severity.value if diagnostic.severity is not None else None,
        "content": diagnostic.content,
    }


def render_result_json(result: BuildResult) -> str:
    payload = {
        "exit_code": result.exit_code,
        "diagnostics": [diagnostic_payload(diagnostic) for diagnostic in result.diagnostics],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def render_result_text(result: BuildResult) -> list[str]:
    """Render each diagnostic's content, prefixed by its location when known."""
    lines: list[str] = []
    for diagnostic in result.diagnostics:
        severity = diagnostic.severity.value if diagnostic.severity is not None else "-"
        location = diagnostic.location() or "<unknown>"
        lines.append(f"[{severity}] {location}")
        lines.extend(f"    {line}" for line in diagnostic.content.splitlines())
    return lines


def summarise_result(result: BuildResult) -> str:
    counts: dict[str, int] = {}
    for diagnostic in result.diagnostics:
        key = diagnostic.severity.value if diagnostic.severity is not None else "unclassified"
        counts[key] = counts.get(key, 0) + 1
    breakdown = ", ".join(f"{key}={counts[key]}" for key in sorted(counts)) or "none"
    return f"exit={result.exit_code} diagnostics={len(result.diagnostics)} ({breakdown})"


__all__ = [
    "diagnostic_payload",
    "echo",
    "register_argument",
    "render_result_json",
    "render_result_text",
    "summarise_result",
]
