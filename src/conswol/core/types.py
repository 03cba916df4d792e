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

"""Core data classes for build commands, matcher specs and diagnostics.

These immutable records are produced by the configuration loader and the
pattern matcher and flow unchanged through the executor, the orchestration
loop and the renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .model_types import Severity

type GroupRef = int | str
type Command = list[str]

DEFAULT_WORKING_DIR = Path("./")


def _default_args() -> tuple[str, ...]:
    return ()


@dataclass(slots=True, frozen=True)
class CommandConfig:
    """An external command together with the directory it runs in.

    Attributes:
        command: Executable name or path.
        args: Arguments passed verbatim after the executable.
        working_dir: Directory the child process is started in.
    """

    command: str
    args: tuple[str, ...] = field(default_factory=_default_args)
    working_dir: Path = DEFAULT_WORKING_DIR

    @property
    def argv(self) -> Command:
        return [self.command, *self.args]


@dataclass(slots=True, frozen=True)
class PatternMatcherSpec:
    """Regular expression plus the capture groups that carry diagnostic fields.

    Group references may be capture-group indices or group names. A group that
    is not declared leaves the corresponding diagnostic field absent.

    Attributes:
        pattern: Regular-expression source.
        file_group: Group holding the file path.
        line_group: Group holding the line number.
        col_group: Group holding the column number.
        severity_group: Group holding the severity token.
        severity_mapper: Optional case-sensitive token to severity mapping.
            When absent, ``error``/``warning`` are recognised case-insensitively.
    """

    pattern: str
    file_group: GroupRef | None = None
    line_group: GroupRef | None = None
    col_group: GroupRef | None = None
    severity_group: GroupRef | None = None
    severity_mapper: Mapping[str, Severity] | None = None

    def declared_groups(self) -> dict[str, GroupRef]:
        """Return the declared group references keyed by field name."""
        groups = {
            "file_group": self.file_group,
            "line_group": self.line_group,
            "col_group": self.col_group,
            "severity_group": self.severity_group,
        }
        return {name: ref for name, ref in groups.items() if ref is not None}


@dataclass(slots=True, frozen=True)
class Project:
    """Project record handed to the core by the configuration loader.

    Attributes:
        dir: Project root directory.
        build_cmd: Command triggered by the build key, if configured.
        run_cmd: Command that launches the built artifact (not executed).
        problem_matcher: Pattern used to slice diagnostics out of build output.
        config_path: File the project was loaded from, when loaded from disk.
    """

    dir: Path
    build_cmd: CommandConfig | None = None
    run_cmd: CommandConfig | None = None
    problem_matcher: PatternMatcherSpec | None = None
    config_path: Path | None = None


@dataclass(slots=True, frozen=True)
class Diagnostic:
    """A single record sliced out of build output.

    Attributes:
        content: Full slice of raw output that belongs to this diagnostic.
        severity: Resolved severity, if the severity group matched and resolved.
        line: Line number, if captured and numeric.
        column: Column number, if captured and numeric.
        file: File path, if captured.
    """

    content: str
    severity: Severity | None = None
    line: int | None = None
    column: int | None = None
    file: Path | None = None

    def location(self) -> str | None:
        """Return ``file:line:column`` using whichever parts are present."""
        if self.file is None:
            return None
        parts = [str(self.file)]
        if self.line is not None:
            parts.append(str(self.line))
            if self.column is not None:
                parts.append(str(self.column))
        return ":".join(parts)


@dataclass(slots=True, frozen=True)
class BuildResult:
    exit_code: int
    diagnostics: tuple[Diagnostic, ...] = ()


__all__ = [
    "DEFAULT_WORKING_DIR",
    "BuildResult",
    "Command",
    "CommandConfig",
    "Diagnostic",
    "GroupRef",
    "PatternMatcherSpec",
    "Project",
]
