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

"""Configuration models and validation for conswol.

Pydantic models validate the raw TOML mapping; conversion helpers then turn
the validated models into the frozen runtime records in ``conswol.core.types``.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from conswol.core.model_types import Severity
from conswol.core.types import DEFAULT_WORKING_DIR, CommandConfig, PatternMatcherSpec, Project
from conswol.exceptions import ConswolValidationError

if TYPE_CHECKING:
    from conswol.core.types import GroupRef


class ConfigValidationError(ConswolValidationError):
    """Raised when configuration data contains invalid values."""


class ConfigFieldTypeError(ConfigValidationError):
    """Raised when a configuration field has an invalid type or value."""

    def __init__(self, field: str, expected: str) -> None:
        """Initialise the exception with the offending field.

        Args:
            field: Name of the configuration field.
            expected: Description of what the field must hold.
        """
        self.field = field
        self.expected = expected
        super().__init__(f"{field} must be {expected}")


class ProjectConfigNotFoundError(ConfigValidationError):
    """Raised when no project configuration file exists where one is expected."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"No conswol project configuration found at {path}")


class ConfigReadError(ConfigValidationError):
    """Raised when a configuration file cannot be read from disk."""

    def __init__(self, path: Path, error: Exception) -> None:
        """Initialise the exception with file path and underlying error.

        Args:
            path: The path to the configuration file that could not be read.
            error: The underlying exception that caused the read failure.
        """
        self.path = path
        self.error = error
        super().__init__(f"Unable to read {path}: {error}")


class InvalidConfigFileError(ConfigValidationError):
    """Raised when the project configuration file fails validation."""

    def __init__(self, path: Path, error: Exception) -> None:
        """Initialise the exception with configuration file path and validation error.

        Args:
            path: The path to the configuration file that failed validation.
            error: The underlying parse or validation exception.
        """
        self.path = path
        self.error = error
        super().__init__(f"Invalid conswol configuration in {path}: {error}")


def _coerce_group(value: object, field: str) -> GroupRef | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigFieldTypeError(field, "a group index or group name")
    if isinstance(value, int):
        if value < 0:
            raise ConfigFieldTypeError(field, "a non-negative group index")
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ConfigFieldTypeError(field, "a non-empty group name")
        return int(stripped) if stripped.isascii() and stripped.isdigit() else stripped
    raise ConfigFieldTypeError(field, "a group index or group name")


class CommandConfigModel(BaseModel):
    """Pydantic model for a ``[build_cmd]`` or ``[run_cmd]`` table.

    Attributes:
        command: Executable to launch.
        args: Arguments; a single string is split with shell quoting rules.
        working_dir: Directory to run in, relative to the project directory.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    command: str
    args: list[str] = Field(default_factory=list)
    working_dir: Path = DEFAULT_WORKING_DIR

    @field_validator("command", mode="before")
    @classmethod
    def _strip_command(cls, value: object) -> str:
        if not isinstance(value, str) or not value.strip():
            msg = "command"
            raise ConfigFieldTypeError(msg, "a non-empty string")
        return value.strip()

    @field_validator("args", mode="before")
    @classmethod
    def _coerce_args(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return shlex.split(value)
        return value


class ProblemMatcherModel(BaseModel):
    """Pydantic model for the ``[problem_matcher]`` table.

    Attributes:
        pattern: Regular-expression source.
        file_group: Capture group holding the file path.
        line_group: Capture group holding the line number.
        col_group: Capture group holding the column number.
        severity_group: Capture group holding the severity token.
        severity_mapper: Case-sensitive token to severity mapping.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    pattern: str
    file_group: int | str | None = None
    line_group: int | str | None = None
    col_group: int | str | None = None
    severity_group: int | str | None = None
    severity_mapper: dict[str, Severity] | None = None

    @field_validator("pattern", mode="before")
    @classmethod
    def _require_pattern(cls, value: object) -> str:
        if not isinstance(value, str) or not value:
            msg = "pattern"
            raise ConfigFieldTypeError(msg, "a non-empty regular expression")
        return value

    @field_validator("file_group", "line_group", "col_group", "severity_group", mode="before")
    @classmethod
    def _check_group(cls, value: object, info: ValidationInfo) -> int | str | None:
        return _coerce_group(value, info.field_name or "group")

    @field_validator("severity_mapper", mode="before")
    @classmethod
    def _coerce_mapper(cls, value: object) -> object:
        if value is None:
            return None
        if not isinstance(value, dict):
            msg = "severity_mapper"
            raise ConfigFieldTypeError(msg, "a table of token = severity entries")
        mapper: dict[str, Severity] = {}
        for token, raw in value.items():
            if isinstance(raw, Severity):
                mapper[str(token)] = raw
                continue
            try:
                mapper[str(token)] = Severity.from_str(str(raw))
            except ValueError as exc:
                msg = f"severity_mapper.{token}"
                raise ConfigFieldTypeError(msg, "one of: error, warning, other") from exc
        return mapper


class ProjectModel(BaseModel):
    """Pydantic model for a whole ``conswol.toml`` file."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    dir: Path | None = None
    build_cmd: CommandConfigModel | None = None
    run_cmd: CommandConfigModel | None = None
    problem_matcher: ProblemMatcherModel | None = None


def _resolved(base_dir: Path, value: Path) -> Path:
    return value if value.is_absolute() else (base_dir / value).resolve()


def command_from_model(base_dir: Path, model: CommandConfigModel) -> CommandConfig:
    return CommandConfig(
        command=model.command,
        args=tuple(model.args),
        working_dir=_resolved(base_dir, model.working_dir),
    )


def matcher_from_model(model: ProblemMatcherModel) -> PatternMatcherSpec:
    return PatternMatcherSpec(
        pattern=model.pattern,
        file_group=model.file_group,
        line_group=model.line_group,
        col_group=model.col_group,
        severity_group=model.severity_group,
        severity_mapper=dict(model.severity_mapper) if model.severity_mapper is not None else None,
    )


def project_from_model(config_dir: Path, model: ProjectModel, *, config_path: Path | None = None) -> Project:
    """Convert a validated ``ProjectModel`` into a runtime ``Project``.

    Relative paths resolve against ``config_dir`` for the project directory and
    against the project directory for command working directories.

    Args:
        config_dir: Directory containing the configuration file.
        model: Validated project model.
        config_path: File the model was loaded from, if any.

    Returns:
        The runtime project record.
    """
    project_dir = _resolved(config_dir, model.dir) if model.dir is not None else config_dir.resolve()
    return Project(
        dir=project_dir,
        build_cmd=command_from_model(project_dir, model.build_cmd) if model.build_cmd else None,
        run_cmd=command_from_model(project_dir, model.run_cmd) if model.run_cmd else None,
        problem_matcher=matcher_from_model(model.problem_matcher) if model.problem_matcher else None,
        config_path=config_path,
    )


__all__ = [
    "CommandConfigModel",
    "ConfigFieldTypeError",
    "ConfigReadError",
    "ConfigValidationError",
    "InvalidConfigFileError",
    "ProblemMatcherModel",
    "ProjectConfigNotFoundError",
    "ProjectModel",
    "command_from_model",
    "matcher_from_model",
    "project_from_model",
]
