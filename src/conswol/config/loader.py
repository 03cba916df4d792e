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

"""Load a conswol project from ``conswol.toml``.

The loader reads and validates the file once at startup. The problem matcher
pattern is compiled here as well, so a malformed pattern is reported a single
time instead of on every build.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Final, cast

from pydantic import ValidationError

from conswol.core.model_types import LogComponent
from conswol.logging import structured_extra
from conswol.matcher import compile_matcher

from .models import (
    ConfigReadError,
    InvalidConfigFileError,
    ProjectConfigNotFoundError,
    ProjectModel,
    project_from_model,
)

if TYPE_CHECKING:
    from conswol.core.types import Project

logger: logging.Logger = logging.getLogger("conswol.config")

CONFIG_FILENAME: Final[str] = "conswol.toml"


def config_path_for(project_dir: Path) -> Path:
    return project_dir / CONFIG_FILENAME


def _read_mapping(path: Path) -> dict[str, object]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigReadError(path, exc) from exc
    try:
        raw_map: dict[str, object] = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise InvalidConfigFileError(path, exc) from exc
    tool_obj = raw_map.get("tool")
    if isinstance(tool_obj, dict):
        section = cast("dict[str, object]", tool_obj).get("conswol")
        if isinstance(section, dict):
            return cast("dict[str, object]", section)
    return raw_map


def project_from_mapping(
    raw: dict[str, object],
    *,
    base_dir: Path,
    config_path: Path | None = None,
) -> Project:
    """Validate a raw configuration mapping and build a ``Project``.

    Args:
        raw: Parsed TOML mapping.
        base_dir: Directory relative paths resolve against.
        config_path: File the mapping came from, used in error messages.

    Returns:
        The validated project.

    Raises:
        InvalidConfigFileError: If the mapping fails validation.
        PatternCompileError: If the problem matcher pattern is unusable.
    """
    try:
        model = ProjectModel.model_validate(raw)
    except ValidationError as exc:
        raise InvalidConfigFileError(config_path or base_dir, exc) from exc
    project = project_from_model(base_dir, model, config_path=config_path)
    if project.problem_matcher is not None:
        _ = compile_matcher(project.problem_matcher)
    return project


def load_project(project_dir: Path | None = None, *, config_path: Path | None = None) -> Project:
    """Load the project configuration from disk.

    Args:
        project_dir: Directory containing ``conswol.toml``. Defaults to the
            current working directory.
        config_path: Explicit configuration file; overrides ``project_dir``.

    Returns:
        The loaded project.

    Raises:
        ProjectConfigNotFoundError: If the configuration file does not exist.
        ConfigReadError: If the file cannot be read.
        InvalidConfigFileError: If the file is not valid TOML or fails validation.
        PatternCompileError: If the problem matcher pattern is unusable.
    """
    candidate = config_path or config_path_for(project_dir or Path.cwd())
    if not candidate.is_file():
        raise ProjectConfigNotFoundError(candidate)
    raw = _read_mapping(candidate)
    project = project_from_mapping(raw, base_dir=candidate.parent.resolve(), config_path=candidate)
    logger.info(
        "Loaded project from %s",
        candidate,
        extra=structured_extra(
            component=LogComponent.CONFIG,
            path=candidate,
            details={
                "build_cmd": project.build_cmd is not None,
                "run_cmd": project.run_cmd is not None,
                "problem_matcher": project.problem_matcher is not None,
            },
        ),
    )
    return project


__all__ = ["CONFIG_FILENAME", "config_path_for", "load_project", "project_from_mapping"]
