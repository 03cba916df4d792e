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

"""Project configuration loading and validation."""

from __future__ import annotations

from .loader import CONFIG_FILENAME, config_path_for, load_project, project_from_mapping
from .models import (
    CommandConfigModel,
    ConfigFieldTypeError,
    ConfigReadError,
    ConfigValidationError,
    InvalidConfigFileError,
    ProblemMatcherModel,
    ProjectConfigNotFoundError,
    ProjectModel,
)

__all__ = [
    "CONFIG_FILENAME",
    "CommandConfigModel",
    "ConfigFieldTypeError",
    "ConfigReadError",
    "ConfigValidationError",
    "InvalidConfigFileError",
    "ProblemMatcherModel",
    "ProjectConfigNotFoundError",
    "ProjectModel",
    "config_path_for",
    "load_project",
    "project_from_mapping",
]
