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

"""conswol - terminal build front-end.

Runs a project's configured build command in the background, slices
structured diagnostics (file, line, column, severity) out of its output with a
configurable regular expression, and lets the operator browse them while the
build runs.
"""

from __future__ import annotations

__version__ = "0.1.0"

from conswol.exceptions import (  # noqa: E402
    ConswolError,
    ConswolValidationError,
)

from .config import load_project  # noqa: E402
from .core.model_types import Key, Severity  # noqa: E402
from .core.state import BuildState, Finished, InProgress, InvocationFailed, NoBuild  # noqa: E402
from .core.types import BuildResult, CommandConfig, Diagnostic, PatternMatcherSpec, Project  # noqa: E402
from .executor import BuildHandle, execute_build, start_build  # noqa: E402
from .loop import LoopState, run_loop, step  # noqa: E402
from .matcher import DecodeError, PatternCompileError, extract  # noqa: E402
from .selection import SelectionTracker, selection_index  # noqa: E402

__all__ = [
    "BuildHandle",
    "BuildResult",
    "BuildState",
    "CommandConfig",
    "ConswolError",
    "ConswolValidationError",
    "DecodeError",
    "Diagnostic",
    "Finished",
    "InProgress",
    "InvocationFailed",
    "Key",
    "LoopState",
    "NoBuild",
    "PatternCompileError",
    "PatternMatcherSpec",
    "Project",
    "SelectionTracker",
    "Severity",
    "__version__",
    "execute_build",
    "extract",
    "load_project",
    "run_loop",
    "selection_index",
    "start_build",
    "step",
]
