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

"""Build lifecycle states.

``BuildState`` is a closed union of four frozen records. Consumers dispatch on
it with ``match`` and never mutate a state in place: every transition replaces
the whole value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, assert_never

if TYPE_CHECKING:
    from .types import BuildResult, Diagnostic


@dataclass(slots=True, frozen=True)
class NoBuild:
    """No build has been requested yet."""


@dataclass(slots=True, frozen=True)
class InProgress:
    """A build attempt is running."""


@dataclass(slots=True, frozen=True)
class InvocationFailed:
    """The build command could not be started, or its worker was lost."""


@dataclass(slots=True, frozen=True)
class Finished:
    """The build command ran to completion, whatever its exit code."""

    result: BuildResult


type BuildState = NoBuild | InProgress | InvocationFailed | Finished


def is_terminal(state: BuildState) -> bool:
    """Return whether ``state`` ends a build attempt."""
    match state:
        case InvocationFailed() | Finished():
            return True
        case NoBuild() | InProgress():
            return False
        case _:
            assert_never(state)


def diagnostics_of(state: BuildState) -> tuple[Diagnostic, ...]:
    """Return the diagnostic list implied by ``state`` (empty unless finished)."""
    match state:
        case Finished(result=result):
            return result.diagnostics
        case NoBuild() | InProgress() | InvocationFailed():
            return ()
        case _:
            assert_never(state)


def describe(state: BuildState) -> str:
    match state:
        case NoBuild():
            return "not built"
        case InProgress():
            return "building"
        case InvocationFailed():
            return "invocation failed"
        case Finished(result=result):
            return f"finished (exit {result.exit_code})"
        case _:
            assert_never(state)


__all__ = [
    "BuildState",
    "Finished",
    "InProgress",
    "InvocationFailed",
    "NoBuild",
    "describe",
    "diagnostics_of",
    "is_terminal",
]
