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

"""Orchestration loop: reconcile key input, build transitions and selection.

The loop's state is an immutable ``LoopState`` value. ``step`` takes the state
and the keys drained in one cycle and returns the next state, so a single
cycle can be exercised directly in tests. ``run_loop`` adds rendering, key
draining and pacing around it.
"""

from __future__ import annotations

import logging
import queue
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Final, Protocol, assert_never

from conswol.core.model_types import Key, LogComponent
from conswol.core.state import BuildState, InProgress, InvocationFailed, NoBuild, diagnostics_of, is_terminal
from conswol.executor import BuildHandle, BuildLauncher, ChannelClosedError, MissingBuildCommandError, start_build
from conswol.logging import structured_extra
from conswol.selection import SelectionTracker

if TYPE_CHECKING:
    from conswol.core.types import CommandConfig, Project

logger: logging.Logger = logging.getLogger("conswol.loop")

FRAME_INTERVAL_SECONDS: Final[float] = 0.05
NOTICE_BUILD_RUNNING: Final[str] = "A build is already running; request ignored"
NOTICE_BUILD_STARTED: Final[str] = "Build started"


@dataclass(slots=True, frozen=True)
class LoopState:
    """Everything the orchestration loop owns between two cycles.

    Attributes:
        build_state: Current build lifecycle state.
        tracker: Raw cursor counter.
        selection: Selection index derived from ``tracker`` each cycle.
        handle: Outstanding build attempt, if any.
        notice: Latest user-visible message.
        running: ``False`` once quit has been requested.
        builds_started: Number of build attempts launched so far.
    """

    build_state: BuildState = field(default_factory=NoBuild)
    tracker: SelectionTracker = field(default_factory=SelectionTracker)
    selection: int | None = None
    handle: BuildHandle | None = None
    notice: str | None = None
    running: bool = True
    builds_started: int = 0


def _require_build_command(project: Project) -> CommandConfig:
    if project.build_cmd is None:
        raise MissingBuildCommandError
    return project.build_cmd


def request_build(state: LoopState, project: Project, launcher: BuildLauncher) -> LoopState:
    """Start a build unless one is already in flight or none is configured."""
    if isinstance(state.build_state, InProgress):
        logger.info(
            "Ignoring build request while a build is in progress",
            extra=structured_extra(component=LogComponent.LOOP),
        )
        return replace(state, notice=NOTICE_BUILD_RUNNING)
    try:
        cmd = _require_build_command(project)
    except MissingBuildCommandError as exc:
        logger.warning(
            "%s",
            exc,
            extra=structured_extra(component=LogComponent.LOOP, path=project.dir),
        )
        return replace(state, notice=str(exc))
    # InProgress is recorded before the worker issues the process call.
    handle = launcher(cmd, project.problem_matcher)
    return replace(
        state,
        build_state=InProgress(),
        handle=handle,
        notice=NOTICE_BUILD_STARTED,
        builds_started=state.builds_started + 1,
    )


def apply_key(state: LoopState, key: Key, *, project: Project, launcher: BuildLauncher) -> LoopState:
    match key:
        case Key.QUIT:
            return replace(state, running=False)
        case Key.BUILD:
            return request_build(state, project, launcher)
        case Key.UP:
            return replace(state, tracker=state.tracker.move_up())
        case Key.DOWN:
            return replace(state, tracker=state.tracker.move_down())
        case _:
            assert_never(key)


def absorb_transition(state: LoopState) -> LoopState:
    """Take at most one pending transition from the outstanding build."""
    if state.handle is None:
        return state
    try:
        incoming = state.handle.poll()
    except ChannelClosedError as exc:
        logger.warning(
            "Treating abandoned build as failed: %s",
            exc,
            extra=structured_extra(component=LogComponent.LOOP),
        )
        return replace(state, build_state=InvocationFailed(), handle=None, notice=str(exc))
    if incoming is None:
        return state
    if is_terminal(incoming):
        return replace(state, build_state=incoming, handle=None)
    return replace(state, build_state=incoming)


def step(
    state: LoopState,
    keys: Iterable[Key],
    *,
    project: Project,
    launcher: BuildLauncher = start_build,
) -> LoopState:
    """Advance the loop by one cycle.

    Keys are applied in order until a quit is seen. The selection index is then
    recomputed against the diagnostics implied by the build state, and at most
    one build transition is absorbed.

    Args:
        state: State at the start of the cycle.
        keys: Keys drained from the input queue during this cycle.
        project: Loaded project configuration.
        launcher: Starts a build attempt; replaced in tests.

    Returns:
        State at the end of the cycle.
    """
    for key in keys:
        state = apply_key(state, key, project=project, launcher=launcher)
        if not state.running:
            return state
    count = len(diagnostics_of(state.build_state))
    state = replace(state, selection=state.tracker.index_for(count))
    return absorb_transition(state)


def drain_keys(key_queue: queue.Queue[Key]) -> list[Key]:
    """Collect every key currently queued without blocking."""
    keys: list[Key] = []
    while True:
        try:
            keys.append(key_queue.get_nowait())
        except queue.Empty:
            return keys


class Renderer(Protocol):
    def draw(self, build_state: BuildState, selection: int | None, notice: str | None) -> None: ...


def run_loop(
    project: Project,
    *,
    renderer: Renderer,
    key_queue: queue.Queue[Key],
    launcher: BuildLauncher = start_build,
    frame_interval: float = FRAME_INTERVAL_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> LoopState:
    """Run the orchestration loop until a quit key arrives.

    Args:
        project: Loaded project configuration.
        renderer: Draws the build state and selection once per cycle.
        key_queue: Queue fed by the key reader thread.
        launcher: Starts a build attempt.
        frame_interval: Pause between cycles, in seconds.
        sleep: Pause function; replaced in tests.

    Returns:
        The final loop state.
    """
    state = LoopState()
    logger.info(
        "Starting orchestration loop",
        extra=structured_extra(component=LogComponent.LOOP, path=project.dir),
    )
    while state.running:
        renderer.draw(state.build_state, state.selection, state.notice)
        state = step(state, drain_keys(key_queue), project=project, launcher=launcher)
        if state.running:
            sleep(frame_interval)
    logger.info("Orchestration loop stopped", extra=structured_extra(component=LogComponent.LOOP))
    return state


__all__ = [
    "FRAME_INTERVAL_SECONDS",
    "NOTICE_BUILD_RUNNING",
    "NOTICE_BUILD_STARTED",
    "LoopState",
    "Renderer",
    "absorb_transition",
    "apply_key",
    "drain_keys",
    "request_build",
    "run_loop",
    "step",
]
