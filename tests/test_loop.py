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

"""Unit tests for the orchestration loop using scripted build handles."""

from __future__ import annotations

import queue
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

import pytest

from conswol.core.model_types import Key
from conswol.core.state import BuildState, Finished, InProgress, InvocationFailed, NoBuild
from conswol.core.types import BuildResult, CommandConfig, Diagnostic, PatternMatcherSpec, Project
from conswol.executor import ChannelClosedError, MissingBuildCommandError
from conswol.loop import (
    NOTICE_BUILD_RUNNING,
    NOTICE_BUILD_STARTED,
    LoopState,
    drain_keys,
    run_loop,
    step,
)
from conswol.selection import SelectionTracker

pytestmark = pytest.mark.unit

CLOSED: Final = object()
BUILD_CMD = CommandConfig(command="make")
PROJECT = Project(dir=Path("/project"), build_cmd=BUILD_CMD)
THREE = Finished(
    BuildResult(
        exit_code=1,
        diagnostics=(Diagnostic(content="a"), Diagnostic(content="b"), Diagnostic(content="c")),
    ),
)


@dataclass
class ScriptedHandle:
    """Build handle that replays a fixed sequence of poll results."""

    script: list[object]
    polls: int = 0

    def poll(self) -> BuildState | None:
        self.polls += 1
        if not self.script:
            return None
        item = self.script.pop(0)
        if item is CLOSED:
            raise ChannelClosedError
        return item  # type: ignore[return-value]


@dataclass
class RecordingLauncher:
    scripts: list[list[object]]
    calls: list[tuple[CommandConfig, PatternMatcherSpec | None]] = field(default_factory=list)
    handles: list[ScriptedHandle] = field(default_factory=list)

    def __call__(self, cmd: CommandConfig, spec: PatternMatcherSpec | None) -> ScriptedHandle:
        self.calls.append((cmd, spec))
        handle = ScriptedHandle(list(self.scripts.pop(0)) if self.scripts else [])
        self.handles.append(handle)
        return handle


def test_build_key_starts_a_build_from_no_build() -> None:
    launcher = RecordingLauncher([[InProgress()]])

    state = step(LoopState(), [Key.BUILD], project=PROJECT, launcher=launcher)

    assert launcher.calls == [(BUILD_CMD, None)]
    assert state.build_state == InProgress()
    assert state.notice == NOTICE_BUILD_STARTED
    assert state.builds_started == 1
    assert state.handle is launcher.handles[0]


def test_build_request_while_in_progress_is_ignored() -> None:
    launcher = RecordingLauncher([[InProgress()]])
    state = step(LoopState(), [Key.BUILD], project=PROJECT, launcher=launcher)
    handle = state.handle

    state = step(state, [Key.BUILD, Key.BUILD], project=PROJECT, launcher=launcher)

    assert len(launcher.calls) == 1
    assert state.build_state == InProgress()
    assert state.handle is handle
    assert state.notice == NOTICE_BUILD_RUNNING
    assert state.builds_started == 1


def test_build_request_without_build_command_leaves_state_unchanged() -> None:
    launcher = RecordingLauncher([])
    project = Project(dir=Path("/project"))

    state = step(LoopState(), [Key.BUILD], project=project, launcher=launcher)

    assert launcher.calls == []
    assert state.build_state == NoBuild()
    assert state.handle is None
    assert state.notice == str(MissingBuildCommandError())


def test_quit_stops_processing_remaining_keys() -> None:
    launcher = RecordingLauncher([])

    state = step(LoopState(), [Key.DOWN, Key.QUIT, Key.BUILD, Key.DOWN], project=PROJECT, launcher=launcher)

    assert state.running is False
    assert launcher.calls == []
    assert state.tracker.cursor == 1


def test_selection_wraps_over_finished_diagnostics() -> None:
    start = LoopState(build_state=THREE, tracker=SelectionTracker(0))

    up = step(start, [Key.UP], project=PROJECT)
    down = step(start, [Key.DOWN] * 4, project=PROJECT)

    assert up.selection == 2
    assert up.tracker.cursor == -1
    assert down.selection == 1


def test_selection_is_absent_while_no_diagnostics_exist() -> None:
    state = step(LoopState(tracker=SelectionTracker(5)), [Key.DOWN], project=PROJECT)

    assert state.selection is None
    assert state.tracker.cursor == 6


def test_one_transition_is_absorbed_per_cycle() -> None:
    launcher = RecordingLauncher([[InProgress(), THREE]])

    first = step(LoopState(), [Key.BUILD], project=PROJECT, launcher=launcher)
    second = step(first, [], project=PROJECT, launcher=launcher)
    third = step(second, [], project=PROJECT, launcher=launcher)

    assert first.build_state == InProgress()
    assert second.build_state == THREE
    assert second.handle is None
    assert second.selection is None
    assert third.selection == 0
    assert launcher.handles[0].polls == 2


def test_pending_build_without_transition_keeps_waiting() -> None:
    launcher = RecordingLauncher([[]])

    state = step(LoopState(), [Key.BUILD], project=PROJECT, launcher=launcher)
    for _ in range(3):
        state = step(state, [], project=PROJECT, launcher=launcher)

    assert state.build_state == InProgress()
    assert state.handle is not None


def test_closed_channel_becomes_invocation_failed() -> None:
    launcher = RecordingLauncher([[InProgress(), CLOSED]])

    state = step(LoopState(), [Key.BUILD], project=PROJECT, launcher=launcher)
    state = step(state, [], project=PROJECT, launcher=launcher)

    assert state.build_state == InvocationFailed()
    assert state.handle is None
    assert state.notice == str(ChannelClosedError())


def test_terminal_state_allows_another_build() -> None:
    launcher = RecordingLauncher([[InvocationFailed()], [THREE]])

    state = step(LoopState(), [Key.BUILD], project=PROJECT, launcher=launcher)
    assert state.build_state == InvocationFailed()

    state = step(state, [Key.BUILD], project=PROJECT, launcher=launcher)

    assert len(launcher.calls) == 2
    assert state.build_state == THREE
    assert state.builds_started == 2


def test_drain_keys_empties_queue_without_blocking() -> None:
    keys: queue.Queue[Key] = queue.Queue()
    for key in (Key.DOWN, Key.DOWN, Key.QUIT):
        keys.put(key)

    assert drain_keys(keys) == [Key.DOWN, Key.DOWN, Key.QUIT]
    assert drain_keys(keys) == []


@dataclass
class RecordingRenderer:
    frames: list[tuple[BuildState, int | None, str | None]] = field(default_factory=list)

    def draw(self, build_state: BuildState, selection: int | None, notice: str | None) -> None:
        self.frames.append((build_state, selection, notice))


def test_run_loop_renders_each_cycle_until_quit() -> None:
    keys: queue.Queue[Key] = queue.Queue()
    keys.put(Key.BUILD)
    launcher = RecordingLauncher([[THREE]])
    renderer = RecordingRenderer()
    pauses: list[float] = []

    def fake_sleep(seconds: float) -> None:
        pauses.append(seconds)
        if len(pauses) == 2:
            keys.put(Key.QUIT)

    final = run_loop(
        PROJECT,
        renderer=renderer,
        key_queue=keys,
        launcher=launcher,
        frame_interval=0.25,
        sleep=fake_sleep,
    )

    assert final.running is False
    assert final.build_state == THREE
    assert pauses == [0.25, 0.25]
    assert [frame[0] for frame in renderer.frames] == [NoBuild(), THREE, THREE]
    assert renderer.frames[-1][1] == 0
