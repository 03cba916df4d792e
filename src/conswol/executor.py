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

"""Run the configured build command in the background.

Each build attempt gets its own worker thread and its own ``BuildChannel``.
The worker emits ``InProgress`` first, then exactly one of ``InvocationFailed``
or ``Finished``, and finally closes the channel. The orchestration loop polls
the channel without blocking.
"""

from __future__ import annotations

import logging
import queue
import subprocess  # noqa: S404  # JUSTIFIED: runs the project's configured build command
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Final

from conswol.core.model_types import LogComponent
from conswol.core.state import BuildState, Finished, InProgress, InvocationFailed
from conswol.core.types import BuildResult, Diagnostic
from conswol.exceptions import ConswolError
from conswol.logging import structured_extra
from conswol.matcher import DecodeError, PatternCompileError, extract

if TYPE_CHECKING:
    from conswol.core.types import Command, CommandConfig, PatternMatcherSpec

logger: logging.Logger = logging.getLogger("conswol.executor")

EXIT_CODE_UNKNOWN: Final[int] = -1
OUTPUT_PLACEHOLDER: Final[str] = "<build output could not be decoded; no diagnostics available>"


class MissingBuildCommandError(ConswolError):
    """Raised when a build is requested but the project has no build command."""

    def __init__(self) -> None:
        super().__init__("No build command configured for this project")


class ChannelClosedError(ConswolError):
    """Raised when a build channel closed without delivering a terminal state."""

    def __init__(self) -> None:
        super().__init__("Build worker exited without reporting a result")


class _Signal(Enum):
    CLOSED = auto()


class BuildChannel:
    """Single-attempt queue carrying build states from a worker to the loop."""

    def __init__(self) -> None:
        self._queue: queue.Queue[BuildState | _Signal] = queue.Queue()
        self._closed = False

    def send(self, state: BuildState) -> None:
        self._queue.put(state)

    def close(self) -> None:
        self._queue.put(_Signal.CLOSED)

    def poll(self) -> BuildState | None:
        """Return the next pending state, or ``None`` if nothing has arrived yet.

        Raises:
            ChannelClosedError: Once the sender has closed the channel and every
                state sent before closing has been received.
        """
        if self._closed:
            raise ChannelClosedError
        try:
            item = self._queue.get_nowait()
        except queue.Empty:
            return None
        if item is _Signal.CLOSED:
            self._closed = True
            raise ChannelClosedError
        return item


@dataclass(slots=True)
class CapturedOutput:
    args: Command
    stdout: bytes
    stderr: bytes
    exit_code: int
    duration_ms: float

    @property
    def combined(self) -> bytes:
        # stdout always precedes stderr.
        return self.stdout + self.stderr


def run_build_command(cmd: CommandConfig) -> CapturedOutput:
    """Run ``cmd`` to completion and capture stdout and stderr separately.

    The child never inherits the terminal: stdin is closed and both output
    streams are captured as bytes.

    Args:
        cmd: Command, arguments and working directory to use.

    Returns:
        ``CapturedOutput`` with both streams, the exit code and the duration.
        A child killed by a signal has no exit status and reports
        ``EXIT_CODE_UNKNOWN``.

    Raises:
        OSError: If the process cannot be spawned (missing binary, permission
            denied, missing working directory).
    """
    argv = cmd.argv
    start = time.perf_counter()
    logger.debug(
        "Executing build command: %s",
        " ".join(argv),
        extra=structured_extra(
            component=LogComponent.EXECUTOR,
            command=" ".join(argv),
            path=cmd.working_dir,
        ),
    )
    completed = subprocess.run(  # noqa: S603 - command arguments come from the project config
        argv,
        check=False,
        cwd=cmd.working_dir,
        stdin=subprocess.DEVNULL,
        capture_output=True,
    )
    duration_ms = (time.perf_counter() - start) * 1000
    exit_code = completed.returncode
    if exit_code < 0:
        # A negative return code means the child was killed by that signal.
        logger.warning(
            "Build command terminated by signal %s",
            -exit_code,
            extra=structured_extra(
                component=LogComponent.EXECUTOR,
                command=" ".join(argv),
                details={"signal": -exit_code},
            ),
        )
        exit_code = EXIT_CODE_UNKNOWN
    return CapturedOutput(
        args=argv,
        stdout=completed.stdout,
        stderr=completed.stderr,
        exit_code=exit_code,
        duration_ms=duration_ms,
    )


def _extract_or_placeholder(output: bytes, spec: PatternMatcherSpec | None) -> tuple[Diagnostic, ...]:
    try:
        return tuple(extract(output, spec))
    except (DecodeError, PatternCompileError) as exc:
        logger.warning(
            "Diagnostic extraction failed: %s",
            exc,
            extra=structured_extra(component=LogComponent.EXECUTOR),
        )
        return (Diagnostic(content=OUTPUT_PLACEHOLDER),)


type CommandRunner = Callable[[CommandConfig], CapturedOutput]


def execute_build(
    cmd: CommandConfig,
    spec: PatternMatcherSpec | None,
    emit: Callable[[BuildState], None],
    *,
    runner: CommandRunner = run_build_command,
) -> BuildState:
    """Run one build attempt synchronously, emitting each state transition.

    Args:
        cmd: Build command configuration.
        spec: Optional matcher used to slice diagnostics out of the output.
        emit: Receives ``InProgress`` and then the terminal state.
        runner: Process runner; replaced in tests.

    Returns:
        The terminal state that was emitted last.
    """
    emit(InProgress())
    command_text = " ".join(cmd.argv)
    try:
        output = runner(cmd)
    except OSError as exc:
        logger.warning(
            "Build command could not be started: %s",
            exc,
            extra=structured_extra(
                component=LogComponent.EXECUTOR,
                command=command_text,
                path=cmd.working_dir,
            ),
        )
        failed = InvocationFailed()
        emit(failed)
        return failed
    result = BuildResult(
        exit_code=output.exit_code,
        diagnostics=_extract_or_placeholder(output.combined, spec),
    )
    logger.info(
        "Build finished (exit=%s, diagnostics=%s)",
        result.exit_code,
        len(result.diagnostics),
        extra=structured_extra(
            component=LogComponent.EXECUTOR,
            command=command_text,
            exit_code=result.exit_code,
            duration_ms=output.duration_ms,
        ),
    )
    finished = Finished(result)
    emit(finished)
    return finished


@dataclass(slots=True)
class BuildHandle:
    """Caller-side view of one background build attempt."""

    channel: BuildChannel
    thread: threading.Thread

    def poll(self) -> BuildState | None:
        return self.channel.poll()

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout)


type BuildLauncher = Callable[[CommandConfig, PatternMatcherSpec | None], BuildHandle]


def start_build(
    cmd: CommandConfig,
    spec: PatternMatcherSpec | None,
    *,
    runner: CommandRunner = run_build_command,
) -> BuildHandle:
    """Start a build attempt on a fresh daemon thread with a fresh channel.

    Args:
        cmd: Build command configuration.
        spec: Optional matcher spec.
        runner: Process runner; replaced in tests.

    Returns:
        Handle whose ``poll`` yields the attempt's state transitions.
    """
    channel = BuildChannel()

    def _worker() -> None:
        try:
            _ = execute_build(cmd, spec, channel.send, runner=runner)
        except Exception:  # a lost worker surfaces as a closed channel
            logger.exception(
                "Build worker crashed",
                extra=structured_extra(component=LogComponent.EXECUTOR),
            )
        finally:
            channel.close()

    thread = threading.Thread(target=_worker, name="conswol-build", daemon=True)
    thread.start()
    return BuildHandle(channel=channel, thread=thread)


__all__ = [
    "EXIT_CODE_UNKNOWN",
    "OUTPUT_PLACEHOLDER",
    "BuildChannel",
    "BuildHandle",
    "BuildLauncher",
    "CapturedOutput",
    "ChannelClosedError",
    "MissingBuildCommandError",
    "execute_build",
    "run_build_command",
    "start_build",
]
