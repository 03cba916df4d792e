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

"""Unit tests for the build executor with injected process runners."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest

from conswol.core.model_types import Severity
from conswol.core.state import BuildState, Finished, InProgress, InvocationFailed
from conswol.core.types import BuildResult, CommandConfig, Diagnostic, PatternMatcherSpec
from conswol.executor import (
    EXIT_CODE_UNKNOWN,
    OUTPUT_PLACEHOLDER,
    BuildChannel,
    CapturedOutput,
    ChannelClosedError,
    execute_build,
    run_build_command,
    start_build,
)

pytestmark = pytest.mark.unit

CMD = CommandConfig(command="make", args=("-k",), working_dir=Path("/tmp"))
SPEC = PatternMatcherSpec(pattern=r"(\S+):(\d+): (\w+): ", file_group=1, line_group=2, severity_group=3)


def _runner(
    stdout: bytes = b"",
    stderr: bytes = b"",
    exit_code: int = 0,
) -> tuple[Callable[[CommandConfig], CapturedOutput], list[CommandConfig]]:
    calls: list[CommandConfig] = []

    def run(cmd: CommandConfig) -> CapturedOutput:
        calls.append(cmd)
        return CapturedOutput(args=cmd.argv, stdout=stdout, stderr=stderr, exit_code=exit_code, duration_ms=1.0)

    return run, calls


def _failing_runner(cmd: CommandConfig) -> CapturedOutput:
    raise FileNotFoundError(2, "No such file or directory", cmd.command)


def _crashing_runner(cmd: CommandConfig) -> CapturedOutput:
    msg = f"runner exploded for {cmd.command}"
    raise RuntimeError(msg)


def test_command_config_argv_prepends_command() -> None:
    assert CMD.argv == ["make", "-k"]
    assert CommandConfig(command="ninja").argv == ["ninja"]


def test_channel_returns_none_until_something_is_sent() -> None:
    channel = BuildChannel()

    assert channel.poll() is None

    channel.send(InProgress())
    assert channel.poll() == InProgress()
    assert channel.poll() is None


def test_channel_delivers_pending_states_before_reporting_closure() -> None:
    channel = BuildChannel()
    channel.send(InProgress())
    channel.close()

    assert channel.poll() == InProgress()
    with pytest.raises(ChannelClosedError):
        _ = channel.poll()
    with pytest.raises(ChannelClosedError):
        _ = channel.poll()


def test_execute_build_emits_in_progress_then_finished() -> None:
    run, calls = _runner(stdout=b"a.c:1: error: x\n", exit_code=2)
    emitted: list[BuildState] = []

    final = execute_build(CMD, SPEC, emitted.append, runner=run)

    assert calls == [CMD]
    assert emitted[0] == InProgress()
    assert emitted[1:] == [final]
    assert isinstance(final, Finished)
    assert final.result.exit_code == 2
    assert final.result.diagnostics[0].file == Path("a.c")


def test_execute_build_places_stdout_before_stderr() -> None:
    run, _ = _runner(stdout=b"out.c:1: warning: w\n", stderr=b"err.c:2: error: e\n", exit_code=1)

    final = execute_build(CMD, SPEC, lambda _state: None, runner=run)

    assert final == Finished(
        BuildResult(
            exit_code=1,
            diagnostics=(
                Diagnostic(content="out.c:1: warning: w\n", line=1, file=Path("out.c"), severity=Severity.WARNING),
                Diagnostic(content="err.c:2: error: e\n", line=2, file=Path("err.c"), severity=Severity.ERROR),
            ),
        ),
    )


def test_execute_build_without_spec_keeps_whole_output() -> None:
    run, _ = _runner(stdout=b"hello\n", stderr=b"world\n")

    final = execute_build(CMD, None, lambda _state: None, runner=run)

    assert final == Finished(BuildResult(exit_code=0, diagnostics=(Diagnostic(content="hello\nworld\n"),)))


def test_execute_build_reports_spawn_failure() -> None:
    emitted: list[BuildState] = []

    final = execute_build(CMD, SPEC, emitted.append, runner=_failing_runner)

    assert final == InvocationFailed()
    assert emitted == [InProgress(), InvocationFailed()]


def test_execute_build_substitutes_placeholder_for_undecodable_output() -> None:
    run, _ = _runner(stdout=b"\xff\xfe broken", exit_code=4)

    final = execute_build(CMD, SPEC, lambda _state: None, runner=run)

    assert final == Finished(BuildResult(exit_code=4, diagnostics=(Diagnostic(content=OUTPUT_PLACEHOLDER),)))


def test_start_build_delivers_states_then_closes() -> None:
    run, _ = _runner(stdout=b"nothing to report\n", exit_code=0)

    handle = start_build(CMD, SPEC, runner=run)
    handle.join(timeout=5)

    assert not handle.thread.is_alive()
    assert handle.poll() == InProgress()
    assert handle.poll() == Finished(BuildResult(exit_code=0))
    with pytest.raises(ChannelClosedError):
        _ = handle.poll()


def test_start_build_closes_channel_when_worker_crashes() -> None:
    handle = start_build(CMD, SPEC, runner=_crashing_runner)
    handle.join(timeout=5)

    assert handle.poll() == InProgress()
    with pytest.raises(ChannelClosedError):
        _ = handle.poll()


def test_each_attempt_gets_its_own_channel() -> None:
    run, calls = _runner()

    first = start_build(CMD, None, runner=run)
    second = start_build(CMD, None, runner=run)
    first.join(timeout=5)
    second.join(timeout=5)

    assert first.channel is not second.channel
    assert len(calls) == 2


def _completed(returncode: int) -> Callable[..., subprocess.CompletedProcess[bytes]]:
    def fake_run(argv: list[str], **_: object) -> subprocess.CompletedProcess[bytes]:
        return subprocess.CompletedProcess(argv, returncode, stdout=b"out\n", stderr=b"err\n")

    return fake_run


def test_run_build_command_maps_signal_to_unknown_exit_code(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    monkeypatch.setattr("conswol.executor.subprocess.run", _completed(-9))

    with caplog.at_level(logging.WARNING, logger="conswol.executor"):
        output = run_build_command(CMD)

    assert output.exit_code == EXIT_CODE_UNKNOWN
    assert output.combined == b"out\nerr\n"
    (record,) = [r for r in caplog.records if "signal" in r.getMessage()]
    assert record.details == {"signal": 9}  # type: ignore[attr-defined]


@pytest.mark.parametrize("returncode", [0, 1, 255])
def test_run_build_command_keeps_regular_exit_codes(monkeypatch: pytest.MonkeyPatch, returncode: int) -> None:
    monkeypatch.setattr("conswol.executor.subprocess.run", _completed(returncode))

    assert run_build_command(CMD).exit_code == returncode
