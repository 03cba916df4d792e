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

"""Wire the orchestration loop to curses rendering and key input."""

from __future__ import annotations

import curses
import queue
import threading
from contextlib import suppress
from typing import TYPE_CHECKING, Final

from conswol.loop import run_loop

from .keys import KeyReader
from .render import CursesRenderer

if TYPE_CHECKING:
    from conswol.core.model_types import Key
    from conswol.core.types import Project
    from conswol.loop import LoopState

KEY_POLL_MS: Final[int] = 15


def _session(stdscr: curses.window, project: Project) -> LoopState:
    # Some terminals cannot hide the cursor.
    with suppress(curses.error):
        _ = curses.curs_set(0)
    # Raw mode delivers Ctrl+C as a key instead of SIGINT.
    curses.raw()
    # Short reads keep the key reader from holding the screen lock for a frame.
    stdscr.timeout(KEY_POLL_MS)
    screen_lock = threading.Lock()
    renderer = CursesRenderer(stdscr, lock=screen_lock)
    key_queue: queue.Queue[Key] = queue.Queue()
    reader = KeyReader(stdscr.getch, key_queue, lock=screen_lock)
    reader.start()
    try:
        return run_loop(project, renderer=renderer, key_queue=key_queue)
    finally:
        reader.stop()


def run_tui(project: Project) -> LoopState:
    """Run the interactive front-end until the operator quits.

    Args:
        project: Loaded project configuration.

    Returns:
        The orchestration loop's final state.
    """
    return curses.wrapper(_session, project)


__all__ = ["KEY_POLL_MS", "run_tui"]
