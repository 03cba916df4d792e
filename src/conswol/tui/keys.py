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

"""Background key reader for the terminal front-end.

Reading keys blocks, so it happens on its own daemon thread. Recognised keys
are translated into ``Key`` events and forwarded through a queue that the
orchestration loop drains without blocking.
"""

from __future__ import annotations

import curses
import logging
import queue
import threading
from collections.abc import Callable
from typing import Final

from conswol._internal.utils import consume
from conswol.core.model_types import Key, LogComponent
from conswol.logging import structured_extra

logger: logging.Logger = logging.getLogger("conswol.tui")

NO_KEY: Final[int] = -1
CTRL_C: Final[int] = 3
IDLE_INTERVAL_SECONDS: Final[float] = 0.005

_KEY_BINDINGS: Final[dict[int, Key]] = {
    ord("q"): Key.QUIT,
    ord("Q"): Key.QUIT,
    CTRL_C: Key.QUIT,
    ord("b"): Key.BUILD,
    ord("B"): Key.BUILD,
    curses.KEY_F5: Key.BUILD,
    curses.KEY_UP: Key.UP,
    ord("k"): Key.UP,
    curses.KEY_DOWN: Key.DOWN,
    ord("j"): Key.DOWN,
}


def translate_key(code: int) -> Key | None:
    """Map a raw key code to a core ``Key``; unknown codes map to ``None``."""
    return _KEY_BINDINGS.get(code)


class KeyReader:
    """Forward translated key presses from ``read_code`` into ``out_queue``.

    ``read_code`` should return ``NO_KEY`` periodically (for example a curses
    window with a short read timeout) so the thread can notice ``stop``.
    Every call to ``read_code`` happens while holding ``lock``, which the
    renderer also holds while drawing: curses calls must never overlap. After
    an empty read the thread waits ``idle_interval`` seconds outside the lock.
    """

    def __init__(
        self,
        read_code: Callable[[], int],
        out_queue: queue.Queue[Key],
        *,
        lock: threading.Lock | None = None,
        idle_interval: float = IDLE_INTERVAL_SECONDS,
    ) -> None:
        self._read_code = read_code
        self._out_queue = out_queue
        self._lock = lock if lock is not None else threading.Lock()
        self._idle_interval = idle_interval
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="conswol-keys", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self, timeout: float | None = 1.0) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.is_set():
            with self._lock:
                code = self._read_code()
            if code == NO_KEY:
                consume(self._stop.wait(self._idle_interval))
                continue
            key = translate_key(code)
            if key is None:
                continue
            logger.debug(
                "Key %s",
                key.value,
                extra=structured_extra(component=LogComponent.TUI),
            )
            self._out_queue.put(key)
            if key is Key.QUIT:
                return


__all__ = ["CTRL_C", "IDLE_INTERVAL_SECONDS", "NO_KEY", "KeyReader", "translate_key"]
