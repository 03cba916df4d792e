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

"""Curses rendering of the build results panel.

``layout_build_panel`` turns a build state and selection into plain panel
lines, which keeps the layout testable without a terminal. ``CursesRenderer``
only paints those lines.
"""

from __future__ import annotations

import curses
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, assert_never

from conswol.core.model_types import Severity
from conswol.core.state import Finished, InProgress, InvocationFailed, NoBuild, describe

if TYPE_CHECKING:
    from conswol.core.state import BuildState
    from conswol.core.types import Diagnostic

PANEL_TITLE: Final[str] = "Build Results"
NOT_BUILT_TEXT: Final[str] = "Project is not built!"
BUILDING_TEXT: Final[str] = "Building..."
INVOCATION_FAILED_TEXT: Final[str] = "Build command could not be started"
NO_DIAGNOSTICS_TEXT: Final[str] = "No diagnostics"
KEY_HELP: Final[str] = "b: build  j/k: move  q: quit"

_COLOR_PAIRS: Final[dict[Severity, int]] = {Severity.ERROR: 1, Severity.WARNING: 2}


@dataclass(slots=True, frozen=True)
class PanelLine:
    text: str
    highlighted: bool = False
    severity: Severity | None = None
    centered: bool = False


def _diagnostic_lines(diagnostic: Diagnostic, *, highlighted: bool) -> list[PanelLine]:
    texts = diagnostic.content.splitlines() or [""]
    return [PanelLine(text, highlighted=highlighted, severity=diagnostic.severity) for text in texts]


def layout_build_panel(build_state: BuildState, selection: int | None) -> tuple[str, list[PanelLine]]:
    """Return the panel title and lines for ``build_state``.

    Each diagnostic contributes one line per line of its content; every line of
    the selected diagnostic is highlighted.
    """
    match build_state:
        case NoBuild():
            return PANEL_TITLE, [PanelLine(NOT_BUILT_TEXT, centered=True)]
        case InProgress():
            return PANEL_TITLE, [PanelLine(BUILDING_TEXT, centered=True)]
        case InvocationFailed():
            return PANEL_TITLE, [PanelLine(INVOCATION_FAILED_TEXT, centered=True, severity=Severity.ERROR)]
        case Finished(result=result):
            title = f"{PANEL_TITLE} (exit {result.exit_code})"
            if not result.diagnostics:
                return title, [PanelLine(NO_DIAGNOSTICS_TEXT, centered=True)]
            lines: list[PanelLine] = []
            for index, diagnostic in enumerate(result.diagnostics):
                lines.extend(_diagnostic_lines(diagnostic, highlighted=index == selection))
            return title, lines
        case _:
            assert_never(build_state)


def scroll_offset(lines: list[PanelLine], height: int) -> int:
    """Return the first line to show so the highlighted block stays visible."""
    if height <= 0:
        return 0
    first = next((index for index, line in enumerate(lines) if line.highlighted), None)
    if first is None or first < height:
        return 0
    return min(first, max(0, len(lines) - height))


def status_text(build_state: BuildState, notice: str | None) -> str:
    parts = [describe(build_state), KEY_HELP]
    if notice:
        parts.append(notice)
    return " | ".join(parts)


class CursesRenderer:
    """Paint the build panel and status bar onto a curses window.

    ``draw`` holds ``lock`` for the whole frame. Pass the lock shared with the
    ``KeyReader`` reading from the same screen.
    """

    def __init__(self, window: curses.window, *, lock: threading.Lock | None = None) -> None:
        self._window = window
        self._lock = lock if lock is not None else threading.Lock()
        self._colors = False
        if curses.has_colors():
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(_COLOR_PAIRS[Severity.ERROR], curses.COLOR_RED, -1)
            curses.init_pair(_COLOR_PAIRS[Severity.WARNING], curses.COLOR_YELLOW, -1)
            self._colors = True

    def draw(self, build_state: BuildState, selection: int | None, notice: str | None) -> None:
        with self._lock:
            self._paint(build_state, selection, notice)

    def _paint(self, build_state: BuildState, selection: int | None, notice: str | None) -> None:
        window = self._window
        window.erase()
        height, width = window.getmaxyx()
        title, lines = layout_build_panel(build_state, selection)
        self._put(0, 0, f" {title} ".center(width - 1, "-"), curses.A_BOLD)
        body_height = max(0, height - 2)
        offset = scroll_offset(lines, body_height)
        for row, line in enumerate(lines[offset : offset + body_height], start=1):
            text = line.text.center(width - 1) if line.centered else line.text
            self._put(row, 0, text, self._attributes(line))
        self._put(height - 1, 0, status_text(build_state, notice), curses.A_REVERSE)
        window.refresh()

    def _attributes(self, line: PanelLine) -> int:
        attrs = curses.A_REVERSE if line.highlighted else curses.A_NORMAL
        if self._colors and line.severity in _COLOR_PAIRS:
            attrs |= curses.color_pair(_COLOR_PAIRS[line.severity])
        return attrs

    def _put(self, row: int, col: int, text: str, attrs: int) -> None:
        height, width = self._window.getmaxyx()
        if row < 0 or row >= height or width <= 1:
            return
        try:
            self._window.addnstr(row, col, text.expandtabs(4), width - 1 - col, attrs)
        except curses.error:
            # Writing into the bottom-right cell raises after the text is drawn.
            return


__all__ = [
    "BUILDING_TEXT",
    "INVOCATION_FAILED_TEXT",
    "NOT_BUILT_TEXT",
    "NO_DIAGNOSTICS_TEXT",
    "PANEL_TITLE",
    "CursesRenderer",
    "PanelLine",
    "layout_build_panel",
    "scroll_offset",
    "status_text",
]
