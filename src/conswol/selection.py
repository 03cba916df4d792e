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

"""Wrap-around cursor over the current diagnostic list."""

from __future__ import annotations

from dataclasses import dataclass


def selection_index(cursor: int, count: int) -> int | None:
    """Normalise a raw cursor counter against a list of ``count`` items.

    Args:
        cursor: Signed, unbounded cursor counter.
        count: Length of the current diagnostic list.

    Returns:
        ``None`` for an empty list, otherwise the floored modulo of ``cursor``
        into ``[0, count)``.
    """
    if count <= 0:
        return None
    return cursor % count


@dataclass(slots=True, frozen=True)
class SelectionTracker:
    """Raw cursor counter, moved by key events and never clamped.

    The counter keeps its value while the list is empty so that the next
    build's list is entered at the same relative offset.
    """

    cursor: int = 0

    def move_up(self) -> SelectionTracker:
        return SelectionTracker(self.cursor - 1)

    def move_down(self) -> SelectionTracker:
        return SelectionTracker(self.cursor + 1)

    def index_for(self, count: int) -> int | None:
        return selection_index(self.cursor, count)


__all__ = ["SelectionTracker", "selection_index"]
