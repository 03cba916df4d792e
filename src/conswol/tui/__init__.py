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

"""Curses terminal front-end for conswol.

Modules:
    - keys: background key reader and key bindings
    - render: build panel layout and curses painting
    - app: ``run_tui`` entry point wiring both to the orchestration loop
"""

from __future__ import annotations

from .app import run_tui
from .keys import KeyReader, translate_key
from .render import CursesRenderer, layout_build_panel

__all__ = ["CursesRenderer", "KeyReader", "layout_build_panel", "run_tui", "translate_key"]
