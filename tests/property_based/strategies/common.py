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

"""Hypothesis strategies for build output and cursor movement."""

from __future__ import annotations

from hypothesis import strategies as st

__all__ = [
    "cursor_moves",
    "diagnostic_headers",
    "output_blocks",
]

_FILE_NAMES = st.from_regex(r"[a-z][a-z0-9_]{0,8}\.(c|h|rs|py)", fullmatch=True)
_SEVERITY_TOKENS = st.sampled_from(["error", "warning", "Error", "WARNING", "note", "oops"])
_NOISE = st.text(alphabet="abcdefgh ;{}()=\t", max_size=30)


def diagnostic_headers() -> st.SearchStrategy[str]:
    """Return a strategy yielding ``file:line:col: severity: message`` lines."""
    return st.builds(
        "{}:{}:{}: {}: {}\n".format,
        _FILE_NAMES,
        st.integers(min_value=0, max_value=99_999),
        st.integers(min_value=0, max_value=999),
        _SEVERITY_TOKENS,
        _NOISE,
    )


def output_blocks(max_blocks: int = 8) -> st.SearchStrategy[list[str]]:
    """Return a strategy mixing diagnostic headers with continuation lines.

    Continuation lines never contain a colon, so they cannot be mistaken for
    a header by the gcc-style patterns used in the property tests.
    """
    block = st.one_of(diagnostic_headers(), _NOISE.map(lambda text: f"  {text}\n"))
    return st.lists(block, max_size=max_blocks)


def cursor_moves(max_size: int = 50) -> st.SearchStrategy[list[int]]:
    """Return a strategy of cursor steps, ``-1`` for up and ``+1`` for down."""
    return st.lists(st.sampled_from([-1, 1]), max_size=max_size)
