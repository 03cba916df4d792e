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

"""Slice structured diagnostics out of raw build output.

A configured regular expression marks where each diagnostic starts. The text
of diagnostic ``i`` runs from the start of match ``i`` up to the start of match
``i + 1`` (or the end of the output), so continuation lines such as code
snippets and caret markers stay attached to the header that introduced them.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Final

from conswol.core.model_types import LogComponent, Severity
from conswol.core.types import Diagnostic
from conswol.exceptions import ConswolError, ConswolValidationError
from conswol.logging import structured_extra

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from conswol.core.types import GroupRef, PatternMatcherSpec

logger: logging.Logger = logging.getLogger("conswol.matcher")

OUTPUT_ENCODING: Final[str] = "utf-8"


class PatternCompileError(ConswolValidationError):
    """Raised when a configured matcher pattern cannot be used."""

    def __init__(self, pattern: str, reason: str) -> None:
        """Initialise the error with the offending pattern.

        Args:
            pattern: Regular-expression source from the configuration.
            reason: Why the pattern was rejected.
        """
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid problem matcher pattern {pattern!r}: {reason}")


class DecodeError(ConswolError):
    """Raised when captured build output is not valid text."""

    def __init__(self, error: UnicodeDecodeError) -> None:
        self.error = error
        super().__init__(f"Build output is not valid {OUTPUT_ENCODING} text: {error.reason}")


def compile_matcher(spec: PatternMatcherSpec) -> re.Pattern[str]:
    """Compile ``spec.pattern`` and check that every declared group exists.

    Args:
        spec: Matcher specification to compile.

    Returns:
        The compiled regular expression.

    Raises:
        PatternCompileError: If the pattern is invalid or refers to a missing group.
    """
    try:
        compiled = re.compile(spec.pattern)
    except re.error as exc:
        raise PatternCompileError(spec.pattern, str(exc)) from exc
    for field_name, ref in spec.declared_groups().items():
        if not _group_exists(compiled, ref):
            raise PatternCompileError(spec.pattern, f"{field_name} refers to unknown group {ref!r}")
    return compiled


def _group_exists(compiled: re.Pattern[str], ref: GroupRef) -> bool:
    if isinstance(ref, int):
        return 0 <= ref <= compiled.groups
    return ref in compiled.groupindex


def decode_output(raw: bytes) -> str:
    """Decode captured process output as strict UTF-8.

    Raises:
        DecodeError: If ``raw`` is not valid UTF-8.
    """
    try:
        return raw.decode(OUTPUT_ENCODING)
    except UnicodeDecodeError as exc:
        raise DecodeError(exc) from exc


def extract(raw_output: str | bytes, spec: PatternMatcherSpec | None) -> list[Diagnostic]:
    """Extract diagnostics from build output.

    Without a spec the whole output becomes a single diagnostic. With a spec,
    each match starts a new diagnostic; no match yields an empty list.

    Args:
        raw_output: Combined build output. Bytes are decoded once upfront.
        spec: Optional matcher specification.

    Returns:
        Diagnostics in output order.

    Raises:
        DecodeError: If ``raw_output`` is bytes that are not valid UTF-8.
        PatternCompileError: If the spec's pattern cannot be compiled.
    """
    text = decode_output(raw_output) if isinstance(raw_output, bytes) else raw_output
    if spec is None:
        return [Diagnostic(content=text)]
    compiled = compile_matcher(spec)
    diagnostics = list(_iter_diagnostics(compiled, spec, text))
    logger.debug(
        "Extracted %s diagnostics from %s characters",
        len(diagnostics),
        len(text),
        extra=structured_extra(
            component=LogComponent.MATCHER,
            counts=_severity_counts(diagnostics),
        ),
    )
    return diagnostics


def _iter_diagnostics(
    compiled: re.Pattern[str],
    spec: PatternMatcherSpec,
    text: str,
) -> Iterator[Diagnostic]:
    matches = list(compiled.finditer(text))
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
        file_text = _group_text(match, spec.file_group)
        severity_text = _group_text(match, spec.severity_group)
        yield Diagnostic(
            content=text[match.start() : end],
            severity=_resolve_severity(severity_text, spec.severity_mapper),
            line=_parse_unsigned(_group_text(match, spec.line_group)),
            column=_parse_unsigned(_group_text(match, spec.col_group)),
            file=Path(file_text) if file_text is not None else None,
        )


def _group_text(match: re.Match[str], ref: GroupRef | None) -> str | None:
    # Groups that did not participate in the match report None.
    if ref is None:
        return None
    return match.group(ref)


def _parse_unsigned(value: str | None) -> int | None:
    if value is None or not (value.isascii() and value.isdigit()):
        return None
    return int(value)


def _resolve_severity(token: str | None, mapper: Mapping[str, Severity] | None) -> Severity | None:
    if token is None:
        return None
    if mapper is not None:
        return mapper.get(token)
    return Severity.from_token(token)


def _severity_counts(diagnostics: list[Diagnostic]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for diagnostic in diagnostics:
        key = diagnostic.severity.value if diagnostic.severity else "unknown"
        counts[key] = counts.get(key, 0) + 1
    return counts


__all__ = [
    "DecodeError",
    "PatternCompileError",
    "compile_matcher",
    "decode_output",
    "extract",
]
