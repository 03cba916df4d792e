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

"""Enumerations shared across conswol layers."""

from __future__ import annotations

from enum import StrEnum


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    OTHER = "other"

    @classmethod
    def from_str(cls, raw: str) -> Severity:
        value = raw.strip().lower()
        try:
            return cls(value)
        except ValueError as exc:
            raise ValueError(f"Unknown severity '{raw}'") from exc

    @classmethod
    def from_token(cls, token: str) -> Severity | None:
        """Resolve a captured severity token without a configured mapper.

        Only ``error`` and ``warning`` (any casing) are recognised; every
        other token resolves to ``None``.
        """
        match token.lower():
            case "error":
                return cls.ERROR
            case "warning":
                return cls.WARNING
            case _:
                return None


class Key(StrEnum):
    QUIT = "quit"
    BUILD = "build"
    UP = "up"
    DOWN = "down"


class LogFormat(StrEnum):
    TEXT = "text"
    JSON = "json"

    @classmethod
    def from_str(cls, raw: str) -> LogFormat:
        value = raw.strip().lower()
        try:
            return cls(value)
        except ValueError as exc:
            raise ValueError(f"Unknown log format '{raw}'") from exc


class LogComponent(StrEnum):
    MATCHER = "matcher"
    EXECUTOR = "executor"
    LOOP = "loop"
    CONFIG = "config"
    TUI = "tui"
    CLI = "cli"

    @classmethod
    def from_str(cls, raw: str) -> LogComponent:
        value = raw.strip().lower()
        try:
            return cls(value)
        except ValueError as exc:
            raise ValueError(f"Unknown log component '{raw}'") from exc


class OutputFormat(StrEnum):
    TEXT = "text"
    JSON = "json"

    @classmethod
    def from_str(cls, raw: str) -> OutputFormat:
        value = raw.strip().lower()
        try:
            return cls(value)
        except ValueError as exc:
            raise ValueError(f"Unknown output format '{raw}'") from exc


__all__ = ["Key", "LogComponent", "LogFormat", "OutputFormat", "Severity"]
