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

from __future__ import annotations

import re
from pathlib import Path

import pytest

from conswol._internal.error_codes import error_code_catalog, error_code_for
from conswol.config import ConfigValidationError, InvalidConfigFileError, ProjectConfigNotFoundError
from conswol.exceptions import ConswolError, ConswolValidationError
from conswol.executor import ChannelClosedError, MissingBuildCommandError
from conswol.matcher import PatternCompileError

pytestmark = pytest.mark.unit


def test_error_code_for_known_hierarchy() -> None:
    assert error_code_for(ConswolError("x")) == "CW000"
    assert error_code_for(ConswolValidationError("x")) == "CW100"
    assert error_code_for(ConfigValidationError("x")) == "CW110"
    assert error_code_for(InvalidConfigFileError(Path("conswol.toml"), ValueError("bad"))) == "CW113"
    assert error_code_for(ProjectConfigNotFoundError(Path("conswol.toml"))) == "CW114"
    assert error_code_for(PatternCompileError("(", "missing )")) == "CW200"
    assert error_code_for(MissingBuildCommandError()) == "CW300"
    assert error_code_for(ChannelClosedError()) == "CW301"


def test_error_code_for_unknown_defaults_to_base() -> None:
    class CustomError(RuntimeError):
        pass

    assert error_code_for(CustomError("x")) == "CW000"


def test_error_code_catalog_uniqueness() -> None:
    catalog = error_code_catalog()
    codes = list(catalog.values())
    assert len(set(codes)) == len(codes)
    assert catalog["conswol.exceptions.ConswolError"] == "CW000"
    assert catalog["conswol.matcher.PatternCompileError"] == "CW200"


def test_error_code_documentation_is_in_sync() -> None:
    catalog = error_code_catalog()
    repo_root = Path(__file__).resolve().parents[1]
    doc_path = repo_root / "docs" / "EXCEPTIONS.md"
    content = doc_path.read_text(encoding="utf-8")
    documented_codes = set(re.findall(r"CW\d{3}", content))
    registry_codes = set(catalog.values())
    assert registry_codes == documented_codes


def test_registry_lists_only_the_two_base_exception_classes() -> None:
    catalog = error_code_catalog()
    base_errors = {name for name in catalog if name.startswith("conswol.exceptions.")}
    assert base_errors == {"conswol.exceptions.ConswolError", "conswol.exceptions.ConswolValidationError"}
    assert sorted(catalog.values())[:2] == ["CW000", "CW100"]
    assert "CW101" not in catalog.values()
