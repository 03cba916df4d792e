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

"""CLI entry point and orchestration for conswol commands."""

from __future__ import annotations

import argparse
import logging
import pathlib
from collections.abc import Callable, Sequence
from contextlib import suppress
from textwrap import dedent
from typing import TYPE_CHECKING, Final, Protocol

from conswol import __version__
from conswol._internal.error_codes import error_code_for
from conswol._internal.utils import consume
from conswol.config import CONFIG_FILENAME, load_project
from conswol.core.model_types import LogComponent, LogFormat, OutputFormat
from conswol.core.state import BuildState, Finished, InvocationFailed, describe
from conswol.exceptions import ConswolError
from conswol.executor import MissingBuildCommandError, execute_build
from conswol.logging import LOG_FORMATS, LOG_LEVELS, configure_logging, structured_extra

from .helpers import echo as _echo
from .helpers import register_argument as _register_argument
from .helpers import render_result_json, render_result_text, summarise_result

if TYPE_CHECKING:
    from conswol.core.types import Project

logger: logging.Logger = logging.getLogger("conswol.cli")

CONSWOL_VERSION: Final[str] = __version__
DEFAULT_TUI_LOG_FILE: Final[str] = ".conswol.log"
EXIT_CONFIG_ERROR: Final[int] = 2
EXIT_INVOCATION_FAILED: Final[int] = 127

CONFIG_TEMPLATE: Final[str] = dedent(
    """\
    # conswol project configuration
    # Save this file as conswol.toml in the root of your project.

    # Project directory; relative paths resolve against this file's directory.
    # dir = "."

    [build_cmd]
    command = "make"
    # args = ["-j4"]
    # working_dir = "./"

    # The run command is recorded but not launched by conswol yet.
    # [run_cmd]
    # command = "./build/app"

    # Slice diagnostics out of the build output. Each match starts a new
    # diagnostic; the text up to the next match belongs to it.
    [problem_matcher]
    pattern = '(?m)^([^:\\n]+):(\\d+):(\\d+): (\\w+): (.*)$'
    file_group = 1
    line_group = 2
    col_group = 3
    severity_group = 4

    # Map captured severity tokens (case-sensitive) to error, warning or other.
    # Without a mapper, "error" and "warning" are recognised in any case.
    # [problem_matcher.severity_mapper]
    # E = "error"
    # W = "warning"
    """,
)


def write_config_template(path: pathlib.Path, *, force: bool) -> int:
    """Write the conswol configuration template to a file.

    Args:
        path: Target path where the configuration file will be written.
        force: If True, overwrite the file if it already exists. If False, refuse to overwrite.

    Returns:
        int: Exit code (0 for success, 1 for failure).
    """
    if path.exists() and not force:
        _echo(f"[conswol] Refusing to overwrite existing file: {path}")
        _echo("Use --force if you want to replace it.")
        return 1
    path.parent.mkdir(parents=True, exist_ok=True)
    consume(path.write_text(CONFIG_TEMPLATE, encoding="utf-8"))
    _echo(f"[conswol] Wrote starter config to {path}")
    return 0


CommandHandler = Callable[[argparse.Namespace], int]


class SubparserCollection(Protocol):
    """Protocol describing the subset of ``argparse._SubParsersAction`` we rely on."""

    def add_parser(self, *args: object, **kwargs: object) -> argparse.ArgumentParser: ...


def main(argv: Sequence[str] | None = None) -> int:
    """Main CLI entry point for the conswol command-line interface.

    Parses command-line arguments, configures logging, and dispatches to the
    selected command. Without a command, the interactive front-end starts.

    Args:
        argv: Command-line arguments to parse. If None, uses sys.argv.

    Returns:
        int: Exit code from the executed command handler.
    """
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.version:
        _echo(f"conswol {CONSWOL_VERSION}")
        return 0
    command = args.command or "tui"
    handler = _command_handlers().get(command)
    if handler is None:
        parser.error(f"Unknown command {command}")
    _initialize_logging(args.log_format, args.log_level, _log_file_for(command, args))
    try:
        return handler(args)
    except ConswolError as exc:
        code = error_code_for(exc)
        logger.error(
            "(%s) %s",
            code,
            exc,
            extra=structured_extra(component=LogComponent.CLI, exit_code=EXIT_CONFIG_ERROR),
        )
        _echo(f"[conswol] ({code}) {exc}", err=True)
        return EXIT_CONFIG_ERROR


def _common_options(*, with_defaults: bool) -> argparse.ArgumentParser:
    """Build the parser carrying options shared by every command.

    Subcommands receive a copy without defaults so that options given before
    the subcommand name are not reset by the subparser.

    Args:
        with_defaults: Whether options should populate their default values.

    Returns:
        argparse.ArgumentParser: Parent parser holding the shared options.
    """

    def default(value: object) -> object:
        return value if with_defaults else argparse.SUPPRESS

    common = argparse.ArgumentParser(add_help=False)
    _register_argument(
        common,
        "--project-dir",
        type=pathlib.Path,
        default=default(None),
        help=f"Directory containing {CONFIG_FILENAME} (defaults to the current directory).",
    )
    _register_argument(
        common,
        "--config",
        type=pathlib.Path,
        default=default(None),
        help=f"Explicit path to a {CONFIG_FILENAME} file.",
    )
    _register_argument(
        common,
        "--log-format",
        choices=LOG_FORMATS,
        default=default("text"),
        help="Select logging output format (human-readable text or structured JSON).",
    )
    _register_argument(
        common,
        "--log-level",
        choices=LOG_LEVELS,
        default=default("info"),
        help="Set verbosity of logged events.",
    )
    _register_argument(
        common,
        "--log-file",
        type=pathlib.Path,
        default=default(None),
        help=f"Write logs to this file (the interactive UI defaults to {DEFAULT_TUI_LOG_FILE}).",
    )
    return common


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level parser with global options and subcommands.

    Returns:
        argparse.ArgumentParser: Fully configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="conswol",
        parents=[_common_options(with_defaults=True)],
        description="Run a project's build and browse the diagnostics it reports.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _register_argument(
        parser,
        "--version",
        action="store_true",
        help="Print the conswol version and exit.",
    )
    subparsers = parser.add_subparsers(dest="command")
    parents = [_common_options(with_defaults=False)]
    _register_tui_command(subparsers, parents=parents)
    _register_build_command(subparsers, parents=parents)
    _register_init_command(subparsers, parents=parents)
    return parser


def _register_tui_command(
    subparsers: SubparserCollection,
    *,
    parents: Sequence[argparse.ArgumentParser] | None,
) -> None:
    consume(
        subparsers.add_parser(
            "tui",
            help="Start the interactive build front-end (default)",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter,
            parents=parents or [],
        ),
    )


def _register_build_command(
    subparsers: SubparserCollection,
    *,
    parents: Sequence[argparse.ArgumentParser] | None,
) -> None:
    """Register the 'build' subcommand.

    Args:
        subparsers: Subparser registry where the build command will be added.
        parents: Shared parent parsers carrying global flags.
    """
    build = subparsers.add_parser(
        "build",
        help="Run the build once and print the extracted diagnostics",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        parents=parents or [],
    )
    _register_argument(
        build,
        "--format",
        choices=[fmt.value for fmt in OutputFormat],
        default=OutputFormat.TEXT.value,
        help="Diagnostic output format.",
    )


def _register_init_command(
    subparsers: SubparserCollection,
    *,
    parents: Sequence[argparse.ArgumentParser] | None,
) -> None:
    """Register the 'init' subcommand.

    Args:
        subparsers: Subparser registry where the init command will be added.
        parents: Shared parent parsers carrying global flags.
    """
    init = subparsers.add_parser(
        "init",
        help=f"Generate a starter {CONFIG_FILENAME}",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        parents=parents or [],
    )
    _register_argument(
        init,
        "--output",
        type=pathlib.Path,
        default=pathlib.Path(CONFIG_FILENAME),
        help="Destination for the generated configuration file.",
    )
    _register_argument(
        init,
        "--force",
        action="store_true",
        help="Overwrite the output file if it already exists.",
    )


def _command_handlers() -> dict[str, CommandHandler]:
    return {
        "tui": _execute_tui,
        "build": _execute_build,
        "init": _execute_init,
    }


def _log_file_for(command: str, args: argparse.Namespace) -> pathlib.Path | None:
    if args.log_file is not None:
        return args.log_file
    if command != "tui":
        return None
    base = args.project_dir or (args.config.parent if args.config else pathlib.Path.cwd())
    return base / DEFAULT_TUI_LOG_FILE


def _initialize_logging(log_format: str, log_level: str, log_file: pathlib.Path | None) -> None:
    """Initialise logging for the CLI; failures are suppressed (best-effort).

    Args:
        log_format: Logging format string (e.g., "text" or "json").
        log_level: Logging level string (e.g., "info", "debug", "warning").
        log_file: Optional file receiving log records.
    """
    with suppress(Exception):  # best-effort logger init
        _ = configure_logging(LogFormat.from_str(log_format), log_level=log_level, log_file=log_file)


def _load(args: argparse.Namespace) -> Project:
    return load_project(args.project_dir, config_path=args.config)


def _execute_tui(args: argparse.Namespace) -> int:
    """Execute the 'tui' command: load the project and run the front-end.

    Returns:
        int: Exit code (0 once the operator quits).
    """
    from conswol.tui import run_tui  # curses is only needed for the interactive UI

    project = _load(args)
    final = run_tui(project)
    logger.info(
        "Front-end closed with build state: %s",
        describe(final.build_state),
        extra=structured_extra(component=LogComponent.CLI),
    )
    return 0


def _execute_build(args: argparse.Namespace) -> int:
    """Execute the 'build' command: run one build and print its diagnostics.

    Returns:
        int: The build's exit code, ``127`` if it could not be started, or
        ``2`` if no build command is configured.
    """
    project = _load(args)
    if project.build_cmd is None:
        raise MissingBuildCommandError

    def _emit(state: BuildState) -> None:
        logger.debug(
            "Build state: %s",
            describe(state),
            extra=structured_extra(component=LogComponent.CLI),
        )

    final = execute_build(project.build_cmd, project.problem_matcher, _emit)
    match final:
        case Finished(result=result):
            if OutputFormat.from_str(args.format) is OutputFormat.JSON:
                _echo(render_result_json(result))
            else:
                for line in render_result_text(result):
                    _echo(line)
                _echo(f"[conswol] {summarise_result(result)}", err=True)
            return result.exit_code if 0 <= result.exit_code <= 255 else 1
        case InvocationFailed():
            _echo(f"[conswol] Build command could not be started: {' '.join(project.build_cmd.argv)}", err=True)
            return EXIT_INVOCATION_FAILED
        case _:
            msg = f"Unexpected final build state: {describe(final)}"
            raise SystemExit(msg)


def _execute_init(args: argparse.Namespace) -> int:
    """Execute the 'init' command to generate a configuration file.

    Returns:
        int: Exit code (0 for success, 1 for failure).
    """
    return write_config_template(args.output, force=args.force)


__all__ = ["CONFIG_TEMPLATE", "main", "write_config_template"]
