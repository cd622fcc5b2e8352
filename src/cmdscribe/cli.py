"""CLI entry: describe, list and run the commands of a Python module."""

from __future__ import annotations

import argparse
import importlib
import importlib.util
import inspect
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from cmdscribe import __version__
from cmdscribe.constants import APP_NAME
from cmdscribe.errors import CmdscribeError, UsageError
from cmdscribe.logging_utils import setup_logging
from cmdscribe.manifest import Manifest, load_manifest, manifest_path_for
from cmdscribe.program import Program
from cmdscribe.registry import is_dispatchable
from cmdscribe.usage import format_function


def load_target(target: str) -> ModuleType:
    """Import a module by dotted name, or load it from a `.py` path."""
    path = Path(target)
    if target.endswith(".py") or path.is_file():
        if not path.is_file():
            raise UsageError(f"Module file not found: {target}")
        module_name = f"_{APP_NAME}_target_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path.resolve())
        if spec is None or spec.loader is None:
            raise UsageError(f"Cannot load module from {target}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            del sys.modules[module_name]
            raise UsageError(f"Cannot load module from {target}: {e}") from e
        return module

    try:
        return importlib.import_module(target)
    except ImportError as e:
        raise UsageError(f"Cannot import module '{target}': {e}") from e


def collect_functions(module: ModuleType) -> list[Any]:
    """Return the module's commands.

    An explicit `__commands__` list of names wins; otherwise every public
    function defined in the module itself, in definition order.
    """
    names = getattr(module, "__commands__", None)
    if names is not None:
        functions = []
        for name in names:
            if not hasattr(module, name):
                raise UsageError(f"__commands__ names missing function '{name}'")
            functions.append(getattr(module, name))
        return functions

    return [
        value
        for name, value in vars(module).items()
        if not name.startswith("_")
        and inspect.isfunction(value)
        and value.__module__ == module.__name__
        and value.__name__ != "<lambda>"
    ]


def _default_program_name(target: str) -> str:
    if target.endswith(".py"):
        return Path(target).stem
    return target.rsplit(".", 1)[-1]


def _resolve_manifest(args: argparse.Namespace, module: ModuleType) -> Manifest:
    if args.manifest:
        manifest = load_manifest(args.manifest)
    else:
        module_file = getattr(module, "__file__", None)
        candidate = manifest_path_for(module_file) if module_file else None
        if candidate is not None and candidate.is_file():
            manifest = load_manifest(candidate)
        else:
            manifest = Manifest(name=_default_program_name(args.target), description="")

    return Manifest(
        name=args.name or manifest.name,
        description=manifest.description if args.description is None else args.description,
    )


def _build_program(args: argparse.Namespace) -> Program:
    module = load_target(args.target)
    return Program.from_manifest(_resolve_manifest(args, module), collect_functions(module))


def _cmd_usage(args: argparse.Namespace) -> int:
    print(_build_program(args).usage)
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    program = _build_program(args)
    for descriptor in program.functions:
        marker = "*" if is_dispatchable(descriptor) else " "
        print(f"{marker} {format_function(descriptor)}  ({descriptor.source_file}:{descriptor.line})")
    return 0


def _cmd_run(args: argparse.Namespace) -> int:
    program = _build_program(args)
    result = program.run([args.command, *args.args])
    if result is not None:
        print(result)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_file)

    try:
        return args.handler(args)
    except UsageError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        if exc.usage:
            print(exc.usage, file=sys.stderr)
        return 1
    except CmdscribeError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("target", help="Dotted module name or path to a .py file.")
    parser.add_argument("--manifest", help="Manifest JSON file (default: manifest.json beside the module).")
    parser.add_argument("--name", help="Program name shown after 'usage:'.")
    parser.add_argument("--description", help="Program description shown above the options.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Describe a module's functions as CLI commands.",
    )
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {__version__}")
    parser.add_argument("--log-file", help="Write structured logs to this file.")
    subparsers = parser.add_subparsers(dest="subcommand", required=True)

    usage_parser = subparsers.add_parser("usage", help="Print the usage banner.")
    _add_target_arguments(usage_parser)
    usage_parser.set_defaults(handler=_cmd_usage)

    list_parser = subparsers.add_parser("list", help="List commands; '*' marks runnable ones.")
    _add_target_arguments(list_parser)
    list_parser.set_defaults(handler=_cmd_list)

    run_parser = subparsers.add_parser("run", help="Run a command that takes *args.")
    _add_target_arguments(run_parser)
    run_parser.add_argument("command", help="Command name.")
    run_parser.add_argument("args", nargs=argparse.REMAINDER, help="Raw arguments for the command.")
    run_parser.set_defaults(handler=_cmd_run)

    return parser
