"""A program: manifest metadata, its command registry and the rendered usage banner."""

from dataclasses import dataclass, field
from typing import Any, Iterable

from cmdscribe.descriptors import FunctionDescriptor
from cmdscribe.errors import MissReason, UsageError
from cmdscribe.logging_utils import log_event, summarize_command_args
from cmdscribe.manifest import Manifest
from cmdscribe.registry import Registry
from cmdscribe.usage import render_usage


@dataclass
class Program:
    """One CLI program and the commands it offers."""

    name: str
    description: str
    registry: Registry = field(default_factory=Registry)
    usage: str = ""

    @classmethod
    def build(cls, name: str, description: str, functions: Iterable[Any]) -> "Program":
        """Register functions in order and render the usage banner once."""
        registry = Registry.from_functions(*functions)
        program = cls(name=name, description=description, registry=registry)
        program.refresh_usage()
        return program

    @classmethod
    def from_manifest(cls, manifest: Manifest, functions: Iterable[Any]) -> "Program":
        return cls.build(manifest.name, manifest.description, functions)

    @property
    def functions(self) -> list[FunctionDescriptor]:
        return self.registry.enumerate()

    def refresh_usage(self) -> str:
        """Re-render the usage banner from the current registry contents."""
        self.usage = render_usage(self.name, self.description, self.functions)
        return self.usage

    def run(self, argv: list[str]) -> Any:
        """Dispatch argv[0] and pass the remaining raw strings to its handler.

        Raises:
            UsageError: If no command is given or it cannot be dispatched
        """
        if not argv:
            raise UsageError("No command given", usage=self.usage)

        command, args = argv[0], list(argv[1:])
        result = self.registry.dispatch(command)
        if not result.ok:
            if result.miss is MissReason.UNKNOWN_KEY:
                raise UsageError(f"Unknown command: {command}", usage=self.usage)
            raise UsageError(
                f"Command '{command}' takes fixed arguments and cannot be run directly",
                usage=self.usage,
            )

        log_event(
            "program_run",
            program=self.name,
            command=command,
            args_summary=summarize_command_args(args),
        )
        return result.handler(*args)
