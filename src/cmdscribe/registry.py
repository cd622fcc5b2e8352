"""Command registry: normalized names mapped to function descriptors."""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Sequence

from cmdscribe.descriptors import FunctionDescriptor, build_function_descriptor, normalize_name
from cmdscribe.errors import MissReason
from cmdscribe.logging_utils import log_event


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of a dispatch request; unpacks as (handler, ok)."""

    handler: Callable[..., Any] | None = None
    miss: MissReason | None = None

    @property
    def ok(self) -> bool:
        return self.handler is not None

    def __iter__(self) -> Iterator[Any]:
        yield self.handler
        yield self.ok


def _key(name: str) -> str:
    return normalize_name(name)


def is_dispatchable(descriptor: FunctionDescriptor) -> bool:
    """True when a descriptor is exactly one variadic, any-typed slot."""
    if not descriptor.is_variadic or descriptor.arity != 1:
        return False
    slot = descriptor.arguments[0]
    return slot.is_variadic_slot and slot.is_any


class Registry:
    """Mapping from normalized command name to FunctionDescriptor.

    Registration replaces an existing entry with the same normalized name.
    Enumeration follows first-registration order; a replaced entry keeps the
    slot of the entry it replaced.
    """

    def __init__(self) -> None:
        self._descriptors: dict[str, FunctionDescriptor] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_functions(cls, *functions: Any) -> "Registry":
        """Build a registry from functions, in order."""
        registry = cls()
        for fn in functions:
            registry.register(fn)
        return registry

    def register(
        self,
        fn: Any,
        *,
        names: Sequence[str] | None = None,
        name: str | None = None,
    ) -> FunctionDescriptor:
        """Describe a function and store it under its normalized name."""
        descriptor = build_function_descriptor(fn, names=names, name=name)
        key = descriptor.display_name

        with self._lock:
            previous = self._descriptors.get(key)
            self._descriptors[key] = descriptor

        if previous is not None:
            log_event(
                "command_replaced",
                command=key,
                previous_function=previous.raw_name,
                function=descriptor.raw_name,
            )
        else:
            log_event(
                "command_registered",
                level=logging.DEBUG,
                command=key,
                function=descriptor.raw_name,
                arity=descriptor.arity,
                variadic=descriptor.is_variadic,
                source_file=descriptor.source_file,
                line=descriptor.line,
            )
        return descriptor

    def command(
        self,
        name: str | None = None,
        *,
        names: Sequence[str] | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of register(); returns the function unchanged."""

        def deco(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.register(fn, names=names, name=name)
            return fn

        return deco

    def lookup(self, name: str) -> FunctionDescriptor | None:
        """Return the descriptor registered under a name (case-insensitive)."""
        return self._descriptors.get(_key(name))

    def has(self, name: str) -> bool:
        return _key(name) in self._descriptors

    def contains(self, descriptor: FunctionDescriptor) -> bool:
        """True if a descriptor with the same normalized name is registered."""
        return self.has(descriptor.display_name)

    def enumerate(self) -> list[FunctionDescriptor]:
        """Return all descriptors in registration order."""
        return list(self._descriptors.values())

    def dispatch(self, name: str) -> DispatchResult:
        """Return a callable for a command that takes a single `*args` of any type.

        Misses are returned, never raised: unknown names yield
        MissReason.UNKNOWN_KEY and registered commands of any other shape
        yield MissReason.SIGNATURE_MISMATCH.
        """
        descriptor = self.lookup(name)
        if descriptor is None:
            miss = MissReason.UNKNOWN_KEY
        elif not is_dispatchable(descriptor):
            miss = MissReason.SIGNATURE_MISMATCH
        else:
            return DispatchResult(handler=descriptor.function)

        log_event("dispatch_miss", level=logging.DEBUG, command=name, reason=miss.value)
        return DispatchResult(miss=miss)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[FunctionDescriptor]:
        return iter(self.enumerate())
