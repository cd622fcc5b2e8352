"""Argument and function descriptors built from introspected functions."""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from cmdscribe.errors import IntrospectionUnavailable, ParameterCountMismatch
from cmdscribe.introspect import (
    ArgumentKind,
    FunctionIdentity,
    ReflectedParameter,
    ReflectedSignature,
    introspect,
)
from cmdscribe.source import resolve_parameter_names

_CAMEL_TOKEN_RE = re.compile(r"[A-Z]+[^A-Z]*|[^A-Z]+")
_SEPARATOR_RUN_RE = re.compile(r"[-_\s]+")


def normalize_name(raw: str) -> str:
    """Normalize a raw symbol name to its display/registry key form.

    Examples:
        "pkg.module.ListAll" -> "list-all"
        "commands.build_index" -> "build-index"
        "list-all" -> "list-all"
    """
    base = raw[raw.rfind(".") + 1:]
    tokens = _CAMEL_TOKEN_RE.findall(base)
    joined = "-".join(tokens) if tokens else base
    return _SEPARATOR_RUN_RE.sub("-", joined).strip("-").lower()


@dataclass(frozen=True)
class ArgumentDescriptor:
    """Snapshot of one formal parameter."""

    position: int
    name: str
    declared_type: str
    kind: ArgumentKind
    is_variadic_slot: bool = False
    display_type: str = ""
    is_any: bool = False

    @classmethod
    def from_reflected(cls, position: int, name: str, reflected: ReflectedParameter) -> "ArgumentDescriptor":
        return cls(
            position=position,
            name=name,
            declared_type=reflected.declared_type,
            kind=reflected.kind,
            is_variadic_slot=reflected.is_variadic,
            display_type=reflected.display_type,
            is_any=reflected.is_any,
        )

    def is_type(self, key: str) -> bool:
        """Case-insensitive comparison against the display type."""
        return self.display_type.upper() == key.upper()


@dataclass(frozen=True)
class FunctionDescriptor:
    """Snapshot of a function: its normalized name and ordered arguments."""

    identity: FunctionIdentity
    display_name: str
    arguments: tuple[ArgumentDescriptor, ...]
    is_variadic: bool
    function: Callable[..., Any] = field(compare=False, repr=False)
    raw_name: str = ""

    def __post_init__(self) -> None:
        for expected, argument in enumerate(self.arguments):
            if argument.position != expected:
                raise ValueError(
                    f"Argument positions must run 0..n-1, got {argument.position} at {expected}"
                )
            if argument.is_variadic_slot and expected != len(self.arguments) - 1:
                raise ValueError("Only the last argument may be a variadic slot")
        if self.is_variadic != (bool(self.arguments) and self.arguments[-1].is_variadic_slot):
            raise ValueError("Variadic flag disagrees with the last argument")

    @property
    def arity(self) -> int:
        return len(self.arguments)

    @property
    def is_empty(self) -> bool:
        return not self.arguments

    @property
    def source_file(self) -> str:
        return self.identity.source_file

    @property
    def line(self) -> int:
        return self.identity.first_line

    def argument(self, position: int) -> ArgumentDescriptor | None:
        """Return the argument at a position, or None when out of bounds."""
        if 0 <= position < len(self.arguments):
            return self.arguments[position]
        return None


def _arguments_from(signature: ReflectedSignature, names: Sequence[str]) -> tuple[ArgumentDescriptor, ...]:
    if len(names) != signature.arity:
        raise ParameterCountMismatch(
            f"{signature.raw_name}: resolved {len(names)} parameter names "
            f"{list(names)} but reflection reports {signature.arity}"
        )
    return tuple(
        ArgumentDescriptor.from_reflected(position, name, reflected)
        for position, (name, reflected) in enumerate(zip(names, signature.parameters))
    )


def build_function_descriptor(
    fn: Any,
    *,
    names: Sequence[str] | None = None,
    name: str | None = None,
) -> FunctionDescriptor:
    """Build a FunctionDescriptor from a function.

    Args:
        fn: Function or bound method to describe
        names: Explicit parameter names; skips reading the source file
        name: Explicit command name; replaces the function's symbol name

    Raises:
        IntrospectionUnavailable: If fn cannot be reflected or names nothing
        SourceUnavailable: If the source file cannot be read
        ParameterCountMismatch: If the name count differs from the arity
    """
    signature = introspect(fn)

    if names is None:
        resolved = resolve_parameter_names(signature.identity)
        # Source lines of bound methods still list self/cls
        resolved = resolved[signature.implicit_parameters:]
    else:
        resolved = list(names)

    display_name = normalize_name(name if name is not None else signature.raw_name)
    if not display_name:
        raise IntrospectionUnavailable(
            f"{signature.raw_name}: name normalizes to an empty command name"
        )

    return FunctionDescriptor(
        identity=signature.identity,
        display_name=display_name,
        arguments=_arguments_from(signature, resolved),
        is_variadic=signature.is_variadic,
        function=fn,
        raw_name=signature.raw_name,
    )
