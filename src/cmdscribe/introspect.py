"""Runtime signature reflection for command functions."""

import collections.abc as abc
import inspect
import re
import types
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from cmdscribe.constants import ANY_TYPE_TEXT
from cmdscribe.errors import IntrospectionUnavailable

_SCALAR_TYPES = (bool, int, float, complex, str, bytes, Enum)
_SEQUENCE_TYPES = (
    list,
    tuple,
    set,
    frozenset,
    abc.Sequence,
    abc.MutableSequence,
    abc.Set,
    abc.MutableSet,
    abc.Collection,
    abc.Iterable,
)
_ANY_TEXTS = frozenset(("Any", "typing.Any", "object"))
_DECORATION_RE = re.compile(r"[\[\]*]")
_SCALAR_NAMES = frozenset(("bool", "int", "float", "complex", "str", "bytes"))
_SEQUENCE_NAMES = frozenset(
    (
        "list",
        "tuple",
        "set",
        "frozenset",
        "List",
        "Tuple",
        "Set",
        "FrozenSet",
        "Sequence",
        "MutableSequence",
        "AbstractSet",
        "MutableSet",
        "Collection",
        "Iterable",
    )
)
_OPTIONAL_NAMES = frozenset(("Optional", "Union"))
_GENERIC_TEXT_RE = re.compile(r"^([\w.]+)\[(.*)\]$", re.DOTALL)


class ArgumentKind(str, Enum):
    """Reflected shape of one parameter."""

    SCALAR = "scalar"
    SEQUENCE = "sequence"
    POINTER_LIKE = "pointer_like"
    OTHER = "other"


@dataclass(frozen=True)
class FunctionIdentity:
    """Comparable token for a function, keyed on its code object."""

    address: int
    code: types.CodeType = field(compare=False, repr=False)

    @property
    def source_file(self) -> str:
        return self.code.co_filename

    @property
    def first_line(self) -> int:
        return self.code.co_firstlineno


@dataclass(frozen=True)
class ReflectedParameter:
    """Type information recovered for one formal parameter."""

    annotation: Any
    declared_type: str
    display_type: str
    kind: ArgumentKind
    is_any: bool
    is_variadic: bool = False


@dataclass(frozen=True)
class ReflectedSignature:
    """Everything reflection can tell us about a function, minus its parameter names."""

    identity: FunctionIdentity
    raw_name: str
    function: Callable[..., Any]
    parameters: tuple[ReflectedParameter, ...]
    is_variadic: bool
    implicit_parameters: int = 0

    @property
    def arity(self) -> int:
        return len(self.parameters)


def _is_any(annotation: Any) -> bool:
    if annotation is inspect.Parameter.empty or annotation is Any or annotation is object:
        return True
    return isinstance(annotation, str) and annotation.strip() in _ANY_TEXTS


def _strip_decoration(text: str) -> str:
    return _DECORATION_RE.sub("", text).strip()


def _base_name(text: str) -> str:
    return text.strip().rsplit(".", 1)[-1]


def _split_top_level(text: str, separator: str) -> list[str]:
    """Split annotation text on a separator outside any brackets."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    for char in text:
        if char in "[(":
            depth += 1
        elif char in "])":
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return parts


def _is_union(origin: Any) -> bool:
    return origin is typing.Union or origin is types.UnionType


def declared_type_text(annotation: Any) -> str:
    """Render an annotation as written, without typing module prefixes."""
    if _is_any(annotation):
        return ANY_TYPE_TEXT
    if isinstance(annotation, str):
        return annotation
    if isinstance(annotation, type) and typing.get_origin(annotation) is None:
        return annotation.__name__
    return str(annotation).replace("typing.", "").replace("collections.abc.", "")


def display_type_text(annotation: Any) -> str:
    """Render an annotation for usage output, with container decoration removed."""
    if _is_any(annotation):
        return ANY_TYPE_TEXT
    if isinstance(annotation, str):
        match = _GENERIC_TEXT_RE.match(annotation.strip())
        if match:
            return _base_name(match.group(1))
        return _strip_decoration(annotation)
    origin = typing.get_origin(annotation)
    if origin is not None and not _is_union(origin):
        return display_type_text(origin)
    if isinstance(annotation, type):
        return annotation.__name__
    return _strip_decoration(declared_type_text(annotation))


def _element_display(annotation: Any) -> str:
    args = [arg for arg in typing.get_args(annotation) if arg is not Ellipsis]
    if not args:
        return ANY_TYPE_TEXT
    texts: list[str] = []
    for arg in args:
        text = display_type_text(arg)
        if text not in texts:
            texts.append(text)
    return ", ".join(texts)


def _optional_members(annotation: Any) -> list[Any] | None:
    if not _is_union(typing.get_origin(annotation)):
        return None
    args = typing.get_args(annotation)
    if type(None) not in args:
        return None
    return [arg for arg in args if arg is not type(None)]


def _is_sequence(annotation: Any) -> bool:
    origin = typing.get_origin(annotation) or annotation
    return any(origin is candidate for candidate in _SEQUENCE_TYPES)


def _is_scalar(annotation: Any) -> bool:
    if typing.get_origin(annotation) is not None or not isinstance(annotation, type):
        return False
    return issubclass(annotation, _SCALAR_TYPES)


def _element_text_display(text: str) -> str:
    texts: list[str] = []
    for arg in _split_top_level(text, ","):
        if not arg or arg == "...":
            continue
        display = display_type_text(arg)
        if display not in texts:
            texts.append(display)
    return ", ".join(texts) if texts else ANY_TYPE_TEXT


def _classify_text(text: str) -> tuple[ArgumentKind, str]:
    """Classify annotation text that could not be evaluated by its outer shape.

    Examples:
        "list[Widget]" -> sequence of "Widget"
        "Optional[Widget]", "Widget | None" -> pointer_like "Widget"
    """
    text = text.strip()
    match = _GENERIC_TEXT_RE.match(text)
    members = _split_top_level(text, "|")
    if len(members) == 1 and match and _base_name(match.group(1)) in _OPTIONAL_NAMES:
        members = _split_top_level(match.group(2), ",")
        if _base_name(match.group(1)) == "Optional":
            members.append("None")

    if len(members) > 1 and "None" in members:
        shown = [display_type_text(member) for member in members if member != "None"]
        return ArgumentKind.POINTER_LIKE, " | ".join(shown)
    if match and _base_name(match.group(1)) in _SEQUENCE_NAMES:
        return ArgumentKind.SEQUENCE, _element_text_display(match.group(2))
    if _base_name(text) in _SEQUENCE_NAMES:
        return ArgumentKind.SEQUENCE, ANY_TYPE_TEXT
    if text in _SCALAR_NAMES:
        return ArgumentKind.SCALAR, text
    return ArgumentKind.OTHER, display_type_text(text)


def classify(annotation: Any, *, variadic: bool = False) -> ReflectedParameter:
    """Classify one annotation into a ReflectedParameter."""
    declared = declared_type_text(annotation)

    if variadic:
        # *args always arrives as a tuple of the annotated element type
        return ReflectedParameter(
            annotation=annotation,
            declared_type=declared,
            display_type=display_type_text(annotation),
            kind=ArgumentKind.SEQUENCE,
            is_any=_is_any(annotation),
            is_variadic=True,
        )

    members = _optional_members(annotation)
    if isinstance(annotation, str) and not _is_any(annotation):
        kind, display = _classify_text(annotation)
    elif members is not None:
        kind = ArgumentKind.POINTER_LIKE
        display = " | ".join(display_type_text(member) for member in members)
    elif _is_sequence(annotation):
        kind = ArgumentKind.SEQUENCE
        display = _element_display(annotation)
    elif _is_scalar(annotation):
        kind = ArgumentKind.SCALAR
        display = display_type_text(annotation)
    else:
        kind = ArgumentKind.OTHER
        display = display_type_text(annotation)

    return ReflectedParameter(
        annotation=annotation,
        declared_type=declared,
        display_type=display,
        kind=kind,
        is_any=_is_any(annotation),
    )


def _resolve_hints(target: Callable[..., Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(target)
    except (NameError, AttributeError, SyntaxError, TypeError):
        # One bad hint fails the whole lookup; parameters then resolve one by one
        return {}


def _evaluate_annotation(annotation: Any, namespace: dict[str, Any]) -> Any:
    """Evaluate string annotation text, keeping the text when it cannot be resolved."""
    if not isinstance(annotation, str):
        return annotation
    try:
        return eval(annotation, namespace)
    except (NameError, AttributeError, SyntaxError, TypeError):
        return annotation


def introspect(fn: Any) -> ReflectedSignature:
    """Reflect a function's identity, qualified name and parameter types.

    Bound methods are described without their implicit first parameter, and
    decorated functions are unwrapped to the function that carries the source.

    Raises:
        IntrospectionUnavailable: If the value is not a Python function, is
            anonymous, or uses a parameter layout that cannot be described.
    """
    implicit = 0
    target = fn
    if inspect.ismethod(target):
        target = target.__func__
        implicit = 1
    target = inspect.unwrap(target)

    if not inspect.isfunction(target):
        raise IntrospectionUnavailable(f"Not a Python function: {fn!r}")

    code = getattr(target, "__code__", None)
    if code is None:
        raise IntrospectionUnavailable(f"No code object attached to {fn!r}")

    if target.__name__ == "<lambda>":
        raise IntrospectionUnavailable("Anonymous functions have no symbol name")

    raw_name = f"{target.__module__}.{target.__qualname__}"
    params = list(inspect.signature(target).parameters.values())[implicit:]
    hints = _resolve_hints(target)

    reflected: list[ReflectedParameter] = []
    for index, param in enumerate(params):
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            raise IntrospectionUnavailable(
                f"{raw_name}: keyword variadic parameter '**{param.name}' is not supported"
            )
        variadic = param.kind is inspect.Parameter.VAR_POSITIONAL
        if variadic and index != len(params) - 1:
            raise IntrospectionUnavailable(
                f"{raw_name}: variadic parameter '*{param.name}' must be the last parameter"
            )
        if param.name in hints:
            annotation = hints[param.name]
        else:
            annotation = _evaluate_annotation(param.annotation, target.__globals__)
        reflected.append(classify(annotation, variadic=variadic))

    return ReflectedSignature(
        identity=FunctionIdentity(address=id(code), code=code),
        raw_name=raw_name,
        function=fn,
        parameters=tuple(reflected),
        is_variadic=bool(reflected) and reflected[-1].is_variadic,
        implicit_parameters=implicit,
    )
