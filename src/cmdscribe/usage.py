"""Usage banner rendering for registered commands."""

import logging
from typing import Iterable

from cmdscribe.constants import LINE_LENGTH, USAGE_PREFIX
from cmdscribe.descriptors import ArgumentDescriptor, FunctionDescriptor
from cmdscribe.introspect import ArgumentKind
from cmdscribe.logging_utils import log_event


def wrap_description(paragraph: str, width: int = LINE_LENGTH) -> str:
    """Greedy word wrap; a word longer than the width gets a line of its own."""
    lines: list[str] = []
    current = ""
    for word in paragraph.split():
        if current and len(current) + 1 + len(word) > width:
            lines.append(current)
            current = word
        else:
            current = f"{current} {word}" if current else word
    if current:
        lines.append(current)
    return "\n".join(lines)


def format_argument(argument: ArgumentDescriptor) -> str:
    """Render one argument as an option fragment.

    Examples:
        variadic slot -> "opts [...any]"
        sequence      -> "paths=[...str]"
        otherwise     -> "force=<bool>"
    """
    if argument.is_variadic_slot:
        text = f"{argument.name} [...{argument.display_type}]"
    elif argument.kind is ArgumentKind.SEQUENCE:
        text = f"{argument.name}=[...{argument.display_type}]"
    else:
        text = f"{argument.name}=<{argument.display_type}>"
    return text.lower()


def format_function(descriptor: FunctionDescriptor) -> str:
    """Render a function as `name [arg, ...]`, or `--name` when it takes nothing."""
    arguments = ", ".join(format_argument(argument) for argument in descriptor.arguments)
    if arguments:
        return f"{descriptor.display_name} [{arguments}]"
    return f"--{descriptor.display_name}"


def wrap_options(
    program_name: str,
    descriptors: Iterable[FunctionDescriptor],
    width: int = LINE_LENGTH,
) -> str:
    """Pack bracketed function options behind the `usage: <program>` prefix.

    Continuation lines hang under the opening bracket. Every line keeps one
    column free for the closing bracket of the block.
    """
    prefix = f"{USAGE_PREFIX} {program_name}"
    offset = len(prefix)
    rows: list[list[str]] = [[]]

    for descriptor in descriptors:
        option = f"[{format_function(descriptor)}]"
        row = rows[-1]
        indent = offset + 2 if len(rows) == 1 else offset + 1
        needed = indent + len(" ".join(row + [option])) + 1
        if row and needed > width:
            rows.append([option])
        else:
            row.append(option)

    padding = " " * (offset + 1)
    lines = [f"{prefix} [{' '.join(rows[0])}"]
    lines.extend(f"{padding}{' '.join(row)}" for row in rows[1:])
    return "\n".join(lines) + "]"


def render_usage(
    program_name: str,
    description: str,
    descriptors: Iterable[FunctionDescriptor],
    width: int = LINE_LENGTH,
) -> str:
    """Render the full usage document: wrapped description, blank line, options.

    An empty description renders the options block alone, without the blank
    line that would otherwise separate it.
    """
    descriptors = list(descriptors)
    about = wrap_description(description, width)
    options = wrap_options(program_name, descriptors, width)
    document = f"{about}\n\n{options}" if about else options

    log_event(
        "usage_rendered",
        level=logging.DEBUG,
        program=program_name,
        command_count=len(descriptors),
        line_count=len(document.splitlines()),
    )
    return document
