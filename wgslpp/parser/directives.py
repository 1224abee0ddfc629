"""Directive line scanner built on a small Lark grammar."""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from lark import Lark, Transformer, Token
from lark.exceptions import LarkError

INSTRUCTION_PREFIX = "//!"
INCLUDE_INSTRUCTION = INSTRUCTION_PREFIX + "include"
DEFINE_INSTRUCTION = INSTRUCTION_PREFIX + "define"

_GRAMMAR_PATH = Path(__file__).parent.parent / "grammar" / "directives.lark"

_parser = Lark(
    _GRAMMAR_PATH.read_text(encoding="utf-8"),
    parser="lalr",
)


@dataclass(frozen=True)
class IncludeDirective:
    targets: tuple[str, ...]


@dataclass(frozen=True)
class DefineDirective:
    name: str
    replacement: str = ""

    @property
    def is_placeholder(self) -> bool:
        """A define without replacement text marks an injection slot."""
        return self.replacement == ""


class DirectiveParseError(ValueError):
    pass


class DirectiveTransformer(Transformer):
    def start(self, items):
        return items[0]

    def include(self, items):
        return IncludeDirective(tuple(str(t) for t in items))

    def define(self, items):
        name = str(items[0])
        replacement = ""
        if len(items) > 1 and isinstance(items[1], Token):
            replacement = str(items[1]).lstrip(" \t")
        return DefineDirective(name, replacement)


def _marker_of(line: str) -> str | None:
    for marker in (INCLUDE_INSTRUCTION, DEFINE_INSTRUCTION):
        if line.startswith(marker):
            rest = line[len(marker):]
            if rest == "" or rest[0] in " \t\r\n":
                return marker
    return None


def is_directive(line: str) -> bool:
    return _marker_of(line) is not None


def scan_line(line: str) -> IncludeDirective | DefineDirective | None:
    """Classify one source line.

    Returns an IncludeDirective or DefineDirective for directive lines and
    None for plain text. Raises DirectiveParseError when a line starts
    with a directive marker but is missing its operands.
    """
    if _marker_of(line) is None:
        return None
    text = line.rstrip("\r\n")
    try:
        tree = _parser.parse(text)
    except LarkError as e:
        raise DirectiveParseError(str(e)) from e
    return DirectiveTransformer().transform(tree)
