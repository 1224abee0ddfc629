"""Include expansion.

Flattens a root shader file by replacing every ``//!include`` line with the
flattened contents of its targets, depth-first and left to right. The
traversal keeps its own frame stack and ancestor chain instead of recursing,
so cycles are reported with the full chain and deep include trees are not
bounded by the interpreter's recursion limit.

Define lines are forwarded to the macro table in document order as they
are met and stay in the output; the session decides later what to do with
them.
"""

from __future__ import annotations
import logging
import re
from collections import deque
from dataclasses import dataclass, field
from typing import Iterator

from wgslpp.errors import CyclicInclude, DirectiveSyntaxError
from wgslpp.loader import SourceLoader
from wgslpp.macros import MacroTable
from wgslpp.parser.directives import (
    DefineDirective, DirectiveParseError, IncludeDirective, scan_line,
)

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"(?<=\n)")


@dataclass(frozen=True)
class SourceLine:
    text: str
    path: str
    lineno: int

    @property
    def location(self) -> str:
        return f"{self.path}:{self.lineno}"


@dataclass(frozen=True)
class FlatLine:
    source: SourceLine
    define: DefineDirective | None = None


@dataclass
class _Frame:
    key: str
    lines: Iterator[SourceLine]
    pending: deque[str] = field(default_factory=deque)


def split_source(text: str, path: str, terminate: bool = False) -> list[SourceLine]:
    """Split text into SourceLines, keeping each line's terminator.

    With *terminate*, a missing terminator on the last line is added so the
    text can be spliced in front of other lines.
    """
    # Only "\n" ends a line; form feeds and other separators stay inside it.
    raw = [t for t in _LINE_RE.split(text) if t]
    if terminate and raw and not raw[-1].endswith("\n"):
        raw[-1] += "\n"
    return [SourceLine(t, path, i + 1) for i, t in enumerate(raw)]


def flatten(root: str, loader: SourceLoader, macros: MacroTable,
            root_text: str | None = None) -> list[FlatLine]:
    """Return the include-free line stream for *root*.

    *root* is an include target understood by *loader*. When *root_text* is
    given it is used instead of reading the root again.
    """
    root_key = loader.resolve(root)
    if root_text is None:
        root_text = loader.read(root_key)

    out: list[FlatLine] = []
    chain: list[str] = [root_key]
    stack: list[_Frame] = [_Frame(root_key, iter(split_source(root_text, root_key)))]

    while stack:
        frame = stack[-1]

        if frame.pending:
            key = loader.resolve(frame.pending.popleft())
            if key in chain:
                raise CyclicInclude(chain + [key])
            text = loader.read(key)
            logger.debug("include %s (depth %d)", key, len(chain))
            chain.append(key)
            stack.append(_Frame(key, iter(split_source(text, key, terminate=True))))
            continue

        line = next(frame.lines, None)
        if line is None:
            stack.pop()
            chain.pop()
            continue

        try:
            directive = scan_line(line.text)
        except DirectiveParseError as e:
            raise DirectiveSyntaxError(line.path, line.lineno, line.text) from e

        if isinstance(directive, IncludeDirective):
            frame.pending.extend(directive.targets)
        elif isinstance(directive, DefineDirective):
            macros.define(
                directive.name,
                None if directive.is_placeholder else directive.replacement,
                line.location,
            )
            out.append(FlatLine(line, directive))
        else:
            out.append(FlatLine(line))

    return out
