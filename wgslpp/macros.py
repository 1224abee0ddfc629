"""Ordered macro table and single-pass substitution."""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Iterator

from wgslpp.errors import DuplicateMacroDefinition

logger = logging.getLogger(__name__)

# Characters that may continue an identifier; a macro only matches when it
# is not flanked by one of these.
_IDENT_CHAR = r"[A-Za-z0-9_]"


@dataclass(frozen=True)
class MacroDefinition:
    name: str
    replacement: str | None  # None marks an unfilled placeholder slot
    origin: str = "<registered>"

    @property
    def is_slot(self) -> bool:
        return self.replacement is None


class MacroTable:
    """Insertion-ordered mapping from macro name to its definition.

    A name can be defined once per build. Placeholder slots are entries
    without replacement text; they take part in duplicate detection but
    never in substitution until filled.
    """

    def __init__(self):
        self._defs: dict[str, MacroDefinition] = {}
        self._pattern: re.Pattern | None = None

    def define(self, name: str, replacement: str | None, origin: str = "<registered>") -> MacroDefinition:
        existing = self._defs.get(name)
        if existing is not None:
            raise DuplicateMacroDefinition(name, existing.origin, origin)
        definition = MacroDefinition(name, replacement, origin)
        self._defs[name] = definition
        self._pattern = None
        logger.debug("define %s at %s", name, origin)
        return definition

    def fill(self, name: str, replacement: str) -> MacroDefinition:
        """Give an existing placeholder slot its replacement text."""
        slot = self._defs[name]
        if not slot.is_slot:
            raise DuplicateMacroDefinition(name, slot.origin, "<registered>")
        definition = MacroDefinition(name, replacement, slot.origin)
        self._defs[name] = definition
        self._pattern = None
        return definition

    def __contains__(self, name: str) -> bool:
        return name in self._defs

    def __getitem__(self, name: str) -> MacroDefinition:
        return self._defs[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._defs)

    def __len__(self) -> int:
        return len(self._defs)

    def get(self, name: str) -> MacroDefinition | None:
        return self._defs.get(name)

    def slots(self) -> list[MacroDefinition]:
        return [d for d in self._defs.values() if d.is_slot]

    def _compiled(self) -> re.Pattern | None:
        if self._pattern is None:
            names = [d.name for d in self._defs.values() if not d.is_slot]
            if not names:
                return None
            # Longest first so that FOO_BAR wins over FOO at the same position.
            names.sort(key=len, reverse=True)
            alternation = "|".join(re.escape(n) for n in names)
            self._pattern = re.compile(
                rf"(?<!{_IDENT_CHAR})(?:{alternation})(?!{_IDENT_CHAR})"
            )
        return self._pattern

    def substitute(self, text: str) -> str:
        """Replace every whole-word macro occurrence in *text*.

        One pass only: replacement text is never scanned again.
        """
        pattern = self._compiled()
        if pattern is None:
            return text
        return pattern.sub(lambda m: self._defs[m.group(0)].replacement, text)
