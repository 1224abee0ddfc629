"""Build orchestration.

A BuildSession moves through LOADED -> FLATTENED -> SUBSTITUTED -> FINALIZED,
never backwards. Placeholder values and constants may be registered until
substitution starts. Each session owns its macro table and line buffer, so
independent sessions can run on different threads.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping

from wgslpp.errors import BuildStateError, DuplicateMacroDefinition, UndefinedPlaceholder
from wgslpp.expansion.includes import FlatLine, flatten
from wgslpp.injection import Injection, array_injection, constant_injection, value_injection
from wgslpp.loader import FileSourceLoader, SourceLoader
from wgslpp.macros import MacroTable

logger = logging.getLogger(__name__)


class BuildState(Enum):
    LOADED = "loaded"
    FLATTENED = "flattened"
    SUBSTITUTED = "substituted"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class ShaderSource:
    """Final preprocessed shader: a label and WGSL code."""
    label: str
    code: str

    def create_module(self, device):
        """Create a wgpu shader module from this source on *device*."""
        return device.create_shader_module(label=self.label, code=self.code)


def _terminator(text: str) -> str:
    stripped = text.rstrip("\r\n")
    return text[len(stripped):]


class BuildSession:
    def __init__(self, root: str | Path, loader: SourceLoader | None = None,
                 label: str | None = None):
        if loader is None:
            root_path = Path(root).resolve()
            loader = FileSourceLoader(root_path.parent)
            root = str(root_path)
        self.root = str(root)
        self.loader = loader
        self.label = label if label is not None else Path(self.root).stem
        self.macros = MacroTable()
        self.state = BuildState.LOADED
        self.result: ShaderSource | None = None

        self._injections: dict[str, Injection] = {}
        self._lines: list[FlatLine] = []
        self._text: str = ""

        self._root_key = loader.resolve(self.root)
        self._root_text = loader.read(self._root_key)
        logger.debug("loaded root %s", self._root_key)

    # --- Registration ---

    def register_placeholder(self, name: str, values) -> BuildSession:
        """Inject a private array declaration for placeholder *name*."""
        self._register(array_injection(name, values))
        return self

    def register_value(self, name: str, value) -> BuildSession:
        """Inject a private scalar or struct declaration for placeholder *name*."""
        self._register(value_injection(name, value))
        return self

    def define_constant(self, name: str, value) -> BuildSession:
        """Define *name* as a macro expanding to the literal text of *value*."""
        self._register(constant_injection(name, value))
        return self

    def _register(self, injection: Injection) -> None:
        if self.state not in (BuildState.LOADED, BuildState.FLATTENED):
            raise BuildStateError(self.state.name, f"register '{injection.name}'")
        if injection.name in self._injections:
            raise DuplicateMacroDefinition(injection.name, "<registered>", "<registered>")
        self._injections[injection.name] = injection

    # --- Transitions ---

    def _advance(self, expected: BuildState, new: BuildState, operation: str) -> None:
        if self.state is not expected:
            raise BuildStateError(self.state.name, operation)
        logger.debug("%s: %s -> %s", self.label, self.state.name, new.name)
        self.state = new

    def flatten(self) -> BuildSession:
        if self.state is not BuildState.LOADED:
            raise BuildStateError(self.state.name, "flatten")
        self._lines = flatten(self._root_key, self.loader, self.macros, self._root_text)
        self._advance(BuildState.LOADED, BuildState.FLATTENED, "flatten")
        return self

    def substitute(self) -> BuildSession:
        if self.state is not BuildState.FLATTENED:
            raise BuildStateError(self.state.name, "substitute")

        # Check everything before touching the table, so a failed call can be
        # retried after registering the missing values.
        for injection in self._injections.values():
            existing = self.macros.get(injection.name)
            if existing is not None and not (existing.is_slot and injection.fills_slot):
                raise DuplicateMacroDefinition(injection.name, existing.origin, "<registered>")

        missing = [slot.name for slot in self.macros.slots() if slot.name not in self._injections]
        if missing:
            raise UndefinedPlaceholder(missing)

        for injection in self._injections.values():
            if injection.name in self.macros:
                self.macros.fill(injection.name, injection.text)
            else:
                self.macros.define(injection.name, injection.text)

        parts = []
        for flat in self._lines:
            define = flat.define
            if define is None:
                parts.append(self.macros.substitute(flat.source.text))
            elif define.is_placeholder:
                declaration = self.macros[define.name].replacement
                parts.append(declaration + _terminator(flat.source.text))
        self._text = "".join(parts)
        self._lines = []

        self._advance(BuildState.FLATTENED, BuildState.SUBSTITUTED, "substitute")
        return self

    def finalize(self) -> ShaderSource:
        self._advance(BuildState.SUBSTITUTED, BuildState.FINALIZED, "finalize")
        self.result = ShaderSource(self.label, self._text)
        return self.result

    def run(self) -> ShaderSource:
        """Perform every remaining transition and return the final source."""
        if self.state is BuildState.LOADED:
            self.flatten()
        if self.state is BuildState.FLATTENED:
            self.substitute()
        if self.state is BuildState.SUBSTITUTED:
            return self.finalize()
        raise BuildStateError(self.state.name, "run")


def build(
    root: str | Path,
    placeholders: Mapping[str, object] | None = None,
    values: Mapping[str, object] | None = None,
    constants: Mapping[str, object] | None = None,
    loader: SourceLoader | None = None,
    label: str | None = None,
) -> ShaderSource:
    """Preprocess *root* in one call.

    Args:
        root: Root shader path (or key understood by *loader*).
        placeholders: name -> sequence of values, injected as arrays.
        values: name -> single value, injected as a scalar/struct variable.
        constants: name -> value, defined as plain literal macros.
        loader: Source loader; defaults to reading files relative to the
            root file's directory.
        label: Result label; defaults to the root file stem.
    """
    session = BuildSession(root, loader=loader, label=label)
    for name, items in (placeholders or {}).items():
        session.register_placeholder(name, items)
    for name, value in (values or {}).items():
        session.register_value(name, value)
    for name, value in (constants or {}).items():
        session.define_constant(name, value)
    return session.run()
