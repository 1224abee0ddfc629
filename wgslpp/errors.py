"""Errors raised while building a shader source."""

from __future__ import annotations


class BuildError(Exception):
    """Base class for every failure that aborts a build."""


class LoadFailure(BuildError):
    def __init__(self, path: str, reason: str = "not found"):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load shader source '{path}': {reason}")


class CyclicInclude(BuildError):
    def __init__(self, chain: list[str]):
        self.chain = list(chain)
        super().__init__(
            f"Cyclic include of '{self.chain[-1]}': " + " -> ".join(self.chain)
        )


class DuplicateMacroDefinition(BuildError):
    def __init__(self, name: str, first: str, second: str):
        self.name = name
        self.first = first
        self.second = second
        super().__init__(
            f"Macro '{name}' defined more than once (first at {first}, again at {second})"
        )


class UndefinedPlaceholder(BuildError):
    def __init__(self, names: list[str]):
        self.names = list(names)
        super().__init__(
            "No value registered for placeholder(s): " + ", ".join(self.names)
        )


class FormatFailure(BuildError):
    def __init__(self, value: object, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(f"Cannot format {value!r} as a WGSL literal: {reason}")


class DirectiveSyntaxError(BuildError):
    def __init__(self, path: str, line: int, text: str):
        self.path = path
        self.line = line
        self.text = text
        super().__init__(f"{path}:{line}: malformed directive: {text.rstrip()}")


class BuildStateError(BuildError):
    """A session operation was called in the wrong state."""

    def __init__(self, state: str, operation: str):
        self.state = state
        self.operation = operation
        super().__init__(f"Cannot {operation} in state {state}")
