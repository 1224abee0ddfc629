"""Declarations injected in place of ``//!define NAME`` placeholder lines."""

from __future__ import annotations
from dataclasses import dataclass

from wgslpp.errors import FormatFailure
from wgslpp.formatting import format_value, format_values


@dataclass(frozen=True)
class Injection:
    name: str
    text: str
    kind: str  # "array", "value" or "constant"

    @property
    def fills_slot(self) -> bool:
        return self.kind != "constant"


def array_declaration(name: str, values) -> str:
    """Build a private array variable holding *values*.

    Elements are joined with bare commas and the list ends with a trailing
    comma, e.g. ``var<private> A: array<i32, 2> = array<i32, 2>(1,0,);``.
    """
    type_name, literals = format_values(values)
    if not type_name:
        raise FormatFailure(values, "elements have no WGSL type name")
    array_type = f"array<{type_name}, {len(literals)}>"
    body = "".join(f"{lit}," for lit in literals)
    return f"var<private> {name}: {array_type} = {array_type}({body});"


def value_declaration(name: str, value) -> str:
    formatted = format_value(value)
    if not formatted.type_name:
        raise FormatFailure(value, "value has no WGSL type name")
    return f"var<private> {name}: {formatted.type_name} = {formatted.literal};"


def array_injection(name: str, values) -> Injection:
    return Injection(name, array_declaration(name, values), "array")


def value_injection(name: str, value) -> Injection:
    return Injection(name, value_declaration(name, value), "value")


def constant_injection(name: str, value) -> Injection:
    return Injection(name, format_value(value).literal, "constant")
