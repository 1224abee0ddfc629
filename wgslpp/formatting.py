"""Value formatting: Python values -> WGSL type names and literal text.

``format_value`` is a single-dispatch function. Objects that implement
``wgsl_type_name()`` and ``wgsl_literal()`` format themselves; built-in
adapters cover bool, int (i32), float (f32), numpy scalars, 1-D numpy
vectors and dataclass instances. More adapters can be added with
``format_value.register``.
"""

from __future__ import annotations
import dataclasses
from dataclasses import dataclass
from functools import singledispatch
from typing import Protocol, runtime_checkable

import numpy as np

from wgslpp.errors import FormatFailure

_I32_MIN, _I32_MAX = -(2 ** 31), 2 ** 31 - 1
_U32_MAX = 2 ** 32 - 1

# numpy dtype kind/size -> WGSL scalar type
_NUMPY_SCALARS = {
    ("b", 1): "bool",
    ("i", 4): "i32",
    ("i", 8): "i32",
    ("u", 4): "u32",
    ("u", 8): "u32",
    ("f", 4): "f32",
    ("f", 8): "f32",
    ("f", 2): "f16",
}


@runtime_checkable
class WgslValue(Protocol):
    def wgsl_type_name(self) -> str: ...

    def wgsl_literal(self) -> str: ...


@dataclass(frozen=True)
class FormattedValue:
    type_name: str
    literal: str


@dataclass(frozen=True)
class U32:
    """An unsigned 32-bit integer; prints with the ``u`` suffix."""
    value: int

    def wgsl_type_name(self) -> str:
        return "u32"

    def wgsl_literal(self) -> str:
        if not 0 <= self.value <= _U32_MAX:
            raise ValueError(f"{self.value} is out of range for u32")
        return f"{self.value}u"


@dataclass(frozen=True)
class Literal:
    """Literal text passed through untouched."""
    text: str
    type_name: str = ""

    def wgsl_type_name(self) -> str:
        return self.type_name

    def wgsl_literal(self) -> str:
        return self.text


def _float_text(value: float, dtype=np.float32) -> str:
    with np.errstate(over="ignore"):
        narrowed = dtype(value)
    if not np.isfinite(narrowed):
        raise ValueError(f"{value!r} is not a finite {np.dtype(dtype).name} value")
    return np.format_float_positional(narrowed, unique=True, trim="0")


@singledispatch
def format_value(value: object) -> FormattedValue:
    """Return the WGSL type name and literal text for *value*.

    Raises FormatFailure when no adapter applies or the adapter rejects
    the value.
    """
    if isinstance(value, WgslValue):
        try:
            return FormattedValue(value.wgsl_type_name(), value.wgsl_literal())
        except (ValueError, TypeError, OverflowError) as e:
            raise FormatFailure(value, str(e)) from e
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _format_struct(value)
    raise FormatFailure(value, f"no WGSL formatter for type {type(value).__name__}")


@format_value.register
def _(value: bool) -> FormattedValue:
    return FormattedValue("bool", "true" if value else "false")


@format_value.register
def _(value: int) -> FormattedValue:
    if not _I32_MIN <= value <= _I32_MAX:
        raise FormatFailure(value, "out of range for i32")
    return FormattedValue("i32", str(value))


@format_value.register
def _(value: float) -> FormattedValue:
    try:
        return FormattedValue("f32", _float_text(value))
    except ValueError as e:
        raise FormatFailure(value, str(e)) from e


@format_value.register
def _(value: np.generic) -> FormattedValue:
    type_name = _NUMPY_SCALARS.get((value.dtype.kind, value.dtype.itemsize))
    if type_name is None:
        raise FormatFailure(value, f"numpy dtype {value.dtype} has no WGSL scalar type")
    return FormattedValue(type_name, _scalar_text(value, type_name))


@format_value.register
def _(value: np.ndarray) -> FormattedValue:
    if value.ndim != 1 or value.shape[0] not in (2, 3, 4):
        raise FormatFailure(value, f"only 1-D arrays of length 2-4 map to vectors, got shape {value.shape}")
    component = _NUMPY_SCALARS.get((value.dtype.kind, value.dtype.itemsize))
    if component is None:
        raise FormatFailure(value, f"numpy dtype {value.dtype} has no WGSL scalar type")
    type_name = f"vec{value.shape[0]}<{component}>"
    parts = ", ".join(_scalar_text(v, component) for v in value)
    return FormattedValue(type_name, f"{type_name}({parts})")


def _scalar_text(value: np.generic, type_name: str) -> str:
    if type_name == "bool":
        return "true" if bool(value) else "false"
    if type_name in ("i32", "u32"):
        n = int(value)
        low, high = (0, _U32_MAX) if type_name == "u32" else (_I32_MIN, _I32_MAX)
        if not low <= n <= high:
            raise FormatFailure(value, f"out of range for {type_name}")
        return f"{n}u" if type_name == "u32" else str(n)
    try:
        text = _float_text(float(value), np.float16 if type_name == "f16" else np.float32)
    except ValueError as e:
        raise FormatFailure(value, str(e)) from e
    return text + "h" if type_name == "f16" else text


def _format_struct(value) -> FormattedValue:
    """Dataclass instance -> struct constructor, fields in declaration order."""
    name = type(value).__name__
    parts = [format_value(getattr(value, f.name)).literal for f in dataclasses.fields(value)]
    return FormattedValue(name, f"{name}({', '.join(parts)})")


def format_values(values) -> tuple[str, list[str]]:
    """Format a non-empty sequence sharing one type name.

    Returns (type_name, literals).
    """
    values = list(values)
    formatted = [format_value(v) for v in values]
    if not formatted:
        raise FormatFailure(values, "cannot declare an empty array")
    type_name = formatted[0].type_name
    for v, f in zip(values, formatted):
        if f.type_name != type_name:
            raise FormatFailure(v, f"element type {f.type_name} does not match {type_name}")
    return type_name, [f.literal for f in formatted]
