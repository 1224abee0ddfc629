"""Chained convenience wrapper around BuildSession."""

from __future__ import annotations
from pathlib import Path
from typing import Mapping

from wgslpp.loader import SourceLoader
from wgslpp.session import BuildSession, ShaderSource


class ShaderBuilder:
    """Collects constants and placeholder values, then builds once.

    Example::

        source = (
            ShaderBuilder("shaders/main.wgsl")
            .put_constant("WORKGROUP_SIZE", U32(64))
            .put_array_definition("COLORS", colors)
            .build()
        )
    """

    def __init__(self, source_path: str | Path, loader: SourceLoader | None = None,
                 label: str | None = None):
        self.session = BuildSession(source_path, loader=loader, label=label)

    def put_constant(self, name: str, value) -> ShaderBuilder:
        self.session.define_constant(name, value)
        return self

    def put_constant_map(self, constants: Mapping[str, object]) -> ShaderBuilder:
        for name, value in constants.items():
            self.session.define_constant(name, value)
        return self

    def put_array_definition(self, name: str, values) -> ShaderBuilder:
        self.session.register_placeholder(name, values)
        return self

    def put_value_definition(self, name: str, value) -> ShaderBuilder:
        self.session.register_value(name, value)
        return self

    def build(self) -> ShaderSource:
        if self.session.result is not None:
            return self.session.result
        return self.session.run()

    @property
    def source_string(self) -> str:
        return self.build().code
