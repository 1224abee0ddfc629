"""Tests for build sessions, placeholder injection and the builder API."""

import threading
from dataclasses import dataclass

import numpy as np
import pytest
from pathlib import Path

from wgslpp.builder import ShaderBuilder
from wgslpp.errors import (
    BuildStateError, DuplicateMacroDefinition, FormatFailure, UndefinedPlaceholder,
)
from wgslpp.formatting import U32
from wgslpp.loader import DictSourceLoader
from wgslpp.session import BuildSession, BuildState, ShaderSource, build

SHADERS = Path(__file__).parent / "fixtures" / "shaders"


@dataclass
class Light:
    color: np.ndarray
    intensity: float


class Struct:
    def __init__(self, data):
        self.data = data

    def wgsl_type_name(self):
        return "Struct"

    def wgsl_literal(self):
        return "Struct(vec4<f32>({}))".format(",".join(repr(float(x)) for x in self.data))


def _processed(name: str) -> str:
    return (SHADERS / name).read_text()


def _session(sources: dict[str, str], root: str = "main.wgsl") -> BuildSession:
    return BuildSession(root, loader=DictSourceLoader(sources))


class TestArrayDefinitions:
    def test_bools(self):
        code = (
            ShaderBuilder(SHADERS / "put_array_definition_bools.wgsl")
            .put_array_definition("BOOL_ARRAY", [True, False])
            .source_string
        )
        assert code == _processed("put_array_definition_bools_processed.wgsl")

    def test_scalars(self):
        code = (
            ShaderBuilder(SHADERS / "put_array_definition_scalars.wgsl")
            .put_array_definition("SCALAR_ARRAY", [1, 0])
            .source_string
        )
        assert code == _processed("put_array_definition_scalars_processed.wgsl")

    def test_structs(self):
        code = (
            ShaderBuilder(SHADERS / "put_array_definition_structs.wgsl")
            .put_array_definition("STRUCT_ARRAY", [
                Struct([1.0, 2.0, 3.0, 4.0]),
                Struct([1.5, 2.1, 3.7, 4.9]),
            ])
            .source_string
        )
        assert code == _processed("put_array_definition_structs_processed.wgsl")

    def test_exact_struct_array_line(self):
        result = build("main", placeholders={"STRUCT_ARRAY": [
            Struct([1.0, 2.0, 3.0, 4.0]),
            Struct([1.5, 2.1, 3.7, 4.9]),
        ]}, loader=DictSourceLoader({"main": "//!define STRUCT_ARRAY"}))
        assert result.code == (
            "var<private> STRUCT_ARRAY: array<Struct, 2> = array<Struct, 2>("
            "Struct(vec4<f32>(1.0,2.0,3.0,4.0)),Struct(vec4<f32>(1.5,2.1,3.7,4.9)),);"
        )

    def test_numpy_vectors(self):
        code = (
            ShaderBuilder(SHADERS / "put_array_definition_vectors.wgsl")
            .put_array_definition("VECTOR_ARRAY", [
                np.array([1.0, 2.0, 3.0, 4.0], dtype=np.float32),
                np.array([1.5, 2.1, 3.7, 4.9], dtype=np.float32),
            ])
            .source_string
        )
        assert code == _processed("put_array_definition_vectors_processed.wgsl")

    def test_placeholder_inside_include(self):
        result = build(SHADERS / "compute.wgsl", placeholders={"LIGHTS": [
            Light(np.array([1.0, 0.5, 0.25], dtype=np.float32), 2.0),
            Light(np.array([0.0, 0.0, 1.0], dtype=np.float32), 0.5),
        ]})
        assert result.code == _processed("compute_processed.wgsl")
        assert result.label == "compute"

    def test_other_occurrences_use_declaration_text(self):
        result = _session({"main.wgsl": "//!define A\n// uses A\n"}) \
            .register_placeholder("A", [U32(1)]).run()
        decl = "var<private> A: array<u32, 1> = array<u32, 1>(1u,);"
        assert result.code == f"{decl}\n// uses {decl}\n"

    def test_slot_line_keeps_crlf(self):
        result = _session({"main.wgsl": "//!define A\r\nx\r\n"}) \
            .register_value("A", 1.5).run()
        assert result.code == "var<private> A: f32 = 1.5;\r\nx\r\n"

    def test_mixed_element_types_fail(self):
        session = _session({"main.wgsl": "//!define A\n"})
        with pytest.raises(FormatFailure):
            session.register_placeholder("A", [1, True])


class TestValueDefinitions:
    def test_scalar(self):
        result = _session({"main.wgsl": "//!define COUNT\n"}).register_value("COUNT", U32(4)).run()
        assert result.code == "var<private> COUNT: u32 = 4u;\n"

    def test_struct(self):
        light = Light(np.array([1.0, 1.0, 1.0], dtype=np.float32), 0.5)
        result = build("main.wgsl", values={"SUN": light},
                       loader=DictSourceLoader({"main.wgsl": "//!define SUN\n"}))
        assert result.code == "var<private> SUN: Light = Light(vec3<f32>(1.0, 1.0, 1.0), 0.5);\n"


class TestConstants:
    def test_put_constant(self):
        code = (
            ShaderBuilder(SHADERS / "set_constants.wgsl")
            .put_constant("ONE", U32(1))
            .put_constant("TWO", U32(2))
            .source_string
        )
        assert code == _processed("set_constants_processed.wgsl")

    def test_put_constant_map(self):
        code = (
            ShaderBuilder(SHADERS / "set_constants.wgsl")
            .put_constant_map({"ONE": U32(1), "TWO": U32(2)})
            .source_string
        )
        assert code == _processed("set_constants_processed.wgsl")

    def test_constant_clashing_with_source_define(self):
        session = _session({"main.wgsl": "//!define SIZE 4\nSIZE\n"}).define_constant("SIZE", 8)
        with pytest.raises(DuplicateMacroDefinition):
            session.run()

    def test_constant_cannot_fill_slot(self):
        session = _session({"main.wgsl": "//!define SIZE\n"}).define_constant("SIZE", 8)
        with pytest.raises(DuplicateMacroDefinition):
            session.run()


class TestMacroBehaviour:
    def test_use_before_define(self):
        result = _session({"main.wgsl": "USE MACRO\n//!define MACRO replacement\n"}).run()
        assert result.code == "USE replacement\n"

    def test_define_in_include_applies_to_root(self):
        result = _session({
            "main.wgsl": "let n = N;\n//!include defs.wgsl\n",
            "defs.wgsl": "//!define N 3\n",
        }).run()
        assert result.code == "let n = 3;\n"

    def test_no_recursive_expansion(self):
        result = _session({"main.wgsl": "//!define A B\n//!define B 2\nA B\n"}).run()
        assert result.code == "B 2\n"

    def test_duplicate_define_fails(self):
        session = _session({
            "main.wgsl": "//!define X 1\n//!include other.wgsl\n",
            "other.wgsl": "//!define X 2\n",
        })
        with pytest.raises(DuplicateMacroDefinition) as exc:
            session.run()
        assert exc.value.first == "main.wgsl:1"
        assert exc.value.second == "other.wgsl:1"

    def test_define_lines_removed(self):
        result = _session({"main.wgsl": "a\n//!define X 1\nb\n"}).run()
        assert result.code == "a\nb\n"


class TestUndefinedPlaceholders:
    def test_unset_fails(self):
        with pytest.raises(UndefinedPlaceholder) as exc:
            _session({"main.wgsl": "//!define UNSET\n"}).run()
        assert exc.value.names == ["UNSET"]

    def test_all_missing_names_reported(self):
        session = _session({"main.wgsl": "//!define A\n//!define B\n//!define C\n"})
        session.register_value("B", 1)
        with pytest.raises(UndefinedPlaceholder) as exc:
            session.run()
        assert exc.value.names == ["A", "C"]

    def test_registration_without_slot_is_plain_macro(self):
        result = _session({"main.wgsl": "X\n"}).register_value("X", 1).run()
        assert result.code == "var<private> X: i32 = 1;\n"

    def test_retry_after_registering_missing_value(self):
        session = _session({"main.wgsl": "//!define A\n//!define B\n"})
        session.register_value("A", 1)
        with pytest.raises(UndefinedPlaceholder):
            session.run()
        assert session.state is BuildState.FLATTENED
        session.register_value("B", 2)
        assert session.run().code == (
            "var<private> A: i32 = 1;\n"
            "var<private> B: i32 = 2;\n"
        )

    def test_builder_retry_reports_same_error(self):
        builder = ShaderBuilder("main.wgsl", loader=DictSourceLoader({
            "main.wgsl": "//!define A\n//!define B\n",
        })).put_value_definition("A", 1)
        for _ in range(2):
            with pytest.raises(UndefinedPlaceholder) as exc:
                builder.build()
            assert exc.value.names == ["B"]


class TestStateMachine:
    def test_transitions(self):
        session = _session({"main.wgsl": "a\n"})
        assert session.state is BuildState.LOADED
        session.flatten()
        assert session.state is BuildState.FLATTENED
        session.substitute()
        assert session.state is BuildState.SUBSTITUTED
        result = session.finalize()
        assert session.state is BuildState.FINALIZED
        assert result == ShaderSource("main", "a\n")

    def test_register_after_flatten_allowed(self):
        session = _session({"main.wgsl": "//!define A\n"}).flatten()
        session.register_value("A", True)
        assert session.run().code == "var<private> A: bool = true;\n"

    def test_register_after_substitute_rejected(self):
        session = _session({"main.wgsl": "a\n"}).flatten().substitute()
        with pytest.raises(BuildStateError):
            session.register_value("A", 1)

    @pytest.mark.parametrize("step", ["substitute", "finalize"])
    def test_out_of_order(self, step):
        session = _session({"main.wgsl": "a\n"})
        with pytest.raises(BuildStateError):
            getattr(session, step)()

    def test_no_revisit(self):
        session = _session({"main.wgsl": "a\n"})
        session.run()
        with pytest.raises(BuildStateError):
            session.flatten()
        with pytest.raises(BuildStateError):
            session.run()

    def test_duplicate_registration(self):
        session = _session({"main.wgsl": "//!define A\n"}).register_value("A", 1)
        with pytest.raises(DuplicateMacroDefinition):
            session.register_placeholder("A", [1])

    def test_builder_builds_once(self):
        builder = ShaderBuilder("main.wgsl", loader=DictSourceLoader({"main.wgsl": "x\n"}))
        assert builder.build() is builder.build()
        with pytest.raises(BuildStateError):
            builder.put_constant("X", 1)

    def test_label_override(self):
        result = build("main.wgsl", loader=DictSourceLoader({"main.wgsl": ""}), label="blit")
        assert result.label == "blit"
        assert result.code == ""


class TestShaderSource:
    def test_create_module(self):
        class FakeDevice:
            def create_shader_module(self, **kwargs):
                self.kwargs = kwargs
                return "module"

        device = FakeDevice()
        assert ShaderSource("main", "fn f() {}").create_module(device) == "module"
        assert device.kwargs == {"label": "main", "code": "fn f() {}"}


class TestIsolation:
    def test_parallel_sessions(self):
        results = {}

        def run(i):
            loader = DictSourceLoader({
                "main.wgsl": "//!include inc.wgsl\nV\n",
                "inc.wgsl": f"//!define V {i}\n",
            })
            results[i] = build("main.wgsl", loader=loader).code

        threads = [threading.Thread(target=run, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results == {i: f"{i}\n" for i in range(8)}
