"""Tests for the builder code writer."""

from __future__ import annotations

import logging

import pytest

from struct_builder_generator.rust_source import parse_declarations
from struct_builder_generator.writer import StructuralInputError, Writer, generate_builder


def _method(artifact, name):
    for bundle in artifact.bundles:
        for method in bundle.methods:
            if method.name == name:
                return method
    raise KeyError(name)


class TestFieldMethods:
    """Setters generated per field."""

    def test_required_field_methods(self, simple_decl):
        artifact = generate_builder(simple_decl)

        assert artifact.bundles[0].method_names == ["req", "with_req"]
        assert _method(artifact, "req").lines() == [
            "#[inline]",
            "pub fn req(&mut self, value: String) -> &mut Self {",
            "    self.req = value;",
            "    self",
            "}",
        ]
        assert _method(artifact, "with_req").lines() == [
            "#[inline]",
            "pub fn with_req(self, value: String) -> Self {",
            "    Self {",
            "        req: value,",
            "        ..self",
            "    }",
            "}",
        ]

    def test_optional_field_methods(self, simple_decl):
        artifact = generate_builder(simple_decl)

        assert artifact.bundles[2].method_names == [
            "note",
            "reset_note",
            "mopt_note",
            "with_note",
            "without_note",
            "opt_note",
        ]
        assert "pub fn note(&mut self, value: String) -> &mut Self {" in _method(artifact, "note").lines()
        assert "    self.note = Some(value);" in _method(artifact, "note").lines()
        assert "pub fn reset_note(&mut self) -> &mut Self {" in _method(artifact, "reset_note").lines()
        assert (
            "pub fn mopt_note(&mut self, value: Option<String>) -> &mut Self {"
            in _method(artifact, "mopt_note").lines()
        )
        assert "        note: None," in _method(artifact, "without_note").lines()
        assert "pub fn opt_note(self, value: Option<String>) -> Self {" in _method(artifact, "opt_note").lines()

    def test_defaulted_field_is_set_like_a_required_field(self, defaults_decl):
        artifact = generate_builder(defaults_decl)
        assert artifact.bundles[1].method_names == ["req_field2", "with_req_field2"]

    def test_raw_identifier_field(self, declaration_of):
        decl = declaration_of("#[derive(Builder)]\nstruct Token { r#type: String }\n")
        artifact = generate_builder(decl)

        assert artifact.bundles[0].method_names == ["r#type", "with_type"]
        assert "    self.r#type = value;" in _method(artifact, "r#type").lines()

    def test_method_names_are_unique(self, simple_decl, generic_decl, defaults_decl):
        for decl in (simple_decl, generic_decl, defaults_decl):
            assert generate_builder(decl).duplicate_method_names == []

    def test_colliding_method_names_are_reported(self, declaration_of, caplog):
        decl = declaration_of("#[derive(Builder)]\nstruct Clash { value: Option<u8>, with_value: u8 }\n")

        with caplog.at_level(logging.WARNING):
            artifact = generate_builder(decl)

        assert artifact.duplicate_method_names == ["with_value"]
        assert "with_value" in caplog.text


class TestFactory:
    """The `new` method."""

    def test_required_parameters_in_declaration_order(self, simple_decl):
        factory = generate_builder(simple_decl).factory

        assert factory.lines() == [
            "pub fn new(req: String, count: i32) -> Self {",
            "    Self {",
            "        req: req,",
            "        count: count,",
            "        note: None,",
            "    }",
            "}",
        ]

    def test_defaults_are_spliced(self, defaults_decl):
        lines = generate_builder(defaults_decl).factory.lines()

        assert lines[0] == "pub fn new(req_field1: String) -> Self {"
        assert "        req_field2: 10," in lines
        assert "        opt_field1: None," in lines
        assert "        opt_field2: Some(11)," in lines

    def test_string_literal_defaults(self, declaration_of):
        source = (
            "#[derive(Builder)]\n"
            "struct Named {\n"
            '    #[default = "\\"x\\".to_string()"]\n'
            "    first: String,\n"
            '    #[default = r#"String::from("y")"#]\n'
            "    second: String,\n"
            "}\n"
        )
        lines = generate_builder(declaration_of(source)).factory.lines()

        assert lines[0] == "pub fn new() -> Self {"
        assert '        first: "x".to_string(),' in lines
        assert '        second: String::from("y"),' in lines

    def test_no_required_fields(self, declaration_of):
        decl = declaration_of("#[derive(Builder)]\nstruct Empty {}\n")
        artifact = generate_builder(decl)

        assert artifact.factory.lines()[0] == "pub fn new() -> Self {"
        assert artifact.init_struct.fields == ()


class TestInitStruct:
    """The init struct and its conversion."""

    def test_simple(self, simple_decl):
        artifact = generate_builder(simple_decl)

        assert artifact.init_struct.lines() == [
            "#[allow(dead_code)]",
            "#[allow(clippy::needless_update)]",
            "pub struct SimpleInit {",
            "    pub req: String,",
            "    pub count: i32,",
            "}",
        ]
        assert artifact.conversion.lines() == [
            "#[allow(clippy::needless_update)]",
            "impl From<SimpleInit> for Simple {",
            "    fn from(value: SimpleInit) -> Self {",
            "        Self::new(value.req, value.count)",
            "    }",
            "}",
        ]

    def test_generic_parameters_are_minimal(self, generic_decl):
        artifact = generate_builder(generic_decl)

        assert artifact.init_struct.applied_type == "GenericValueStructInit<T>"
        assert "pub struct GenericValueStructInit<T> {" in artifact.init_struct.lines()
        assert (
            "impl<T, B> From<GenericValueStructInit<T>> for GenericValueStruct<T, B> {" in artifact.conversion.lines()
        )

    def test_bounds_and_where_predicates(self, bounded_where_decl):
        artifact = generate_builder(bounded_where_decl)

        assert "pub struct BoundedInit<T: Copy + Clone> where T: Default {" in artifact.init_struct.lines()
        assert (
            "impl<T: Copy + Clone, U> From<BoundedInit<T>> for Bounded<T, U> where T: Default, U: Into<String> {"
            in artifact.conversion.lines()
        )
        assert (
            "impl<T: Copy + Clone, U> Bounded<T, U> where T: Default, U: Into<String> {" in artifact.impl_lines()
        )

    def test_init_without_generics(self, declaration_of):
        decl = declaration_of("#[derive(Builder)]\nstruct Tagged<T> { name: String, tag: Option<T> }\n")
        artifact = generate_builder(decl)

        assert artifact.init_struct.applied_type == "TaggedInit"
        assert "impl<T> From<TaggedInit> for Tagged<T> {" in artifact.conversion.lines()

    def test_bounds_mentioning_dropped_parameters_are_removed(self, declaration_of):
        decl = declaration_of("#[derive(Builder)]\nstruct S<T: From<U>, U> { t: T, u: Option<U> }\n")
        artifact = generate_builder(decl)

        assert "pub struct SInit<T> {" in artifact.init_struct.lines()
        assert "impl<T: From<U>, U> From<SInit<T>> for S<T, U> {" in artifact.conversion.lines()
        assert "impl<T: From<U>, U> S<T, U> {" in artifact.impl_lines()

    def test_bounds_on_kept_parameters_are_preserved(self, declaration_of):
        decl = declaration_of("#[derive(Builder)]\nstruct S<T: From<U>, U: Clone> { t: T, u: U }\n")
        artifact = generate_builder(decl)

        assert "pub struct SInit<T: From<U>, U: Clone> {" in artifact.init_struct.lines()


class TestArtifact:
    """Full fragment rendering."""

    def test_impl_block(self, simple_decl):
        lines = generate_builder(simple_decl).impl_lines()

        assert lines[:3] == ["#[allow(dead_code)]", "#[allow(clippy::needless_update)]", "impl Simple {"]
        assert lines[3] == "    pub fn new(req: String, count: i32) -> Self {"
        assert lines[-1] == "}"

    def test_dumps_contains_all_parts(self, simple_decl):
        output = Writer(simple_decl).dumps()

        assert output.endswith("}\n")
        assert output.index("impl Simple {") < output.index("pub struct SimpleInit {")
        assert output.index("pub struct SimpleInit {") < output.index("impl From<SimpleInit> for Simple {")

    def test_generate_is_cached(self, simple_decl):
        writer = Writer(simple_decl)
        assert writer.generate() is writer.generate()


class TestStructuralErrors:
    """Inputs the generator refuses."""

    def test_enum(self):
        decl = parse_declarations("enum E { A, B }")[0]

        with pytest.raises(StructuralInputError, match="works only on structs"):
            generate_builder(decl)

    def test_tuple_struct(self):
        decl = parse_declarations("struct Point(i32, i32);")[0]

        with pytest.raises(StructuralInputError, match="named fields"):
            generate_builder(decl)

    def test_unit_struct(self):
        decl = parse_declarations("struct Marker;")[0]

        with pytest.raises(StructuralInputError, match="named fields"):
            generate_builder(decl)

    def test_duplicate_field(self):
        decl = parse_declarations("struct D {\n    a: u8,\n    a: i32,\n}\n")[0]

        with pytest.raises(StructuralInputError, match="duplicate field") as exc_info:
            generate_builder(decl)

        assert str(exc_info.value.position) == "3:5"

    def test_error_position(self):
        decl = parse_declarations("\n\n  struct Point(i32);")[0]

        with pytest.raises(StructuralInputError) as exc_info:
            generate_builder(decl)

        assert str(exc_info.value.position) == "3:3"

    def test_to_compile_error(self):
        error = StructuralInputError('bad "thing"')
        assert error.to_compile_error() == 'compile_error!("bad \\"thing\\"");'
