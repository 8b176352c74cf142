"""Pytest configuration and fixtures for struct builder generator tests."""

from __future__ import annotations

import textwrap

import pytest

from struct_builder_generator.rust_source import find_derived_declarations
from struct_builder_generator.syntax import StructDecl

SIMPLE_SOURCE = textwrap.dedent(
    """
    #[derive(Debug, Clone, PartialEq, Builder)]
    pub struct Simple {
        pub req: String,
        pub count: i32,
        pub note: Option<String>,
    }
    """
)

GENERIC_SOURCE = textwrap.dedent(
    """
    #[derive(Debug, Clone, PartialEq, Builder)]
    struct GenericValueStruct<T, B> {
        pub g: T,
        pub opt_gen_field1: Option<T>,
        pub opt_other: Option<B>,
    }
    """
)

BOUNDED_WHERE_SOURCE = textwrap.dedent(
    """
    #[derive(Debug, Clone, PartialEq, Builder)]
    struct Bounded<T: Copy + Clone, U>
    where
        T: Default,
        U: Into<String>,
    {
        pub gen_field1: T,
        pub opt_gen_field1: Option<U>,
    }
    """
)

DEFAULTS_SOURCE = textwrap.dedent(
    """
    #[derive(Debug, Clone, PartialEq, Builder)]
    struct StructWithDefault {
        pub req_field1: String,
        #[default = "10"]
        pub req_field2: i32,
        pub opt_field1: Option<String>,
        #[default = "Some(11)"]
        pub opt_field2: Option<i32>,
    }
    """
)


def single_declaration(source: str) -> StructDecl:
    """Parse `source` and return its only derived declaration."""
    declarations = find_derived_declarations(source)
    assert len(declarations) == 1, declarations
    return declarations[0]


@pytest.fixture
def simple_decl() -> StructDecl:
    return single_declaration(SIMPLE_SOURCE)


@pytest.fixture
def generic_decl() -> StructDecl:
    return single_declaration(GENERIC_SOURCE)


@pytest.fixture
def bounded_where_decl() -> StructDecl:
    return single_declaration(BOUNDED_WHERE_SOURCE)


@pytest.fixture
def defaults_decl() -> StructDecl:
    return single_declaration(DEFAULTS_SOURCE)


@pytest.fixture
def rust_project(tmp_path):
    """Create a small directory tree of Rust sources."""
    src = tmp_path / "src"
    src.mkdir()

    (src / "model.rs").write_text(SIMPLE_SOURCE + GENERIC_SOURCE, encoding="utf-8")
    (src / "plain.rs").write_text("pub struct NotDerived { a: i32 }\n", encoding="utf-8")

    nested = src / "nested"
    nested.mkdir()
    (nested / "defaults.rs").write_text(DEFAULTS_SOURCE, encoding="utf-8")

    yield tmp_path


@pytest.fixture
def declaration_of():
    """Parse a source with exactly one derived item and return it."""
    return single_declaration
