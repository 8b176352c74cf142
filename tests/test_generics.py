"""Tests for generic parameter resolution."""

from __future__ import annotations

from struct_builder_generator.analyzer import analyze, analyze_struct
from struct_builder_generator.generics import contains_identifier, resolve, resolve_where_predicates, restrict_bounds
from struct_builder_generator.rust_source import parse_type
from struct_builder_generator.syntax import (
    ArrayType,
    FieldDecl,
    GenericParam,
    GenericParamKind,
    OpaqueType,
    TupleType,
    WherePredicate,
    path_type,
)


class TestContainsIdentifier:
    """Identifier search inside type expressions."""

    def test_bare_parameter(self):
        assert contains_identifier(path_type("T"), "T")

    def test_nested_argument(self):
        assert contains_identifier(parse_type("HashMap<String, Vec<Box<T>>>"), "T")

    def test_no_partial_matches(self):
        assert not contains_identifier(path_type("Type"), "T")
        assert not contains_identifier(parse_type("Vec<TT>"), "T")

    def test_reference_and_lifetime(self):
        type_expr = parse_type("&'a mut [T]")

        assert contains_identifier(type_expr, "T")
        assert contains_identifier(type_expr, "'a")
        assert not contains_identifier(type_expr, "'b")

    def test_lifetime_argument(self):
        assert contains_identifier(parse_type("Cow<'a, str>"), "'a")

    def test_tuple(self):
        assert contains_identifier(TupleType((path_type("i32"), path_type("U"))), "U")

    def test_array_length(self):
        assert contains_identifier(ArrayType(path_type("u8"), "N"), "N")

    def test_opaque_tokens(self):
        assert contains_identifier(OpaqueType("fn(T) -> U"), "U")
        assert not contains_identifier(OpaqueType("fn(Ty)"), "T")


class TestResolve:
    """Minimal, ordered generic parameter lists."""

    def test_only_required_fields_count(self, generic_decl):
        schema = analyze_struct(generic_decl)
        assert [p.name for p in resolve(schema.generic_params, schema.required_fields)] == ["T"]

    def test_declaration_order_is_kept(self):
        params = [GenericParam("A"), GenericParam("B"), GenericParam("C")]
        fields = [
            analyze(FieldDecl("c", path_type("C"))),
            analyze(FieldDecl("a", path_type("Vec", path_type("A")))),
        ]

        assert [p.name for p in resolve(params, fields)] == ["A", "C"]

    def test_no_duplicates(self):
        params = [GenericParam("T")]
        fields = [analyze(FieldDecl("x", path_type("T"))), analyze(FieldDecl("y", path_type("T")))]

        assert resolve(params, fields) == (GenericParam("T"),)

    def test_no_required_fields(self):
        assert resolve([GenericParam("T")], []) == ()

    def test_lifetime_parameter(self):
        params = [GenericParam("'a", kind=GenericParamKind.LIFETIME), GenericParam("T")]
        fields = [analyze(FieldDecl("name", parse_type("&'a str")))]

        assert [p.name for p in resolve(params, fields)] == ["'a"]


class TestResolveWherePredicates:
    """Where predicates attached to the init struct."""

    def test_predicates_for_kept_parameters_only(self):
        params = [GenericParam("T"), GenericParam("U")]
        predicates = [WherePredicate("T", "Default"), WherePredicate("U", "Into<String>")]

        assert resolve_where_predicates(predicates, params, [params[0]]) == (predicates[0],)

    def test_predicate_mixing_kept_and_dropped_parameters(self):
        params = [GenericParam("T"), GenericParam("U")]
        predicates = [WherePredicate("T", "From<U>")]

        assert resolve_where_predicates(predicates, params, [params[0]]) == ()

    def test_predicate_without_parameters_is_dropped(self):
        params = [GenericParam("T")]
        predicates = [WherePredicate("String", "Clone")]

        assert resolve_where_predicates(predicates, params, params) == ()


class TestRestrictBounds:
    """Inline bounds of the init struct parameters."""

    def test_bound_on_dropped_parameter_is_removed(self):
        params = [GenericParam("T", bounds="From<U>"), GenericParam("U")]
        assert restrict_bounds([params[0]], params) == (GenericParam("T"),)

    def test_unrelated_bounds_are_kept(self):
        params = [GenericParam("T", bounds="Copy + Clone"), GenericParam("U")]
        assert restrict_bounds([params[0]], params) == (params[0],)

    def test_bound_on_kept_parameter_is_kept(self):
        params = [GenericParam("T", bounds="From<U>"), GenericParam("U")]
        assert restrict_bounds(params, params) == tuple(params)

    def test_lifetime_bound(self):
        params = [GenericParam("'a", kind=GenericParamKind.LIFETIME), GenericParam("T", bounds="'a + Clone")]
        assert restrict_bounds([params[1]], params) == (GenericParam("T"),)
