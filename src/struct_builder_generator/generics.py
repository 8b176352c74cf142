"""Resolution of the generic parameters needed by the init struct."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from struct_builder_generator.analyzer import FieldSchema
from struct_builder_generator.syntax import (
    IDENTIFIER_PATTERN,
    ArrayType,
    GenericParam,
    LifetimeArg,
    OpaqueType,
    PathType,
    ReferenceType,
    TupleType,
    TypeExpression,
    WherePredicate,
)


def contains_identifier(type_expr: TypeExpression, ident: str) -> bool:
    """Whether `ident` occurs anywhere inside a type expression.

    Path segments are compared by exact identifier equality, recursively through generic
    arguments and through the element types of references, tuples, arrays and slices.

    Args:
        type_expr (TypeExpression): The type to search.
        ident (str): A generic parameter name, e.g. `T` or `'a`.

    Returns:
        bool: True if the identifier was found.
    """
    if isinstance(type_expr, PathType):
        return any(
            segment.ident == ident or any(contains_identifier(arg, ident) for arg in segment.args)
            for segment in type_expr.segments
        )

    if isinstance(type_expr, ReferenceType):
        return type_expr.lifetime == ident or contains_identifier(type_expr.elem, ident)

    if isinstance(type_expr, TupleType):
        return any(contains_identifier(elem, ident) for elem in type_expr.elems)

    if isinstance(type_expr, ArrayType):
        if type_expr.length is not None and ident in IDENTIFIER_PATTERN.findall(type_expr.length):
            return True
        return contains_identifier(type_expr.elem, ident)

    if isinstance(type_expr, LifetimeArg):
        return type_expr.name == ident

    if isinstance(type_expr, OpaqueType):
        return ident in type_expr.identifiers

    raise TypeError(f"Unknown type expression {type_expr!r}.")


def resolve(generic_params: Sequence[GenericParam], required_fields: Iterable[FieldSchema]) -> tuple[GenericParam, ...]:
    """Select the generic parameters referenced by at least one required field.

    The result keeps the declaration order of `generic_params`, independent of field order.

    Args:
        generic_params (Sequence[GenericParam]): The parameters declared by the struct.
        required_fields (Iterable[FieldSchema]): The fields of the init struct.

    Returns:
        tuple[GenericParam, ...]: The parameters the init struct has to declare.
    """
    field_types = [f.type_expr for f in required_fields]
    return tuple(
        param for param in generic_params if any(contains_identifier(t, param.name) for t in field_types)
    )


def restrict_bounds(
    kept_params: Sequence[GenericParam], generic_params: Sequence[GenericParam]
) -> tuple[GenericParam, ...]:
    """Drop the inline bounds of kept parameters that mention a dropped parameter.

    `T: From<U>` cannot be declared on the init struct when `U` is not declared there. Such
    bounds are only removed from the init struct, the impl block keeps them.

    Args:
        kept_params (Sequence[GenericParam]): The parameters kept for the init struct.
        generic_params (Sequence[GenericParam]): All parameters declared by the struct.

    Returns:
        tuple[GenericParam, ...]: The kept parameters, unbounded where needed.
    """
    kept_names = {p.name for p in kept_params}
    dropped_names = {p.name for p in generic_params} - kept_names

    return tuple(replace(p, bounds="") if p.bound_identifiers & dropped_names else p for p in kept_params)


def resolve_where_predicates(
    predicates: Sequence[WherePredicate],
    generic_params: Sequence[GenericParam],
    kept_params: Sequence[GenericParam],
) -> tuple[WherePredicate, ...]:
    """Select the where predicates that can be attached to the init struct.

    A predicate is kept when it mentions at least one generic parameter and all the generic
    parameters it mentions are declared by the init struct.

    Args:
        predicates (Sequence[WherePredicate]): The struct's where clause.
        generic_params (Sequence[GenericParam]): All parameters declared by the struct.
        kept_params (Sequence[GenericParam]): The parameters kept for the init struct.

    Returns:
        tuple[WherePredicate, ...]: The predicates for the init struct, in their original order.
    """
    all_names = {p.name for p in generic_params}
    kept_names = {p.name for p in kept_params}

    selected: list[WherePredicate] = []
    for predicate in predicates:
        mentioned = predicate.identifiers & all_names
        if mentioned and mentioned <= kept_names:
            selected.append(predicate)

    return tuple(selected)
