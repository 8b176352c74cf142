"""Field analysis: classification, defaults and requiredness of struct fields."""

from __future__ import annotations

from dataclasses import dataclass

from struct_builder_generator.classifier import TypeInfo, classify
from struct_builder_generator.defaults import DefaultExpression, extract_default
from struct_builder_generator.syntax import FieldDecl, GenericParam, StructDecl, TypeExpression, WherePredicate


@dataclass(frozen=True)
class FieldSchema:
    """A fully classified field.

    A field is optional when its type is `Option<T>`, and required when it is neither optional
    nor carries a default. A field is never both.
    """

    name: str
    type_info: TypeInfo
    default: DefaultExpression | None = None

    @property
    def type_expr(self) -> TypeExpression:
        return self.type_info.type_expr

    @property
    def is_optional(self) -> bool:
        return self.type_info.is_optional

    @property
    def is_required(self) -> bool:
        return not self.is_optional and self.default is None


@dataclass(frozen=True)
class StructSchema:
    """The analyzed form of a named-field struct."""

    name: str
    fields: tuple[FieldSchema, ...]
    generic_params: tuple[GenericParam, ...] = ()
    where_predicates: tuple[WherePredicate, ...] = ()

    @property
    def required_fields(self) -> tuple[FieldSchema, ...]:
        """The required fields, in declaration order."""
        return tuple(f for f in self.fields if f.is_required)


def analyze(field: FieldDecl) -> FieldSchema:
    """Classify a named field and extract its default.

    Args:
        field (FieldDecl): The field declaration. It must be named.

    Returns:
        FieldSchema: The analyzed field.
    """
    if field.name is None:
        raise ValueError("Only named fields can be analyzed.")

    return FieldSchema(
        name=field.name,
        type_info=classify(field.type_expr),
        default=extract_default(field.attributes),
    )


def analyze_struct(decl: StructDecl) -> StructSchema:
    """Analyze every field of a named-field struct, keeping declaration order."""
    return StructSchema(
        name=decl.name,
        fields=tuple(analyze(f) for f in decl.fields),
        generic_params=decl.generic_params,
        where_predicates=decl.where_predicates,
    )
