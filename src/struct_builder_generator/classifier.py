"""Classification of field types into the shapes the builder generator treats specially."""

from __future__ import annotations

from dataclasses import dataclass

from struct_builder_generator.rust_types import OPTION_TYPE_PATHS, SCALAR_TYPE_NAMES, STRING_TYPE_PATHS
from struct_builder_generator.syntax import LifetimeArg, PathType, TypeExpression


@dataclass(frozen=True)
class StringKind:
    """`String` or one of its qualified aliases."""


@dataclass(frozen=True)
class ScalarKind:
    """A primitive integer type."""


@dataclass(frozen=True)
class OptionalKind:
    """`Option<T>`; `inner` describes `T`."""

    inner: TypeInfo


@dataclass(frozen=True)
class OtherKind:
    """Every type shape that is not recognized."""


TypeClassification = StringKind | ScalarKind | OptionalKind | OtherKind


@dataclass(frozen=True)
class TypeInfo:
    """A type expression together with its classification."""

    type_expr: TypeExpression
    classification: TypeClassification

    @property
    def is_optional(self) -> bool:
        return isinstance(self.classification, OptionalKind)

    @property
    def exposed_type(self) -> TypeExpression:
        """The type a setter accepts: the wrapped type for `Option<T>`, the type itself otherwise."""
        if isinstance(self.classification, OptionalKind):
            return self.classification.inner.type_expr
        return self.type_expr


def _single_type_argument(path: PathType) -> TypeExpression | None:
    args = path.last_segment.args
    if len(args) != 1 or isinstance(args[0], LifetimeArg):
        return None
    return args[0]


def classify(type_expr: TypeExpression) -> TypeInfo:
    """Classify a type expression.

    The full path of the type (segments joined by `::`) is compared against fixed tables, so both
    `Option<T>` and `std::option::Option<T>` are recognized. Classification never fails: any
    unrecognized shape becomes `OtherKind`.

    Args:
        type_expr (TypeExpression): The declared type.

    Returns:
        TypeInfo: The type with its classification.
    """
    if not isinstance(type_expr, PathType):
        return TypeInfo(type_expr, OtherKind())

    full_name = type_expr.full_name

    if full_name in STRING_TYPE_PATHS:
        classification: TypeClassification = StringKind()

    elif full_name in OPTION_TYPE_PATHS:
        inner = _single_type_argument(type_expr)
        classification = OptionalKind(classify(inner)) if inner is not None else OtherKind()

    elif full_name in SCALAR_TYPE_NAMES:
        classification = ScalarKind()

    else:
        classification = OtherKind()

    return TypeInfo(type_expr, classification)
