"""Structured input model for the builder generator.

These classes describe a Rust item exactly as written: types, attributes, fields, generic
parameters and where predicates. They are produced by an AST adapter (see `rust_source`) or
built by hand, and they are never mutated afterwards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing_extensions import override

IDENTIFIER_PATTERN = re.compile(r"'?[A-Za-z_][A-Za-z0-9_]*")


class ItemKind:
    """Kinds of items that may carry a derive attribute."""

    STRUCT = "struct"
    ENUM = "enum"
    UNION = "union"


class FieldStyle:
    """Shapes of a struct body."""

    NAMED = "named"
    TUPLE = "tuple"
    UNIT = "unit"


class GenericParamKind:
    """Kinds of generic parameters."""

    TYPE = "type"
    LIFETIME = "lifetime"
    CONST = "const"


@dataclass(frozen=True)
class SourcePosition:
    """A 1-based line/column position inside a source file."""

    line: int = 1
    column: int = 1

    @override
    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class PathSegment:
    """One `::`-separated segment of a path type, with its generic arguments."""

    ident: str
    args: tuple[TypeExpression, ...] = ()

    @override
    def __str__(self) -> str:
        if self.args:
            return f"{self.ident}<{', '.join(str(a) for a in self.args)}>"
        return self.ident


@dataclass(frozen=True)
class PathType:
    """A (possibly qualified, possibly generic) named type such as `std::option::Option<T>`."""

    segments: tuple[PathSegment, ...]
    leading_colon: bool = False

    @property
    def full_name(self) -> str:
        """The segment identifiers joined by `::`, without generic arguments."""
        return "::".join(s.ident for s in self.segments)

    @property
    def last_segment(self) -> PathSegment:
        """The final segment, which carries the generic arguments of the type itself."""
        return self.segments[-1]

    @override
    def __str__(self) -> str:
        path = "::".join(str(s) for s in self.segments)
        return f"::{path}" if self.leading_colon else path


@dataclass(frozen=True)
class ReferenceType:
    """A borrowed type: `&'a mut T`."""

    elem: TypeExpression
    lifetime: str | None = None
    mutable: bool = False

    @override
    def __str__(self) -> str:
        parts = ["&"]
        if self.lifetime:
            parts.append(f"{self.lifetime} ")
        if self.mutable:
            parts.append("mut ")
        parts.append(str(self.elem))
        return "".join(parts)


@dataclass(frozen=True)
class TupleType:
    """A tuple type; the empty tuple is the unit type."""

    elems: tuple[TypeExpression, ...] = ()

    @override
    def __str__(self) -> str:
        if len(self.elems) == 1:
            return f"({self.elems[0]},)"
        return f"({', '.join(str(e) for e in self.elems)})"


@dataclass(frozen=True)
class ArrayType:
    """An array `[T; N]`, or a slice `[T]` when there is no length."""

    elem: TypeExpression
    length: str | None = None

    @override
    def __str__(self) -> str:
        if self.length is None:
            return f"[{self.elem}]"
        return f"[{self.elem}; {self.length}]"


@dataclass(frozen=True)
class LifetimeArg:
    """A lifetime used as a generic argument, e.g. the `'a` in `Cow<'a, str>`."""

    name: str

    @override
    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class OpaqueType:
    """Any other type shape, kept as source text (function pointers, trait objects, macros...)."""

    text: str

    @property
    def identifiers(self) -> frozenset[str]:
        """All identifier-like tokens (including lifetimes) appearing in the text."""
        return frozenset(IDENTIFIER_PATTERN.findall(self.text))

    @override
    def __str__(self) -> str:
        return self.text


TypeExpression = PathType | ReferenceType | TupleType | ArrayType | LifetimeArg | OpaqueType


def path_type(name: str, *args: TypeExpression) -> PathType:
    """Build a path type from a `::`-separated name, attaching `args` to the last segment.

    Examples:
        >>> str(path_type("Option", path_type("T")))
        'Option<T>'
        >>> str(path_type("std::string::String"))
        'std::string::String'
    """
    idents = name.split("::")
    segments = [PathSegment(ident) for ident in idents[:-1]]
    segments.append(PathSegment(idents[-1], tuple(args)))
    return PathType(tuple(segments))


@dataclass(frozen=True)
class LiteralToken:
    """A literal token as written in the source, quotes and suffixes included."""

    kind: str
    text: str

    @property
    def is_string(self) -> bool:
        """Whether this is a plain (non-raw, non-byte) string literal."""
        return self.kind == "string"

    @property
    def is_raw_string(self) -> bool:
        return self.kind == "raw_string"


@dataclass(frozen=True)
class Attribute:
    """An attribute such as `#[default = "10"]` or `#[derive(Clone, Builder)]`.

    Attributes:
        path: The attribute path segments, e.g. `("default",)` or `("serde", "rename")`.
        outer: False for inner attributes (`#![...]`).
        value: The literal after `=`, for name-value attributes.
        arguments: The identifier tokens inside a delimited argument list, in order.
        has_arguments: Whether a delimited argument list was present at all.
    """

    path: tuple[str, ...]
    outer: bool = True
    value: LiteralToken | None = None
    arguments: tuple[str, ...] = ()
    has_arguments: bool = False

    @property
    def name(self) -> str:
        """The first path segment."""
        return self.path[0] if self.path else ""


@dataclass(frozen=True)
class FieldDecl:
    """A single field of a struct body. Tuple fields have no name."""

    name: str | None
    type_expr: TypeExpression
    attributes: tuple[Attribute, ...] = ()
    position: SourcePosition = field(default_factory=SourcePosition)


@dataclass(frozen=True)
class GenericParam:
    """A declared generic parameter with its inline bounds (as source text)."""

    name: str
    bounds: str = ""
    kind: str = GenericParamKind.TYPE
    const_type: str = ""

    @property
    def declaration(self) -> str:
        """How the parameter is written inside a generic parameter list."""
        if self.kind == GenericParamKind.CONST:
            return f"const {self.name}: {self.const_type}"
        if self.bounds:
            return f"{self.name}: {self.bounds}"
        return self.name

    @property
    def bound_identifiers(self) -> frozenset[str]:
        """Identifier-like tokens of the inline bounds, e.g. `From`, `U` for `T: From<U>`."""
        return frozenset(IDENTIFIER_PATTERN.findall(self.bounds))

    @override
    def __str__(self) -> str:
        return self.declaration


@dataclass(frozen=True)
class WherePredicate:
    """One predicate of a where clause, e.g. `T: Copy + Clone`."""

    bounded_type: str
    bounds: str

    @property
    def identifiers(self) -> frozenset[str]:
        """All identifier-like tokens mentioned on either side of the predicate."""
        return frozenset(IDENTIFIER_PATTERN.findall(self.bounded_type)) | frozenset(
            IDENTIFIER_PATTERN.findall(self.bounds)
        )

    @override
    def __str__(self) -> str:
        return f"{self.bounded_type}: {self.bounds}"


@dataclass(frozen=True)
class StructDecl:
    """An item handed to the generator.

    Only `kind == ItemKind.STRUCT` with `field_style == FieldStyle.NAMED` can be processed; the
    other shapes exist so that they can be rejected with a positioned diagnostic.
    """

    name: str
    fields: tuple[FieldDecl, ...] = ()
    generic_params: tuple[GenericParam, ...] = ()
    where_predicates: tuple[WherePredicate, ...] = ()
    kind: str = ItemKind.STRUCT
    field_style: str = FieldStyle.NAMED
    attributes: tuple[Attribute, ...] = ()
    position: SourcePosition = field(default_factory=SourcePosition)
    module_path: tuple[str, ...] = ()

    @property
    def is_nested(self) -> bool:
        """Whether the item is declared inside an inline `mod` block."""
        return bool(self.module_path)
