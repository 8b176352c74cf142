"""Read Rust source text into the structured input model.

Parsing is delegated to the tree-sitter Rust grammar. This module only walks the concrete syntax
tree and converts the nodes that the generator cares about (items, attributes, fields, generics
and types) into `syntax` objects. Shapes that are not modelled explicitly are kept as opaque text.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from functools import cache

from tree_sitter import Node, Parser
from tree_sitter_language_pack import get_parser

from struct_builder_generator.rust_types import BUILDER_DERIVE_NAME, DERIVE_ATTRIBUTE, RustNodeType
from struct_builder_generator.syntax import (
    ArrayType,
    Attribute,
    FieldDecl,
    FieldStyle,
    GenericParam,
    GenericParamKind,
    ItemKind,
    LifetimeArg,
    LiteralToken,
    OpaqueType,
    PathSegment,
    PathType,
    ReferenceType,
    SourcePosition,
    StructDecl,
    TupleType,
    TypeExpression,
    WherePredicate,
)

logger = logging.getLogger(__name__)

_TYPE_SNIPPET_PREFIX = b"type __BuilderSnippet = "
_EXPRESSION_SNIPPET_PREFIX = b"const __BUILDER_DEFAULT: () = "

_SINGLE_SEGMENT_NODES = frozenset(
    {"type_identifier", "primitive_type", "identifier", "self", "crate", "super", "metavariable"}
)
_PATH_NODES = frozenset({"scoped_type_identifier", "scoped_identifier", "generic_type"})

_LITERAL_KINDS = {
    "string_literal": "string",
    "raw_string_literal": "raw_string",
    "integer_literal": "integer",
    "float_literal": "float",
    "boolean_literal": "bool",
    "char_literal": "char",
}

_ITEM_KINDS = {
    RustNodeType.STRUCT_ITEM: ItemKind.STRUCT,
    RustNodeType.ENUM_ITEM: ItemKind.ENUM,
    RustNodeType.UNION_ITEM: ItemKind.UNION,
}


class SourceParseError(Exception):
    """Raised when a snippet of text is not valid Rust syntax."""

    pass


@cache
def _rust_parser() -> Parser:
    return get_parser("rust")


def _to_bytes(source: str | bytes) -> bytes:
    if isinstance(source, bytes):
        return source
    return source.encode("utf-8")


class _TreeConverter:
    """Converts nodes of one parsed source into `syntax` objects."""

    def __init__(self, source: bytes):
        self._source = source

    def text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    @staticmethod
    def position(node: Node) -> SourcePosition:
        row, column = node.start_point[0], node.start_point[1]
        return SourcePosition(line=row + 1, column=column + 1)

    @staticmethod
    def named_children(node: Node) -> list[Node]:
        return [c for c in node.named_children if c.type not in RustNodeType.COMMENTS]

    def _first_child_of_type(self, node: Node, node_type: str) -> Node | None:
        for child in self.named_children(node):
            if child.type == node_type:
                return child
        return None

    def _bounds_text(self, node: Node | None) -> str:
        if node is None:
            return ""
        return self.text(node).lstrip(":").strip()

    # ----- types -----

    def convert_type(self, node: Node) -> TypeExpression:
        """Convert a type node into a `TypeExpression`.

        Args:
            node (Node): Any node in type position.

        Returns:
            TypeExpression: The structural type; unknown shapes become `OpaqueType`.
        """
        kind = node.type

        if kind in _SINGLE_SEGMENT_NODES:
            return PathType((PathSegment(self.text(node)),))

        if kind in _PATH_NODES:
            segments, leading_colon = self._path_segments(node)
            return PathType(tuple(segments), leading_colon)

        if kind == "reference_type":
            lifetime = self._first_child_of_type(node, "lifetime")
            mutable = self._first_child_of_type(node, "mutable_specifier") is not None
            elem = node.child_by_field_name("type")
            if elem is None:
                return OpaqueType(self.text(node))
            return ReferenceType(
                self.convert_type(elem),
                lifetime=self.text(lifetime) if lifetime is not None else None,
                mutable=mutable,
            )

        if kind == "tuple_type":
            return TupleType(tuple(self.convert_type(c) for c in self.named_children(node)))

        if kind == "unit_type":
            return TupleType()

        if kind == "array_type":
            element = node.child_by_field_name("element")
            length = node.child_by_field_name("length")
            if element is None:
                return OpaqueType(self.text(node))
            return ArrayType(self.convert_type(element), self.text(length) if length is not None else None)

        if kind == "lifetime":
            return LifetimeArg(self.text(node))

        return OpaqueType(self.text(node))

    def _path_segments(self, node: Node) -> tuple[list[PathSegment], bool]:
        kind = node.type

        if kind == "generic_type":
            base = node.child_by_field_name("type")
            arguments = node.child_by_field_name("type_arguments")
            if base is None:
                return [PathSegment(self.text(node))], False
            segments, leading_colon = self._path_segments(base)
            args = self._type_arguments(arguments) if arguments is not None else ()
            segments[-1] = PathSegment(segments[-1].ident, args)
            return segments, leading_colon

        if kind in ("scoped_type_identifier", "scoped_identifier"):
            path = node.child_by_field_name("path")
            name = node.child_by_field_name("name")
            if path is None:
                segments: list[PathSegment] = []
                leading_colon = bool(node.children) and node.children[0].type == "::"
            else:
                segments, leading_colon = self._path_segments(path)
            if name is not None:
                segments.append(PathSegment(self.text(name)))
            return segments, leading_colon

        return [PathSegment(self.text(node))], False

    def _type_arguments(self, node: Node) -> tuple[TypeExpression, ...]:
        return tuple(self.convert_type(c) for c in self.named_children(node) if c.type != "trait_bounds")

    # ----- attributes -----

    def convert_attribute(self, node: Node) -> Attribute:
        """Convert an `attribute_item` or `inner_attribute_item` node."""
        outer = node.type == RustNodeType.ATTRIBUTE_ITEM
        attribute = self._first_child_of_type(node, "attribute")
        if attribute is None:
            return Attribute(path=(), outer=outer)

        value_node = attribute.child_by_field_name("value")
        arguments_node = attribute.child_by_field_name("arguments")

        payload_start = min(
            (n.start_byte for n in (value_node, arguments_node) if n is not None),
            default=attribute.end_byte,
        )
        path: tuple[str, ...] = ()
        path_nodes = [c for c in self.named_children(attribute) if c.end_byte <= payload_start]
        if path_nodes:
            path = tuple(p.strip() for p in self.text(path_nodes[0]).split("::") if p.strip())

        value = None
        if value_node is not None:
            value = LiteralToken(_LITERAL_KINDS.get(value_node.type, "expression"), self.text(value_node))

        arguments: tuple[str, ...] = ()
        if arguments_node is not None:
            arguments = tuple(self.text(c) for c in self.named_children(arguments_node) if c.type == "identifier")

        return Attribute(
            path=path,
            outer=outer,
            value=value,
            arguments=arguments,
            has_arguments=arguments_node is not None,
        )

    # ----- items -----

    def convert_generic_params(self, node: Node) -> tuple[GenericParam, ...]:
        """Convert a `type_parameters` node, supporting both older and newer grammar shapes."""
        params: list[GenericParam] = []
        for child in self.named_children(node):
            param = self._convert_generic_param(child)
            if param is not None:
                params.append(param)
        return tuple(params)

    def _convert_generic_param(self, node: Node) -> GenericParam | None:
        kind = node.type

        if kind == RustNodeType.ATTRIBUTE_ITEM:
            return None

        if kind == "lifetime":
            return GenericParam(self.text(node), kind=GenericParamKind.LIFETIME)

        if kind in ("type_parameter", "lifetime_parameter"):
            name = node.child_by_field_name("name")
            bounds = self._bounds_text(node.child_by_field_name("bounds"))
            param_kind = GenericParamKind.LIFETIME if kind == "lifetime_parameter" else GenericParamKind.TYPE
            return GenericParam(self.text(name) if name is not None else self.text(node), bounds, param_kind)

        if kind == "constrained_type_parameter":
            left = node.child_by_field_name("left")
            bounds = self._bounds_text(node.child_by_field_name("bounds"))
            if left is None:
                return GenericParam(self.text(node))
            param_kind = GenericParamKind.LIFETIME if left.type == "lifetime" else GenericParamKind.TYPE
            return GenericParam(self.text(left), bounds, param_kind)

        if kind == "optional_type_parameter":
            # Defaults are not allowed on impl blocks, so only the name and bounds are kept.
            name = node.child_by_field_name("name")
            if name is None:
                return GenericParam(self.text(node))
            return self._convert_generic_param(name)

        if kind == "const_parameter":
            name = node.child_by_field_name("name")
            const_type = node.child_by_field_name("type")
            return GenericParam(
                self.text(name) if name is not None else self.text(node),
                kind=GenericParamKind.CONST,
                const_type=self.text(const_type) if const_type is not None else "",
            )

        return GenericParam(self.text(node))

    def convert_where_clause(self, node: Node) -> tuple[WherePredicate, ...]:
        predicates: list[WherePredicate] = []
        for child in self.named_children(node):
            if child.type != RustNodeType.WHERE_PREDICATE:
                continue
            left = child.child_by_field_name("left")
            bounds = child.child_by_field_name("bounds")
            predicates.append(
                WherePredicate(
                    bounded_type=self.text(left) if left is not None else "",
                    bounds=self._bounds_text(bounds),
                )
            )
        return tuple(predicates)

    def convert_named_fields(self, node: Node) -> tuple[FieldDecl, ...]:
        fields: list[FieldDecl] = []
        pending: list[Attribute] = []
        for child in self.named_children(node):
            if child.type == RustNodeType.ATTRIBUTE_ITEM:
                pending.append(self.convert_attribute(child))
                continue
            if child.type != RustNodeType.FIELD_DECLARATION:
                continue

            name = child.child_by_field_name("name")
            type_node = child.child_by_field_name("type")
            fields.append(
                FieldDecl(
                    name=self.text(name) if name is not None else None,
                    type_expr=self.convert_type(type_node) if type_node is not None else OpaqueType(""),
                    attributes=tuple(pending),
                    position=self.position(child),
                )
            )
            pending = []
        return tuple(fields)

    def convert_ordered_fields(self, node: Node) -> tuple[FieldDecl, ...]:
        return tuple(
            FieldDecl(name=None, type_expr=self.convert_type(t), position=self.position(t))
            for t in node.children_by_field_name("type")
        )

    def convert_item(
        self, node: Node, attributes: tuple[Attribute, ...], module_path: tuple[str, ...] = ()
    ) -> StructDecl:
        """Convert a struct, enum or union item into a `StructDecl`.

        Args:
            node (Node): The item node.
            attributes (tuple[Attribute, ...]): The outer attributes written directly above the item.
            module_path (tuple[str, ...], optional): Names of the enclosing inline modules. Defaults to ().

        Returns:
            StructDecl: The declaration, including the body shape so that invalid shapes can be reported.
        """
        name = node.child_by_field_name("name")
        type_parameters = node.child_by_field_name("type_parameters")
        where_clause = self._first_child_of_type(node, RustNodeType.WHERE_CLAUSE)
        body = node.child_by_field_name("body")

        fields: tuple[FieldDecl, ...] = ()
        if body is None:
            field_style = FieldStyle.UNIT
        elif body.type == RustNodeType.FIELD_DECLARATION_LIST:
            field_style = FieldStyle.NAMED
            fields = self.convert_named_fields(body)
        elif body.type == RustNodeType.ORDERED_FIELD_DECLARATION_LIST:
            field_style = FieldStyle.TUPLE
            fields = self.convert_ordered_fields(body)
        else:
            field_style = FieldStyle.UNIT

        return StructDecl(
            name=self.text(name) if name is not None else "",
            fields=fields,
            generic_params=self.convert_generic_params(type_parameters) if type_parameters is not None else (),
            where_predicates=self.convert_where_clause(where_clause) if where_clause is not None else (),
            kind=_ITEM_KINDS[node.type],
            field_style=field_style,
            attributes=attributes,
            position=self.position(node),
            module_path=module_path,
        )

    def iter_items(self, node: Node, module_path: tuple[str, ...] = ()) -> Iterator[StructDecl]:
        """Yield every struct, enum and union item below `node`.

        Inline modules are descended into and their names are recorded on the nested items.
        """
        pending: list[Attribute] = []
        for child in self.named_children(node):
            if child.type == RustNodeType.ATTRIBUTE_ITEM:
                pending.append(self.convert_attribute(child))
                continue

            if child.type in RustNodeType.ITEMS:
                yield self.convert_item(child, tuple(pending), module_path)

            elif child.type == RustNodeType.MOD_ITEM:
                name = child.child_by_field_name("name")
                body = child.child_by_field_name("body")
                if name is not None and body is not None:
                    yield from self.iter_items(body, (*module_path, self.text(name)))

            pending = []


def parse_declarations(source: str | bytes) -> list[StructDecl]:
    """Parse a Rust source and return all struct, enum and union items in source order.

    tree-sitter recovers from syntax errors, so items in a partially broken file are still returned.

    Args:
        source (str | bytes): The Rust source text.

    Returns:
        list[StructDecl]: The declarations found.
    """
    source_bytes = _to_bytes(source)
    tree = _rust_parser().parse(source_bytes)
    if tree.root_node.has_error:
        logger.debug("Source contains syntax errors, continuing with the recovered tree.")
    return list(_TreeConverter(source_bytes).iter_items(tree.root_node))


def has_derive(attributes: tuple[Attribute, ...], derive_name: str = BUILDER_DERIVE_NAME) -> bool:
    """Whether any `#[derive(...)]` attribute lists `derive_name` (bare or path-qualified)."""
    return any(
        attribute.outer and attribute.name == DERIVE_ATTRIBUTE and derive_name in attribute.arguments
        for attribute in attributes
    )


def find_derived_declarations(source: str | bytes, derive_name: str = BUILDER_DERIVE_NAME) -> list[StructDecl]:
    """Return the items of a source that derive `derive_name`."""
    return [decl for decl in parse_declarations(source) if has_derive(decl.attributes, derive_name)]


def parse_type(text: str) -> TypeExpression:
    """Parse a single Rust type.

    Examples:
        >>> str(parse_type("std::option::Option< Vec<T> >"))
        'std::option::Option<Vec<T>>'

    Args:
        text (str): The type as written.

    Raises:
        SourceParseError: If `text` is not exactly one well-formed type.

    Returns:
        TypeExpression: The parsed type.
    """
    source = _TYPE_SNIPPET_PREFIX + text.strip().encode("utf-8") + b";"
    tree = _rust_parser().parse(source)
    root = tree.root_node
    converter = _TreeConverter(source)
    items = converter.named_children(root)

    if root.has_error or len(items) != 1 or items[0].type != "type_item":
        raise SourceParseError(f"'{text}' is not a valid Rust type.")

    type_node = items[0].child_by_field_name("type")
    if type_node is None:
        raise SourceParseError(f"'{text}' is not a valid Rust type.")

    return converter.convert_type(type_node)


def parse_expression(text: str) -> str | None:
    """Check that `text` is exactly one standalone Rust expression.

    Args:
        text (str): The expression source.

    Returns:
        str | None: The stripped expression text, or None if it does not parse as a single expression.
    """
    expression = text.strip()
    if not expression:
        return None

    body = expression.encode("utf-8")
    source = _EXPRESSION_SNIPPET_PREFIX + body + b";"
    tree = _rust_parser().parse(source)
    root = tree.root_node
    items = _TreeConverter.named_children(root)

    if root.has_error or len(items) != 1 or items[0].type != "const_item":
        return None

    value = items[0].child_by_field_name("value")
    if value is None:
        return None

    start = len(_EXPRESSION_SNIPPET_PREFIX)
    if value.start_byte != start or value.end_byte != start + len(body):
        return None

    return expression
