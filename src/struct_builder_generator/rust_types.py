"""Type names that have a special meaning for the builder generator."""

from __future__ import annotations

STRING_TYPE_PATHS = frozenset(
    {
        "String",
        "std::string::String",
        "alloc::string::String",
    }
)

OPTION_TYPE_PATHS = frozenset(
    {
        "Option",
        "std::option::Option",
        "core::option::Option",
    }
)

SCALAR_TYPE_NAMES = frozenset(
    {
        "i8",
        "i16",
        "i32",
        "i64",
        "i128",
        "isize",
        "u8",
        "u16",
        "u32",
        "u64",
        "u128",
        "usize",
    }
)

DEFAULT_ATTRIBUTE = "default"
DERIVE_ATTRIBUTE = "derive"
BUILDER_DERIVE_NAME = "Builder"

INIT_STRUCT_SUFFIX = "Init"

ALLOW_DEAD_CODE = "#[allow(dead_code)]"
ALLOW_NEEDLESS_UPDATE = "#[allow(clippy::needless_update)]"
INLINE = "#[inline]"


class RustNodeType:
    """tree-sitter node types of the Rust grammar that the source adapter understands."""

    STRUCT_ITEM = "struct_item"
    ENUM_ITEM = "enum_item"
    UNION_ITEM = "union_item"
    ATTRIBUTE_ITEM = "attribute_item"
    INNER_ATTRIBUTE_ITEM = "inner_attribute_item"
    FIELD_DECLARATION_LIST = "field_declaration_list"
    ORDERED_FIELD_DECLARATION_LIST = "ordered_field_declaration_list"
    FIELD_DECLARATION = "field_declaration"
    TYPE_PARAMETERS = "type_parameters"
    WHERE_CLAUSE = "where_clause"
    WHERE_PREDICATE = "where_predicate"
    MOD_ITEM = "mod_item"
    DECLARATION_LIST = "declaration_list"

    COMMENTS = frozenset({"line_comment", "block_comment"})
    ITEMS = frozenset({STRUCT_ITEM, ENUM_ITEM, UNION_ITEM})
