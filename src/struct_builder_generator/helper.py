"""Helper functionality that is used in other modules of this package."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from struct_builder_generator.rust_types import INIT_STRUCT_SUFFIX
from struct_builder_generator.syntax import GenericParam, WherePredicate

RAW_IDENTIFIER_PREFIX = "r#"
INDENT = "    "


def strip_raw_prefix(name: str) -> str:
    """Remove the raw identifier prefix, so that `r#type` becomes `type`.

    Raw identifiers are only needed for keywords. Once a prefix or suffix is attached
    (`with_type`), the result is no longer a keyword and the prefix must go.

    Args:
        name (str): The identifier as written.

    Returns:
        str: The identifier without `r#`.
    """
    if name.startswith(RAW_IDENTIFIER_PREFIX):
        return name[len(RAW_IDENTIFIER_PREFIX) :]
    return name


def _prefixed(prefix: str, field_name: str) -> str:
    return f"{prefix}_{strip_raw_prefix(field_name)}"


def setter_name(field_name: str) -> str:
    """The in-place setter is named after the field itself."""
    return field_name


def reset_name(field_name: str) -> str:
    return _prefixed("reset", field_name)


def mopt_name(field_name: str) -> str:
    return _prefixed("mopt", field_name)


def with_name(field_name: str) -> str:
    return _prefixed("with", field_name)


def without_name(field_name: str) -> str:
    return _prefixed("without", field_name)


def opt_name(field_name: str) -> str:
    return _prefixed("opt", field_name)


def init_struct_name(struct_name: str) -> str:
    """The name of the auxiliary init struct, e.g. `Person` becomes `PersonInit`."""
    return f"{strip_raw_prefix(struct_name)}{INIT_STRUCT_SUFFIX}"


def join_parameters(parameters: Sequence[object] | None) -> str:
    """Joins parameters by means of ', '.

    Args:
        parameters (Sequence[object] | None): The parameters to join. Empty entries are skipped.

    Returns:
        str: The joined parameters.
    """
    if parameters:
        return ", ".join(str(p) for p in parameters if str(p))

    else:
        return ""


def new_group(name: str, members: Sequence[object] | None) -> str:
    """Create a string for a generic type application.

    For example, when the name is 'Map', and the members are 'K', and 'V', the output will be
    'Map<K, V>'. Without members the name is returned unchanged.

    Args:
        name (str): The name of the group.
        members (Sequence[object] | None): The members of the group.

    Returns:
        str: The resulting group string.
    """
    joined = join_parameters(members)
    if joined:
        return f"{name}<{joined}>"
    return name


def new_generic_declaration(params: Sequence[GenericParam]) -> str:
    """Create the generic parameter list of a declaration, bounds included, e.g. `<T: Clone, B>`."""
    if not params:
        return ""
    return f"<{join_parameters([p.declaration for p in params])}>"


def new_applied_type(name: str, params: Sequence[GenericParam]) -> str:
    """Apply generic parameters by name only, e.g. `Pair<'a, T, N>`."""
    return new_group(name, [p.name for p in params])


def new_where_clause(predicates: Sequence[WherePredicate]) -> str:
    """Create a where clause with a leading space, or an empty string if there are no predicates."""
    if not predicates:
        return ""
    return f" where {join_parameters(predicates)}"


def new_attribute(content: str) -> str:
    return f"#[{content}]"


def new_function(
    name: str,
    parameters: Sequence[object] | None = None,
    return_type: str | None = None,
    visibility: str = "pub",
) -> str:
    """Create the opening line of a function definition.

    Args:
        name (str): The function name.
        parameters (Sequence[object] | None, optional): Receiver and parameters, if any. Defaults to None.
        return_type (str | None, optional): The return type, if any. Defaults to None.
        visibility (str, optional): The visibility qualifier. Defaults to "pub".

    Returns:
        str: The function signature followed by an opening brace.
    """
    prefix = f"{visibility} " if visibility else ""
    arguments = join_parameters(parameters)
    if return_type:
        return f"{prefix}fn {name}({arguments}) -> {return_type} {{"
    return f"{prefix}fn {name}({arguments}) {{"


def new_struct_declaration(
    name: str,
    params: Sequence[GenericParam],
    predicates: Sequence[WherePredicate],
    visibility: str = "pub",
) -> str:
    """Create the opening line of a braced struct declaration.

    For example, `pub struct PersonInit<T: Clone> where T: Default {`.
    """
    prefix = f"{visibility} " if visibility else ""
    return f"{prefix}struct {name}{new_generic_declaration(params)}{new_where_clause(predicates)} {{"


def new_impl_declaration(
    self_type: str,
    params: Sequence[GenericParam],
    predicates: Sequence[WherePredicate],
    trait: str | None = None,
) -> str:
    """Create the opening line of an impl block.

    For example, `impl<T: Clone> From<PersonInit<T>> for Person<T> {`.
    """
    target = f"{trait} for {self_type}" if trait else self_type
    return f"impl{new_generic_declaration(params)} {target}{new_where_clause(predicates)} {{"


def indent(lines: Iterable[str], level: int = 1) -> list[str]:
    """Indent non-empty lines by `level` steps."""
    return [f"{INDENT * level}{line}" if line else line for line in lines]


def new_struct_literal(assignments: Sequence[tuple[str, str]], base: str | None = None) -> list[str]:
    """Create the lines of a `Self { ... }` literal.

    Args:
        assignments (Sequence[tuple[str, str]]): (field, expression) pairs in order.
        base (str | None, optional): Functional update base, e.g. `self` for `..self`. Defaults to None.

    Returns:
        list[str]: The literal, one field per line.
    """
    lines = ["Self {"]
    lines.extend(indent(f"{name}: {value}," for name, value in assignments))
    if base:
        lines.extend(indent([f"..{base}"]))
    lines.append("}")
    return lines
