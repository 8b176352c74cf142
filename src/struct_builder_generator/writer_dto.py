"""Data transfer objects for the pieces of generated code.

Every object is frozen and knows how to render itself as lines of Rust source.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing_extensions import override

from struct_builder_generator import helper
from struct_builder_generator.rust_types import ALLOW_DEAD_CODE, ALLOW_NEEDLESS_UPDATE, INLINE
from struct_builder_generator.syntax import GenericParam, WherePredicate


class Receiver:
    """How a generated method takes its instance."""

    NONE = ""
    BY_VALUE = "self"
    MUT_REF = "&mut self"


@dataclass(frozen=True)
class Parameter:
    """A named, typed function parameter."""

    name: str
    type_name: str

    @override
    def __str__(self) -> str:
        return f"{self.name}: {self.type_name}"


@dataclass(frozen=True)
class GeneratedMethod:
    """A single generated method.

    Attributes:
        name: The method name.
        receiver: One of the `Receiver` values.
        parameters: The parameters after the receiver.
        return_type: The return type, e.g. `&mut Self` or `Self`.
        body: The body lines, not indented.
        attributes: Attribute lines emitted above the signature.
        visibility: The visibility qualifier; trait impls use an empty string.
    """

    name: str
    receiver: str
    parameters: tuple[Parameter, ...]
    return_type: str
    body: tuple[str, ...]
    attributes: tuple[str, ...] = (INLINE,)
    visibility: str = "pub"

    def lines(self) -> list[str]:
        out = list(self.attributes)
        arguments: list[object] = [self.receiver] if self.receiver else []
        arguments.extend(self.parameters)
        out.append(helper.new_function(self.name, arguments, self.return_type, self.visibility))
        out.extend(helper.indent(self.body))
        out.append("}")
        return out


@dataclass(frozen=True)
class MethodBundle:
    """All methods generated for one field."""

    field_name: str
    methods: tuple[GeneratedMethod, ...]

    @property
    def method_names(self) -> list[str]:
        return [m.name for m in self.methods]


@dataclass(frozen=True)
class InitStructDeclaration:
    """The auxiliary struct that only holds the required fields."""

    name: str
    generic_params: tuple[GenericParam, ...]
    where_predicates: tuple[WherePredicate, ...]
    fields: tuple[Parameter, ...]

    @property
    def applied_type(self) -> str:
        """The init struct type applied to its generic parameters, e.g. `PersonInit<T>`."""
        return helper.new_applied_type(self.name, self.generic_params)

    def lines(self) -> list[str]:
        out = [ALLOW_DEAD_CODE, ALLOW_NEEDLESS_UPDATE]
        out.append(helper.new_struct_declaration(self.name, self.generic_params, self.where_predicates))
        out.extend(helper.indent(f"pub {f}," for f in self.fields))
        out.append("}")
        return out


@dataclass(frozen=True)
class ConversionDefinition:
    """`impl From<Init> for Struct`, delegating to the factory method."""

    struct_type: str
    init_type: str
    generic_params: tuple[GenericParam, ...]
    where_predicates: tuple[WherePredicate, ...]
    method: GeneratedMethod

    def lines(self) -> list[str]:
        out = [ALLOW_NEEDLESS_UPDATE]
        out.append(
            helper.new_impl_declaration(
                self.struct_type,
                self.generic_params,
                self.where_predicates,
                trait=helper.new_group("From", [self.init_type]),
            )
        )
        out.extend(helper.indent(self.method.lines()))
        out.append("}")
        return out


@dataclass(frozen=True)
class GeneratedArtifact:
    """Everything generated for one struct.

    Attributes:
        struct_name: The name of the source struct.
        struct_type: The struct applied to all its generic parameters.
        generic_params: The struct's generic parameters.
        where_predicates: The struct's where clause.
        factory: The `new` method.
        bundles: One method bundle per field, in declaration order.
        init_struct: The init struct declaration.
        conversion: The conversion from the init struct.
    """

    struct_name: str
    struct_type: str
    generic_params: tuple[GenericParam, ...]
    where_predicates: tuple[WherePredicate, ...]
    factory: GeneratedMethod
    bundles: tuple[MethodBundle, ...]
    init_struct: InitStructDeclaration
    conversion: ConversionDefinition

    @property
    def method_names(self) -> list[str]:
        """The names of all methods of the impl block, in emission order."""
        names = [self.factory.name]
        for bundle in self.bundles:
            names.extend(bundle.method_names)
        return names

    @property
    def duplicate_method_names(self) -> list[str]:
        """Method names that are generated more than once."""
        return sorted(name for name, count in Counter(self.method_names).items() if count > 1)

    def impl_lines(self) -> list[str]:
        out = [ALLOW_DEAD_CODE, ALLOW_NEEDLESS_UPDATE]
        out.append(helper.new_impl_declaration(self.struct_type, self.generic_params, self.where_predicates))

        methods = [self.factory]
        for bundle in self.bundles:
            methods.extend(bundle.methods)

        for i, method in enumerate(methods):
            if i:
                out.append("")
            out.extend(helper.indent(method.lines()))

        out.append("}")
        return out

    def lines(self) -> list[str]:
        return [*self.impl_lines(), "", *self.init_struct.lines(), "", *self.conversion.lines()]

    def dumps(self) -> str:
        """Render the generated fragment as Rust source."""
        return "\n".join(self.lines()) + "\n"
