"""Generate builder methods, an init struct and its conversion for a Rust struct."""

from __future__ import annotations

import logging

from struct_builder_generator import generics, helper
from struct_builder_generator.analyzer import FieldSchema, StructSchema, analyze_struct
from struct_builder_generator.syntax import FieldStyle, ItemKind, SourcePosition, StructDecl
from struct_builder_generator.writer_dto import (
    ConversionDefinition,
    GeneratedArtifact,
    GeneratedMethod,
    InitStructDeclaration,
    MethodBundle,
    Parameter,
    Receiver,
)

logger = logging.getLogger(__name__)

MUT_SELF_RETURN = "&mut Self"
SELF_RETURN = "Self"
VALUE_PARAMETER = "value"


class StructuralInputError(Exception):
    """Raised when the derive target is not a struct with uniquely named fields."""

    def __init__(self, message: str, position: SourcePosition | None = None):
        super().__init__(message)
        self.message = message
        self.position = position or SourcePosition()

    def to_compile_error(self) -> str:
        """Render the diagnostic as a `compile_error!` invocation."""
        escaped = self.message.replace("\\", "\\\\").replace('"', '\\"')
        return f'compile_error!("{escaped}");'


class Writer:
    """A class that generates the builder code for one struct declaration."""

    def __init__(self, declaration: StructDecl):
        """Initialize the writer with a declaration.

        Args:
            declaration (StructDecl): The item the builder is derived for.
        """
        self._declaration = declaration
        self._artifact: GeneratedArtifact | None = None

    @property
    def declaration(self) -> StructDecl:
        return self._declaration

    def _check_structure(self) -> None:
        decl = self._declaration

        if decl.kind != ItemKind.STRUCT:
            raise StructuralInputError("Builder derive works only on structs", decl.position)

        if decl.field_style != FieldStyle.NAMED or any(f.name is None for f in decl.fields):
            raise StructuralInputError("Builder works only on the structs with named fields", decl.position)

        seen: set[str | None] = set()
        for field in decl.fields:
            if field.name in seen:
                raise StructuralInputError(f"Builder found duplicate field `{field.name}`", field.position)
            seen.add(field.name)

    def gen_field_methods(self, field: FieldSchema) -> MethodBundle:
        """Generate the setters of a field.

        Every field gets an in-place setter named after the field and a consuming `with_` setter,
        both accepting the unwrapped type. Optional fields additionally get `reset_`, `mopt_`,
        `without_` and `opt_`.

        Args:
            field (FieldSchema): The analyzed field.

        Returns:
            MethodBundle: The generated methods in emission order.
        """
        name = field.name
        declared_type = str(field.type_expr)
        exposed_type = str(field.type_info.exposed_type)
        value = Parameter(VALUE_PARAMETER, exposed_type)

        if not field.is_optional:
            return MethodBundle(
                name,
                (
                    GeneratedMethod(
                        helper.setter_name(name),
                        Receiver.MUT_REF,
                        (value,),
                        MUT_SELF_RETURN,
                        (f"self.{name} = {VALUE_PARAMETER};", "self"),
                    ),
                    GeneratedMethod(
                        helper.with_name(name),
                        Receiver.BY_VALUE,
                        (value,),
                        SELF_RETURN,
                        tuple(helper.new_struct_literal([(name, VALUE_PARAMETER)], base="self")),
                    ),
                ),
            )

        optional_value = Parameter(VALUE_PARAMETER, declared_type)
        wrapped = f"Some({VALUE_PARAMETER})"

        return MethodBundle(
            name,
            (
                GeneratedMethod(
                    helper.setter_name(name),
                    Receiver.MUT_REF,
                    (value,),
                    MUT_SELF_RETURN,
                    (f"self.{name} = {wrapped};", "self"),
                ),
                GeneratedMethod(
                    helper.reset_name(name),
                    Receiver.MUT_REF,
                    (),
                    MUT_SELF_RETURN,
                    (f"self.{name} = None;", "self"),
                ),
                GeneratedMethod(
                    helper.mopt_name(name),
                    Receiver.MUT_REF,
                    (optional_value,),
                    MUT_SELF_RETURN,
                    (f"self.{name} = {VALUE_PARAMETER};", "self"),
                ),
                GeneratedMethod(
                    helper.with_name(name),
                    Receiver.BY_VALUE,
                    (value,),
                    SELF_RETURN,
                    tuple(helper.new_struct_literal([(name, wrapped)], base="self")),
                ),
                GeneratedMethod(
                    helper.without_name(name),
                    Receiver.BY_VALUE,
                    (),
                    SELF_RETURN,
                    tuple(helper.new_struct_literal([(name, "None")], base="self")),
                ),
                GeneratedMethod(
                    helper.opt_name(name),
                    Receiver.BY_VALUE,
                    (optional_value,),
                    SELF_RETURN,
                    tuple(helper.new_struct_literal([(name, VALUE_PARAMETER)], base="self")),
                ),
            ),
        )

    @staticmethod
    def _factory_value(field: FieldSchema) -> str:
        if field.default is not None:
            return str(field.default)
        if field.is_optional:
            return "None"
        return field.name

    def gen_factory_method(self, schema: StructSchema) -> GeneratedMethod:
        """Generate `new`, taking the required fields in declaration order.

        Optional fields start out as `None` and defaulted fields as their default expression.
        """
        parameters = tuple(Parameter(f.name, str(f.type_expr)) for f in schema.required_fields)
        assignments = [(f.name, self._factory_value(f)) for f in schema.fields]

        return GeneratedMethod(
            "new",
            Receiver.NONE,
            parameters,
            SELF_RETURN,
            tuple(helper.new_struct_literal(assignments)),
            attributes=(),
        )

    def gen_init_struct(self, schema: StructSchema) -> InitStructDeclaration:
        """Generate the init struct, declaring only the generic parameters its fields use."""
        required = schema.required_fields
        kept_params = generics.resolve(schema.generic_params, required)
        init_params = generics.restrict_bounds(kept_params, schema.generic_params)
        kept_predicates = generics.resolve_where_predicates(schema.where_predicates, schema.generic_params, kept_params)

        return InitStructDeclaration(
            name=helper.init_struct_name(schema.name),
            generic_params=init_params,
            where_predicates=kept_predicates,
            fields=tuple(Parameter(f.name, str(f.type_expr)) for f in required),
        )

    def gen_conversion(self, schema: StructSchema, init_struct: InitStructDeclaration) -> ConversionDefinition:
        """Generate `From<Init>` for the struct by passing the init fields to `new` in order."""
        init_type = init_struct.applied_type
        arguments = helper.join_parameters([f"value.{f.name}" for f in init_struct.fields])

        method = GeneratedMethod(
            "from",
            Receiver.NONE,
            (Parameter(VALUE_PARAMETER, init_type),),
            SELF_RETURN,
            (f"Self::new({arguments})",),
            attributes=(),
            visibility="",
        )

        return ConversionDefinition(
            struct_type=helper.new_applied_type(schema.name, schema.generic_params),
            init_type=init_type,
            generic_params=schema.generic_params,
            where_predicates=schema.where_predicates,
            method=method,
        )

    def generate(self) -> GeneratedArtifact:
        """Generate all code for the declaration.

        Raises:
            StructuralInputError: If the declaration is not a struct with uniquely named fields.

        Returns:
            GeneratedArtifact: The generated code.
        """
        if self._artifact is not None:
            return self._artifact

        self._check_structure()
        schema = analyze_struct(self._declaration)

        init_struct = self.gen_init_struct(schema)
        artifact = GeneratedArtifact(
            struct_name=schema.name,
            struct_type=helper.new_applied_type(schema.name, schema.generic_params),
            generic_params=schema.generic_params,
            where_predicates=schema.where_predicates,
            factory=self.gen_factory_method(schema),
            bundles=tuple(self.gen_field_methods(f) for f in schema.fields),
            init_struct=init_struct,
            conversion=self.gen_conversion(schema, init_struct),
        )

        duplicates = artifact.duplicate_method_names
        if duplicates:
            logger.warning("Struct '%s' generates colliding method names: %s", schema.name, ", ".join(duplicates))

        logger.debug(
            "Generated %d method(s) for '%s', %d required field(s).",
            len(artifact.method_names),
            schema.name,
            len(init_struct.fields),
        )

        self._artifact = artifact
        return artifact

    def dumps(self) -> str:
        """Generates string output for the builder fragment.

        Returns:
            str: The output string.
        """
        return self.generate().dumps()


def generate_builder(declaration: StructDecl) -> GeneratedArtifact:
    """Convenience wrapper around `Writer(declaration).generate()`."""
    return Writer(declaration).generate()
