"""Top-level module for builder generation."""

from __future__ import annotations

import argparse
import glob
import logging
import os.path
import subprocess
from dataclasses import dataclass, field

from struct_builder_generator.rust_source import find_derived_declarations
from struct_builder_generator.rust_types import BUILDER_DERIVE_NAME
from struct_builder_generator.syntax import StructDecl
from struct_builder_generator.writer import StructuralInputError, Writer

logger = logging.getLogger(__name__)

RS_SUFFIX = ".rs"
OUTPUT_SUFFIX = "_builders.rs"
RUSTFMT_EDITION = "2021"


@dataclass
class GenerationReport:
    """Summary of a generation run."""

    written_files: list[str] = field(default_factory=list)
    generated_structs: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def format_outputs(raw_input: str) -> str:
    """Formats raw input using rustfmt.

    Args:
        raw_input (str): The unformatted input.

    Returns:
        str: The formatted outputs, or the raw input if rustfmt is unavailable or fails.
    """
    try:
        result = subprocess.run(
            ["rustfmt", "--edition", RUSTFMT_EDITION, "--emit", "stdout"],
            input=raw_input,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    except FileNotFoundError:
        logger.warning("rustfmt not found, writing unformatted output.")
        return raw_input
    except subprocess.CalledProcessError as e:
        logger.error(f"rustfmt formatting failed: {e}")
        logger.error(f"Stderr: {e.stderr}")
        return raw_input


def output_file_name(source_path: str) -> str:
    """The name of the generated file for a source, e.g. `model.rs` becomes `model_builders.rs`."""
    base_name = os.path.basename(source_path)
    if base_name.endswith(RS_SUFFIX):
        base_name = base_name[: -len(RS_SUFFIX)]
    return f"{base_name}{OUTPUT_SUFFIX}"


def generate_source(
    source: str, source_name: str, derive_name: str = BUILDER_DERIVE_NAME
) -> tuple[str, int, list[str]]:
    """Generate the builder code for all derived structs of one source text.

    A struct that cannot be processed is replaced by a `compile_error!` fragment, so that the
    diagnostic surfaces when the output is compiled. Items declared inside inline `mod` blocks are
    skipped with a warning.

    Args:
        source (str): The Rust source text.
        source_name (str): The name used in diagnostics and in the file header.
        derive_name (str, optional): The derive macro name to look for. Defaults to "Builder".

    Returns:
        tuple[str, int, list[str]]: The generated text (empty if nothing derives the builder), the
            number of structs generated and the diagnostics.
    """
    declarations: list[StructDecl] = []
    for declaration in find_derived_declarations(source, derive_name):
        # Generated code is emitted at file level, where names inside a `mod` block do not resolve.
        if declaration.is_nested:
            logger.warning(
                "%s:%s: skipping '%s' declared inside `mod %s`; move it to the top level of its file.",
                source_name,
                declaration.position,
                declaration.name,
                "::".join(declaration.module_path),
            )
            continue
        declarations.append(declaration)

    if not declarations:
        return "", 0, []

    out: list[str] = [f"// This is an automatically generated file for `{os.path.basename(source_name)}`.", ""]
    diagnostics: list[str] = []
    generated = 0

    for declaration in declarations:
        try:
            out.append(Writer(declaration).dumps())
            generated += 1

        except StructuralInputError as e:
            diagnostic = f"{source_name}:{e.position}: error: {e.message}"
            logger.error(diagnostic)
            diagnostics.append(diagnostic)
            out.append(e.to_compile_error())
            out.append("")

    return "\n".join(out), generated, diagnostics


def generate_builders(
    source_path: str,
    output_file_path: str,
    derive_name: str = BUILDER_DERIVE_NAME,
    format_output: bool = True,
) -> tuple[bool, int, list[str]]:
    """Entry-point for generating the builders of one Rust source file.

    Args:
        source_path (str): The Rust file to read.
        output_file_path (str): The file to write.
        derive_name (str, optional): The derive macro name to look for. Defaults to "Builder".
        format_output (bool, optional): Whether to run rustfmt on the output. Defaults to True.

    Returns:
        tuple[bool, int, list[str]]: Whether a file was written, the number of generated structs and the diagnostics.
    """
    with open(source_path, encoding="utf8") as source_file:
        source = source_file.read()

    output, generated, diagnostics = generate_source(source, source_path, derive_name)
    if not output:
        logger.debug("No `%s` derives in '%s'.", derive_name, source_path)
        return False, 0, []

    if format_output:
        output = format_outputs(output)

    with open(output_file_path, "w", encoding="utf8") as output_file:
        output_file.write(output)

    logger.info("Wrote builders to '%s'.", output_file_path)
    return True, generated, diagnostics


def _collect_paths(patterns: list[str], root_directory: str, recursive: bool) -> set[str]:
    found: set[str] = set()
    for pattern in patterns:
        search_path = os.path.join(root_directory, pattern)

        # If recursive flag is set and path is a directory, find all .rs files recursively
        if recursive and os.path.isdir(search_path):
            for root, _, files in os.walk(search_path):
                for file in files:
                    if file.endswith(RS_SUFFIX):
                        found.add(os.path.join(root, file))
        # If path is a directory without recursive flag, find only direct children
        elif os.path.isdir(search_path):
            for file in os.listdir(search_path):
                file_path = os.path.join(search_path, file)
                if os.path.isfile(file_path) and file.endswith(RS_SUFFIX):
                    found.add(file_path)
        # Otherwise use glob for patterns or specific files
        else:
            found = found.union(p for p in glob.glob(search_path, recursive=recursive) if os.path.isfile(p))

    return {os.path.normpath(p) for p in found}


def _output_directory_for(source_path: str, output_dir: str, root_directory: str) -> str:
    if not output_dir:
        return os.path.dirname(source_path)

    abs_output_dir = os.path.join(root_directory, output_dir)
    rel_dir = os.path.relpath(os.path.dirname(os.path.abspath(source_path)), os.path.abspath(root_directory))

    # Sources outside of the root directory are written flat into the output directory
    if rel_dir.startswith(".."):
        return abs_output_dir

    return os.path.normpath(os.path.join(abs_output_dir, rel_dir))


def run(args: argparse.Namespace, root_directory: str) -> GenerationReport:
    """Run the builder generator on a set of paths that point to Rust sources.

    Uses `generate_builders` on each input file.

    Args:
        args (argparse.Namespace): The arguments that were passed when calling the generator.
        root_directory (str): The directory, from which the generator is executed.

    Returns:
        GenerationReport: What was written, and all structural diagnostics.
    """
    paths: list[str] = args.paths
    excludes: list[str] = args.excludes
    clean: list[str] = args.clean
    output_dir: str = getattr(args, "output_dir", "")
    derive_name: str = getattr(args, "derive_name", BUILDER_DERIVE_NAME)
    skip_format: bool = getattr(args, "skip_format", False)

    cleanup_paths: set[str] = set()
    for c in clean:
        cleanup_directory = os.path.join(root_directory, c)
        cleanup_paths = cleanup_paths.union(glob.glob(cleanup_directory, recursive=args.recursive))

    for cleanup_path in cleanup_paths:
        if os.path.isfile(cleanup_path):
            os.remove(cleanup_path)

    excluded_paths = _collect_paths(excludes, root_directory, args.recursive)
    search_paths = _collect_paths(paths, root_directory, args.recursive)

    # Previously generated outputs are never inputs.
    valid_paths = {p for p in search_paths - excluded_paths if not p.endswith(OUTPUT_SUFFIX)}
    logger.info("Found %d Rust source(s) to scan.", len(valid_paths))

    report = GenerationReport()

    for path in sorted(valid_paths):
        output_directory = _output_directory_for(path, output_dir, root_directory)
        os.makedirs(output_directory, exist_ok=True)
        output_file_path = os.path.join(output_directory, output_file_name(path))

        written, generated, diagnostics = generate_builders(
            path,
            output_file_path,
            derive_name=derive_name,
            format_output=not skip_format,
        )

        if written:
            report.written_files.append(output_file_path)
        report.generated_structs += generated
        report.errors.extend(diagnostics)

    logger.info(
        "Generated builders for %d struct(s) in %d file(s), %d error(s).",
        report.generated_structs,
        len(report.written_files),
        len(report.errors),
    )

    return report
