"""Command-line interface for generating builders for Rust structs.

Notes:
    - Structs opt in with `#[derive(Builder)]`; fields opt into defaults with `#[default = "<expr>"]`.
"""

from __future__ import annotations

import argparse
import logging
import os.path
from collections.abc import Sequence

from struct_builder_generator.run import run
from struct_builder_generator.rust_types import BUILDER_DERIVE_NAME

logger = logging.getLogger(__name__)


def setup_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Path options are resolved against the working directory. Generated files are named
    `<stem>_builders.rs` and are never scanned as inputs.

    Returns:
        argparse.ArgumentParser: The parser.
    """
    parser = argparse.ArgumentParser(
        prog="struct-builder-generator",
        description="Generate builder methods, `<Name>Init` structs and `From` conversions for Rust structs.",
    )

    inputs = parser.add_argument_group("inputs")
    inputs.add_argument(
        "-p",
        "--paths",
        type=str,
        nargs="+",
        default=["**/*.rs"],
        help="Rust files, directories or globs to scan (default: %(default)s).",
    )
    inputs.add_argument(
        "-e",
        "--excludes",
        type=str,
        nargs="+",
        default=[],
        help="files, directories or globs to leave out.",
    )
    inputs.add_argument(
        "-r",
        "--recursive",
        action="store_true",
        help="walk directories recursively and let `**` in globs cross directories.",
    )
    inputs.add_argument(
        "-d",
        "--derive-name",
        dest="derive_name",
        type=str,
        default=BUILDER_DERIVE_NAME,
        help="derive that marks a struct for generation (default: %(default)s).",
    )

    outputs = parser.add_argument_group("outputs")
    outputs.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default="",
        help="write builders here, mirroring the source layout; by default they go next to each source.",
    )
    outputs.add_argument(
        "-c",
        "--clean",
        type=str,
        nargs="+",
        default=[],
        help="globs of stale generated files to delete first.",
    )
    outputs.add_argument(
        "--no-format",
        dest="skip_format",
        action="store_true",
        help="write the builders without running rustfmt.",
    )

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the builder generator.

    Args:
        argv (Sequence[str] | None, optional): Run arguments. Defaults to None.

    Returns:
        int: Error code.
    """
    logging.basicConfig(level=logging.INFO)

    root_directory = os.getcwd()
    logger.info("Working from root directory: %s", root_directory)

    parser = setup_parser()
    args = parser.parse_args(argv)

    report = run(args, root_directory)

    return 0 if report.ok else 1
