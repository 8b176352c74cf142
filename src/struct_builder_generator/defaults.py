"""Extraction of `#[default = "..."]` field annotations."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing_extensions import override

from struct_builder_generator.rust_source import parse_expression
from struct_builder_generator.rust_types import DEFAULT_ATTRIBUTE
from struct_builder_generator.syntax import Attribute, LiteralToken

logger = logging.getLogger(__name__)

_SIMPLE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "0": "\0", "\\": "\\", "'": "'", '"': '"'}
_ESCAPE_PATTERN = re.compile(r"\\(u\{[0-9A-Fa-f_]{1,6}\}|x[0-7][0-9A-Fa-f]|\r?\n\s*|.)", re.DOTALL)
_RAW_STRING_PATTERN = re.compile(r'r(#*)"(.*)"\1', re.DOTALL)
_MAX_CODE_POINT = 0x10FFFF
_SURROGATES = (0xD800, 0xDFFF)


@dataclass(frozen=True)
class DefaultExpression:
    """An expression that is spliced verbatim into the factory method."""

    text: str

    @override
    def __str__(self) -> str:
        return self.text


def _unescape(body: str) -> str | None:
    parts: list[str] = []
    position = 0
    for match in _ESCAPE_PATTERN.finditer(body):
        parts.append(body[position : match.start()])
        escape = match.group(1)

        if escape.startswith("u{"):
            code = int(escape[2:-1].replace("_", ""), 16)
            if code > _MAX_CODE_POINT or _SURROGATES[0] <= code <= _SURROGATES[1]:
                return None
            parts.append(chr(code))
        elif escape.startswith("x"):
            parts.append(chr(int(escape[1:], 16)))
        elif escape[0] in "\r\n":
            # Line continuation: the newline and the leading whitespace of the next line vanish.
            pass
        elif escape in _SIMPLE_ESCAPES:
            parts.append(_SIMPLE_ESCAPES[escape])
        else:
            return None

        position = match.end()

    parts.append(body[position:])
    return "".join(parts)


def unquote(literal: LiteralToken) -> str | None:
    """Return the value of a string literal token.

    Plain strings have their escape sequences processed, so `"\\"x\\".into()"` yields `"x".into()`.
    Raw strings (`r"..."`, `r#"..."#`) are taken as written.

    Args:
        literal (LiteralToken): The literal as written, e.g. `"Some(11)"`.

    Returns:
        str | None: The string value, or None for any other kind of literal or an invalid escape.
    """
    text = literal.text

    if literal.is_raw_string:
        match = _RAW_STRING_PATTERN.fullmatch(text)
        return match.group(2) if match else None

    if not literal.is_string or len(text) < 2 or text[0] != '"' or text[-1] != '"':
        return None
    return _unescape(text[1:-1])


def find_default_attribute(attributes: Iterable[Attribute]) -> Attribute | None:
    for attribute in attributes:
        if attribute.outer and attribute.name == DEFAULT_ATTRIBUTE:
            return attribute
    return None


def extract_default(attributes: Iterable[Attribute]) -> DefaultExpression | None:
    """Find the `default` attribute of a field and turn its payload into an expression.

    The payload has to be a single string literal. Its value (escapes processed) is parsed
    again as one standalone expression. Any other shape (no payload, a non-string literal, an
    argument list, or text that is not a single expression) means the field has no default.

    Args:
        attributes (Iterable[Attribute]): The attributes attached to the field.

    Returns:
        DefaultExpression | None: The default, if one could be extracted.
    """
    attribute = find_default_attribute(attributes)
    if attribute is None:
        return None

    if attribute.value is None:
        logger.warning("Ignoring `default` attribute without a literal value.")
        return None

    unquoted = unquote(attribute.value)
    if unquoted is None:
        logger.warning(
            "Ignoring `default` attribute with non-string value or invalid escape %s.", attribute.value.text
        )
        return None

    expression = parse_expression(unquoted)
    if expression is None:
        logger.warning("Ignoring `default` attribute, '%s' is not a single expression.", unquoted)
        return None

    return DefaultExpression(expression)
