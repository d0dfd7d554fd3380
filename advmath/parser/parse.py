"""Parser front end: text in, reduced expression tree out."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from advmath.core.equation import Equation
from advmath.core.nodes import Node
from advmath.errors import ConfigurationError, ParseError
from advmath.parser.builder import build_tree
from advmath.parser.lexer import tokenize
from advmath.parser.postfix import to_postfix
from advmath.parser.symbols import DEFAULT_BRACKETS, IMPLICIT_MULTIPLY, NEGATE, OPERATOR_CHARS, SEPARATOR, classify

log = logging.getLogger(__name__)

_RESERVED = set(OPERATOR_CHARS) | {IMPLICIT_MULTIPLY, NEGATE, SEPARATOR, "=", "_", "."}


@dataclass(frozen=True)
class ParserConfig:
    """Parser settings.

    ``brackets`` lists bracket pairs as consecutive characters, e.g. ``"()[]"``.
    ``max_depth`` bounds bracket nesting for untrusted input.
    """

    brackets: str = DEFAULT_BRACKETS
    max_depth: int | None = None

    def __post_init__(self) -> None:
        if not self.brackets or len(self.brackets) % 2:
            raise ConfigurationError(
                f"Brackets must be given in open/close pairs, got {self.brackets!r}", self.brackets
            )
        if len(set(self.brackets)) != len(self.brackets):
            raise ConfigurationError(f"Duplicate bracket characters in {self.brackets!r}", self.brackets)
        for ch in self.brackets:
            if ch in _RESERVED or ch.isalnum() or ch.isspace():
                raise ConfigurationError(f"{ch!r} cannot be used as a bracket", ch)
        if self.max_depth is not None and self.max_depth < 1:
            raise ConfigurationError(f"max_depth must be at least 1, got {self.max_depth}")


class Parser:
    """Turns infix text into canonical expression trees."""

    def __init__(self, config: ParserConfig | None = None):
        self.config = config or ParserConfig()

    def tokenize(self, text: str) -> list[str]:
        return tokenize(text, self.config.brackets)

    def parse(self, text: str) -> Node:
        symbols = classify(self.tokenize(text), self.config.brackets)
        postfix = to_postfix(symbols, self.config.max_depth)
        tree = build_tree(postfix).reduce()
        log.debug("parsed %r -> %s", text, tree)
        return tree

    def parse_equation(self, text: str) -> Equation:
        lhs, sep, rhs = text.partition("=")
        if not sep or "=" in rhs:
            raise ParseError(f"Expected exactly one '=' in {text!r}", "=")
        if not lhs.strip() or not rhs.strip():
            raise ParseError(f"Both sides of {text!r} must be non-empty", "=")
        return Equation(self.parse(lhs), self.parse(rhs))


def parse_string(text: str, config: ParserConfig | None = None) -> Node:
    """Parse infix text into a reduced expression tree."""
    return Parser(config).parse(text)


def parse_equation(text: str, config: ParserConfig | None = None) -> Equation:
    return Parser(config).parse_equation(text)
