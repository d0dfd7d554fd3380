"""Split raw input text into tokens.

Besides splitting, the lexer makes two things explicit for the later stages:
juxtaposed operands get an implicit multiplication marker between them, and
a minus sign in operand position becomes the negation marker.
"""

from __future__ import annotations

import logging
import re

from advmath.core.nodes import CONSTANT_ALIASES, CONSTANTS
from advmath.errors import OperatorSequenceError, UnknownTokenError
from advmath.library.functions import FUNCTIONS
from advmath.parser.symbols import (
    BINARY_OPERATORS,
    DEFAULT_BRACKETS,
    IMPLICIT_MULTIPLY,
    NEGATE,
    OPERATOR_CHARS,
    SEPARATOR,
    VARIABLE_RE,
)

log = logging.getLogger(__name__)

_IDENTIFIER_PART_RE = re.compile(r"pi|π|[A-Za-z](_\d+)?|\d+")


def _is_number_char(ch: str) -> bool:
    return ch.isdigit() or ch == "."


def _is_identifier_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _split_identifier(run: str, before_bracket: bool) -> list[str]:
    """Split a run of letters into function names, constants and variables.

    ``xy`` reads as ``x``, ``y``; ``2pi`` arrives here as ``pi``. A function
    name is only recognized directly in front of a bracket.
    """
    if (before_bracket and run in FUNCTIONS) or run in CONSTANTS or run in CONSTANT_ALIASES:
        return [run]
    if VARIABLE_RE.match(run):
        return [run]

    function = ""
    if before_bracket:
        candidates = [name for name in FUNCTIONS if run.endswith(name)]
        if candidates:
            function = max(candidates, key=len)
            run = run[: -len(function)]

    parts: list[str] = []
    i = 0
    while i < len(run):
        m = _IDENTIFIER_PART_RE.match(run, i)
        if not m:
            raise UnknownTokenError(f"Unknown identifier {run!r}", run)
        parts.append(m.group())
        i = m.end()
    if function:
        parts.append(function)
    return parts


def _split(text: str, brackets: str) -> list[str]:
    tokens: list[str] = []
    opens = set(brackets[0::2])
    i = 0
    while i < len(text):
        ch = text[i]
        if _is_number_char(ch):
            j = i
            while j < len(text) and _is_number_char(text[j]):
                j += 1
            tokens.append(text[i:j])
        elif ch.isalpha() or ch == "_":
            j = i
            while j < len(text) and _is_identifier_char(text[j]):
                j += 1
            tokens.extend(_split_identifier(text[i:j], j < len(text) and text[j] in opens))
        elif ch in OPERATOR_CHARS or ch in brackets or ch == SEPARATOR:
            j = i + 1
            tokens.append(ch)
        else:
            raise UnknownTokenError(f"Unexpected character {ch!r} at position {i} in {text!r}", ch)
        i = j
    return tokens


def _ends_operand(token: str, closes: set[str]) -> bool:
    if token in closes or token == "!":
        return True
    if _is_number_char(token[0]):
        return True
    return token[0].isalpha() and token not in FUNCTIONS


def _starts_operand(token: str, opens: set[str]) -> bool:
    return token in opens or _is_number_char(token[0]) or token[0].isalpha()


def _insert_markers(tokens: list[str], brackets: str) -> list[str]:
    opens = set(brackets[0::2])
    closes = set(brackets[1::2])
    out: list[str] = []
    for token in tokens:
        prev = out[-1] if out else None
        expecting_operand = (
            prev is None
            or prev in BINARY_OPERATORS
            or prev == NEGATE
            or prev in opens
            or prev == SEPARATOR
        )
        if expecting_operand:
            if token == "-":
                out.append(NEGATE)
                continue
            if token == "+" and (prev is None or prev in opens or prev == SEPARATOR):
                continue
            if token in BINARY_OPERATORS or token == "!":
                raise OperatorSequenceError(f"Unexpected operator {token!r} after {prev!r}", token)
            if token in closes or token == SEPARATOR:
                raise OperatorSequenceError(f"Missing operand before {token!r}", token)
        elif _ends_operand(prev, closes) and _starts_operand(token, opens):
            out.append(IMPLICIT_MULTIPLY)
        out.append(token)

    if out and (out[-1] in BINARY_OPERATORS or out[-1] == NEGATE):
        raise OperatorSequenceError(f"Expression ends with operator {out[-1]!r}", out[-1])
    return out


def tokenize(text: str, brackets: str = DEFAULT_BRACKETS) -> list[str]:
    """Split ``text`` into tokens, inserting implicit multiply and negation markers."""
    compact = "".join(text.split()).replace("--", "+")
    tokens = _insert_markers(_split(compact, brackets), brackets)
    log.debug("tokens: %s", tokens)
    return tokens
