"""Classification of raw tokens into operands, operators, functions and brackets."""

from __future__ import annotations

import re
from dataclasses import dataclass

from advmath.core.nodes import CONSTANT_ALIASES, CONSTANTS, Constant, Function, Node, Number, Variable
from advmath.errors import UnknownTokenError
from advmath.library.functions import FUNCTIONS, FunctionSpec

IMPLICIT_MULTIPLY = "#"
NEGATE = "~"
SEPARATOR = ","

OPERATOR_CHARS = "+-*/^%!"
BINARY_OPERATORS = "+-*/^%"
POSTFIX_OPERATORS = "!"

# Higher binds tighter; brackets and the separator are structural.
PRECEDENCE: dict[str, int] = {
    "!": 6,
    NEGATE: 5,
    "^": 4,
    "*": 3,
    IMPLICIT_MULTIPLY: 3,
    "%": 3,
    "/": 3,
    "-": 2,
    "+": 1,
}
RIGHT_ASSOCIATIVE = {"^", NEGATE}
UNARY = {NEGATE, "!"}

NUMBER_RE = re.compile(r"^(\d+\.?\d*|\.\d+)$")
VARIABLE_RE = re.compile(r"^[A-Za-z](_\d+)?$")

DEFAULT_BRACKETS = "()"


@dataclass(frozen=True)
class Symbol:
    """A raw token together with the questions the converter asks about it."""

    text: str
    brackets: str = DEFAULT_BRACKETS

    @property
    def is_number(self) -> bool:
        return bool(NUMBER_RE.match(self.text))

    @property
    def is_constant(self) -> bool:
        return self.text in CONSTANTS or self.text in CONSTANT_ALIASES

    @property
    def is_variable(self) -> bool:
        return bool(VARIABLE_RE.match(self.text)) and not self.is_constant

    @property
    def is_operand(self) -> bool:
        return self.is_number or self.is_constant or self.is_variable

    @property
    def is_function(self) -> bool:
        return self.text in FUNCTIONS

    @property
    def is_open_bracket(self) -> bool:
        i = self.brackets.find(self.text)
        return len(self.text) == 1 and i >= 0 and i % 2 == 0

    @property
    def is_close_bracket(self) -> bool:
        i = self.brackets.find(self.text)
        return len(self.text) == 1 and i >= 0 and i % 2 == 1

    @property
    def is_separator(self) -> bool:
        return self.text == SEPARATOR

    @property
    def is_operator(self) -> bool:
        return self.text in PRECEDENCE

    @property
    def is_postfix(self) -> bool:
        return self.text in POSTFIX_OPERATORS

    @property
    def is_right_associative(self) -> bool:
        return self.text in RIGHT_ASSOCIATIVE

    @property
    def precedence(self) -> int:
        return PRECEDENCE[self.text]

    @property
    def arity(self) -> int:
        if self.is_function:
            return FUNCTIONS[self.text].parameter_count
        return 1 if self.text in UNARY else 2

    @property
    def spec(self) -> FunctionSpec:
        return FUNCTIONS[self.text]

    def matches(self, opener: Symbol) -> bool:
        """Whether this close bracket closes ``opener``."""
        i = self.brackets.find(opener.text)
        return self.brackets[i + 1] == self.text

    def validate(self) -> Symbol:
        if not (
            self.is_operand
            or self.is_function
            or self.is_operator
            or self.is_open_bracket
            or self.is_close_bracket
            or self.is_separator
        ):
            raise UnknownTokenError(f"Unknown token: {self.text!r}", self.text)
        return self

    def to_operand(self) -> Node:
        if self.is_number:
            return Number(float(self.text))
        if self.is_constant:
            return Constant(self.text)
        if self.is_variable:
            return Variable.from_name(self.text)
        raise UnknownTokenError(f"Not an operand: {self.text!r}", self.text)

    def to_function(self, args: list[Node]) -> Function:
        return Function(self.spec, args)

    def __str__(self) -> str:
        return self.text


def classify(tokens: list[str], brackets: str = DEFAULT_BRACKETS) -> list[Symbol]:
    return [Symbol(t, brackets).validate() for t in tokens]
