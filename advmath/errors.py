"""Error types raised by the parser and the evaluation environment."""

from __future__ import annotations


class MathError(Exception):
    """Base class for every error raised by advmath."""

    def __init__(self, message: str, token: str | None = None):
        super().__init__(message)
        self.token = token


class ConfigurationError(MathError, ValueError):
    """Invalid parser or environment configuration."""


class ParseError(MathError, ValueError):
    """Input text could not be turned into an expression tree."""


class UnknownTokenError(ParseError):
    """A token matches no number, identifier, operator or bracket pattern."""


class MismatchedBracketError(ParseError):
    """An opening or closing bracket has no matching counterpart."""


class OperatorSequenceError(ParseError):
    """Operators appear where an operand is required."""


class OperandUnderflowError(ParseError):
    """An operator or function could not find enough operands."""


class OperandOverflowError(ParseError):
    """More than one operand remained after building the tree."""


class ArgumentCountError(ParseError):
    """A function call received the wrong number of arguments."""


class NestingDepthError(ParseError):
    """Bracket nesting exceeded the configured maximum depth."""


class UnboundVariableError(MathError, KeyError):
    """A strict scope lookup found no binding for a variable."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
