"""Symbolic expression parsing and algebra."""

from advmath.core import (
    Constant, Equation, Expression, Factor, Function, Node, Number, Operator, Scope, Term, Variable,
)
from advmath.parser import Parser, ParserConfig, parse_equation, parse_string

__version__ = "0.1.0"

__all__ = [
    "Constant", "Equation", "Expression", "Factor", "Function", "Node", "Number", "Operator",
    "Scope", "Term", "Variable",
    "Parser", "ParserConfig", "parse_equation", "parse_string",
]
