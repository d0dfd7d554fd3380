"""Build an expression tree from postfix symbols."""

from __future__ import annotations

from typing import Callable

from advmath.core.nodes import Node, Number, Operator, power
from advmath.errors import OperandOverflowError, OperandUnderflowError
from advmath.library.functions import load_operator
from advmath.parser.symbols import IMPLICIT_MULTIPLY, NEGATE, Symbol

OPERATIONS: dict[str, Callable[..., Node]] = {
    "+": lambda a, b: a.add(b),
    "-": lambda a, b: a.subtract(b),
    "*": lambda a, b: a.multiply(b),
    IMPLICIT_MULTIPLY: lambda a, b: a.multiply(b),
    "/": lambda a, b: a.divide(b),
    "^": power,
    NEGATE: lambda a: a.negate(),
    "%": lambda a, b: Operator(load_operator("%"), [a, b]),
    "!": lambda a: Operator(load_operator("!"), [a]),
}


def build_tree(postfix: list[Symbol]) -> Node:
    """Fold a postfix stream into a single node; empty input is zero."""
    stack: list[Node] = []
    for symbol in postfix:
        if symbol.is_operand:
            stack.append(symbol.to_operand())
            continue

        arity = symbol.arity
        if len(stack) < arity:
            raise OperandUnderflowError(
                f"{symbol} needs {arity} operand{'s' if arity != 1 else ''}, found {len(stack)}", str(symbol)
            )
        args = stack[-arity:]
        del stack[-arity:]

        if symbol.is_function:
            stack.append(symbol.to_function(args))
        else:
            stack.append(OPERATIONS[symbol.text](*args))

    if not stack:
        return Number(0)
    if len(stack) > 1:
        raise OperandOverflowError(f"{len(stack)} operands left without an operator", str(postfix[-1]))
    return stack[0]
