"""Infix to postfix conversion (shunting-yard)."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from advmath.errors import (
    ArgumentCountError,
    MismatchedBracketError,
    NestingDepthError,
    OperatorSequenceError,
)
from advmath.parser.symbols import Symbol

log = logging.getLogger(__name__)


@dataclass
class _Group:
    """An open bracket and, for a call, the function it belongs to."""

    function: Symbol | None
    arguments: int = 1


def to_postfix(symbols: list[Symbol], max_depth: int | None = None) -> list[Symbol]:
    """Reorder classified symbols into postfix order.

    ``^`` and negation are right-associative, everything else groups to the
    left. A function is emitted right after its closing bracket. Raises
    MismatchedBracketError, ArgumentCountError or NestingDepthError.
    """
    output: list[Symbol] = []
    stack: list[Symbol] = []
    groups: list[_Group] = []
    pending_call: Symbol | None = None

    for symbol in symbols:
        if pending_call is not None and not symbol.is_open_bracket:
            raise OperatorSequenceError(f"Function {pending_call} must be followed by a bracket", str(pending_call))

        if symbol.is_operand:
            output.append(symbol)
        elif symbol.is_function:
            stack.append(symbol)
            pending_call = symbol
        elif symbol.is_postfix:
            output.append(symbol)
        elif symbol.is_operator:
            while stack and stack[-1].is_operator and (
                stack[-1].precedence > symbol.precedence
                or (stack[-1].precedence == symbol.precedence and not symbol.is_right_associative)
            ):
                output.append(stack.pop())
            stack.append(symbol)
        elif symbol.is_separator:
            if not groups or groups[-1].function is None:
                raise ArgumentCountError("Argument separator outside a function call", str(symbol))
            while not stack[-1].is_open_bracket:
                output.append(stack.pop())
            groups[-1].arguments += 1
        elif symbol.is_open_bracket:
            if max_depth is not None and len(groups) >= max_depth:
                raise NestingDepthError(f"Brackets nested deeper than {max_depth}", str(symbol))
            groups.append(_Group(pending_call))
            stack.append(symbol)
            pending_call = None
        elif symbol.is_close_bracket:
            while stack and not stack[-1].is_open_bracket:
                output.append(stack.pop())
            if not stack:
                raise MismatchedBracketError(f"Unmatched closing bracket {symbol}", str(symbol))
            opener = stack.pop()
            if not symbol.matches(opener):
                raise MismatchedBracketError(f"Bracket {opener} closed by {symbol}", str(symbol))
            group = groups.pop()
            if group.function is not None:
                stack.pop()
                if group.arguments != group.function.arity:
                    raise ArgumentCountError(
                        f"{group.function} takes {group.function.arity} arguments, got {group.arguments}",
                        str(group.function),
                    )
                output.append(group.function)

    if pending_call is not None:
        raise OperatorSequenceError(f"Function {pending_call} must be followed by a bracket", str(pending_call))
    while stack:
        top = stack.pop()
        if top.is_open_bracket:
            raise MismatchedBracketError(f"Unmatched opening bracket {top}", str(top))
        output.append(top)

    log.debug("postfix: %s", " ".join(str(s) for s in output))
    return output
