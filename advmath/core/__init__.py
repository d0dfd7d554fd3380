from advmath.core.scope import Scope
from advmath.core.nodes import (
    Node, Number, Constant, Variable, Factor, Term, Expression, Function, Operator,
    power, number_from, raw_value,
)
from advmath.core.equation import Equation

__all__ = [
    "Scope",
    "Node", "Number", "Constant", "Variable", "Factor", "Term", "Expression", "Function", "Operator",
    "power", "number_from", "raw_value",
    "Equation",
]
