"""Equations: two expression trees joined by ``=``."""

from __future__ import annotations

import math
from dataclasses import dataclass

from advmath.core.nodes import Node
from advmath.core.scope import Scope


@dataclass(frozen=True)
class Equation:
    """An equation: lhs = rhs.

    Transformations apply to both sides independently; nothing is moved
    across the equals sign.
    """

    lhs: Node
    rhs: Node

    def evaluate(self, scope: Scope | None = None) -> Equation:
        return Equation(self.lhs.evaluate(scope), self.rhs.evaluate(scope))

    def simplify(self) -> Equation:
        return Equation(self.lhs.simplify(), self.rhs.simplify())

    def reduce(self) -> Equation:
        return Equation(self.lhs.reduce(), self.rhs.reduce())

    def expand(self) -> Equation:
        return Equation(self.lhs.expand(), self.rhs.expand())

    def is_satisfied(self) -> bool | None:
        """Whether both sides agree numerically; None while either side is symbolic."""
        if not (self.lhs.is_constant and self.rhs.is_constant):
            return None
        left, right = self.lhs.to_number(), self.rhs.to_number()
        return math.isclose(left, right, rel_tol=1e-9, abs_tol=1e-12)

    def variables(self) -> set[str]:
        return self.lhs.variables() | self.rhs.variables()

    def size(self) -> int:
        return self.lhs.size() + self.rhs.size()

    def to_text(self) -> str:
        sign = "≠" if self.is_satisfied() is False else "="
        return f"{self.lhs.to_text()} {sign} {self.rhs.to_text()}"

    def __str__(self) -> str:
        return self.to_text()
