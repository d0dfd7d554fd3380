"""Expression tree nodes and the algebra performed on them.

Every node is immutable from the outside: ``evaluate``, ``simplify``,
``reduce``, ``expand``, ``add`` and ``multiply`` always build new nodes.

The canonical shape of an expression is a sum of products:

    Expression  = Term + Term + ...
    Term        = (cn / cd) * Factor * ... / (Factor * ...)
    Factor      = base ^ exponent

with Numbers, Constants, Variables and Functions at the leaves.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections import Counter, deque
from typing import TYPE_CHECKING, Hashable, Iterable, Sequence

from advmath.core.numeric import format_value, is_whole, reduce_fraction, safe_div, safe_pow
from advmath.core.scope import Scope

if TYPE_CHECKING:
    from advmath.library.functions import FunctionSpec

log = logging.getLogger(__name__)

CONSTANTS: dict[str, float] = {"pi": math.pi, "e": math.e}
CONSTANT_ALIASES: dict[str, str] = {"π": "pi"}


class Node(ABC):
    """Base class for expression tree nodes."""

    @property
    def is_constant(self) -> bool:
        return False

    @property
    def is_number(self) -> bool:
        """True only for a plain, symbol-free Number."""
        return False

    @property
    def is_one(self) -> bool:
        return False

    @property
    def is_zero(self) -> bool:
        return False

    @property
    def is_negative(self) -> bool:
        return False

    @property
    def has_symbol(self) -> bool:
        return False

    @abstractmethod
    def evaluate(self, scope: Scope | None = None) -> Node:
        raise NotImplementedError

    def simplify(self) -> Node:
        return self.clone()

    def reduce(self) -> Node:
        return self.clone()

    def expand(self) -> Node:
        return self.clone()

    @abstractmethod
    def clone(self) -> Node:
        raise NotImplementedError

    def add(self, other: Node) -> Node:
        if isinstance(other, Expression):
            return Expression((self,)).add(other)
        return Term.wrap(self).add(Term.wrap(other))

    def multiply(self, other: Node) -> Node:
        return Term.wrap(self).multiply(Term.wrap(other))

    def negate(self) -> Node:
        return self.multiply(Number(1, negative=True))

    def subtract(self, other: Node) -> Node:
        return self.add(other.negate())

    def divide(self, other: Node) -> Node:
        return self.multiply(Term.fraction(Number(1), other))

    def to_number(self) -> float:
        """Best-effort float value; NaN while symbolic content remains."""
        if not self.is_constant:
            return math.nan
        result = self.evaluate(Scope(collapse_constants=True))
        if isinstance(result, Number) and result.is_number:
            return result.value
        return math.nan

    @abstractmethod
    def to_text(self) -> str:
        raise NotImplementedError

    def variables(self) -> set[str]:
        return set()

    def size(self) -> int:
        return 1

    def _is_atomic(self) -> bool:
        """Whether the text of this node can stand as a power base without brackets."""
        return False

    @abstractmethod
    def _key(self) -> Hashable:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._key()))

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_text()!r})"


class Number(Node):
    """A numeric value stored as a non-negative magnitude and a sign flag."""

    def __init__(self, magnitude: float = 0.0, negative: bool = False):
        magnitude = float(magnitude)
        if magnitude < 0:
            magnitude, negative = -magnitude, not negative
        if magnitude == 0 or math.isnan(magnitude):
            magnitude, negative = abs(magnitude), False
        self.magnitude = magnitude
        self.negative = negative

    @property
    def value(self) -> float:
        return -self.magnitude if self.negative else self.magnitude

    @property
    def is_constant(self) -> bool:
        return True

    @property
    def is_number(self) -> bool:
        return True

    @property
    def is_one(self) -> bool:
        return self.value == 1

    @property
    def is_zero(self) -> bool:
        return self.magnitude == 0

    @property
    def is_negative(self) -> bool:
        return self.negative

    def evaluate(self, scope: Scope | None = None) -> Node:
        return self.clone()

    def clone(self) -> Number:
        return Number(self.magnitude, self.negative)

    def add(self, other: Node) -> Node:
        if self.is_number and other.is_number:
            return Number(self.value + other.value)  # type: ignore[attr-defined]
        return super().add(other)

    def multiply(self, other: Node) -> Node:
        if self.is_number and other.is_number:
            return Number(self.value * other.value)  # type: ignore[attr-defined]
        return super().multiply(other)

    def negate(self) -> Node:
        return Number(self.magnitude, not self.negative)

    def to_number(self) -> float:
        return self.value

    def to_text(self) -> str:
        return format_value(self.value)

    def _is_atomic(self) -> bool:
        return True

    def _key(self) -> Hashable:
        return self.value


class Constant(Number):
    """A named mathematical constant such as pi or e.

    Arithmetic treats it as a number, but it keeps its symbol until it is
    converted with ``to_number`` or evaluated with ``collapse_constants``.
    """

    def __init__(self, symbol: str, negative: bool = False):
        symbol = CONSTANT_ALIASES.get(symbol, symbol)
        if symbol not in CONSTANTS:
            raise ValueError(f"Unknown constant: {symbol!r}")
        super().__init__(CONSTANTS[symbol], negative)
        self.symbol = symbol

    @property
    def is_number(self) -> bool:
        return False

    @property
    def is_one(self) -> bool:
        return False

    @property
    def has_symbol(self) -> bool:
        return True

    def evaluate(self, scope: Scope | None = None) -> Node:
        if scope is not None and scope.collapse_constants:
            return Number(self.value)
        return self.clone()

    def clone(self) -> Constant:
        return Constant(self.symbol, self.negative)

    def positive(self) -> Constant:
        return Constant(self.symbol)

    def multiply(self, other: Node) -> Node:
        if other.is_number and other.value == -1:  # type: ignore[attr-defined]
            return Constant(self.symbol, not self.negative)
        return super().multiply(other)

    def negate(self) -> Node:
        return Constant(self.symbol, not self.negative)

    def to_text(self) -> str:
        return f"-{self.symbol}" if self.negative else self.symbol

    def _key(self) -> Hashable:
        return (self.symbol, self.negative)


class Variable(Node):
    """A letter with an optional subscript: x, y, x_1, ...

    The sign is carried on the variable but does not take part in equality.
    """

    def __init__(self, letter: str, subscript: int = 0, negative: bool = False):
        if len(letter) != 1 or not letter.isalpha():
            raise ValueError(f"Invalid variable letter: {letter!r}")
        if subscript < 0:
            raise ValueError("Variable subscript must be non-negative")
        self.letter = letter
        self.subscript = subscript
        self.negative = negative

    @classmethod
    def from_name(cls, name: str) -> Variable:
        letter, _, subscript = name.partition("_")
        return cls(letter, int(subscript) if subscript else 0)

    @property
    def name(self) -> str:
        return f"{self.letter}_{self.subscript}" if self.subscript else self.letter

    @property
    def is_negative(self) -> bool:
        return self.negative

    @property
    def has_symbol(self) -> bool:
        return True

    def evaluate(self, scope: Scope | None = None) -> Node:
        value = scope.get(self) if scope is not None else None
        if value is None:
            return self.clone()
        return Number(-value if self.negative else value)

    def clone(self) -> Variable:
        return Variable(self.letter, self.subscript, self.negative)

    def positive(self) -> Variable:
        return Variable(self.letter, self.subscript)

    def multiply(self, other: Node) -> Node:
        if other.is_number and other.value == -1:  # type: ignore[attr-defined]
            return Variable(self.letter, self.subscript, not self.negative)
        if isinstance(other, Variable) and other == self:
            square = Factor(self.positive(), Number(2))
            if self.negative != other.negative:
                return Term(-1, 1, [square])
            return square
        return super().multiply(other)

    def negate(self) -> Node:
        return Variable(self.letter, self.subscript, not self.negative)

    def to_text(self) -> str:
        return f"-{self.name}" if self.negative else self.name

    def variables(self) -> set[str]:
        return {self.name}

    def _is_atomic(self) -> bool:
        return True

    def _key(self) -> Hashable:
        return (self.letter, self.subscript)


def power(base: Node, exponent: Node) -> Factor:
    """Raise ``base`` to ``exponent``, merging whole exponents of a nested power."""
    if (
        isinstance(base, Factor)
        and base.exponent.is_number
        and exponent.is_number
        and is_whole(base.exponent.value)  # type: ignore[attr-defined]
        and is_whole(exponent.value)  # type: ignore[attr-defined]
    ):
        return Factor(base.base, Number(base.exponent.value * exponent.value))  # type: ignore[attr-defined]
    return Factor(base, exponent)


def _numeric(node: Node) -> float | None:
    return node.value if node.is_number else None  # type: ignore[attr-defined]


def _signed(node: Node) -> tuple[Node, bool]:
    """Key for a child node; ``-x`` and ``x`` are the same variable but not the same value."""
    return node, node.is_negative


def _unit_unwrapped(node: Node) -> Node:
    while isinstance(node, Factor) and node.exponent.is_number and node.exponent.is_one:
        node = node.base
    return node


class Factor(Node):
    """A base raised to an exponent."""

    def __init__(self, base: Node, exponent: Node | float = 1):
        if not isinstance(exponent, Node):
            exponent = Number(exponent)
        self.base = base
        self.exponent = exponent

    @property
    def is_constant(self) -> bool:
        return self.base.is_constant and self.exponent.is_constant

    @property
    def is_one(self) -> bool:
        return self.exponent.is_zero or self.base.is_one

    @property
    def is_zero(self) -> bool:
        return not self.exponent.is_zero and self.base.is_zero

    @property
    def is_negative(self) -> bool:
        exponent = _numeric(self.exponent)
        return self.base.is_negative and exponent is not None and is_whole(exponent) and exponent % 2 == 1

    @property
    def has_symbol(self) -> bool:
        return self.base.has_symbol or self.exponent.has_symbol

    def evaluate(self, scope: Scope | None = None) -> Node:
        base = self.base.evaluate(scope)
        exponent = self.exponent.evaluate(scope)
        if exponent.is_number and exponent.is_zero:
            return Number(1)
        if exponent.is_number and exponent.is_one:
            return base
        if base.is_number and exponent.is_number:
            return Number(safe_pow(base.value, exponent.value))  # type: ignore[attr-defined]
        return Factor(base, exponent)

    def simplify(self) -> Factor:
        base = self.base.simplify().reduce()
        exponent = self.exponent.simplify().reduce()
        if exponent.is_zero:
            return Factor(Number(1), Number(0))
        b, e = _numeric(base), _numeric(exponent)
        if b is not None and e is not None:
            value = safe_pow(b, e)
            if is_whole(value) or not is_whole(b):
                return Factor(Number(value), Number(1))
        return Factor(base, exponent)

    def reduce(self) -> Node:
        base = self.base.reduce()
        exponent = self.exponent.reduce()
        if exponent.is_number and exponent.is_zero:
            return Number(1)
        if exponent.is_number and exponent.is_one:
            return base
        return power(base, exponent)

    def expand(self) -> Node:
        base = self.base.expand()
        exponent = self.exponent.expand()
        n = _numeric(exponent)
        if isinstance(base, Expression) and n is not None and is_whole(n) and n > 0:
            result: Node = base
            for _ in range(int(n) - 1):
                result = result.multiply(base)
            return Factor(result, Number(1))
        return Factor(base, exponent)

    def clone(self) -> Factor:
        return Factor(self.base.clone(), self.exponent.clone())

    def to_text(self) -> str:
        base_node = _unit_unwrapped(self.base)
        base = base_node.to_text()
        if not base_node._is_atomic() or base_node.is_negative:
            base = f"({base})"
        exponent_node = _unit_unwrapped(self.exponent)
        if exponent_node.is_number and exponent_node.is_one:
            return base
        exponent = exponent_node.to_text()
        # ^ is right-associative, so a power needs no brackets as an exponent
        if not (exponent_node._is_atomic() or isinstance(exponent_node, Factor)) or exponent_node.is_negative:
            exponent = f"({exponent})"
        return f"{base}^{exponent}"

    def variables(self) -> set[str]:
        return self.base.variables() | self.exponent.variables()

    def size(self) -> int:
        return 1 + self.base.size() + self.exponent.size()

    def _key(self) -> Hashable:
        return (_signed(self.base), _signed(self.exponent))


ONE_FACTOR = Factor(Number(1), Number(0))


def _normalize(
    numerator: float,
    denominator: float,
    numerators: Iterable[Node],
    denominators: Iterable[Node],
) -> tuple[float, float, list[Factor], list[Factor]]:
    """Bring a product into canonical Term shape.

    Nested Terms are spliced in, symbol-free numeric factors are folded into
    the coefficient, negative numeric exponents move to the other side and
    the sign of a negative variable or constant base moves to the coefficient.
    """
    nums: list[Factor] = []
    dens: list[Factor] = []
    pending: deque[tuple[Node, bool]] = deque((n, True) for n in numerators)
    pending.extend((n, False) for n in denominators)

    while pending:
        node, top = pending.popleft()
        if isinstance(node, Factor):
            base, exponent = node.base, node.exponent
        else:
            base, exponent = node, Number(1)

        if exponent.is_zero:
            continue
        unit_exponent = exponent.is_number and exponent.is_one

        if isinstance(base, Expression) and len(base.terms) == 1 and unit_exponent:
            base = base.terms[0]
        if isinstance(base, Term) and unit_exponent:
            if top:
                numerator *= base.cn
                denominator *= base.cd
            else:
                numerator *= base.cd
                denominator *= base.cn
            pending.extend((f, top) for f in base.real_numerators)
            pending.extend((f, not top) for f in base.real_denominators)
            continue
        if isinstance(base, Factor) and unit_exponent:
            pending.append((base, top))
            continue

        if exponent.is_number and exponent.is_negative:
            exponent = exponent.negate()
            top = not top

        if base.is_number and exponent.is_number:
            value = safe_pow(base.value, exponent.value)  # type: ignore[attr-defined]
            if top:
                numerator *= value
            else:
                denominator *= value
            continue

        e = _numeric(exponent)
        if isinstance(base, (Variable, Constant)) and base.is_negative and e is not None and is_whole(e):
            if e % 2 == 1:
                numerator = -numerator
            base = base.positive()

        (nums if top else dens).append(Factor(base, exponent))

    if denominator < 0:
        numerator, denominator = -numerator, -denominator
    return numerator, denominator, nums or [ONE_FACTOR], dens or [ONE_FACTOR]


def _collect(factors: Iterable[Factor]) -> dict[tuple[Node, bool], Node]:
    """Group factors by signed base, summing the exponents of equal bases."""
    grouped: dict[tuple[Node, bool], Node] = {}
    for factor in factors:
        key = _signed(factor.base)
        if key in grouped:
            grouped[key] = grouped[key].add(factor.exponent)
        else:
            grouped[key] = factor.exponent
    return grouped


def _product_text(coefficient: float, factors: Sequence[Factor], leading_operator: bool = False) -> str:
    """Render ``coefficient * factors``.

    With ``leading_operator`` a ``%`` in first position is left bare, since
    ``a % b*c`` already groups as ``(a % b)*c``.
    """
    if not factors:
        return format_value(coefficient)
    parts = [f.to_text() for f in factors]
    first = factors[0]
    if (
        leading_operator
        and coefficient == 1
        and isinstance(first.base, Operator)
        and first.exponent.is_number
        and first.exponent.is_one
    ):
        parts[0] = first.base.to_text()
    leads_with_digit = parts[0][0].isdigit() or parts[0][0] == "."
    if coefficient == 1:
        return "*".join(parts)
    if coefficient == -1 and not leads_with_digit and factors[0].exponent.is_one:
        return "-" + "*".join(parts)
    head = format_value(coefficient)
    if coefficient == -1 or leads_with_digit:
        head += "*"
    return head + "*".join(parts)


class Term(Node):
    """A product in fraction form: ``(cn / cd) * numerators / denominators``.

    Neither factor list is ever empty; an empty product holds the single
    factor ``1^0``. The coefficient denominator ``cd`` is kept positive.
    """

    def __init__(
        self,
        numerator: float | Number = 1,
        denominator: float | Number = 1,
        numerators: Iterable[Node] = (),
        denominators: Iterable[Node] = (),
    ):
        if isinstance(numerator, Number):
            numerator = numerator.value
        if isinstance(denominator, Number):
            denominator = denominator.value
        cn, cd, nums, dens = _normalize(float(numerator), float(denominator), numerators, denominators)
        self.cn = cn
        self.cd = cd
        self.numerators: tuple[Factor, ...] = tuple(nums)
        self.denominators: tuple[Factor, ...] = tuple(dens)

    @classmethod
    def wrap(cls, node: Node) -> Term:
        """View any node as a Term."""
        if isinstance(node, Term):
            return node
        if isinstance(node, Expression) and len(node.terms) == 1:
            return node.terms[0]
        return cls(1, 1, [node])

    @classmethod
    def fraction(cls, numerator: Node, denominator: Node) -> Term:
        return cls(1, 1, [numerator], [denominator])

    @classmethod
    def one(cls) -> Term:
        return cls(1)

    @classmethod
    def zero(cls) -> Term:
        return cls(0)

    @property
    def coefficient_numerator(self) -> Number:
        return Number(self.cn)

    @property
    def coefficient_denominator(self) -> Number:
        return Number(self.cd)

    @property
    def coefficient(self) -> float:
        return safe_div(self.cn, self.cd)

    @property
    def real_numerators(self) -> tuple[Factor, ...]:
        return tuple(f for f in self.numerators if not f.is_one)

    @property
    def real_denominators(self) -> tuple[Factor, ...]:
        return tuple(f for f in self.denominators if not f.is_one)

    @property
    def is_constant(self) -> bool:
        return all(f.is_constant for f in self.numerators + self.denominators)

    @property
    def is_one(self) -> bool:
        return self.cn == self.cd and not self.real_numerators and not self.real_denominators

    @property
    def is_zero(self) -> bool:
        if self.cd == 0:
            return False
        return self.cn == 0 or any(f.is_zero for f in self.real_numerators)

    @property
    def is_negative(self) -> bool:
        flips = sum(f.is_negative for f in self.real_numerators + self.real_denominators)
        return (self.cn < 0) != (flips % 2 == 1)

    @property
    def has_symbol(self) -> bool:
        return any(f.has_symbol for f in self.numerators + self.denominators)

    def highest_power(self) -> float:
        """Degree used to order the terms of an Expression."""
        powers = [
            f.exponent.value  # type: ignore[attr-defined]
            for f in self.real_numerators
            if not f.base.is_constant and f.exponent.is_number
        ]
        if powers:
            return max(powers)
        powers = [
            -f.exponent.value  # type: ignore[attr-defined]
            for f in self.real_denominators
            if not f.base.is_constant and f.exponent.is_number
        ]
        return max(powers) if powers else 0

    def is_like(self, other: Term) -> bool:
        """Same factors on both sides, coefficients aside."""
        return Counter(self.real_numerators) == Counter(other.real_numerators) and Counter(
            self.real_denominators
        ) == Counter(other.real_denominators)

    def single_sum(self) -> Expression | None:
        """The Expression this Term wraps when it is exactly ``1 * (a + b + ...)``."""
        nums = self.real_numerators
        if self.cn != 1 or self.cd != 1 or len(nums) != 1 or self.real_denominators:
            return None
        factor = nums[0]
        if isinstance(factor.base, Expression) and factor.exponent.is_number and factor.exponent.is_one:
            return factor.base
        return None

    def _over(self, denominators: Counter[Factor]) -> Term:
        """Multiply top and bottom by the factors missing from this Term's denominator."""
        missing = list((denominators - Counter(self.real_denominators)).elements())
        if not missing:
            return self
        return Term(
            self.cn, self.cd, self.real_numerators + tuple(missing), self.real_denominators + tuple(missing)
        )

    def _combine(self, other: Term) -> Term:
        cn, cd = reduce_fraction(self.cn * other.cd + other.cn * self.cd, self.cd * other.cd)
        return Term(cn, cd, self.real_numerators, self.real_denominators)

    def evaluate(self, scope: Scope | None = None) -> Node:
        numerator: Node = Number(self.cn)
        for f in self.real_numerators:
            numerator = numerator.multiply(f.evaluate(scope))
        denominator: Node = Number(self.cd)
        for f in self.real_denominators:
            denominator = denominator.multiply(f.evaluate(scope))

        if denominator.is_number and denominator.is_zero:
            log.debug("Division by zero evaluating %s", self.to_text())
            return Number(math.nan)
        if numerator.is_number and denominator.is_number:
            return Number(safe_div(numerator.value, denominator.value))  # type: ignore[attr-defined]
        if denominator.is_number and denominator.is_one:
            return numerator
        return Term.fraction(numerator, denominator)

    def simplify(self) -> Term:
        nums = _collect(f.simplify() for f in self.real_numerators)
        dens = _collect(f.simplify() for f in self.real_denominators)

        for key in [k for k in nums if k in dens]:
            top, bottom = _numeric(nums[key]), _numeric(dens[key])
            if top is None or bottom is None:
                continue
            if top > bottom:
                nums[key] = Number(top - bottom)
                del dens[key]
            elif bottom > top:
                dens[key] = Number(bottom - top)
                del nums[key]
            else:
                del nums[key], dens[key]

        term = Term(
            self.cn,
            self.cd,
            [Factor(b, e.simplify().reduce()) for (b, _), e in nums.items()],
            [Factor(b, e.simplify().reduce()) for (b, _), e in dens.items()],
        )
        if term.is_zero:
            return Term.zero()
        cn, cd = reduce_fraction(term.cn, term.cd)
        return Term(cn, cd, term.real_numerators, term.real_denominators)

    def reduce(self) -> Node:
        reduced = Term(
            self.cn,
            self.cd,
            [f.reduce() for f in self.real_numerators],
            [f.reduce() for f in self.real_denominators],
        )
        if reduced.is_zero:
            return Number(0)
        nums, dens = reduced.real_numerators, reduced.real_denominators
        if not nums and not dens and reduced.cd == 1:
            return Number(reduced.cn)
        if reduced.cd == 1 and not dens and len(nums) == 1:
            only = nums[0].reduce()
            if reduced.cn == 1:
                return only
            if reduced.cn == -1 and isinstance(only, (Variable, Constant)):
                return only.negate()
        return reduced

    def expand(self) -> Node:
        sums: list[Expression] = []
        rest: list[Node] = []
        for f in self.real_numerators:
            expanded = f.expand()
            if (
                isinstance(expanded, Factor)
                and isinstance(expanded.base, Expression)
                and expanded.exponent.is_number
                and expanded.exponent.is_one
            ):
                sums.append(expanded.base)
            else:
                rest.append(expanded)
        dens = [f.expand() for f in self.real_denominators]
        if not sums:
            return Term(self.cn, self.cd, rest, dens)

        distributed: Node = Expression([Term(self.cn, 1, rest)])
        for s in sums:
            distributed = distributed.multiply(s)
        if self.cd == 1 and not dens:
            return distributed
        return Term(1, self.cd, [Factor(distributed)], dens)

    def clone(self) -> Term:
        return Term(
            self.cn,
            self.cd,
            [f.clone() for f in self.real_numerators],
            [f.clone() for f in self.real_denominators],
        )

    def add(self, other: Node) -> Node:
        if isinstance(other, Expression):
            return Expression((self,)).add(other)
        right = Term.wrap(other)
        if right.is_zero:
            return self.clone()
        if self.is_zero:
            return right.clone()

        shared = Counter(self.real_denominators) | Counter(right.real_denominators)
        left, right = self._over(shared), right._over(shared)
        if left.is_like(right):
            return left._combine(right)

        top = Expression([
            Term(left.cn, left.cd, left.real_numerators),
            Term(right.cn, right.cd, right.real_numerators),
        ]).simplify()
        if not left.real_denominators:
            return top
        return Term(1, 1, [Factor(top)], left.real_denominators)

    def multiply(self, other: Node) -> Node:
        right = Term.wrap(other)
        return Term(
            self.cn * right.cn,
            self.cd * right.cd,
            self.real_numerators + right.real_numerators,
            self.real_denominators + right.real_denominators,
        )

    def to_text(self) -> str:
        text = _product_text(self.cn, self.real_numerators, leading_operator=True)
        dens = self.real_denominators
        if self.cd == 1 and not dens:
            return text
        bottom = _product_text(self.cd, dens)
        if len(dens) > 1 or (dens and self.cd != 1):
            bottom = f"({bottom})"
        return f"{text}/{bottom}"

    def variables(self) -> set[str]:
        result: set[str] = set()
        for f in self.real_numerators + self.real_denominators:
            result |= f.variables()
        return result

    def size(self) -> int:
        return 1 + sum(f.size() for f in self.real_numerators + self.real_denominators)

    def _key(self) -> Hashable:
        return (
            self.cn,
            self.cd,
            frozenset(Counter(self.real_numerators).items()),
            frozenset(Counter(self.real_denominators).items()),
        )


class Expression(Node):
    """A sum of Terms, ordered by descending degree.

    Zero terms are dropped unless nothing else is left, and a Term that is
    just ``1 * (a + b)`` is flattened into its own terms.
    """

    def __init__(self, terms: Iterable[Node] = ()):
        flat: list[Term] = []
        for node in terms:
            if isinstance(node, Expression):
                flat.extend(node.terms)
                continue
            term = Term.wrap(node)
            inner = term.single_sum()
            if inner is not None:
                flat.extend(inner.terms)
            else:
                flat.append(term)
        flat = [t for t in flat if not t.is_zero] or [Term.zero()]
        flat.sort(key=lambda t: -t.highest_power())
        self.terms: tuple[Term, ...] = tuple(flat)

    @classmethod
    def of(cls, *nodes: Node) -> Expression:
        return cls(nodes)

    @property
    def is_constant(self) -> bool:
        return all(t.is_constant for t in self.terms)

    @property
    def is_one(self) -> bool:
        return len(self.terms) == 1 and self.terms[0].is_one

    @property
    def is_zero(self) -> bool:
        return len(self.terms) == 1 and self.terms[0].is_zero

    @property
    def is_negative(self) -> bool:
        return len(self.terms) == 1 and self.terms[0].is_negative

    @property
    def has_symbol(self) -> bool:
        return any(t.has_symbol for t in self.terms)

    def evaluate(self, scope: Scope | None = None) -> Node:
        result = self.terms[0].evaluate(scope)
        for term in self.terms[1:]:
            result = result.add(term.evaluate(scope))
        return result

    def simplify(self) -> Expression:
        merged: list[Term] = []
        for term in (t.simplify() for t in self.terms):
            for i, existing in enumerate(merged):
                if existing.is_like(term):
                    merged[i] = existing._combine(term).simplify()
                    break
            else:
                merged.append(term)
        return Expression(merged)

    def reduce(self) -> Node:
        if len(self.terms) == 1:
            return self.terms[0].reduce()
        return Expression(t.reduce() for t in self.terms)

    def expand(self) -> Node:
        return Expression(t.expand() for t in self.terms).simplify()

    def clone(self) -> Expression:
        return Expression(t.clone() for t in self.terms)

    def add(self, other: Node) -> Node:
        others = other.terms if isinstance(other, Expression) else (Term.wrap(other),)
        return Expression(self.terms + tuple(others)).simplify()

    def multiply(self, other: Node) -> Node:
        if isinstance(other, Expression):
            products = [a.multiply(b) for a in self.terms for b in other.terms]
            return Expression(products).simplify()
        return super().multiply(other)

    def to_text(self) -> str:
        parts = [self.terms[0].to_text()]
        for term in self.terms[1:]:
            if term.is_negative:
                parts.append(f" - {term.negate().to_text()}")
            else:
                parts.append(f" + {term.to_text()}")
        return "".join(parts)

    def variables(self) -> set[str]:
        result: set[str] = set()
        for t in self.terms:
            result |= t.variables()
        return result

    def size(self) -> int:
        return 1 + sum(t.size() for t in self.terms)

    def _key(self) -> Hashable:
        return frozenset(Counter(self.terms).items())


class Function(Node):
    """A call to a registered function: sin(x), gcf(a, b), ..."""

    def __init__(self, spec: FunctionSpec, args: Sequence[Node]):
        assert len(args) == spec.parameter_count, f"{spec.name} takes {spec.parameter_count} arguments"
        self.spec = spec
        self.args = tuple(args)

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def is_constant(self) -> bool:
        return all(a.is_constant for a in self.args)

    @property
    def has_symbol(self) -> bool:
        return True

    def _rebuild(self, args: Sequence[Node]) -> Function:
        return type(self)(self.spec, args)

    def evaluate(self, scope: Scope | None = None) -> Node:
        args = [a.evaluate(scope) for a in self.args]
        if all(a.is_number for a in args):
            return Number(self.spec(*(a.value for a in args)))  # type: ignore[attr-defined]
        return self._rebuild(args)

    def simplify(self) -> Node:
        return self._rebuild([a.simplify() for a in self.args])

    def reduce(self) -> Node:
        return self._rebuild([a.reduce() for a in self.args])

    def expand(self) -> Node:
        return self._rebuild([a.expand() for a in self.args])

    def clone(self) -> Function:
        return self._rebuild([a.clone() for a in self.args])

    def to_text(self) -> str:
        return f"{self.name}({', '.join(a.to_text() for a in self.args)})"

    def variables(self) -> set[str]:
        result: set[str] = set()
        for a in self.args:
            result |= a.variables()
        return result

    def size(self) -> int:
        return 1 + sum(a.size() for a in self.args)

    def _is_atomic(self) -> bool:
        return True

    def _key(self) -> Hashable:
        return (self.name, tuple(_signed(a) for a in self.args))


class Operator(Function):
    """A function written with an operator: ``a % b`` or ``a!``."""

    TEMPLATES = {"mod": "{0} % {1}", "fact": "{0}!"}

    def to_text(self) -> str:
        args = [_unit_unwrapped(a) for a in self.args]
        if self.spec.parameter_count == 1:
            bare = [a._is_atomic() and not a.is_negative for a in args]
        else:
            # % groups left with * and /, below ^ and negation
            left, right = args
            bare = [
                not (isinstance(left, Expression) and len(left.terms) > 1),
                right._is_atomic() or isinstance(right, Factor),
            ]
        text = [a.to_text() if ok else f"({a.to_text()})" for a, ok in zip(args, bare)]
        return self.TEMPLATES[self.name].format(*text)

    def _is_atomic(self) -> bool:
        return self.spec.parameter_count == 1


def number_from(value: float) -> Number:
    return Number(value)


def raw_value(number: Number) -> float:
    return number.value
