"""Registry of named functions callable from expressions.

``FUNCTIONS`` is the public table the parser consults for function names.
``OPERATORS`` holds the bindings for the ``%`` and ``!`` operators; those are
not reachable by name from input text.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

from advmath.core.numeric import gcf, is_whole

log = logging.getLogger(__name__)

MAX_FACTORIAL = 170


@dataclass(frozen=True)
class FunctionSpec:
    """A callable bound to its name and declared parameter count."""

    name: str
    implementation: Callable[..., float]
    parameter_count: int
    returns: str = "number"
    description: str = ""

    def __call__(self, *args: float) -> float:
        if len(args) != self.parameter_count:
            raise TypeError(f"{self.name} expects {self.parameter_count} arguments, got {len(args)}")
        try:
            return float(self.implementation(*args))
        except (ValueError, OverflowError, ZeroDivisionError) as e:
            log.debug("%s%s -> nan (%s)", self.name, args, e)
            return math.nan


def factorial(n: float) -> float:
    if not is_whole(n) or n < 0:
        return math.nan
    if n > MAX_FACTORIAL:
        return math.inf
    return float(math.factorial(int(n)))


def modulus(a: float, b: float) -> float:
    if b == 0:
        return math.nan
    return math.fmod(a, b)


def lcm(a: float, b: float) -> float:
    if not (is_whole(a) and is_whole(b)):
        return math.nan
    if a == 0 or b == 0:
        return 0.0
    return abs(a * b) / gcf(abs(a), abs(b))


def _gcf(a: float, b: float) -> float:
    if not (is_whole(a) and is_whole(b)):
        return math.nan
    return gcf(abs(a), abs(b))


def _log10(x: float) -> float:
    return math.log10(x)


def _ln(x: float) -> float:
    return math.log(x)


def _register(*specs: FunctionSpec) -> dict[str, FunctionSpec]:
    return {s.name: s for s in specs}


FUNCTIONS: dict[str, FunctionSpec] = _register(
    FunctionSpec("sin", math.sin, 1, description="Sine (radians)"),
    FunctionSpec("cos", math.cos, 1, description="Cosine (radians)"),
    FunctionSpec("tan", math.tan, 1, description="Tangent (radians)"),
    FunctionSpec("asin", math.asin, 1, description="Inverse sine"),
    FunctionSpec("acos", math.acos, 1, description="Inverse cosine"),
    FunctionSpec("atan", math.atan, 1, description="Inverse tangent"),
    FunctionSpec("sinh", math.sinh, 1, description="Hyperbolic sine"),
    FunctionSpec("cosh", math.cosh, 1, description="Hyperbolic cosine"),
    FunctionSpec("tanh", math.tanh, 1, description="Hyperbolic tangent"),
    FunctionSpec("sqrt", math.sqrt, 1, description="Square root"),
    FunctionSpec("abs", abs, 1, description="Absolute value"),
    FunctionSpec("ln", _ln, 1, description="Natural logarithm"),
    FunctionSpec("log", _log10, 1, description="Base 10 logarithm"),
    FunctionSpec("exp", math.exp, 1, description="e raised to a power"),
    FunctionSpec("floor", math.floor, 1, description="Round down"),
    FunctionSpec("ceil", math.ceil, 1, description="Round up"),
    FunctionSpec("round", round, 1, description="Round to nearest whole number"),
    FunctionSpec("gcf", _gcf, 2, description="Greatest common factor"),
    FunctionSpec("lcm", lcm, 2, description="Least common multiple"),
    FunctionSpec("fact", factorial, 1, description="Factorial"),
    FunctionSpec("max", max, 2, description="Larger of two values"),
    FunctionSpec("min", min, 2, description="Smaller of two values"),
)

OPERATORS: dict[str, FunctionSpec] = _register(
    FunctionSpec("mod", modulus, 2, description="Remainder of a division"),
    FunctionSpec("fact", factorial, 1, description="Factorial"),
)

OPERATOR_SYMBOLS: dict[str, str] = {"%": "mod", "!": "fact"}


def load_by_name(name: str) -> FunctionSpec | None:
    """Look up a public function by name."""
    return FUNCTIONS.get(name)


def load_operator(symbol: str) -> FunctionSpec:
    """Look up the binding behind an operator character."""
    return OPERATORS[OPERATOR_SYMBOLS[symbol]]


def list_functions() -> list[FunctionSpec]:
    return sorted(FUNCTIONS.values(), key=lambda s: s.name)
