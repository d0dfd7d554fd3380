"""Numerical equivalence checks between expression trees.

Two trees are judged equivalent when they agree at a batch of random sample
points for their free variables. This is how expansion and simplification
results are cross-checked against the input they came from.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from advmath.core.nodes import Node
from advmath.core.scope import Scope

log = logging.getLogger(__name__)


@dataclass
class EquivalenceReport:
    """Outcome of comparing two trees at sample points."""

    variables: list[str]
    points: np.ndarray  # samples × variables
    left: np.ndarray
    right: np.ndarray
    matches: np.ndarray  # bool per sample

    @property
    def equivalent(self) -> bool:
        return bool(self.matches.all())

    @property
    def mismatches(self) -> int:
        return int((~self.matches).sum())

    @property
    def max_difference(self) -> float:
        finite = np.isfinite(self.left) & np.isfinite(self.right)
        if not finite.any():
            return 0.0
        return float(np.max(np.abs(self.left[finite] - self.right[finite])))

    def to_dict(self) -> dict:
        return {
            "equivalent": self.equivalent,
            "variables": self.variables,
            "samples": len(self.points),
            "mismatches": self.mismatches,
            "max_difference": self.max_difference,
        }


def sample_points(
    variables: list[str],
    samples: int = 16,
    low: float = -5.0,
    high: float = 5.0,
    seed: int | None = None,
) -> np.ndarray:
    """Uniform random points, one row per sample and one column per variable."""
    rng = np.random.default_rng(seed)
    return rng.uniform(low, high, size=(samples, len(variables)))


def evaluate_grid(node: Node, variables: list[str], points: np.ndarray) -> np.ndarray:
    """Evaluate ``node`` at every row of ``points``; NaN where it stays symbolic."""
    values = np.empty(len(points))
    for i, row in enumerate(points):
        scope = Scope(dict(zip(variables, row)), collapse_constants=True)
        values[i] = node.evaluate(scope).to_number()
    return values


def compare(
    left: Node,
    right: Node,
    samples: int = 16,
    seed: int | None = None,
    rtol: float = 1e-7,
    atol: float = 1e-9,
) -> EquivalenceReport:
    variables = sorted(left.variables() | right.variables())
    points = sample_points(variables, samples=samples, seed=seed)
    a = evaluate_grid(left, variables, points)
    b = evaluate_grid(right, variables, points)
    matches = np.isclose(a, b, rtol=rtol, atol=atol, equal_nan=True)
    report = EquivalenceReport(variables, points, a, b, matches)
    log.debug("compare %s vs %s: %d/%d samples differ", left, right, report.mismatches, samples)
    return report


def are_equivalent(left: Node, right: Node, samples: int = 16, seed: int | None = None) -> bool:
    return compare(left, right, samples=samples, seed=seed).equivalent
