"""Integration tests: text through the parser and the algebra engine and back."""

import math

import numpy as np
import pytest
from advmath.analysis.equivalence import are_equivalent, compare, evaluate_grid, sample_points
from advmath.core.equation import Equation
from advmath.core.nodes import Number, Term, Variable
from advmath.core.scope import Scope
from advmath.errors import ParseError
from advmath.parser.parse import parse_equation, parse_string

CANONICAL = [
    "x^2 + 2x + 1",
    "x - 1",
    "3x/4",
    "2(x + 1)",
    "sin(x) + 1",
    "2pi",
    "x % 2",
    "x!",
    "-x",
    "(x + 1)^2",
    "x^(y + 1)",
    "x_1 + y",
    "1/x",
    "max(x, 2)",
    "x + 3 % 2",
    "x % 2 + 1",
    "2x % 3",
    "x % 2*y",
    "x % (2y)",
    "x^y^2",
    "2^3^2",
]

SAMPLES = [
    "x^2 + 2x + 1",
    "2x + 3x",
    "x*x*y/x",
    "(x + 1)^2",
    "3x/6",
    "sin(x)^2 + 2sin(x)",
    "1/x + 1/y",
    "2pi + pi",
    "x/2 + x/3",
]


class TestRoundTrip:
    @pytest.mark.parametrize("text", CANONICAL)
    def test_text_round_trip(self, text):
        assert parse_string(text).to_text() == text

    @pytest.mark.parametrize("value", [1e-20, 2.5e-12, 1e20])
    def test_extreme_numbers(self, value):
        assert parse_string(Number(value).to_text()) == Number(value)

    @pytest.mark.parametrize("text", CANONICAL)
    def test_reparse_is_stable(self, text):
        once = parse_string(text)
        assert parse_string(once.to_text()) == once


class TestSimplify:
    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        once = parse_string(text).simplify()
        assert once.simplify() == once

    @pytest.mark.parametrize("text", SAMPLES)
    def test_simplify_then_reduce_is_stable(self, text):
        once = parse_string(text).simplify().reduce()
        assert once.simplify().reduce() == once

    def test_like_terms(self):
        node = parse_string("2x + 3x").simplify().reduce()
        assert isinstance(node, Term)
        assert node == Term(5, 1, [Variable("x")])
        assert node.evaluate(Scope({"x": 1})) == Number(5)

    def test_cancellation(self):
        assert parse_string("x*x*y/x").simplify().reduce().to_text() == "x*y"

    def test_fractions(self):
        assert parse_string("6/8").simplify().to_text() == "3/4"
        assert parse_string("3x/6").simplify().to_text() == "x/2"
        assert parse_string("x/2 + x/3").to_text() == "5x/6"

    def test_constant_power_tower_folds(self):
        node = parse_string("2^3^2").simplify()
        assert node.to_text() == "512"
        assert node.reduce() == Number(512)

    @pytest.mark.parametrize("text,expected", [
        ("(-x)^y + x^y", 0),
        ("(-x)^y - x^y", -16),
        ("(-x)^y * x^y", -64),
    ])
    def test_bases_differing_in_sign_keep_value(self, text, expected):
        scope = Scope({"x": 2, "y": 3})
        node = parse_string(text)
        assert node.evaluate(scope).to_number() == expected
        assert node.simplify().reduce().evaluate(scope).to_number() == expected

    @pytest.mark.parametrize("text", SAMPLES)
    def test_preserves_value(self, text):
        node = parse_string(text)
        assert are_equivalent(node, node.simplify().reduce(), seed=7)


class TestEvaluate:
    def test_precedence(self):
        assert parse_string("2+3*4").evaluate(Scope()) == Number(14)

    def test_power_is_right_associative(self):
        assert parse_string("2^3^2").evaluate(Scope()) == Number(512)

    def test_implicit_multiplication_and_power(self):
        assert parse_string("2x^2").evaluate(Scope({"x": 3})) == Number(18)

    def test_left_associative_subtraction(self):
        assert parse_string("5-3-1").evaluate() == Number(1)
        assert parse_string("8/4/2").evaluate() == Number(1)

    def test_negation_binds_tighter_than_power(self):
        assert parse_string("-2^2").evaluate() == Number(4)
        assert parse_string("-(2^2)").evaluate() == Number(-4)

    def test_partial_evaluation(self):
        result = parse_string("x + y").evaluate(Scope({"x": 1}))
        assert result.to_text() == "y + 1"

    def test_unbound_variable_is_kept(self):
        result = parse_string("sin(x)").evaluate(Scope())
        assert result.to_text() == "sin(x)"

    def test_division_by_zero(self):
        assert math.isnan(parse_string("1/(x - 1)").evaluate(Scope({"x": 1})).to_number())
        assert math.isnan(parse_string("0/0").evaluate().to_number())

    def test_constants(self):
        assert parse_string("2pi").evaluate().to_text() == "2pi"
        assert parse_string("2pi").evaluate(Scope(collapse_constants=True)) == Number(2 * math.pi)
        assert parse_string("2pi").to_number() == pytest.approx(2 * math.pi)

    @pytest.mark.parametrize("text,expected", [
        ("sqrt(16)", 4),
        ("fact(5)", 120),
        ("5!", 120),
        ("7 % 3", 1),
        ("gcf(12, 18)", 6),
        ("2(3 + 4)", 14),
        ("(1 + 2)(3 + 4)", 21),
    ])
    def test_functions_and_operators(self, text, expected):
        assert parse_string(text).evaluate().to_number() == expected

    @pytest.mark.parametrize("text", [
        "x^2 + 2x + 1",
        "1/(x - 1)",
        "sin(x)^2 + cos(x)^2",
        "(x + y)^3",
        "sqrt(x - 10)",
        "x! + y % 2",
        "2pi*x",
        "ln(y - 2)",
    ])
    def test_total_when_bound(self, text):
        scope = Scope({"x": 1, "y": 2}, collapse_constants=True)
        assert isinstance(parse_string(text).evaluate(scope), Number)

    def test_negative_normalization(self):
        node = parse_string("-x * -1").simplify()
        assert not node.is_negative
        assert node == Variable("x")


class TestExpand:
    def test_square(self):
        node = parse_string("(x + 1)^2")
        expanded = node.expand().simplify().reduce()
        assert expanded.to_text() == "x^2 + 2x + 1"
        assert are_equivalent(node, expanded, seed=1)

    def test_cube(self):
        expanded = parse_string("(x + 1)^3").expand().simplify().reduce()
        assert expanded.to_text() == "x^3 + 3x^2 + 3x + 1"

    def test_distribute_coefficient(self):
        assert parse_string("2(x + 1)").expand().simplify().reduce().to_text() == "2x + 2"

    def test_distribute_variable(self):
        assert parse_string("x(y + 1)").expand().simplify().reduce().to_text() == "x*y + x"

    def test_product_of_sums_expands_on_parse(self):
        assert parse_string("(x + 1)(x - 1)").to_text() == "x^2 - 1"

    def test_keeps_denominator(self):
        node = parse_string("(x + 1)^2/x")
        assert are_equivalent(node, node.expand().simplify().reduce(), seed=3)

    def test_leaves_untouched(self):
        assert parse_string("sin(x)").expand() == parse_string("sin(x)")
        assert parse_string("x").expand() == Variable("x")


class TestEquation:
    def test_parse(self):
        eq = parse_equation("2x + 3x = 10")
        assert isinstance(eq, Equation)
        assert eq.to_text() == "5x = 10"
        assert eq.variables() == {"x"}

    def test_evaluate(self):
        eq = parse_equation("2x + 3x = 10")
        assert eq.evaluate(Scope({"x": 2})).to_text() == "10 = 10"
        assert eq.evaluate(Scope({"x": 2})).is_satisfied()
        assert eq.evaluate(Scope({"x": 3})).to_text() == "15 ≠ 10"
        assert eq.is_satisfied() is None

    def test_expand_both_sides(self):
        eq = parse_equation("(x + 1)^2 = 2(y + 1)")
        assert eq.expand().simplify().reduce().to_text() == "x^2 + 2x + 1 = 2y + 2"

    @pytest.mark.parametrize("text", ["x + 1", "x = 1 = 2", " = 2", "x = "])
    def test_malformed(self, text):
        with pytest.raises(ParseError):
            parse_equation(text)


class TestEquivalence:
    def test_sample_points(self):
        points = sample_points(["x", "y"], samples=8, seed=0)
        assert points.shape == (8, 2)
        assert np.array_equal(points, sample_points(["x", "y"], samples=8, seed=0))

    def test_evaluate_grid(self):
        points = np.array([[1.0], [2.0], [3.0]])
        values = evaluate_grid(parse_string("x^2"), ["x"], points)
        assert np.allclose(values, [1, 4, 9])

    def test_different(self):
        report = compare(parse_string("x + 1"), parse_string("x + 2"), samples=16, seed=0)
        assert not report.equivalent
        assert report.mismatches == 16
        assert report.max_difference == pytest.approx(1)

    def test_constants_only(self):
        assert are_equivalent(parse_string("2pi"), Number(2 * math.pi))

    def test_report_dict(self):
        report = compare(parse_string("(x + 1)^2"), parse_string("x^2 + 2x + 1"), seed=0)
        data = report.to_dict()
        assert data["equivalent"]
        assert data["variables"] == ["x"]
        assert data["samples"] == 16
