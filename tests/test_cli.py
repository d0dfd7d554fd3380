"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner
from advmath.cli import main


@pytest.fixture
def runner():
    return CliRunner()


class TestParseCommand:
    def test_canonical_form(self, runner):
        result = runner.invoke(main, ["parse", "2x + 3x"])
        assert result.exit_code == 0
        assert "Parsed: 5x" in result.output

    def test_tree(self, runner):
        result = runner.invoke(main, ["parse", "x + 1", "--tree"])
        assert result.exit_code == 0
        assert "Expression" in result.output
        assert "Variable" in result.output

    def test_equation(self, runner):
        result = runner.invoke(main, ["parse", "2x + 3x = 10"])
        assert result.exit_code == 0
        assert "5x = 10" in result.output

    def test_custom_brackets(self, runner):
        result = runner.invoke(main, ["--brackets", "()[]", "parse", "[x + 1]^2"])
        assert result.exit_code == 0
        assert "(x + 1)^2" in result.output

    def test_parse_error(self, runner):
        result = runner.invoke(main, ["parse", "(2+3"])
        assert result.exit_code == 1
        assert "MismatchedBracketError" in result.output

    def test_bad_brackets(self, runner):
        result = runner.invoke(main, ["--brackets", "(", "parse", "x"])
        assert result.exit_code == 1
        assert "ConfigurationError" in result.output

    def test_max_depth(self, runner):
        result = runner.invoke(main, ["--max-depth", "1", "parse", "((x))"])
        assert result.exit_code == 1
        assert "NestingDepthError" in result.output


class TestAlgebraCommands:
    def test_simplify(self, runner):
        result = runner.invoke(main, ["simplify", "6/8"])
        assert result.exit_code == 0
        assert "Simplified: 3/4" in result.output

    def test_expand(self, runner):
        result = runner.invoke(main, ["expand", "(x + 1)^2"])
        assert result.exit_code == 0
        assert "Expanded: x^2 + 2x + 1" in result.output

    def test_expand_check(self, runner):
        result = runner.invoke(main, ["expand", "(x + 1)(x + 2)", "--check"])
        assert result.exit_code == 0
        assert "Check passed" in result.output


class TestEvaluateCommand:
    def test_bound_variable(self, runner):
        result = runner.invoke(main, ["evaluate", "2x^2", "-v", "x=3"])
        assert result.exit_code == 0
        assert "Result: 18" in result.output

    def test_partial(self, runner):
        result = runner.invoke(main, ["evaluate", "x + y", "-v", "x=1"])
        assert result.exit_code == 0
        assert "Result: y + 1" in result.output

    def test_constants(self, runner):
        result = runner.invoke(main, ["evaluate", "2pi", "--constants"])
        assert result.exit_code == 0
        assert "6.283" in result.output

    def test_equation(self, runner):
        result = runner.invoke(main, ["evaluate", "x = 2", "-v", "x=2"])
        assert result.exit_code == 0
        assert "2 = 2" in result.output

    def test_bad_assignment(self, runner):
        result = runner.invoke(main, ["evaluate", "x", "-v", "x"])
        assert result.exit_code == 1
        assert "ConfigurationError" in result.output


class TestCompareCommand:
    def test_equivalent(self, runner):
        result = runner.invoke(main, ["compare", "(x + 1)^2", "x^2 + 2x + 1", "--seed", "0"])
        assert result.exit_code == 0
        assert "equivalent" in result.output

    def test_different(self, runner):
        result = runner.invoke(main, ["compare", "x + 1", "x + 2", "--seed", "0"])
        assert result.exit_code == 1
        assert "different" in result.output


class TestFunctionsCommand:
    def test_lists_registry(self, runner):
        result = runner.invoke(main, ["functions"])
        assert result.exit_code == 0
        assert "sin" in result.output
        assert "gcf" in result.output
