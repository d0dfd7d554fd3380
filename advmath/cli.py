"""CLI interface for the expression engine.

Usage:
    advmath parse "2x^2 + 3x - x" --tree
    advmath simplify "x*x + 2x^2"
    advmath expand "(x + 1)^3"
    advmath evaluate "2x^2 + y" -v x=3 -v y=1
    advmath compare "(x + 1)^2" "x^2 + 2x + 1"
    advmath functions
"""

from __future__ import annotations

import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from advmath.errors import MathError

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _parser(ctx: click.Context):
    from advmath.parser.parse import Parser, ParserConfig

    return Parser(ParserConfig(brackets=ctx.obj["brackets"], max_depth=ctx.obj["max_depth"]))


def _read(ctx: click.Context, text: str):
    """Parse text as an equation when it contains '=', else as an expression."""
    parser = _parser(ctx)
    if "=" in text:
        return parser.parse_equation(text)
    return parser.parse(text)


def _fail(error: MathError) -> None:
    console.print(f"[red]{type(error).__name__}: {escape(str(error))}[/red]")
    sys.exit(1)


@click.group()
@click.option("--brackets", default="()", help="Bracket pairs, e.g. '()[]{}'")
@click.option("--max-depth", default=None, type=int, help="Maximum bracket nesting depth")
@click.option("--verbose", is_flag=True, help="Log tokens and postfix order")
@click.pass_context
def main(ctx: click.Context, brackets: str, max_depth: int | None, verbose: bool) -> None:
    """Symbolic expression parsing and algebra."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["brackets"] = brackets
    ctx.obj["max_depth"] = max_depth


@main.command()
@click.argument("expression")
@click.option("--tree", "show_tree", is_flag=True, help="Show the node structure")
@click.pass_context
def parse(ctx: click.Context, expression: str, show_tree: bool) -> None:
    """Parse an expression and print its canonical form."""
    from advmath.core.equation import Equation
    from advmath.utils.display import display_result, display_tree

    try:
        result = _read(ctx, expression)
    except MathError as e:
        _fail(e)
        return

    display_result("Parsed", result)
    if show_tree:
        sides = [result.lhs, result.rhs] if isinstance(result, Equation) else [result]
        for side in sides:
            display_tree(side)


@main.command()
@click.argument("expression")
@click.pass_context
def simplify(ctx: click.Context, expression: str) -> None:
    """Merge like terms and reduce fractions."""
    from advmath.utils.display import display_result

    try:
        result = _read(ctx, expression)
    except MathError as e:
        _fail(e)
        return
    display_result("Simplified", result.simplify().reduce())


@main.command()
@click.argument("expression")
@click.option("--check", is_flag=True, help="Verify the expansion numerically")
@click.pass_context
def expand(ctx: click.Context, expression: str, check: bool) -> None:
    """Multiply out products of sums."""
    from advmath.analysis.equivalence import are_equivalent
    from advmath.core.equation import Equation
    from advmath.utils.display import display_result

    try:
        result = _read(ctx, expression)
    except MathError as e:
        _fail(e)
        return

    expanded = result.expand().simplify().reduce()
    display_result("Expanded", expanded)
    if check and not isinstance(result, Equation):
        if are_equivalent(result, expanded):
            console.print("[green]Check passed[/green]")
        else:
            console.print("[red]Check failed: expansion differs from input[/red]")
            sys.exit(1)


@main.command()
@click.argument("expression")
@click.option("-v", "--var", "assignments", multiple=True, help="Variable binding, e.g. x=3")
@click.option("--constants", is_flag=True, help="Replace pi and e with their values")
@click.pass_context
def evaluate(ctx: click.Context, expression: str, assignments: tuple[str, ...], constants: bool) -> None:
    """Substitute variable values and evaluate."""
    from advmath.core.scope import Scope
    from advmath.utils.display import display_result

    try:
        scope = Scope.from_assignments(assignments, collapse_constants=constants)
        result = _read(ctx, expression)
    except MathError as e:
        _fail(e)
        return
    display_result("Result", result.evaluate(scope).reduce())


@main.command()
@click.argument("left")
@click.argument("right")
@click.option("--samples", default=16, help="Number of random sample points")
@click.option("--seed", default=None, type=int, help="Random seed for sampling")
@click.pass_context
def compare(ctx: click.Context, left: str, right: str, samples: int, seed: int | None) -> None:
    """Check whether two expressions agree at random sample points."""
    from advmath.analysis.equivalence import compare as compare_nodes
    from advmath.utils.display import display_comparison

    try:
        parser = _parser(ctx)
        a, b = parser.parse(left), parser.parse(right)
    except MathError as e:
        _fail(e)
        return

    report = compare_nodes(a, b, samples=samples, seed=seed)
    display_comparison(a, b, report)
    if not report.equivalent:
        sys.exit(1)


@main.command()
def functions() -> None:
    """List the functions available in expressions."""
    from advmath.utils.display import display_functions

    display_functions()


if __name__ == "__main__":
    main()
