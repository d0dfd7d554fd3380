"""Rich console display utilities for expression trees."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from advmath.analysis.equivalence import EquivalenceReport
from advmath.core.equation import Equation
from advmath.core.nodes import Constant, Expression, Factor, Function, Node, Number, Term, Variable
from advmath.library.functions import list_functions

console = Console()


def _label(node: Node) -> str:
    if isinstance(node, Constant):
        return f"[magenta]Constant[/magenta] {node.to_text()}"
    if isinstance(node, Number):
        return f"[green]Number[/green] {node.to_text()}"
    if isinstance(node, Variable):
        return f"[cyan]Variable[/cyan] {node.to_text()}"
    if isinstance(node, Function):
        return f"[yellow]{type(node).__name__}[/yellow] {node.name}"
    return f"[bold]{type(node).__name__}[/bold] {node.to_text()}"


def build_tree(node: Node, tree: Tree | None = None) -> Tree:
    """Mirror the node structure as a rich Tree."""
    branch = Tree(_label(node)) if tree is None else tree.add(_label(node))
    if isinstance(node, Expression):
        for term in node.terms:
            build_tree(term, branch)
    elif isinstance(node, Term):
        if node.cn != 1 or node.cd != 1:
            branch.add(f"[green]coefficient[/green] {Term(node.cn, node.cd).to_text()}")
        for factor in node.real_numerators:
            build_tree(factor, branch)
        if node.real_denominators:
            denominators = branch.add("[red]over[/red]")
            for factor in node.real_denominators:
                build_tree(factor, denominators)
    elif isinstance(node, Factor):
        build_tree(node.base, branch)
        build_tree(node.exponent, branch.add("[blue]exponent[/blue]"))
    elif isinstance(node, Function):
        for arg in node.args:
            build_tree(arg, branch)
    return branch


def display_tree(node: Node) -> None:
    console.print(Panel(build_tree(node), title="Expression tree", border_style="blue"))


def display_result(title: str, result: Node | Equation) -> None:
    """Print one result line with a bold title."""
    console.print(f"[bold]{title}:[/bold] {result.to_text()}")


def display_functions() -> None:
    """Display the function registry as a table."""
    table = Table(title="Functions")
    table.add_column("Name", style="cyan")
    table.add_column("Arguments", style="green", justify="right")
    table.add_column("Description")

    for spec in list_functions():
        table.add_row(spec.name, str(spec.parameter_count), spec.description)

    console.print(table)


def display_comparison(left: Node, right: Node, report: EquivalenceReport) -> None:
    """Display an equivalence check with a handful of sample rows."""
    verdict = "[bold green]equivalent[/bold green]" if report.equivalent else "[bold red]different[/bold red]"
    console.print(f"{left.to_text()}  vs  {right.to_text()}: {verdict}")

    table = Table(title=f"Samples ({report.mismatches} of {len(report.points)} differ)")
    for name in report.variables:
        table.add_column(name, style="cyan", justify="right")
    table.add_column("left", style="green", justify="right")
    table.add_column("right", style="green", justify="right")

    for i in range(min(len(report.points), 8)):
        style = "" if report.matches[i] else "red"
        values = [f"{v:.4f}" for v in report.points[i]]
        table.add_row(*values, f"{report.left[i]:.6g}", f"{report.right[i]:.6g}", style=style)

    console.print(table)
