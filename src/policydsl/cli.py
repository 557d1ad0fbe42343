"""
CLI entry point for policydsl.

This module provides the Typer-based command-line interface, a policy
authoring aid built on top of the engine.

Commands:
    validate    Check a policy document for structural problems
    evaluate    Evaluate a policy document against a context
    parse       Parse DSL text and show the resulting conditions

Architecture Note:
    The CLI is intentionally thin - it loads YAML files and delegates to the
    engine for parsing, validation and evaluation. The engine itself never
    touches the filesystem.

Exit codes:
    0   Success (valid document / decision allowed)
    1   Error (invalid document, load failure, syntax error)
    2   Decision not allowed (evaluate only)
"""

import json
import logging
import traceback
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from policydsl import __version__
from policydsl.dsl import (
    AndExpr,
    ConditionExpr,
    Expression,
    NotExpr,
    OrExpr,
    parse_conditions,
    parse_expression,
)
from policydsl.errors import DslSyntaxError, PolicyLoadError
from policydsl.loader import load_context, load_policy_document
from policydsl.policy import PolicyEvaluator, has_errors, validate_dsl_policy
from policydsl.report import (
    build_issues_dict,
    generate_json_report,
    print_issues,
    print_result,
)
from policydsl.schema import EvaluatorConfig, PolicyCondition

EXIT_NOT_ALLOWED = 2

# Initialize Typer app with metadata
app = typer.Typer(
    name="policydsl",
    help="Validate and evaluate policy DSL documents.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]policydsl[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    policydsl - Governance rules as code.

    Validate policy documents and evaluate them against request contexts.
    """
    pass


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@app.command()
def validate(
    policy_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the policy YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output findings as JSON."),
    ] = False,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Treat warnings as errors."),
    ] = False,
) -> None:
    """
    Check a policy document for structural problems.

    Example:
        $ policydsl validate policy.yaml --strict
    """
    try:
        document = load_policy_document(policy_path)
    except PolicyLoadError as e:
        _fail(f"Error loading policy: {e.underlying_error}", json_output, e.to_dict())

    issues = validate_dsl_policy(document)

    if json_output:
        print(json.dumps(build_issues_dict(str(policy_path), issues), indent=2))
    else:
        print_issues(policy_path.name, issues, console=console)

    if has_errors(issues) or (strict and issues):
        raise typer.Exit(code=1)


@app.command()
def evaluate(
    policy_path: Annotated[
        Path,
        typer.Argument(
            help="Path to the policy YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    context_path: Annotated[
        Path,
        typer.Option(
            "--context",
            "-c",
            help="Path to the context YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the decision as JSON."),
    ] = False,
    max_depth: Annotated[
        int,
        typer.Option("--max-depth", help="Maximum nested rule depth.", min=1),
    ] = 32,
    max_pattern_length: Annotated[
        int,
        typer.Option(
            "--max-pattern-length",
            help="Longest 'matches' pattern compiled (0 = unlimited).",
            min=0,
        ),
    ] = 1024,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Show the evaluated context and debug logs."),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug mode with full error tracebacks."),
    ] = False,
) -> None:
    """
    Evaluate a policy document against a context.

    Exits 0 when the decision is allowed and 2 when it is not.

    Example:
        $ policydsl evaluate policy.yaml --context request.yaml --json
    """
    _configure_logging(verbose)

    try:
        document = load_policy_document(policy_path)
        context = load_context(context_path)
    except PolicyLoadError as e:
        _fail(f"Error loading input: {e.underlying_error}", json_output, e.to_dict())

    config = EvaluatorConfig(
        max_nesting_depth=max_depth,
        max_pattern_length=max_pattern_length,
    )

    if has_errors(validate_dsl_policy(document, config)):
        _fail(
            f"Policy {policy_path.name} has validation errors; run 'policydsl validate' for details",
            json_output,
            {"error_type": "PolicyValidationError", "source": str(policy_path)},
        )

    evaluator = PolicyEvaluator(config)

    try:
        result = evaluator.evaluate(document, context)
    except Exception as e:
        if debug:
            console.print(f"[dim]{escape(traceback.format_exc())}[/dim]")
        _fail(f"Evaluation error: {e}", json_output, {"error_type": type(e).__name__})

    if json_output:
        print(generate_json_report(result))
    else:
        print_result(result, console=console, verbose=verbose)

    if not result.allowed:
        raise typer.Exit(code=EXIT_NOT_ALLOWED)


@app.command()
def parse(
    text: Annotated[
        str,
        typer.Argument(help="DSL text, e.g. 'actor.type == \"user\"'."),
    ],
    expression: Annotated[
        bool,
        typer.Option(
            "--expression",
            "-e",
            help="Parse as a full boolean expression (or, not, parentheses).",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output parsed conditions as JSON."),
    ] = False,
) -> None:
    """
    Parse DSL text and show the resulting conditions.

    Without --expression the text is split on 'and' / '&&' into a flat list.

    Example:
        $ policydsl parse 'resource.attributes.size > 100 and action == "delete"'
    """
    try:
        if expression:
            tree = parse_expression(text)
        else:
            conditions = parse_conditions(text)
    except DslSyntaxError as e:
        _fail(f"Syntax error: {e.message}", json_output, e.to_dict())

    if expression:
        if json_output:
            print(json.dumps(_expression_to_dict(tree), indent=2))
        else:
            console.print(_expression_tree(tree))
        return

    if json_output:
        print(json.dumps([c.model_dump(mode="json") for c in conditions], indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Field", style="cyan")
    table.add_column("Operator")
    table.add_column("Value")
    for index, condition in enumerate(conditions, start=1):
        table.add_row(
            str(index),
            escape(condition.field),
            condition.operator.value if condition.operator else "",
            escape(repr(condition.value)),
        )
    console.print(table)


def _fail(message: str, json_output: bool, details: dict) -> NoReturn:
    """Report an error and exit with code 1."""
    if json_output:
        print(json.dumps({"error": message, **details}, indent=2, default=str))
    else:
        console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(code=1)


def _describe_condition(condition: PolicyCondition) -> str:
    operator = condition.operator.value if condition.operator else "?"
    return f"{condition.field} {operator} {condition.value!r}"


def _expression_tree(expression: Expression, tree: Tree | None = None) -> Tree:
    """Build a rich Tree for an expression."""
    match expression:
        case ConditionExpr(condition=condition):
            label = f"[cyan]{escape(_describe_condition(condition))}[/cyan]"
            children: tuple[Expression, ...] = ()
        case AndExpr(operands=operands):
            label, children = "[bold]and[/bold]", operands
        case OrExpr(operands=operands):
            label, children = "[bold]or[/bold]", operands
        case NotExpr(operand=operand):
            label, children = "[bold]not[/bold]", (operand,)

    node = Tree(label) if tree is None else tree.add(label)
    for child in children:
        _expression_tree(child, node)
    return node


def _expression_to_dict(expression: Expression) -> dict:
    match expression:
        case ConditionExpr(condition=condition):
            return {"condition": condition.model_dump(mode="json")}
        case AndExpr(operands=operands):
            return {"and": [_expression_to_dict(o) for o in operands]}
        case OrExpr(operands=operands):
            return {"or": [_expression_to_dict(o) for o in operands]}
        case NotExpr(operand=operand):
            return {"not": _expression_to_dict(operand)}
    raise TypeError(f"Unknown expression: {expression!r}")


if __name__ == "__main__":
    app()
