"""
Console report generator for policydsl.

Renders decisions and validation findings in the terminal using Rich.

Design Principles:
    - Decision at a glance: Icon and color for allowed / not allowed
    - Progressive detail: Audit context only in verbose mode
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from policydsl.schema import ActionType, DslPolicyResult, Severity, ValidationIssue


# Status icons
ICON_ALLOWED = "[green]✓[/green]"
ICON_DENIED = "[red]✗[/red]"
ICON_PENDING = "[yellow]⊘[/yellow]"
ICON_WARNING = "[yellow]![/yellow]"


def print_result(
    result: DslPolicyResult,
    console: Console | None = None,
    verbose: bool = False,
) -> None:
    """
    Print a decision with its reasons and audit summary.

    Args:
        result: The evaluation result
        console: Rich Console instance (creates one if not provided)
        verbose: Whether to include the evaluated context
    """
    if console is None:
        console = Console()

    action_type = result.action.type
    if result.allowed:
        style, icon = "green", ICON_ALLOWED
    elif action_type == ActionType.DENY or action_type is None:
        style, icon = "red", ICON_DENIED
    else:
        style, icon = "yellow", ICON_PENDING

    header = Text()
    header.append(" Decision ", style="bold")
    header.append("ALLOWED" if result.allowed else "NOT ALLOWED", style=f"bold {style}")
    header.append(" │ ", style="dim")
    header.append(action_type.value if action_type else "<missing>", style="bold cyan")
    console.print(Panel(header, expand=False))

    for reason in result.reasons:
        console.print(f"  {icon} {escape(reason)}")

    approval = result.action.approval
    if approval is not None:
        roles = escape(", ".join(approval.required_roles or []) or "any")
        console.print(
            f"  [dim]Approval:[/dim] {approval.min_approvers} approver(s), roles: {roles}"
            + (f", timeout {approval.timeout_hours}h" if approval.timeout_hours else "")
        )

    notification = result.action.notification
    if notification is not None:
        channels = ", ".join(channel.value for channel in notification.channels) or "none"
        console.print(f"  [dim]Notify:[/dim] {channels}")

    console.print()

    audit = result.audit
    stats = Table(show_header=False, box=None, padding=(0, 2))
    stats.add_column("Metric", style="dim")
    stats.add_column("Value")
    stats.add_row("Policy Version", escape(audit.policy_version or "<missing>"))
    if result.matched_rule_id:
        stats.add_row("Matched Rule", escape(result.matched_rule_id))
    else:
        stats.add_row("Matched Rule", "[dim]default action[/dim]")
    stats.add_row("Rules Evaluated", str(audit.evaluated_rules))
    stats.add_row("Timestamp", audit.timestamp.isoformat())
    console.print(stats)

    if verbose:
        console.print()
        console.print("[bold]Context[/bold]")
        console.print_json(audit.context.model_dump_json(by_alias=True, exclude_none=True))


def print_issues(
    source: str,
    issues: list[ValidationIssue],
    console: Console | None = None,
) -> None:
    """Print validation findings as a table, or a success line if clean."""
    if console is None:
        console = Console()

    if not issues:
        console.print(f"{ICON_ALLOWED} [bold]{escape(source)}[/bold] is valid")
        return

    errors = sum(1 for issue in issues if issue.severity == Severity.ERROR)
    warnings = len(issues) - errors

    table = Table(show_header=True, header_style="bold", expand=True)
    table.add_column("Severity", width=9)
    table.add_column("Path", style="cyan")
    table.add_column("Message", overflow="fold")

    for issue in issues:
        if issue.severity == Severity.ERROR:
            severity = f"{ICON_DENIED} error"
        else:
            severity = f"{ICON_WARNING} warning"
        table.add_row(severity, escape(issue.path), escape(issue.message))

    console.print(f"[bold]{escape(source)}[/bold]")
    console.print(table)
    console.print(f"[dim]Errors: {errors} | Warnings: {warnings}[/dim]")
