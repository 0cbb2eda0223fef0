from typing import TYPE_CHECKING, Any, Optional

import msgspec
import rich_click as click
from rich import get_console
from rich.table import Table

from procbind._serialization import decode_json
from procbind.config import DatabaseConfig
from procbind.core.bindings import BindingOrchestrator
from procbind.core.statement import classify_sql
from procbind.core.types import ArrayLength
from procbind.exceptions import ProcBindError
from procbind.utils.logging import configure_logging

if TYPE_CHECKING:
    from click import Group

    from procbind.core.types import BindPlan

__all__ = ("get_procbind_group", "run_cli")


def _load_json(source: Any) -> Any:
    return decode_json(source.read())


def _format_length(plan: "BindPlan") -> str:
    if isinstance(plan.length, ArrayLength):
        return f"({plan.length.max_table_length}, {plan.length.max_item_length})"
    return str(plan.length)


def _plan_table(plans: "list[BindPlan]") -> Table:
    table = Table(title="Bind plan")
    table.add_column("Name", style="cyan")
    table.add_column("Mode")
    table.add_column("Wire type")
    table.add_column("Length", justify="right")
    table.add_column("Value")
    for plan in plans:
        wire_type = "driver default" if plan.wire_type is None else str(plan.wire_type)
        table.add_row(plan.placeholder, str(plan.mode), wire_type, _format_length(plan), repr(plan.value))
    return table


def get_procbind_group() -> "Group":
    """Get the procbind CLI group.

    Returns:
        The procbind CLI group.
    """
    console = get_console()

    @click.group(name="procbind")
    @click.option("--verbose", help="Enable debug logging.", type=bool, default=False, is_flag=True)
    @click.pass_context
    def procbind_group(ctx: "click.Context", verbose: bool) -> None:
        """Plan and inspect stored procedure parameter binds."""
        ctx.ensure_object(dict)
        if verbose:
            configure_logging(level="DEBUG", format_style="simple")

    @procbind_group.command(name="plan", help="Show how each parameter in a JSON object would be bound.")
    @click.argument("params_json", type=click.File("rb"))
    @click.option(
        "--config",
        "config_json",
        help="JSON file with configuration sections (connection, statement, cursor, result, bindings).",
        type=click.File("rb"),
        default=None,
    )
    def plan_binds(params_json: Any, config_json: Optional[Any]) -> None:  # pyright: ignore[reportUnusedFunction]
        """Print the bind plan of every parameter."""
        ctx = click.get_current_context()
        try:
            config = DatabaseConfig.from_mapping(_load_json(config_json)) if config_json else DatabaseConfig()
            parameters = _load_json(params_json)
            if not isinstance(parameters, dict):
                console.print("[red]Parameters must be a JSON object[/]")
                ctx.exit(1)
            orchestrator = BindingOrchestrator.from_config(None, config.bindings)
            merged = orchestrator.stage(parameters)
            plans = [orchestrator.plan(name, value) for name, value in merged.items()]
        except (ProcBindError, msgspec.DecodeError) as e:
            console.print(f"[red]{e}[/]")
            ctx.exit(1)
        console.print(_plan_table(plans))

    @procbind_group.command(name="classify", help="Show which kind of statement a SQL string is.")
    @click.argument("sql", type=str)
    def classify_statement(sql: str) -> None:  # pyright: ignore[reportUnusedFunction]
        """Print the statement kind of a SQL string."""
        ctx = click.get_current_context()
        try:
            kind = classify_sql(sql)
        except ProcBindError as e:
            console.print(f"[red]{e}[/]")
            ctx.exit(1)
        console.print(f"{kind.name} ({int(kind)})")

    return procbind_group


def run_cli() -> None:
    """Entry point of the ``procbind`` command."""
    get_procbind_group()()
