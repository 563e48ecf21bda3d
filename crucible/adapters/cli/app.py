"""
Main CLI application
"""
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from ...core.constants import DEFAULT_CONFIG_FILE
from ...core.exceptions import CrucibleError
from ...core.logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from ...domain.instance import InstanceLifecycle, TransitionResult
from ..config.loader import CrucibleConfig

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()

app = typer.Typer(
    name="crucible",
    add_completion=False,
    help="Create, converge and verify disposable test instances",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


class DestroyMode(str, Enum):
    passing = "passing"
    always = "always"
    never = "never"


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILE),
        "--config",
        "-c",
        help="Project configuration file (TOML)",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR), default from CRUCIBLE_LOG",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
):
    """
    Crucible - disposable test instances for chef cookbooks
    """
    setup_logging(level=log_level, log_file=log_file)
    ctx.obj = CrucibleConfig(config_file=config)


def _lifecycles(ctx: typer.Context, pattern: Optional[str]) -> List[InstanceLifecycle]:
    config: CrucibleConfig = ctx.obj
    try:
        lifecycles = config.lifecycles(pattern)
    except CrucibleError as e:
        stderr_console.print(f"[red]Config Error:[/red] {e}")
        raise typer.Exit(1)
    if not lifecycles:
        stderr_console.print(f"[red]Error:[/red] No instances match '{pattern or '.*'}'")
        raise typer.Exit(1)
    return lifecycles


def _run_action(ctx: typer.Context, pattern: Optional[str], action: str) -> None:
    """Run ``action`` on each matching instance, one at a time"""
    failures = 0
    for lifecycle in _lifecycles(ctx, pattern):
        try:
            result = lifecycle.transition_to(action)
        except CrucibleError as e:
            stderr_console.print(f"[red]Error:[/red] {lifecycle.instance}: {e}")
            raise typer.Exit(1)
        failures += _report(result)
    if failures:
        raise typer.Exit(1)


def _report(result: TransitionResult) -> int:
    failed = result.failed
    if failed is None:
        return 0
    stderr_console.print(
        f"[red]✗[/red] {result.instance}: {failed.action} failed: {failed.error}"
    )
    return 1


PATTERN_ARG = typer.Argument(None, help="Regular expression selecting instances (default: all)")


@app.command(name="list")
def list_instances(ctx: typer.Context, pattern: Optional[str] = PATTERN_ARG):
    """List instances and their last action"""
    table = Table(title="Instances")
    table.add_column("Instance", style="cyan")
    table.add_column("Driver")
    table.add_column("Last Action")
    for lifecycle in _lifecycles(ctx, pattern):
        driver = type(lifecycle.instance.driver).__name__
        table.add_row(lifecycle.name, driver, lifecycle.last_action() or "<Not Created>")
    stdout_console.print(table)


@app.command()
def create(ctx: typer.Context, pattern: Optional[str] = PATTERN_ARG):
    """Create instances"""
    _run_action(ctx, pattern, "create")


@app.command()
def converge(ctx: typer.Context, pattern: Optional[str] = PATTERN_ARG):
    """Converge instances, creating them first if needed"""
    _run_action(ctx, pattern, "converge")


@app.command()
def setup(ctx: typer.Context, pattern: Optional[str] = PATTERN_ARG):
    """Install the test runner on instances"""
    _run_action(ctx, pattern, "setup")


@app.command()
def verify(ctx: typer.Context, pattern: Optional[str] = PATTERN_ARG):
    """Run suite tests on instances"""
    _run_action(ctx, pattern, "verify")


@app.command()
def destroy(ctx: typer.Context, pattern: Optional[str] = PATTERN_ARG):
    """Destroy instances"""
    _run_action(ctx, pattern, "destroy")


@app.command()
def test(
    ctx: typer.Context,
    pattern: Optional[str] = PATTERN_ARG,
    destroy_mode: DestroyMode = typer.Option(
        DestroyMode.passing,
        "--destroy",
        "-d",
        help="When to destroy instances after testing",
    ),
):
    """Destroy, verify from scratch, then destroy again"""
    failures = 0
    for lifecycle in _lifecycles(ctx, pattern):
        try:
            result = lifecycle.test(destroy_mode.value)
        except CrucibleError as e:
            stderr_console.print(f"[red]Error:[/red] {lifecycle.instance}: {e}")
            raise typer.Exit(1)
        failures += _report(result)
    if failures:
        raise typer.Exit(1)
    stdout_console.print("[green]✓[/green] All instances passed")


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
