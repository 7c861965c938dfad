"""commands.py - ``jbdoc generate`` / ``jbdoc check``.

Thin wrappers that run the project's OpenAPI build tasks (by default
``bundle exec rails openapi:generate`` and ``bundle exec rails openapi:check``)
from the project root and pass their exit status through.
"""

import shlex
import subprocess
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from jbdoc.cli import ConfigOption, error_exit, get_config
from jbdoc.config import ProjectConfig

console = Console(stderr=True)


def run_external(command: str, cwd: Path) -> int:
    """Run *command* in *cwd*, streaming its output; return its exit code.

    Raises ``FileNotFoundError`` when the executable does not exist and
    ``ValueError`` for an empty command.
    """
    argv = shlex.split(command)
    if not argv:
        raise ValueError("empty command")
    proc = subprocess.run(argv, cwd=cwd, check=False)
    return proc.returncode


def _run_configured(cfg: ProjectConfig, command: str, label: str) -> None:
    console.print(
        f"[bold]{label}:[/bold] {escape(command)} [dim](in {escape(str(cfg.root))})[/dim]"
    )
    try:
        code = run_external(command, cfg.root)
    except (FileNotFoundError, PermissionError) as e:
        error_exit(f"Failed to {label.lower()} OpenAPI: {e}")
    except ValueError as e:
        error_exit(f"Invalid {label.lower()} command: {e}")
    if code != 0:
        console.print(f"[red]{label} failed[/red] (exit {code})")
        raise typer.Exit(code=code)
    console.print(f"[green]{label} finished[/green]")


generate_app = typer.Typer(help="Run the OpenAPI generate task.", rich_markup_mode="rich")
check_app = typer.Typer(help="Run the OpenAPI check task.", rich_markup_mode="rich")


@generate_app.callback(invoke_without_command=True)
def generate_main(config: Path | None = ConfigOption) -> None:
    """Run the OpenAPI generate task (``[commands].generate``)."""
    cfg = get_config(config, optional=True)
    _run_configured(cfg, cfg.generate_command, "Generate")


@check_app.callback(invoke_without_command=True)
def check_main(config: Path | None = ConfigOption) -> None:
    """Run the OpenAPI check task (``[commands].check``)."""
    cfg = get_config(config, optional=True)
    _run_configured(cfg, cfg.check_command, "Check")
