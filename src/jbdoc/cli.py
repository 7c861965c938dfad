"""Shared CLI utilities for jbdoc commands.

Provides the common ``--config`` option, config loading, template discovery
and standardised error / JSON output so every subcommand behaves the same.

Usage in a command module::

    import typer
    from jbdoc.cli import ConfigOption, get_config, error_exit, json_print

    app = typer.Typer()

    @app.command()
    def main(config: Path | None = ConfigOption) -> None:
        cfg = get_config(config)
        ...
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from jbdoc.config import ProjectConfig, load_config
from jbdoc.document import language_for_path, should_lint_document

# Re-usable Typer option for --config
ConfigOption: Path | None = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to jbdoc.toml (default: search upward from the current directory).",
)


def get_config(path: Path | None = None, *, optional: bool = False) -> ProjectConfig:
    """Load the project config.

    With ``optional=True`` a missing jbdoc.toml yields the default config
    rooted at the cwd instead of an error.  An explicit *path* must exist.
    """
    try:
        return load_config(path=path)
    except FileNotFoundError as e:
        if optional and path is None:
            return ProjectConfig.default()
        error_exit(str(e))
    except (ValueError, OSError) as e:
        error_exit(f"Invalid config: {e}")


# ---------------------------------------------------------------------------
# Standardised output helpers
# ---------------------------------------------------------------------------

_err_console = Console(stderr=True)


def error_exit(msg: str, *, json_mode: bool = False, code: int = 1) -> NoReturn:
    """Print *msg* as an error and ``raise typer.Exit(code)``."""
    if json_mode:
        print(json.dumps({"error": msg}, indent=2))
    else:
        _err_console.print(f"[red bold]error:[/red bold] {escape(msg)}")
    raise typer.Exit(code=code)


def json_print(data: dict[str, Any] | list[Any]) -> None:
    """Print *data* as pretty-printed JSON to stdout."""
    print(json.dumps(data, indent=2))


def rel_display_path(filepath: Path, base_dir: Path | None = None) -> str:
    """Path relative to *base_dir* when possible, else the path as given."""
    if base_dir is not None:
        try:
            return str(filepath.resolve().relative_to(base_dir.resolve()))
        except ValueError:
            pass
    return str(filepath)


def iter_templates(directory: Path, cfg: ProjectConfig) -> list[Path]:
    """All lintable files under *directory*, recursively, sorted by path."""
    return sorted(
        p
        for p in directory.rglob("*")
        if p.is_file()
        and should_lint_document(str(p), language_for_path(p), cfg.languages, cfg.extensions)
    )
