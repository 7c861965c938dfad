"""main.py - Umbrella CLI entry point for jbdoc.

Imports and registers each subcommand's Typer callback as a flat
``app.command()`` so that ``jbdoc lint --json`` works without the Typer
"group" behaviour of ``add_typer()``.  A module that fails to import is
replaced by a stub command reporting the error instead of breaking the CLI.
"""

import importlib
import sys
from collections.abc import Callable

import typer

app = typer.Typer(
    help="Lint and document @openapi annotations in JBuilder templates.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Typical workflow:[/bold]
  jbdoc lint                        Find undocumented json.<field> keys
  jbdoc describe FILE LINE          Explain an @openapi comment
  jbdoc complete FILE LINE COL      Suggest names, types and attributes
  jbdoc schema FILE                 Derive the response schema
  jbdoc generate                    Run the project's OpenAPI generator
  jbdoc check                       Run the project's OpenAPI check

[dim]Settings are read from jbdoc.toml in the project root when present.
Run 'jbdoc <cmd> --help' for details.[/dim]""",
)

# ---------------------------------------------------------------------------
# Subcommand registry
# ---------------------------------------------------------------------------

# (command name, module, callback attribute, Typer app attribute, help)
_COMMANDS: list[tuple[str, str, str, str, str]] = [
    ("lint", "jbdoc.lint", "main", "app", "Lint @openapi annotations."),
    ("schema", "jbdoc.schema", "main", "app", "Derive OpenAPI schema metadata."),
    ("describe", "jbdoc.hover", "main", "app", "Describe the @openapi comment on a line."),
    ("complete", "jbdoc.completion", "main", "app", "List completion candidates."),
    ("generate", "jbdoc.commands", "generate_main", "generate_app", "Run the OpenAPI generate task."),
    ("check", "jbdoc.commands", "check_main", "check_app", "Run the OpenAPI check task."),
]


def _make_stub_cmd(mod_name: str, err: ImportError) -> Callable[[], None]:
    """Create a stub command function that reports a missing dependency."""

    def _stub() -> None:
        print(f"Error: could not load '{mod_name}': {err}", file=sys.stderr)
        raise typer.Exit(code=1)

    return _stub


for _name, _module, _callback, _app_attr, _help in _COMMANDS:
    try:
        _mod = importlib.import_module(_module)
        _epilog = getattr(getattr(_mod, _app_attr).info, "epilog", None)
        if not isinstance(_epilog, str):
            _epilog = None
        app.command(name=_name, help=_help, epilog=_epilog)(getattr(_mod, _callback))
    except ImportError as _exc:
        app.command(name=_name, help=f"[unavailable] {_help}")(_make_stub_cmd(_module, _exc))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
