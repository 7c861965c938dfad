"""Hover text for ``@openapi`` comment lines."""

from pathlib import Path

import typer
from rich.console import Console
from rich.markdown import Markdown

from jbdoc.annotation import parse_annotation
from jbdoc.cli import error_exit
from jbdoc.document import ANNOTATION_MARKER, ANNOTATION_RE, TextDocument

out_console = Console()


def hover_lines(line_text: str, line: int = 0) -> list[str] | None:
    """Markdown lines describing the annotation on *line_text*, or None."""
    if ANNOTATION_MARKER not in line_text:
        return None
    m = ANNOTATION_RE.search(line_text)
    if not m:
        return None

    annotation = parse_annotation(line, m.group("text").strip())
    contents = ["**OpenAPI Documentation**", ""]

    if annotation.field_name:
        contents.append(f"**Field**: `{annotation.field_name}`")
    if annotation.type:
        contents.append(f"**Type**: `{annotation.type}`")
    if annotation.is_required:
        contents.append("**Required**: Yes")
    if annotation.description:
        contents.append(f"**Description**: {annotation.description}")
    if annotation.format:
        contents.append(f"**Format**: `{annotation.format}`")
    if annotation.example:
        contents.append(f"**Example**: `{annotation.example}`")

    if not annotation.is_valid:
        contents.append("")
        contents.append("**Warning**: Missing required `type` attribute")

    return contents


app = typer.Typer(
    help="Describe the @openapi annotation on a template line.",
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def main(
    template: Path = typer.Argument(..., help="Template to read."),
    line: int = typer.Argument(..., min=1, help="1-based line number."),
) -> None:
    """Describe the @openapi annotation on a template line."""
    try:
        document = TextDocument.from_path(template)
        line_text = document.get_line_at(line - 1)
    except OSError as e:
        error_exit(f"Cannot read {template}: {e}")
    except ValueError:
        error_exit(f"{template} has no line {line}")

    contents = hover_lines(line_text, line - 1)
    if contents is None:
        error_exit(f"No @openapi annotation on {template}:{line}")
    out_console.print(Markdown("\n\n".join(c for c in contents if c)))
