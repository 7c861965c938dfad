"""schema.py - Derive OpenAPI-style metadata from a template's annotations.

The result mirrors the fragment a generator would emit for one endpoint::

    {
      "operation": {"summary": ..., "tags": [...], "responses": {"200": ...}},
      "schema": {"type": "object", "properties": {...}, "required": [...]},
      "undocumented": ["email"]
    }

Only annotations with a type contribute properties; the first annotation for
a name wins, matching how the lint rules treat duplicates.
"""

import contextlib
import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from jbdoc.annotation import Annotation, OpenApiType
from jbdoc.cli import ConfigOption, error_exit, get_config, json_print
from jbdoc.document import parse_annotations, parse_operations
from jbdoc.fields import DEFAULT_PREFIX, find_fields_requiring_documentation
from jbdoc.operation import OperationBlock
from jbdoc.utils import atomic_write_text, read_source

_err_console = Console(stderr=True)

DEFAULT_RESPONSE_DESCRIPTION = "Successful response"


def coerce_example(raw: str, type_name: str | None) -> object:
    """Convert an ``example:"..."`` string to the annotated type when it parses."""
    if type_name == OpenApiType.INTEGER.value:
        with contextlib.suppress(ValueError):
            return int(raw)
    elif type_name == OpenApiType.NUMBER.value:
        with contextlib.suppress(ValueError):
            return float(raw)
    elif type_name == OpenApiType.BOOLEAN.value and raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    return raw


def property_schema(annotation: Annotation) -> dict[str, Any]:
    prop: dict[str, Any] = {"type": annotation.type}
    if annotation.format is not None:
        prop["format"] = annotation.format
    if annotation.description is not None:
        prop["description"] = annotation.description
    if annotation.example is not None:
        prop["example"] = coerce_example(annotation.example, annotation.type)
    return prop


def object_schema(annotations: list[Annotation]) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    required: list[str] = []
    for a in annotations:
        if not a.is_valid or not a.field_name or a.field_name in properties:
            continue
        properties[a.field_name] = property_schema(a)
        if a.is_required:
            required.append(a.field_name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def operation_schema(operation: OperationBlock | None, response: dict[str, Any]) -> dict[str, Any]:
    """Wrap *response* in an operation object built from an ``@openapi_operation`` block."""
    attrs = operation.attributes if operation is not None else None
    op: dict[str, Any] = {}
    if attrs is not None:
        if attrs.summary is not None:
            op["summary"] = attrs.summary
        if attrs.tags is not None:
            op["tags"] = list(attrs.tags)
        if attrs.description is not None:
            op["description"] = attrs.description
    description = DEFAULT_RESPONSE_DESCRIPTION
    if attrs is not None and attrs.response_description is not None:
        description = attrs.response_description
    op["responses"] = {
        "200": {
            "description": description,
            "content": {"application/json": {"schema": response}},
        }
    }
    return op


def derive_schema(document_text: str, prefix: str = DEFAULT_PREFIX) -> dict[str, Any]:
    """Build the operation, response schema and undocumented field list."""
    annotations = parse_annotations(document_text)
    operations = parse_operations(document_text)
    response = object_schema(annotations)

    documented = {a.field_name for a in annotations if a.field_name}
    undocumented = sorted(find_fields_requiring_documentation(document_text, prefix) - documented)

    return {
        "operation": operation_schema(operations[0] if operations else None, response),
        "operations": [op.to_dict() for op in operations],
        "schema": response,
        "undocumented": undocumented,
    }


app = typer.Typer(
    help="Derive OpenAPI schema metadata from a JBuilder template.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

jbdoc schema app/views/users/show.json.jbuilder            Print schema JSON

jbdoc schema show.json.jbuilder --output docs/show.json    Write schema to a file

[dim]Fields without an @openapi comment are listed under "undocumented".[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    template: Path = typer.Argument(..., help="Template to read."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout."),
    config: Path | None = ConfigOption,
) -> None:
    """Derive OpenAPI schema metadata from a JBuilder template."""
    cfg = get_config(config, optional=True)
    try:
        text = read_source(template)
    except OSError as e:
        error_exit(f"Cannot read {template}: {e}")

    data = derive_schema(text, cfg.field_prefix)
    if output is None:
        json_print(data)
        return
    try:
        atomic_write_text(output, json.dumps(data, indent=2) + "\n")
    except OSError as e:
        error_exit(f"Cannot write {output}: {e}")
    _err_console.print(f"Wrote schema for {escape(str(template))} to {escape(str(output))}")
