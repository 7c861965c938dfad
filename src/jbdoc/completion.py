"""completion.py - Completion candidates while typing an ``@openapi`` comment.

Three positions are recognised, based on the text left of the cursor:

* ``# @openapi |``          field names found in the template;
* ``# @openapi id:|``       OpenAPI types;
* ``# @openapi id:integer |`` attributes not yet present on the line.
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import typer

from jbdoc.annotation import OpenApiType, is_valid_openapi_type
from jbdoc.cli import ConfigOption, error_exit, get_config, json_print
from jbdoc.fields import DEFAULT_PREFIX, find_fields_requiring_documentation
from jbdoc.utils import read_source

AFTER_MARKER_RE = re.compile(r"@openapi\s+$")
AFTER_NAME_RE = re.compile(r"@openapi\s+\w+:$")
AFTER_TYPE_RE = re.compile(r"@openapi\s+\w+:(?P<type>\w+)\s+$")

# Types that accept a ``format:`` qualifier.
FORMATTED_TYPES = frozenset(
    {OpenApiType.STRING.value, OpenApiType.INTEGER.value, OpenApiType.NUMBER.value}
)


class CompletionKind(str, Enum):
    FIELD = "field"
    KEYWORD = "keyword"
    PROPERTY = "property"


@dataclass(frozen=True)
class CompletionItem:
    label: str
    kind: CompletionKind
    detail: str = ""
    insert_text: str | None = None

    def to_dict(self) -> dict[str, str]:
        d = {"label": self.label, "kind": self.kind.value, "detail": self.detail}
        if self.insert_text is not None:
            d["insert_text"] = self.insert_text
        return d


def field_name_completions(document_text: str, prefix: str = DEFAULT_PREFIX) -> list[CompletionItem]:
    names = sorted(find_fields_requiring_documentation(document_text, prefix))
    return [
        CompletionItem(name, CompletionKind.FIELD, "JSON field", insert_text=f"{name}:")
        for name in names
    ]


def type_completions() -> list[CompletionItem]:
    return [CompletionItem(t.value, CompletionKind.KEYWORD, "OpenAPI type") for t in OpenApiType]


def attribute_completions(line_text: str, type_name: str) -> list[CompletionItem]:
    """Attributes still missing from *line_text* for an annotation of *type_name*."""
    items: list[CompletionItem] = []
    if "required:" not in line_text:
        items.append(CompletionItem("required:true", CompletionKind.PROPERTY, "Mark as required"))
        items.append(CompletionItem("required:false", CompletionKind.PROPERTY, "Mark as optional"))
    if "description:" not in line_text:
        items.append(
            CompletionItem(
                'description:""', CompletionKind.PROPERTY, "Add description", 'description:"$1"'
            )
        )
    if type_name in FORMATTED_TYPES and "format:" not in line_text:
        items.append(CompletionItem("format:", CompletionKind.PROPERTY, "Specify format"))
    if "example:" not in line_text:
        items.append(
            CompletionItem('example:""', CompletionKind.PROPERTY, "Add example", 'example:"$1"')
        )
    return items


def completions_at(
    document_text: str,
    line: int,
    column: int,
    prefix: str = DEFAULT_PREFIX,
) -> list[CompletionItem]:
    """Completion candidates at 0-based *line* / *column* of *document_text*."""
    lines = document_text.split("\n")
    if not 0 <= line < len(lines):
        raise ValueError(f"line {line} outside document of {len(lines)} lines")
    if column < 0:
        raise ValueError(f"column must be >= 0, got {column}")

    line_text = lines[line]
    before = line_text[:column]

    if AFTER_MARKER_RE.search(before):
        return field_name_completions(document_text, prefix)
    if AFTER_NAME_RE.search(before):
        return type_completions()
    m = AFTER_TYPE_RE.search(before)
    if m and is_valid_openapi_type(m.group("type")):
        return attribute_completions(line_text, m.group("type"))
    return []


app = typer.Typer(
    help="List @openapi completion candidates at a template position.",
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def main(
    template: Path = typer.Argument(..., help="Template to read."),
    line: int = typer.Argument(..., min=1, help="1-based line number."),
    column: int = typer.Argument(..., min=1, help="1-based cursor column."),
    json_output: bool = typer.Option(False, "--json", help="Output candidates as JSON"),
    config: Path | None = ConfigOption,
) -> None:
    """List @openapi completion candidates at a template position."""
    cfg = get_config(config, optional=True)
    try:
        text = read_source(template)
    except OSError as e:
        error_exit(f"Cannot read {template}: {e}", json_mode=json_output)
    try:
        items = completions_at(text, line - 1, column - 1, cfg.field_prefix)
    except ValueError as e:
        error_exit(str(e), json_mode=json_output)

    if json_output:
        json_print([item.to_dict() for item in items])
        return
    for item in items:
        print(f"{item.label}\t{item.kind.value}\t{item.detail}")
