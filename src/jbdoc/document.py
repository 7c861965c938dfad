"""document.py - Whole-document parsing and field/annotation correlation.

Ties the single-line annotation parser and the operation block parser
together over a full template, and answers the proximity question the lint
rules rely on: an annotation documents a field when it names the field and
sits at most ``lookback`` lines above it.
"""

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass
from pathlib import Path

from jbdoc.annotation import Annotation, parse_annotation
from jbdoc.operation import OPERATION_MARKER, OPERATION_START_RE, OperationBlock, parse_operation
from jbdoc.utils import read_source

ANNOTATION_MARKER = "@openapi"
# ``\s+`` after the marker keeps ``@openapi_operation`` lines out.
ANNOTATION_RE = re.compile(r"@openapi\s+(?P<text>.+)")

DEFAULT_LOOKBACK = 3
# The operation marker must appear within this many lines of ``=begin``.
OPERATION_PEEK_LINES = 5

DEFAULT_LANGUAGES = ("ruby", "erb")
DEFAULT_EXTENSIONS = (".jbuilder",)

_LANGUAGE_BY_SUFFIX = {".rb": "ruby", ".erb": "erb"}


# ---------------------------------------------------------------------------
# Text source
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextDocument:
    """Immutable snapshot of a document's text."""

    uri: str
    text: str
    language_id: str = ""

    @classmethod
    def from_path(cls, path: Path) -> TextDocument:
        return cls(uri=str(path), text=read_source(path), language_id=language_for_path(path))

    def get_text(self) -> str:
        return self.text

    def get_lines(self) -> list[str]:
        return self.text.split("\n")

    def get_line_count(self) -> int:
        return len(self.get_lines())

    def get_line_at(self, line: int) -> str:
        lines = self.get_lines()
        if not 0 <= line < len(lines):
            raise ValueError(f"line {line} outside document of {len(lines)} lines")
        return lines[line]


def language_for_path(path: Path) -> str:
    """Guess an editor language id from a file suffix."""
    return _LANGUAGE_BY_SUFFIX.get(path.suffix.lower(), "")


def should_lint_document(
    uri: str,
    language_id: str,
    languages: tuple[str, ...] | list[str] = DEFAULT_LANGUAGES,
    extensions: tuple[str, ...] | list[str] = DEFAULT_EXTENSIONS,
) -> bool:
    """True if the document is a Ruby/ERB source or ends with a template extension."""
    return language_id in languages or any(uri.endswith(ext) for ext in extensions)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_annotations(document_text: str) -> list[Annotation]:
    """Parse every ``@openapi`` line, in line order."""
    annotations: list[Annotation] = []
    for i, line in enumerate(document_text.split("\n")):
        m = ANNOTATION_RE.search(line)
        if m:
            annotations.append(parse_annotation(i, m.group("text").strip()))
    return annotations


def parse_operations(document_text: str) -> list[OperationBlock]:
    """Parse every ``@openapi_operation`` block, in line order.

    A ``=begin`` without the operation marker in its first lines is an
    ordinary comment and is skipped without consuming any lines.
    """
    operations: list[OperationBlock] = []
    lines = document_text.split("\n")

    i = 0
    while i < len(lines):
        if OPERATION_START_RE.search(lines[i]):
            peek = lines[i : i + OPERATION_PEEK_LINES]
            if any(OPERATION_MARKER in candidate for candidate in peek):
                operation = parse_operation(lines, i)
                if operation is not None:
                    if not operation.terminated:
                        warnings.warn(
                            f"Unterminated @openapi_operation block starting at line "
                            f"{operation.start_line + 1} (missing =end)",
                            stacklevel=2,
                        )
                    operations.append(operation)
                    i = operation.end_line
        i += 1

    return operations


def is_within_operation(line: int, operations: list[OperationBlock]) -> bool:
    return any(op.contains_line(line) for op in operations)


def find_annotation_for_field(
    field_name: str,
    field_line: int,
    annotations: list[Annotation],
    lookback: int = DEFAULT_LOOKBACK,
) -> Annotation | None:
    """First annotation naming *field_name* in the ``lookback`` lines above it.

    First match, not best match: *annotations* must be in ascending line
    order, as :func:`parse_annotations` returns them.
    """
    if field_line < 0:
        raise ValueError(f"field_line must be >= 0, got {field_line}")
    if lookback < 0:
        raise ValueError(f"lookback must be >= 0, got {lookback}")

    search_start = max(0, field_line - lookback)
    for annotation in annotations:
        if (
            search_start <= annotation.line < field_line
            and annotation.field_name == field_name
        ):
            return annotation
    return None
