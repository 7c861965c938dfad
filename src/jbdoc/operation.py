"""operation.py - Parsing of multi-line ``@openapi_operation`` blocks.

An operation block documents a whole endpoint and lives in a Ruby block
comment::

    =begin
      @openapi_operation
        summary:"Create new post"
        tags:[Posts,Write]
        description:"Create a new blog post"
        response_description:"Created post"
    =end

Attribute lines are only collected after the ``@openapi_operation`` marker.
The first line containing ``=end`` closes the block.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

OPERATION_START_RE = re.compile(r"=begin")
OPERATION_MARKER = "@openapi_operation"
OPERATION_END = "=end"

SUMMARY_RE = re.compile(r'summary:\s*"(?P<value>[^"]*)"')
TAGS_RE = re.compile(r"tags:\s*\[(?P<value>.*?)\]")
# ``response_description:`` must not be read as ``description:``
DESCRIPTION_RE = re.compile(r'(?<![\w])description:\s*"(?P<value>[^"]*)"')
RESPONSE_DESCRIPTION_RE = re.compile(r'response_description:\s*"(?P<value>[^"]*)"')


@dataclass(frozen=True)
class OperationAttributes:
    """Endpoint-level attributes; ``None`` when not written."""

    summary: str | None = None
    tags: tuple[str, ...] | None = None
    description: str | None = None
    response_description: str | None = None

    def to_dict(self) -> dict[str, object]:
        d: dict[str, object] = {}
        if self.summary is not None:
            d["summary"] = self.summary
        if self.tags is not None:
            d["tags"] = list(self.tags)
        if self.description is not None:
            d["description"] = self.description
        if self.response_description is not None:
            d["response_description"] = self.response_description
        return d


@dataclass(frozen=True)
class OperationBlock:
    """A parsed operation block spanning ``start_line..end_line`` inclusive.

    ``terminated`` is False when no ``=end`` was found; such a block runs to
    the last line of the document.
    """

    start_line: int
    end_line: int
    attributes: OperationAttributes = field(default_factory=OperationAttributes)
    terminated: bool = True

    def __post_init__(self) -> None:
        if self.start_line < 0 or self.end_line < self.start_line:
            raise ValueError(f"Invalid operation span {self.start_line}..{self.end_line}")

    def contains_line(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line

    def to_dict(self) -> dict[str, object]:
        return {
            "start_line": self.start_line,
            "end_line": self.end_line,
            "terminated": self.terminated,
            **self.attributes.to_dict(),
        }


def parse_tags(raw: str) -> tuple[str, ...]:
    """Split ``a, "b", 'c'`` into ``("a", "b", "c")``."""
    return tuple(tag.strip().replace('"', "").replace("'", "") for tag in raw.split(","))


def _parse_attribute_line(line: str, found: dict[str, object]) -> None:
    """Record every operation attribute present on *line*; later lines win."""
    m = SUMMARY_RE.search(line)
    if m:
        found["summary"] = m.group("value")

    m = TAGS_RE.search(line)
    if m:
        found["tags"] = parse_tags(m.group("value"))

    m = DESCRIPTION_RE.search(line)
    if m:
        found["description"] = m.group("value")

    m = RESPONSE_DESCRIPTION_RE.search(line)
    if m:
        found["response_description"] = m.group("value")


def parse_operation(lines: list[str], start_line: int) -> OperationBlock | None:
    """Parse the operation block that opens at *start_line*.

    Returns None when no ``@openapi_operation`` marker appears before the
    closing ``=end`` (the ``=begin`` was an ordinary block comment).  An
    unterminated block is returned with ``terminated=False``.
    """
    if start_line < 0 or start_line >= len(lines):
        raise ValueError(f"start_line {start_line} outside document of {len(lines)} lines")

    found: dict[str, object] = {}
    in_operation = False
    end_line: int | None = None

    for i in range(start_line, len(lines)):
        line = lines[i]

        if OPERATION_MARKER in line:
            in_operation = True
            continue

        if OPERATION_END in line:
            end_line = i
            break

        if in_operation:
            _parse_attribute_line(line, found)

    if not in_operation:
        return None

    terminated = end_line is not None
    return OperationBlock(
        start_line=start_line,
        end_line=end_line if end_line is not None else len(lines) - 1,
        attributes=OperationAttributes(**found),
        terminated=terminated,
    )
