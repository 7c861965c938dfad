"""annotation.py - Parsing of single-line ``@openapi`` field annotations.

An annotation documents one JSON output field of a JBuilder template::

    # @openapi id:integer required:true description:"User ID"
    json.id user.id

The free text after ``@openapi`` is parsed into an :class:`AttributeSet`:

* ``name:type`` must open the text (``id:integer``);
* ``required:true|false`` may appear anywhere (case-insensitive);
* ``description:"..."``, ``format:date-time`` and ``example:"..."`` may appear
  anywhere, in any order.

Anything else is ignored.  Parsing never fails: a comment with no recognisable
attributes yields an Annotation whose ``is_valid`` is False, which the
``type-required`` lint rule reports.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

# Leading ``name:type`` pair.  Anchored: ``foo bar:baz`` has no name/type.
NAME_TYPE_RE = re.compile(r"^(?P<name>\w+):(?P<type>\w+)")
# Key and value are both case-insensitive (``Required:TRUE`` is accepted).
REQUIRED_RE = re.compile(r"required:(?P<value>true|false)", re.IGNORECASE)
DESCRIPTION_RE = re.compile(r'description:"(?P<value>[^"]*)"')
FORMAT_RE = re.compile(r"format:(?P<value>[\w-]+)")
EXAMPLE_RE = re.compile(r'example:"(?P<value>[^"]*)"')


class OpenApiType(str, Enum):
    """Data types accepted in the ``type`` slot of an annotation."""

    INTEGER = "integer"
    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"


OPENAPI_TYPES = frozenset(t.value for t in OpenApiType)


def is_valid_openapi_type(name: str | None) -> bool:
    """True if *name* is one of the :class:`OpenApiType` values."""
    return name in OPENAPI_TYPES


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AttributeSet:
    """Attributes recognised in an annotation.

    ``None`` means the attribute was not written at all, which is distinct
    from ``required=False`` or an empty ``description=""``.
    """

    name: str | None = None
    type: str | None = None
    required: bool | None = None
    description: str | None = None
    format: str | None = None
    example: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize the attributes that are present."""
        return {
            key: value
            for key, value in (
                ("name", self.name),
                ("type", self.type),
                ("required", self.required),
                ("description", self.description),
                ("format", self.format),
                ("example", self.example),
            )
            if value is not None
        }


@dataclass(frozen=True)
class Annotation:
    """One ``@openapi`` comment, anchored to its 0-based line."""

    line: int
    text: str
    attributes: AttributeSet = field(default_factory=AttributeSet)

    @property
    def field_name(self) -> str | None:
        return self.attributes.name

    @property
    def type(self) -> str | None:
        return self.attributes.type

    @property
    def is_required(self) -> bool:
        return self.attributes.required is True

    @property
    def description(self) -> str | None:
        return self.attributes.description

    @property
    def format(self) -> str | None:
        return self.attributes.format

    @property
    def example(self) -> str | None:
        return self.attributes.example

    @property
    def is_valid(self) -> bool:
        """An annotation is usable only once it names a type."""
        return self.attributes.type is not None

    def to_dict(self) -> dict[str, object]:
        return {
            "line": self.line,
            "text": self.text,
            "attributes": self.attributes.to_dict(),
            "valid": self.is_valid,
        }


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def parse_attributes(text: str) -> AttributeSet:
    """Parse the free text of an annotation into an :class:`AttributeSet`."""
    name = type_ = None
    m = NAME_TYPE_RE.match(text)
    if m:
        name = m.group("name")
        type_ = m.group("type")

    required = None
    m = REQUIRED_RE.search(text)
    if m:
        required = m.group("value").lower() == "true"

    def _value(pattern: re.Pattern[str]) -> str | None:
        found = pattern.search(text)
        return found.group("value") if found else None

    return AttributeSet(
        name=name,
        type=type_,
        required=required,
        description=_value(DESCRIPTION_RE),
        format=_value(FORMAT_RE),
        example=_value(EXAMPLE_RE),
    )


def parse_annotation(line: int, text: str) -> Annotation:
    """Build an Annotation for *text* found on 0-based *line*.

    The raw text is stored untouched.  Raises ``ValueError`` for a negative
    line number, which can only come from a caller bug.
    """
    if line < 0:
        raise ValueError(f"line must be >= 0, got {line}")
    return Annotation(line=line, text=text, attributes=parse_attributes(text))
