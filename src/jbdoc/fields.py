"""fields.py - Extraction of ``json.<field>`` declarations from JBuilder source.

This is line-oriented pattern matching, not a Ruby parser.  Per line:

1. lines calling ``partial!`` are skipped (the partial documents its own keys);
2. block openers such as ``json.user do`` or ``json.array! posts do |post|``
   are skipped (the nested lines are still scanned);
3. every remaining ``json.name`` occurrence yields a :class:`FieldDeclaration`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_PREFIX = "json"

PARTIAL_TOKEN = "partial!"

# JBuilder DSL methods that never produce a documented key by themselves.
JBUILDER_METHODS = frozenset(
    {
        "array",
        "array!",
        "set!",
        "merge!",
        "cache!",
        "cache_if!",
        "cache_root!",
        "extract!",
        "partial!",
        "child!",
        "attributes!",
        "ignore_nil!",
        "deep_format_keys!",
        "key_format!",
    }
)

SPECIAL_FIELDS = frozenset({"meta"})


@lru_cache(maxsize=None)
def field_pattern(prefix: str = DEFAULT_PREFIX) -> re.Pattern[str]:
    """``prefix.name`` where name may end in ``!`` or ``?``."""
    return re.compile(rf"\b{re.escape(prefix)}\.(?P<name>[A-Za-z_]\w*[!?]?)")


@lru_cache(maxsize=None)
def block_pattern(prefix: str = DEFAULT_PREFIX) -> re.Pattern[str]:
    """``prefix.name ... do`` with optional ``|params|`` at end of line."""
    return re.compile(
        rf"\b{re.escape(prefix)}\.[A-Za-z_]\w*[!?]?.*?\bdo\s*(?:\|[^|]*\|)?\s*$"
    )


def should_be_documented(name: str) -> bool:
    """True unless *name* is a JBuilder method, private (``_x``) or ``meta``."""
    if name in JBUILDER_METHODS:
        return False
    if name.startswith("_"):
        return False
    return name not in SPECIAL_FIELDS


@dataclass(frozen=True)
class FieldDeclaration:
    """A ``json.name`` occurrence at 0-based ``line`` and ``column``."""

    name: str
    line: int
    column: int

    def __post_init__(self) -> None:
        if self.line < 0 or self.column < 0:
            raise ValueError(f"Invalid position {self.line}:{self.column} for field {self.name!r}")

    def should_be_documented(self) -> bool:
        return should_be_documented(self.name)

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "line": self.line, "column": self.column}


def extract_fields(document_text: str, prefix: str = DEFAULT_PREFIX) -> list[FieldDeclaration]:
    """Return every field declaration in *document_text*, in source order."""
    fields: list[FieldDeclaration] = []
    pattern = field_pattern(prefix)
    opener = block_pattern(prefix)

    for line_index, line in enumerate(document_text.split("\n")):
        if PARTIAL_TOKEN in line:
            continue
        if opener.search(line):
            continue
        for m in pattern.finditer(line):
            fields.append(FieldDeclaration(m.group("name"), line_index, m.start()))

    return fields


def find_fields_requiring_documentation(
    document_text: str, prefix: str = DEFAULT_PREFIX
) -> set[str]:
    """Unique names of fields that need an ``@openapi`` annotation."""
    return {
        f.name for f in extract_fields(document_text, prefix) if f.should_be_documented()
    }
