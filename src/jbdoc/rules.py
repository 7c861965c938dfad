"""rules.py - Lint rules over a parsed JBuilder template.

A rule is any object with a ``name`` and a ``validate(context)`` method that
returns a list of :class:`LintViolation`.  :class:`LintRuleRunner` keeps an
ordered list of rules and concatenates their output, so diagnostics come out
in rule-registration order, then in each rule's own emission order.

Built-in rules:

======================  ========  ==============================================
rule id                 severity  reported when
======================  ========  ==============================================
type-required           error     an ``@openapi`` comment has no ``name:type``
missing-documentation   warning   a ``json.<field>`` has no annotation nearby
unterminated-operation  error     an operation block never reaches ``=end``
unknown-type            warning   the annotated type is not an OpenAPI type
======================  ========  ==============================================

Only the first two run by default; the others are added with
:meth:`LintRuleRunner.add_rule` (``jbdoc lint --strict``).
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from jbdoc.annotation import Annotation, is_valid_openapi_type
from jbdoc.document import (
    ANNOTATION_MARKER,
    DEFAULT_LOOKBACK,
    parse_annotations,
    parse_operations,
)
from jbdoc.fields import DEFAULT_PREFIX, FieldDeclaration, extract_fields
from jbdoc.operation import OperationBlock

TYPE_REQUIRED_MESSAGE = '@openapi comment missing required "type" attribute'
MISSING_DOCUMENTATION_MESSAGE = "Missing @openapi documentation for field: {name}"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class LintViolation:
    """One diagnostic, 0-based position."""

    line: int
    column: int
    message: str
    severity: Severity
    rule_id: str

    def to_dict(self) -> dict[str, object]:
        return {
            "line": self.line + 1,
            "column": self.column + 1,
            "severity": self.severity.value,
            "rule": self.rule_id,
            "message": self.message,
        }


@dataclass(frozen=True)
class LintContext:
    """Everything a rule may look at, built once per lint pass."""

    document_text: str
    annotations: list[Annotation] = field(default_factory=list)
    fields: list[FieldDeclaration] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)
    operations: list[OperationBlock] = field(default_factory=list)


class LintRule(Protocol):
    name: str

    def validate(self, context: LintContext) -> list[LintViolation]: ...


# ---------------------------------------------------------------------------
# Built-in rules
# ---------------------------------------------------------------------------


class TypeRequiredRule:
    """Every ``@openapi`` comment must carry a ``name:type`` pair."""

    name = "type-required"

    def validate(self, context: LintContext) -> list[LintViolation]:
        return [
            LintViolation(a.line, 0, TYPE_REQUIRED_MESSAGE, Severity.ERROR, self.name)
            for a in context.annotations
            if a.type is None
        ]


class MissingDocumentationRule:
    """Every documentable ``json.<field>`` needs an ``@openapi`` comment.

    A field counts as documented when any annotation in the file names it, or
    when one of the ``lookback`` raw lines above it mentions both ``@openapi``
    and the field name.  Each name is settled at its first occurrence; later
    occurrences are never reported again.
    """

    name = "missing-documentation"

    def __init__(self, lookback: int = DEFAULT_LOOKBACK) -> None:
        if lookback < 0:
            raise ValueError(f"lookback must be >= 0, got {lookback}")
        self.lookback = lookback

    def validate(self, context: LintContext) -> list[LintViolation]:
        violations: list[LintViolation] = []
        documented = {a.field_name for a in context.annotations if a.field_name}
        resolved: set[str] = set()

        for f in context.fields:
            if f.name in resolved or f.name in documented or not f.should_be_documented():
                continue
            resolved.add(f.name)
            if self._has_comment_nearby(f, context.lines):
                continue
            violations.append(
                LintViolation(
                    f.line,
                    f.column,
                    MISSING_DOCUMENTATION_MESSAGE.format(name=f.name),
                    Severity.WARNING,
                    self.name,
                )
            )
        return violations

    def _has_comment_nearby(self, f: FieldDeclaration, lines: list[str]) -> bool:
        start = max(0, f.line - self.lookback)
        for line in lines[start : f.line]:
            if ANNOTATION_MARKER in line and f.name in line:
                return True
        return False


class UnterminatedOperationRule:
    """An ``@openapi_operation`` block must be closed with ``=end``."""

    name = "unterminated-operation"

    def validate(self, context: LintContext) -> list[LintViolation]:
        return [
            LintViolation(
                op.start_line,
                0,
                "@openapi_operation block is missing its closing =end",
                Severity.ERROR,
                self.name,
            )
            for op in context.operations
            if not op.terminated
        ]


class UnknownTypeRule:
    """Annotated types should be one of the OpenAPI data types."""

    name = "unknown-type"

    def validate(self, context: LintContext) -> list[LintViolation]:
        violations: list[LintViolation] = []
        for a in context.annotations:
            if a.type is None or is_valid_openapi_type(a.type):
                continue
            column = 0
            if a.line < len(context.lines):
                pair = f"{a.field_name}:{a.type}"
                found = context.lines[a.line].find(pair)
                if found >= 0:
                    column = found + len(pair) - len(a.type)
            violations.append(
                LintViolation(
                    a.line,
                    column,
                    f"Unknown OpenAPI type '{a.type}' for field: {a.field_name}",
                    Severity.WARNING,
                    self.name,
                )
            )
        return violations


def default_rules() -> list[LintRule]:
    return [TypeRequiredRule(), MissingDocumentationRule()]


def strict_rules() -> list[LintRule]:
    """Opt-in rules layered on top of :func:`default_rules`."""
    return [UnterminatedOperationRule(), UnknownTypeRule()]


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class LintRuleRunner:
    """Ordered collection of rules.

    A rule that raises is skipped with a ``UserWarning`` so that one broken
    rule does not blank the whole pass.
    """

    def __init__(self, rules: list[LintRule] | None = None) -> None:
        self._rules: list[LintRule] = list(rules) if rules is not None else default_rules()

    @property
    def rules(self) -> tuple[LintRule, ...]:
        return tuple(self._rules)

    def add_rule(self, rule: LintRule) -> None:
        self._rules.append(rule)

    def run(self, context: LintContext) -> list[LintViolation]:
        violations: list[LintViolation] = []
        for rule in self._rules:
            try:
                violations.extend(rule.validate(context))
            except Exception as e:
                warnings.warn(
                    f"Lint rule '{getattr(rule, 'name', type(rule).__name__)}' failed: {e}",
                    stacklevel=2,
                )
        return violations


# ---------------------------------------------------------------------------
# Convenience entry points
# ---------------------------------------------------------------------------


def build_context(document_text: str, prefix: str = DEFAULT_PREFIX) -> LintContext:
    """Parse *document_text* once into a :class:`LintContext`."""
    return LintContext(
        document_text=document_text,
        annotations=parse_annotations(document_text),
        fields=extract_fields(document_text, prefix),
        lines=document_text.split("\n"),
        operations=parse_operations(document_text),
    )


def lint_text(
    document_text: str,
    runner: LintRuleRunner | None = None,
    prefix: str = DEFAULT_PREFIX,
) -> list[LintViolation]:
    """Lint a whole document with *runner* (default rules if omitted)."""
    if runner is None:
        runner = LintRuleRunner()
    return runner.run(build_context(document_text, prefix))
