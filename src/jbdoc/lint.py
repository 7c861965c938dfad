"""lint.py - ``jbdoc lint``: report undocumented and malformed JBuilder fields.

Runs the rule engine from :mod:`jbdoc.rules` over every template and renders
the diagnostics through a :class:`DiagnosticSink`.  The console sink prints
``path:line:col: severity rule: message`` lines; ``--json`` prints one report
for all files instead.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import typer
from rich.console import Console
from rich.text import Text

from jbdoc.cli import (
    ConfigOption,
    error_exit,
    get_config,
    iter_templates,
    json_print,
    rel_display_path,
)
from jbdoc.config import ProjectConfig
from jbdoc.document import TextDocument, should_lint_document
from jbdoc.rules import (
    LintRuleRunner,
    LintViolation,
    MissingDocumentationRule,
    Severity,
    TypeRequiredRule,
    build_context,
    strict_rules,
)

out_console = Console()

_SEVERITY_STYLE = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}


# ---------------------------------------------------------------------------
# Diagnostics sinks
# ---------------------------------------------------------------------------


class DiagnosticSink(Protocol):
    def set_diagnostics(self, uri: str, violations: list[LintViolation]) -> None: ...

    def clear_diagnostics(self, uri: str) -> None: ...


@dataclass
class LintResult:
    """Diagnostics recorded for one document."""

    uri: str
    violations: list[LintViolation] = field(default_factory=list)

    @property
    def errors(self) -> list[LintViolation]:
        return [v for v in self.violations if v.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[LintViolation]:
        return [v for v in self.violations if v.severity is Severity.WARNING]

    @property
    def passed(self) -> bool:
        """True if no errors were recorded."""
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.uri,
            "violations": [v.to_dict() for v in self.violations],
            "passed": self.passed,
        }


class ConsoleSink:
    """Keeps diagnostics per uri and prints them through rich."""

    def __init__(
        self,
        console: Console | None = None,
        *,
        quiet: bool = False,
        echo: bool = True,
        base_dir: Path | None = None,
    ) -> None:
        self.console = console or out_console
        self.quiet = quiet
        self.echo = echo
        self.base_dir = base_dir
        self.results: dict[str, LintResult] = {}

    def set_diagnostics(self, uri: str, violations: list[LintViolation]) -> None:
        result = LintResult(uri, list(violations))
        self.results[uri] = result
        if self.echo:
            self.display(result)

    def clear_diagnostics(self, uri: str) -> None:
        self.results.pop(uri, None)

    def display(self, result: LintResult) -> None:
        shown = rel_display_path(Path(result.uri), self.base_dir)
        for v in result.violations:
            if self.quiet and v.severity is not Severity.ERROR:
                continue
            # Paths and messages are plain text; brackets in them are not markup.
            line = Text("  ")
            line.append(shown, style="bold")
            line.append(f":{v.line + 1}:{v.column + 1}: ")
            line.append(f"{v.severity.value} {v.rule_id}", style=_SEVERITY_STYLE[v.severity])
            line.append(f": {v.message}")
            self.console.print(line, highlight=False, soft_wrap=True)


# ---------------------------------------------------------------------------
# Linting
# ---------------------------------------------------------------------------


def make_runner(cfg: ProjectConfig, strict: bool = False) -> LintRuleRunner:
    """Default rules configured from *cfg*, plus the opt-in rules when strict."""
    runner = LintRuleRunner([TypeRequiredRule(), MissingDocumentationRule(cfg.lookback)])
    if strict or cfg.strict:
        for rule in strict_rules():
            runner.add_rule(rule)
    return runner


def lint_document(
    document: TextDocument,
    sink: DiagnosticSink,
    runner: LintRuleRunner | None = None,
    cfg: ProjectConfig | None = None,
) -> list[LintViolation]:
    """Lint *document* into *sink*; non-template documents get cleared instead."""
    cfg = cfg or ProjectConfig.default()
    if not should_lint_document(document.uri, document.language_id, cfg.languages, cfg.extensions):
        sink.clear_diagnostics(document.uri)
        return []

    runner = runner or make_runner(cfg)
    violations = runner.run(build_context(document.get_text(), cfg.field_prefix))
    sink.set_diagnostics(document.uri, violations)
    return violations


def lint_file(
    filepath: Path,
    cfg: ProjectConfig | None = None,
    runner: LintRuleRunner | None = None,
) -> LintResult:
    """Lint a single template file regardless of its extension."""
    cfg = cfg or ProjectConfig.default()
    runner = runner or make_runner(cfg)
    text = TextDocument.from_path(filepath).get_text()
    return LintResult(str(filepath), runner.run(build_context(text, cfg.field_prefix)))


app = typer.Typer(
    help="Lint @openapi annotations in JBuilder templates.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

jbdoc lint                                   Lint every template under source_dir

jbdoc lint app/views/users/show.json.jbuilder  Lint specific files only

jbdoc lint --quiet                           Errors only, suppress warnings

jbdoc lint --strict                          Also check operation blocks and types

jbdoc lint --json                            Machine-readable JSON output

[bold]Rules:[/bold]

type-required            @openapi comment without name:type (error)

missing-documentation    json.<field> without a nearby @openapi comment (warning)

unterminated-operation   @openapi_operation block without =end (error, --strict)

unknown-type             type is not an OpenAPI data type (warning, --strict)

[dim]Reads settings from jbdoc.toml when present. Exit status is 1 when any error is reported.[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    files: list[Path] = typer.Argument(None, help="Templates to lint (default: all under source_dir)."),
    quiet: bool = typer.Option(False, help="Only show errors, suppress warnings"),
    strict: bool = typer.Option(False, "--strict", help="Enable the opt-in rules"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    config: Path | None = ConfigOption,
) -> None:
    """Lint @openapi annotations in JBuilder templates."""
    cfg = get_config(config, optional=True)

    if files:
        missing = [f for f in files if not f.is_file()]
        if missing:
            error_exit(f"File not found: {missing[0]}", json_mode=json_output)
        targets = list(files)
    elif cfg.source_dir.is_dir():
        targets = iter_templates(cfg.source_dir, cfg)
    else:
        error_exit(f"source_dir does not exist: {cfg.source_dir}", json_mode=json_output)

    runner = make_runner(cfg, strict=strict)
    sink = ConsoleSink(quiet=quiet, echo=not json_output, base_dir=Path.cwd())

    for path in targets:
        try:
            document = TextDocument.from_path(path)
        except OSError as e:
            error_exit(f"Cannot read {path}: {e}", json_mode=json_output)
        # Explicit files are always linted, whatever their extension.
        if files:
            violations = runner.run(build_context(document.get_text(), cfg.field_prefix))
            sink.set_diagnostics(document.uri, violations)
        else:
            lint_document(document, sink, runner, cfg)

    results = list(sink.results.values())
    error_count = sum(len(r.errors) for r in results)
    warning_count = sum(len(r.warnings) for r in results)
    passed = sum(1 for r in results if r.passed)

    if json_output:
        json_print(
            {
                "total": len(results),
                "passed": passed,
                "errors": error_count,
                "warnings": warning_count,
                "files": [r.to_dict() for r in results if r.violations],
            }
        )
    else:
        pass_style = "green" if error_count == 0 else "red"
        err_style = "red" if error_count > 0 else ""
        summary = Text()
        summary.append(f"\nChecked {len(results)} files: ")
        summary.append(f"{passed} passed", style=pass_style)
        summary.append(", ")
        summary.append(f"{error_count} errors", style=err_style)
        summary.append(f", {warning_count} warnings")
        out_console.print(summary)

    if error_count > 0:
        raise typer.Exit(code=1)


def main_entry() -> None:
    """Package entry point for ``jbdoc-lint``."""
    app()


if __name__ == "__main__":
    main_entry()
