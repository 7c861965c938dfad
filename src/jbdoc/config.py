"""Project configuration loader for jbdoc.

Reads ``jbdoc.toml`` from the project root (found by walking up from the
current directory, the way ``git`` finds ``.git/``) and exposes the settings
as a :class:`ProjectConfig`.  Every key is optional::

    [project]
    source_dir = "app/views"
    field_prefix = "json"
    lookback = 3

    [lint]
    languages = ["ruby", "erb"]
    extensions = [".jbuilder"]
    strict = false

    [commands]
    generate = "bundle exec rails openapi:generate"
    check = "bundle exec rails openapi:check"

Usage::

    from jbdoc.config import load_config
    cfg = load_config()
    cfg.source_dir      # Path
    cfg.lookback        # int
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from jbdoc.document import DEFAULT_EXTENSIONS, DEFAULT_LANGUAGES, DEFAULT_LOOKBACK
from jbdoc.fields import DEFAULT_PREFIX

CONFIG_FILENAME = "jbdoc.toml"

DEFAULT_GENERATE_COMMAND = "bundle exec rails openapi:generate"
DEFAULT_CHECK_COMMAND = "bundle exec rails openapi:check"


@dataclass
class ProjectConfig:
    """Parsed project configuration with resolved paths."""

    # Directory holding jbdoc.toml (or the cwd for a default config)
    root: Path

    # --- [project] ---
    source_dir: Path = field(default_factory=lambda: Path())
    field_prefix: str = DEFAULT_PREFIX
    lookback: int = DEFAULT_LOOKBACK

    # --- [lint] ---
    languages: list[str] = field(default_factory=lambda: list(DEFAULT_LANGUAGES))
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    strict: bool = False

    # --- [commands] ---
    generate_command: str = DEFAULT_GENERATE_COMMAND
    check_command: str = DEFAULT_CHECK_COMMAND

    def __post_init__(self) -> None:
        if self.source_dir == Path():
            self.source_dir = self.root

    @classmethod
    def default(cls, root: Path | None = None) -> ProjectConfig:
        """Config used when no jbdoc.toml exists: everything under *root* (cwd)."""
        return cls(root=(root or Path.cwd()).resolve())


def _resolve(root: Path, rel: str | None) -> Path | None:
    """Resolve a path relative to project root."""
    if rel is None:
        return None
    p = Path(rel)
    if p.is_absolute():
        return p
    return root / p


def _find_root(start: Path | None = None) -> Path:
    """Walk up from *start* (or cwd) to the directory containing jbdoc.toml."""
    candidate = (start or Path.cwd()).resolve()
    while True:
        if (candidate / CONFIG_FILENAME).exists():
            return candidate
        if candidate == candidate.parent:
            break
        candidate = candidate.parent
    raise FileNotFoundError(
        f"Could not find {CONFIG_FILENAME} in any parent of {start or Path.cwd()}. "
        f"Create one or pass --config."
    )


def _string_list(value: object, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key} must be a list of strings, got {value!r}")
    return list(value)


def _table(raw: dict[str, object], key: str) -> dict[str, object]:
    value = raw.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"[{key}] must be a table, got {value!r}")
    return value


def _string(table: dict[str, object], key: str, default: str, section: str) -> str:
    value = table.get(key, default)
    if not isinstance(value, str):
        raise ValueError(f"{section}.{key} must be a string, got {value!r}")
    return value


def load_config(root: Path | None = None, path: Path | None = None) -> ProjectConfig:
    """Load jbdoc.toml.

    Args:
        root: Directory to start searching from.  Defaults to the cwd.
        path: Explicit config file; skips the upward search.

    Raises:
        FileNotFoundError: no config file could be located.
        ValueError: a setting has the wrong type or range.
    """
    if path is not None:
        toml_path = path.resolve()
        if not toml_path.exists():
            raise FileNotFoundError(f"Config not found: {toml_path}")
        root = toml_path.parent
    else:
        root = _find_root(root)
        toml_path = root / CONFIG_FILENAME

    with open(toml_path, "rb") as f:
        raw = tomllib.load(f)

    project = _table(raw, "project")
    lint = _table(raw, "lint")
    commands = _table(raw, "commands")

    lookback = project.get("lookback", DEFAULT_LOOKBACK)
    if not isinstance(lookback, int) or isinstance(lookback, bool) or lookback < 0:
        raise ValueError(f"project.lookback must be a non-negative integer, got {lookback!r}")

    prefix = project.get("field_prefix", DEFAULT_PREFIX)
    if not isinstance(prefix, str) or not prefix.isidentifier():
        raise ValueError(f"project.field_prefix must be an identifier, got {prefix!r}")

    strict = lint.get("strict", False)
    if not isinstance(strict, bool):
        raise ValueError(f"lint.strict must be true or false, got {strict!r}")

    return ProjectConfig(
        root=root,
        source_dir=_resolve(root, _string(project, "source_dir", ".", "project")) or root,
        field_prefix=prefix,
        lookback=lookback,
        languages=_string_list(lint.get("languages", list(DEFAULT_LANGUAGES)), "lint.languages"),
        extensions=_string_list(
            lint.get("extensions", list(DEFAULT_EXTENSIONS)), "lint.extensions"
        ),
        strict=strict,
        generate_command=_string(commands, "generate", DEFAULT_GENERATE_COMMAND, "commands"),
        check_command=_string(commands, "check", DEFAULT_CHECK_COMMAND, "commands"),
    )
