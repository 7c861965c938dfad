"""Shared file helpers for jbdoc."""

import contextlib
import os
from pathlib import Path


def read_source(filepath: Path) -> str:
    """Read a template as text, replacing undecodable bytes.

    Line endings are normalised to ``\\n`` so that line indices agree with what
    an editor shows for CRLF files.
    """
    text = filepath.read_text(encoding="utf-8", errors="replace")
    return text.replace("\r\n", "\n")


def atomic_write_text(filepath: Path, text: str, encoding: str = "utf-8") -> None:
    """Write *text* to *filepath* via a sibling temp file and ``os.replace``."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = filepath.with_suffix(filepath.suffix + ".tmp")
    try:
        tmp_path.write_text(text, encoding=encoding)
        os.replace(tmp_path, filepath)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise
