"""Pick a transform for each source file, and compile stylesheets."""

from __future__ import annotations

import enum
import logging
import posixpath
import re
from pathlib import Path
from typing import Optional, Set

import lesscpy

from site_errors import StylesheetError

logger = logging.getLogger(__name__)


class Transform(enum.Enum):
    MARKDOWN = "markdown"
    STYLESHEET = "stylesheet"
    COPY = "copy"


_BY_SUFFIX = {
    ".md": Transform.MARKDOWN,
    ".less": Transform.STYLESHEET,
}


# quoted names only; `url(...)` imports are left alone
_IMPORT = re.compile(r"""@import\s+(?:\([^)]*\)\s*)?["']([^"']+)["']""")


def transform_for(rel_path: str) -> Transform:
    """Return the transform for a source path; unknown suffixes are copied as-is."""
    suffix = posixpath.splitext(rel_path)[1].lower()
    return _BY_SUFFIX.get(suffix, Transform.COPY)


def compile_stylesheet(path: Path, rel_path: Optional[str] = None) -> str:
    """Compile a LESS file to CSS.

    The file is handed to lesscpy as an open handle so `@import` statements
    resolve against the file's own directory. Any compiler failure is fatal
    and reported against the source path.
    """
    label = rel_path or str(path)
    logger.debug("Compiling stylesheet %s", label)
    _check_imports(path, label)
    try:
        with path.open("r", encoding="utf-8") as handle:
            return lesscpy.compile(handle)
    except OSError:
        raise
    except Exception as exc:  # lesscpy raises a mix of its own and ply errors
        raise StylesheetError(label, f"stylesheet compile failed: {exc}") from exc


def _check_imports(path: Path, label: str, seen: Optional[Set[Path]] = None) -> None:
    """Fail on `@import` of a LESS file that does not exist, following nested imports."""
    seen = set() if seen is None else seen
    resolved = path.resolve()
    if resolved in seen:
        return
    seen.add(resolved)
    for name in _IMPORT.findall(path.read_text(encoding="utf-8")):
        if name.lower().endswith(".css") or "://" in name:
            continue
        target = path.parent / name
        if not posixpath.splitext(name)[1]:
            target = target.with_name(target.name + ".less")
        if not target.is_file():
            raise StylesheetError(label, f"cannot import '{name}': file not found")
        _check_imports(target, label, seen)
