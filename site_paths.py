"""Path rules: what gets skipped, and where things land in the output tree."""

from __future__ import annotations

import posixpath

# Dependency folders that never belong in a published site
DEPENDENCY_DIRS = {"node_modules", "bower_components"}

_OUTPUT_SUFFIXES = {".md": ".html", ".less": ".css"}


def is_ignored(rel_path: str) -> bool:
    """True if a source-relative POSIX path must not be processed.

    Dotfiles, underscore-prefixed entries (drafts, `_site`, `_config.yml`)
    and anything under a dependency directory are skipped, at any depth.
    """
    for segment in rel_path.split("/"):
        if not segment:
            continue
        if segment.startswith((".", "_")):
            return True
        if segment in DEPENDENCY_DIRS:
            return True
    return False


def output_relpath(rel_path: str) -> str:
    """Map a source path to its output path (`.md` -> `.html`, `.less` -> `.css`)."""
    stem, suffix = posixpath.splitext(rel_path)
    target = _OUTPUT_SUFFIXES.get(suffix.lower())
    if target is None:
        return rel_path
    return stem + target


def page_url(rel_path: str) -> str:
    stem, suffix = posixpath.splitext(rel_path)
    if suffix.lower() == ".md":
        return stem + ".html"
    return rel_path


def root_prefix(rel_path: str) -> str:
    # one step up per directory level
    return "../" * rel_path.count("/")
