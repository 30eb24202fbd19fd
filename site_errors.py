"""
Errors raised while building the site.

Every failure is fatal: the build aborts instead of shipping a partial site.
Errors tied to a source file carry its path and put it first in the message.
"""

from __future__ import annotations


class BuildError(Exception):
    """Base class for all build failures."""


class ConfigurationError(BuildError):
    """Invalid site configuration or page-structure declaration."""


class ChildOrderError(ConfigurationError):
    """An explicit `children` list names something that is not a natural child."""

    def __init__(self, parent: str, child: str, reason: str = "does not match any page under it"):
        self.parent = parent
        self.child = child
        super().__init__(f"{parent}: child '{child}' {reason}")


class SourceError(BuildError):
    """A failure attributed to one source file."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class ParseError(SourceError):
    """Malformed front matter or Markdown."""


class TransformError(SourceError):
    """A collaborator (stylesheet compiler, template engine) failed on a file."""


class StylesheetError(TransformError):
    pass


class RenderError(TransformError):
    pass
