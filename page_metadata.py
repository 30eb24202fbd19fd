"""
Turn one Markdown source file into a Page record.

Handles:
- YAML front matter (fenced by `---` at the top of the file)
- the legacy `<!--- layout: name -->` comment
- heading anchors: every heading gets a slug id, de-duplicated per document
- title from front matter, else from the first <h1> (which is then removed from the body)
"""

from __future__ import annotations

import dataclasses
import html
import re
from typing import Any, Dict, Mapping, Optional, Tuple

import markdown
import yaml
from frontmatter.default_handlers import YAMLHandler
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markdown.util import ETX, STX

from site_errors import ParseError
from site_paths import page_url, root_prefix

DEFAULT_LAYOUT = "default"

_LAYOUT_COMMENT = re.compile(r"<!---\s*layout:\s*([\w.-]+)\s*-->\n?")
_FIRST_H1 = re.compile(r"<h1\b([^>]*)>(.*?)</h1>\n?", re.S)
_ID_ATTR = re.compile(r'\bid="([^"]*)"')
_TAG = re.compile(r"<[^>]+>")

_PAREN_SUFFIX = re.compile(r"\s*\([^()]*\)\s*$")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_STASHED = re.compile(f"{STX}[^{ETX}]*{ETX}")
_HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}


@dataclasses.dataclass(frozen=True)
class Page:
    """One Markdown source file. Relations are source keys, filled in by the tree builder."""

    path: str
    metadata: Dict[str, Any]
    content: str
    layout: str
    url: str
    root_prefix: str
    title: Optional[str] = None
    title_anchor: Optional[str] = None
    toc: str = ""
    parent: Optional[str] = None
    natural_children: Tuple[str, ...] = ()
    children: Tuple[str, ...] = ()
    ancestors: Tuple[str, ...] = ()
    previous: Optional[str] = None
    next: Optional[str] = None


# -- heading slugs --
def slugify_heading(text: str) -> str:
    """Slug for a heading: drop a trailing "(...)", lowercase, hyphenate non-alphanumerics."""
    text = _PAREN_SUFFIX.sub("", text)
    slug = _NON_ALNUM.sub("-", text.lower()).strip("-")
    return slug or "section"


def next_slug(text: str, seen: Mapping[str, int]) -> Tuple[str, Dict[str, int]]:
    """Return the anchor for `text` and the updated per-document counters.

    The first use of a slug is bare; repeats get `2`, `3`, ... appended.
    """
    base = slugify_heading(text)
    count = seen.get(base, 0) + 1
    updated = dict(seen)
    updated[base] = count
    if count == 1:
        return base, updated
    return f"{base}{count}", updated


class HeadingAnchorProcessor(Treeprocessor):
    def run(self, root):
        seen: Dict[str, int] = {}
        for el in root.iter():
            if el.tag not in _HEADING_TAGS or "id" in el.attrib:
                continue
            text = _STASHED.sub("", "".join(el.itertext()))
            slug, seen = next_slug(text, seen)
            el.set("id", slug)


class HeadingAnchorExtension(Extension):
    """Assign slug ids to headings. Runs after attr_list (8) and before toc (5)."""

    def extendMarkdown(self, md):
        md.treeprocessors.register(HeadingAnchorProcessor(md), "heading_anchors", 6)


# -- front matter --
def split_front_matter(text: str, rel_path: str) -> Tuple[Dict[str, Any], str]:
    """Split YAML front matter from the Markdown body.

    A leading `---` that does not open a YAML mapping (a thematic break, say)
    leaves the whole text as body.
    """
    text = text.lstrip("\ufeff")
    handler = YAMLHandler()
    if not handler.detect(text):
        return {}, text
    try:
        fm, content = handler.split(text)
    except ValueError:
        # only one `---` line: nothing is fenced off
        return {}, text
    try:
        metadata = handler.load(fm)
    except yaml.YAMLError as exc:
        raise ParseError(rel_path, f"invalid front matter: {exc}") from exc
    if metadata is None:
        return {}, content.lstrip("\r\n")
    if not isinstance(metadata, dict):
        return {}, text
    return metadata, content.lstrip("\r\n")


def convert_markdown(md_text: str) -> Tuple[str, str]:
    """Convert markdown and also return the generated ToC HTML.

    A fresh converter per document keeps heading counters per document.
    """
    md = markdown.Markdown(extensions=["extra", "fenced_code", "tables", "toc", HeadingAnchorExtension()])
    content_html = md.convert(md_text)
    toc_html = getattr(md, "toc", "")
    return content_html, toc_html


def _take_title(content_html: str) -> Tuple[Optional[str], Optional[str], str]:
    """Pull the first <h1> out of the body; returns (title, its anchor id, remaining html)."""
    match = _FIRST_H1.search(content_html)
    if not match:
        return None, None, content_html
    title = html.unescape(_TAG.sub("", match.group(2))).strip()
    anchor = _ID_ATTR.search(match.group(1))
    return title, anchor.group(1) if anchor else None, content_html[: match.start()] + content_html[match.end():]


def extract_page(rel_path: str, text: str) -> Page:
    """Parse one Markdown file into a Page (relations left empty)."""
    metadata, body = split_front_matter(text, rel_path)

    content_html, toc_html = convert_markdown(body)

    # matched on the rendered html, where code blocks are already escaped
    legacy = _LAYOUT_COMMENT.search(content_html)
    if legacy:
        content_html = content_html[: legacy.start()] + content_html[legacy.end():]
        metadata.setdefault("layout", legacy.group(1))

    layout = metadata.get("layout") or DEFAULT_LAYOUT
    if not isinstance(layout, str):
        raise ParseError(rel_path, f"layout must be a string, got {layout!r}")
    metadata["layout"] = layout

    title = metadata.get("title")
    title_anchor = None
    if title is None:
        title, title_anchor, content_html = _take_title(content_html)
    else:
        title = str(title)

    return Page(
        path=rel_path,
        metadata=metadata,
        content=content_html,
        layout=layout,
        url=page_url(rel_path),
        root_prefix=root_prefix(rel_path),
        title=title,
        title_anchor=title_anchor,
        toc=toc_html,
    )
