"""
Build the site tree from a flat set of pages.

Relations live on each Page as source keys (an arena keyed by path), so the
finished tree has no object cycles and serializes trivially.

Steps, in order:
1. sort keys, with a trailing `index.md` stripped so a folder's index comes
   before its siblings and its own subfolder entries
2. compute each key's parent key from its path
3. link natural children in sorted-key order
4. apply explicit `children` ordering from metadata (short-names)
5. compute ancestors
6. one pre-order walk from the root gives the global previous/next chain
"""

from __future__ import annotations

import dataclasses
import logging
import posixpath
import types
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from page_metadata import Page
from site_errors import ChildOrderError, ConfigurationError

logger = logging.getLogger(__name__)

INDEX_NAME = "index.md"
_INDEX_SUFFIX = "/" + INDEX_NAME


def _strip_index_file(key: str) -> str:
    # "index.md" -> "", "guide/index.md" -> "guide/"
    if key == INDEX_NAME:
        return ""
    if key.endswith(_INDEX_SUFFIX):
        return key[: -len(INDEX_NAME)]
    return key


def _strip_index_dir(key: str) -> str:
    # "guide/index.md" -> "guide"; other keys unchanged
    if key.endswith(_INDEX_SUFFIX):
        return key[: -len(_INDEX_SUFFIX)]
    return key


def sort_keys(keys: Iterable[str]) -> List[str]:
    """Sort page keys so every `index.md` precedes its siblings and subfolders."""
    return sorted(keys, key=_strip_index_file)


def parent_key(key: str) -> str:
    """Key of the page expected to own `key`; the root is its own parent."""
    stem = _strip_index_dir(key)
    if "/" not in stem:
        return INDEX_NAME
    return posixpath.dirname(stem) + _INDEX_SUFFIX


def short_name(key: str) -> str:
    """Name used in `children` lists: the file stem, or the folder name for an index page."""
    return posixpath.splitext(posixpath.basename(_strip_index_dir(key)))[0]


@dataclasses.dataclass(frozen=True)
class SiteTree:
    """Read-only, fully linked page graph."""

    pages: Mapping[str, Page]
    root: Optional[str] = None
    sequence: Tuple[str, ...] = ()

    def __iter__(self) -> Iterator[Page]:
        return iter(self.pages.values())

    def __len__(self) -> int:
        return len(self.pages)

    def __contains__(self, key: object) -> bool:
        return key in self.pages

    def __getitem__(self, key: str) -> Page:
        return self.pages[key]

    def get(self, key: Optional[str]) -> Optional[Page]:
        if key is None:
            return None
        return self.pages.get(key)

    @property
    def root_page(self) -> Optional[Page]:
        return self.get(self.root)

    def parent_of(self, page: Page) -> Optional[Page]:
        return self.get(page.parent)

    def children_of(self, page: Page) -> List[Page]:
        return [self.pages[key] for key in page.children]

    def natural_children_of(self, page: Page) -> List[Page]:
        return [self.pages[key] for key in page.natural_children]

    def ancestors_of(self, page: Page) -> List[Page]:
        return [self.pages[key] for key in page.ancestors]

    def previous_of(self, page: Page) -> Optional[Page]:
        return self.get(page.previous)

    def next_of(self, page: Page) -> Optional[Page]:
        return self.get(page.next)

    def as_dict(self) -> Dict[str, Dict[str, Any]]:
        """Relations only, keyed by path."""
        return {
            key: {
                "parent": page.parent,
                "natural_children": list(page.natural_children),
                "children": list(page.children),
                "ancestors": list(page.ancestors),
                "previous": page.previous,
                "next": page.next,
            }
            for key, page in self.pages.items()
        }


def _explicit_children(key: str, declared: Any, natural: List[str]) -> Tuple[str, ...]:
    if isinstance(declared, str) or not isinstance(declared, (list, tuple)):
        raise ConfigurationError(f"{key}: 'children' must be a list of page names, got {declared!r}")

    by_name = {short_name(child): child for child in natural}
    resolved: List[str] = []
    for name in declared:
        name = str(name)
        child = by_name.get(name)
        if child is None:
            raise ChildOrderError(key, name)
        if child in resolved:
            raise ChildOrderError(key, name, "is listed more than once")
        resolved.append(child)
    return tuple(resolved)


def _reading_order(root: str, children: Mapping[str, Tuple[str, ...]]) -> List[str]:
    order: List[str] = []
    stack = [root]
    while stack:
        key = stack.pop()
        order.append(key)
        stack.extend(reversed(children[key]))
    return order


def build_site_tree(pages: Iterable[Page]) -> SiteTree:
    """Link a flat collection of pages into a SiteTree.

    Raises ConfigurationError for duplicate paths and ChildOrderError when an
    explicit `children` list names a page that is not a natural child.
    """
    by_key: Dict[str, Page] = {}
    for page in pages:
        if page.path in by_key:
            raise ConfigurationError(f"{page.path}: duplicate page path")
        by_key[page.path] = page

    if not by_key:
        return SiteTree(pages=types.MappingProxyType({}))

    keys = sort_keys(by_key)
    root = keys[0]

    parents: Dict[str, str] = {}
    natural: Dict[str, List[str]] = {key: [] for key in keys}
    for key in keys:
        candidate = parent_key(key)
        if candidate == key:
            continue
        if candidate not in by_key:
            if key != root:
                logger.warning("%s has no parent page (%s is missing); leaving it out of navigation", key, candidate)
            continue
        parents[key] = candidate
        natural[candidate].append(key)

    children: Dict[str, Tuple[str, ...]] = {}
    for key in keys:
        declared = by_key[key].metadata.get("children")
        if declared is None:
            children[key] = tuple(natural[key])
        else:
            children[key] = _explicit_children(key, declared, natural[key])

    ancestors: Dict[str, Tuple[str, ...]] = {}
    for key in keys:
        chain = [key]
        while chain[-1] in parents:
            chain.append(parents[chain[-1]])
        ancestors[key] = tuple(reversed(chain))

    sequence = _reading_order(root, children)
    previous: Dict[str, str] = {}
    following: Dict[str, str] = {}
    for before, after in zip(sequence, sequence[1:]):
        following[before] = after
        previous[after] = before

    linked = {
        key: dataclasses.replace(
            by_key[key],
            parent=parents.get(key),
            natural_children=tuple(natural[key]),
            children=children[key],
            ancestors=ancestors[key],
            previous=previous.get(key),
            next=following.get(key),
        )
        for key in keys
    }
    logger.debug("Site tree: %d pages, root %s, %d in reading order", len(linked), root, len(sequence))
    return SiteTree(pages=types.MappingProxyType(linked), root=root, sequence=tuple(sequence))
