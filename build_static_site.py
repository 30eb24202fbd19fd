#!/usr/bin/env python3
"""
Static site generator for a folder of Markdown pages.

Features:
- Converts every .md file under the source folder to .html, through a jinja2 layout
- Compiles .less stylesheets to .css; copies all other assets as-is
- Preserves directory structure; skips dotfiles, _underscored entries and node_modules
- Builds a page tree from paths (folder index.md pages own their siblings),
  with optional `children:` ordering in front matter, breadcrumbs and previous/next links

Usage:
  python build_static_site.py --input ./docs
  python build_static_site.py --input ./docs --output ./public --serve

Two phases: the walk collects every page first, then the tree is linked,
then pages are rendered. Rendering never starts before the tree is complete.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import shutil
import stat
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml

from page_metadata import Page, extract_page
from page_render import LayoutRenderer
from site_errors import BuildError, ConfigurationError
from site_paths import is_ignored, output_relpath
from site_tree import SiteTree, build_site_tree
from transforms import Transform, compile_stylesheet, transform_for

logger = logging.getLogger(__name__)

CONFIG_FILE = "_config.yml"
DEFAULT_OUTPUT = "_site"
DEFAULT_LAYOUTS = "layouts"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8000

_CONFIG_KEYS = {"output", "layouts", "title", "host", "port"}


# -- configuration --
@dataclasses.dataclass(frozen=True)
class SiteConfig:
    source_dir: Path
    output_dir: Path
    layouts_dir: Path
    site_title: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"{path}: invalid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping, got {type(data).__name__}")
    unknown = sorted(set(data) - _CONFIG_KEYS)
    if unknown:
        raise ConfigurationError(f"{path}: unknown setting(s): {', '.join(unknown)}")
    return data


def load_config(
    source_dir: Path,
    output: Optional[Path] = None,
    layouts: Optional[Path] = None,
    title: Optional[str] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> SiteConfig:
    """Merge `<source>/_config.yml` with explicit overrides (overrides win).

    Relative paths from the config file resolve against the source folder.
    """
    source_dir = source_dir.expanduser().resolve()
    if not source_dir.is_dir():
        raise ConfigurationError(f"Input directory not found: {source_dir}")

    settings = _read_config_file(source_dir / CONFIG_FILE)

    def _path(value: Any, default: str) -> Path:
        candidate = Path(value if value is not None else default).expanduser()
        if not candidate.is_absolute():
            candidate = source_dir / candidate
        return candidate.resolve()

    output_dir = output.expanduser().resolve() if output is not None else _path(settings.get("output"), DEFAULT_OUTPUT)
    layouts_dir = layouts.expanduser().resolve() if layouts is not None else _path(settings.get("layouts"), DEFAULT_LAYOUTS)

    raw_port = port if port is not None else settings.get("port", DEFAULT_PORT)
    try:
        port_number = int(raw_port)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"port must be an integer, got {raw_port!r}") from exc

    return SiteConfig(
        source_dir=source_dir,
        output_dir=output_dir,
        layouts_dir=layouts_dir,
        site_title=title if title is not None else str(settings.get("title") or ""),
        host=host if host is not None else str(settings.get("host") or DEFAULT_HOST),
        port=port_number,
    )


# -- output --
class OutputWriter:
    """Writes into a freshly wiped output root, mirroring source paths."""

    def __init__(self, output_root: Path, source_root: Optional[Path] = None):
        self.output_root = output_root
        self.source_root = source_root

    def reset(self) -> None:
        """Remove the output root entirely and recreate it."""
        if self.source_root is not None:
            source = self.source_root.resolve()
            output = self.output_root.resolve()
            if output == source or output in source.parents:
                raise ConfigurationError(f"Refusing to wipe {output}: it contains the source folder")

        if self.output_root.exists():
            def _handle_remove_readonly(func, path, exc_info):  # clear read-only then retry
                os.chmod(path, stat.S_IWRITE)
                func(path)
            if sys.version_info >= (3, 12):
                shutil.rmtree(self.output_root, onexc=_handle_remove_readonly)
            else:
                shutil.rmtree(self.output_root, onerror=_handle_remove_readonly)
        self.output_root.mkdir(parents=True, exist_ok=True)

    def make_dir(self, rel_path: str) -> None:
        (self.output_root / rel_path).mkdir(parents=True, exist_ok=True)

    def write_text(self, rel_path: str, text: str) -> Path:
        target = self.output_root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        return target

    def copy_file(self, src: Path, rel_path: str) -> Path:
        target = self.output_root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, target)
        return target


# -- phase 1: walk and collect --
def walk_source(source_root: Path, exclude: Tuple[Path, ...] = ()) -> Iterator[Tuple[str, Path, bool]]:
    """Yield (relative POSIX path, absolute path, is_dir) for every accepted entry, sorted."""
    excluded = {p.resolve() for p in exclude}
    for dirpath, dirnames, filenames in os.walk(source_root):
        current_dir = Path(dirpath)
        kept = []
        for name in sorted(dirnames):
            full = current_dir / name
            rel = full.relative_to(source_root).as_posix()
            if is_ignored(rel) or full.resolve() in excluded:
                continue
            kept.append(name)
            yield rel, full, True
        dirnames[:] = kept

        for name in sorted(filenames):
            full = current_dir / name
            rel = full.relative_to(source_root).as_posix()
            if is_ignored(rel):
                continue
            yield rel, full, False


def collect_pages(config: SiteConfig, writer: OutputWriter) -> List[Page]:
    """Walk the source tree: copy assets, compile stylesheets, and parse Markdown pages."""
    pages: List[Page] = []
    counts = {Transform.MARKDOWN: 0, Transform.STYLESHEET: 0, Transform.COPY: 0}

    for rel, path, is_dir in walk_source(config.source_dir, exclude=(config.output_dir, config.layouts_dir)):
        if is_dir:
            writer.make_dir(rel)
            continue

        kind = transform_for(rel)
        counts[kind] += 1
        if kind is Transform.MARKDOWN:
            logger.debug("Parsing %s", rel)
            pages.append(extract_page(rel, path.read_text(encoding="utf-8")))
        elif kind is Transform.STYLESHEET:
            writer.write_text(output_relpath(rel), compile_stylesheet(path, rel))
        else:
            logger.debug("Copying %s", rel)
            writer.copy_file(path, rel)

    logger.info(
        "Collected %d page(s), compiled %d stylesheet(s), copied %d file(s)",
        counts[Transform.MARKDOWN],
        counts[Transform.STYLESHEET],
        counts[Transform.COPY],
    )
    return pages


# -- phase 2: render --
def render_pages(tree: SiteTree, renderer: LayoutRenderer, writer: OutputWriter) -> None:
    for page in tree:
        logger.debug("Rendering %s with layout %s", page.path, page.layout)
        writer.write_text(page.url, renderer.render(tree, page))


def build_site(config: SiteConfig) -> SiteTree:
    """Run a full build and return the linked site tree."""
    writer = OutputWriter(config.output_dir, source_root=config.source_dir)
    writer.reset()

    pages = collect_pages(config, writer)
    tree = build_site_tree(pages)

    renderer = LayoutRenderer(config.layouts_dir, site_title=config.site_title)
    render_pages(tree, renderer, writer)
    logger.info("Rendered %d page(s); %d in reading order", len(tree), len(tree.sequence))
    return tree


# -- CLI --
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a static site from a folder of Markdown pages.")
    parser.add_argument("--input", type=Path, default=Path("."), help="Source folder (default: current directory)")
    parser.add_argument("--output", type=Path, default=None, help=f"Output folder (default: <input>/{DEFAULT_OUTPUT})")
    parser.add_argument("--layouts", type=Path, default=None, help=f"Layouts folder (default: <input>/{DEFAULT_LAYOUTS})")
    parser.add_argument("--title", type=str, default=None, help="Optional site title appended to page titles")
    parser.add_argument("--serve", action="store_true", help="Serve the output folder after building")
    parser.add_argument("--host", type=str, default=None, help=f"Preview server host (default: {DEFAULT_HOST})")
    parser.add_argument("--port", type=int, default=None, help=f"Preview server port (default: {DEFAULT_PORT})")
    parser.add_argument("--open", action="store_true", help="Open a browser when serving")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every file processed")
    return parser.parse_args(argv)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = load_config(
            args.input,
            output=args.output,
            layouts=args.layouts,
            title=args.title,
            host=args.host,
            port=args.port,
        )
        build_site(config)
    except (BuildError, OSError) as exc:
        logger.error("Build failed: %s", exc)
        raise SystemExit(f"Build failed: {exc}") from exc

    logger.info("Site generated at: %s", config.output_dir)

    if args.serve:
        from serve import serve_site

        return serve_site(config.output_dir, host=config.host, port=config.port, open_browser=args.open)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
