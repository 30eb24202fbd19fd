from pathlib import Path

import pytest

from page_metadata import Page
from site_paths import page_url, root_prefix


@pytest.fixture
def write_tree(tmp_path):
    """Write {relative path: text} under tmp_path/src and return the source root."""

    def _write(files, root="src"):
        base = tmp_path / root
        base.mkdir(parents=True, exist_ok=True)
        for rel, text in files.items():
            target = base / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(text, bytes):
                target.write_bytes(text)
            else:
                target.write_text(text, encoding="utf-8")
        return base

    return _write


@pytest.fixture
def make_page():
    """Bare Page for tree tests, no Markdown conversion involved."""

    def _make(path: str, **metadata) -> Page:
        return Page(
            path=path,
            metadata=dict(metadata),
            content="",
            layout="default",
            url=page_url(path),
            root_prefix=root_prefix(path),
            title=Path(path).stem,
        )

    return _make
