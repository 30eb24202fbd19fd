"""Tests for page_render: context binding, escaping, layout errors."""

import dataclasses

import pytest

from page_metadata import extract_page
from page_render import LayoutRenderer
from site_errors import RenderError
from site_tree import build_site_tree


@pytest.fixture
def tree():
    return build_site_tree(
        [
            extract_page("index.md", "# Home\n\nWelcome.\n"),
            extract_page("guide/index.md", "---\ntitle: A & B\nauthor: Sam\n---\nGuide body with <b>html</b>.\n"),
            extract_page("guide/setup.md", "# Setup\n\n## Step\n\n## Step\n"),
        ]
    )


@pytest.fixture
def layouts(tmp_path):
    folder = tmp_path / "layouts"
    folder.mkdir()
    return folder


def test_custom_layout_binds_page_fields(tree, layouts):
    (layouts / "default.html").write_text(
        "{{ title }}|{{ content }}|{{ root }}|{{ parent.url if parent else '-' }}|"
        "{% for c in children %}{{ c.url }},{% endfor %}|{{ previous.url }}|{{ next.url }}|{{ author }}",
        encoding="utf-8",
    )
    renderer = LayoutRenderer(layouts)
    output = renderer.render(tree, tree["guide/index.md"])
    title, content, root, parent, children, previous, following, author = output.split("|")
    assert title == "A &amp; B"
    assert "<b>html</b>" in content
    assert root == "../"
    assert parent == "index.html"
    assert children == "guide/setup.html,"
    assert previous == "index.html"
    assert following == "guide/setup.html"
    assert author == "Sam"


def test_ancestors_and_site_title(tree, layouts):
    (layouts / "crumbs.html").write_text(
        "{{ site_title }}:{% for a in ancestors %}{{ a.path }}>{% endfor %}", encoding="utf-8"
    )
    setup = tree["guide/setup.md"]
    renderer = LayoutRenderer(layouts, site_title="Docs")
    page = dataclasses.replace(setup, layout="crumbs")
    assert renderer.render(tree, page) == "Docs:index.md>guide/index.md>guide/setup.md>"


def test_missing_layout_names_source_file(tree, layouts):
    page = tree["guide/setup.md"]
    page = dataclasses.replace(page, layout="nope")
    with pytest.raises(RenderError) as excinfo:
        LayoutRenderer(layouts).render(tree, page)
    assert excinfo.value.path == "guide/setup.md"
    assert "nope" in str(excinfo.value)


def test_template_error_names_source_file(tree, layouts):
    (layouts / "default.html").write_text("{% if %}broken", encoding="utf-8")
    with pytest.raises(RenderError) as excinfo:
        LayoutRenderer(layouts).render(tree, tree["index.md"])
    assert str(excinfo.value).startswith("index.md:")
    assert excinfo.value.__cause__ is not None


def test_builtin_default_layout(tree, tmp_path):
    renderer = LayoutRenderer(tmp_path / "missing-layouts", site_title="Docs")
    output = renderer.render(tree, tree["guide/setup.md"])
    assert "<title>Setup · Docs</title>" in output
    assert 'href="../guide/index.html" rel="prev"' in output
    assert 'rel="next"' not in output
    assert 'id="step"' in output and 'id="step2"' in output
    assert '<h1 class="h3" id="setup">Setup</h1>' in output
    assert 'href="#setup"' in output
    assert "On this page" in output
    assert "A &amp; B" in output


def test_template_name():
    assert LayoutRenderer.template_name("default") == "default.html"
    assert LayoutRenderer.template_name("post.html") == "post.html"


def test_front_matter_title_heading_has_no_id(tree, tmp_path):
    output = LayoutRenderer(tmp_path / "missing-layouts").render(tree, tree["guide/index.md"])
    assert '<h1 class="h3">A &amp; B</h1>' in output
