"""Tests for page_metadata: front matter, heading anchors, titles."""

import pytest

from page_metadata import (
    DEFAULT_LAYOUT,
    convert_markdown,
    extract_page,
    next_slug,
    slugify_heading,
    split_front_matter,
)
from site_errors import ParseError


class TestSlugs:
    def test_slugify_heading(self):
        assert slugify_heading("Hello, World!") == "hello-world"
        assert slugify_heading("  Getting   Started  ") == "getting-started"
        assert slugify_heading("Install (optional)") == "install"
        assert slugify_heading("API v2.0") == "api-v2-0"

    def test_slugify_empty_falls_back(self):
        assert slugify_heading("!!!") == "section"

    def test_next_slug_counts_without_mutating_input(self):
        seen = {}
        first, seen2 = next_slug("Overview", seen)
        second, seen3 = next_slug("Overview", seen2)
        third, _ = next_slug("Overview", seen3)
        assert (first, second, third) == ("overview", "overview2", "overview3")
        assert seen == {}

    def test_parenthetical_variant_shares_base_slug(self):
        slug, seen = next_slug("Overview", {})
        slug2, _ = next_slug("Overview (again)", seen)
        assert slug2 == "overview2"


class TestHeadingAnchors:
    def test_duplicate_headings_get_numbered_ids(self):
        html, _ = convert_markdown("## Overview\n\ntext\n\n## Overview\n\n### Overview\n")
        assert 'id="overview"' in html
        assert 'id="overview2"' in html
        assert 'id="overview3"' in html

    def test_counters_reset_per_document(self):
        first, _ = convert_markdown("## Overview\n")
        second, _ = convert_markdown("## Overview\n")
        assert 'id="overview"' in first
        assert 'id="overview"' in second
        assert "overview2" not in second

    def test_explicit_id_is_kept(self):
        html, _ = convert_markdown("## Overview {#custom}\n")
        assert 'id="custom"' in html

    def test_toc_links_to_anchors(self):
        _, toc = convert_markdown("## One\n\n## Two\n")
        assert 'href="#one"' in toc
        assert 'href="#two"' in toc


class TestFrontMatter:
    def test_no_front_matter(self):
        metadata, body = split_front_matter("# Title\n", "index.md")
        assert metadata == {}
        assert body == "# Title\n"

    def test_front_matter_parsed(self):
        metadata, body = split_front_matter("---\ntitle: Hello\nchildren: [b, a]\n---\nBody\n", "index.md")
        assert metadata == {"title": "Hello", "children": ["b", "a"]}
        assert body == "Body\n"

    def test_empty_front_matter(self):
        metadata, body = split_front_matter("---\n---\nBody\n", "index.md")
        assert metadata == {}
        assert body == "Body\n"

    def test_malformed_yaml_names_file(self):
        with pytest.raises(ParseError) as excinfo:
            split_front_matter("---\ntitle: [unclosed\n---\nBody\n", "guide/setup.md")
        assert excinfo.value.path == "guide/setup.md"
        assert str(excinfo.value).startswith("guide/setup.md:")

    def test_non_mapping_front_matter_is_body(self):
        text = "---\n- a\n- b\n---\n"
        assert split_front_matter(text, "index.md") == ({}, text)

    def test_lone_leading_rule_is_body(self):
        text = "---\n\nJust text after a rule.\n"
        assert split_front_matter(text, "index.md") == ({}, text)


class TestExtractPage:
    def test_defaults(self):
        page = extract_page("guide/setup.md", "Some *text*.\n")
        assert page.layout == DEFAULT_LAYOUT
        assert page.metadata["layout"] == DEFAULT_LAYOUT
        assert page.url == "guide/setup.html"
        assert page.root_prefix == "../"
        assert page.title is None
        assert "<em>text</em>" in page.content
        assert page.parent is None
        assert page.children == ()

    def test_title_taken_from_first_h1(self):
        page = extract_page("index.md", "# Welcome &amp; hello\n\nBody\n\n# Second\n")
        assert page.title == "Welcome & hello"
        assert "Welcome" not in page.content
        assert "Second" in page.content

    def test_front_matter_title_keeps_h1(self):
        page = extract_page("index.md", "---\ntitle: From metadata\n---\n# Heading\n")
        assert page.title == "From metadata"
        assert "<h1" in page.content

    def test_legacy_layout_comment(self):
        page = extract_page("index.md", "<!--- layout: wide -->\n# Title\n")
        assert page.layout == "wide"
        assert "layout:" not in page.content

    def test_front_matter_layout_wins_over_comment(self):
        page = extract_page("index.md", "---\nlayout: post\n---\n<!--- layout: wide -->\nText\n")
        assert page.layout == "post"

    def test_non_string_layout_rejected(self):
        with pytest.raises(ParseError):
            extract_page("index.md", "---\nlayout: [a, b]\n---\nText\n")

    def test_custom_metadata_preserved(self):
        page = extract_page("index.md", "---\nauthor: Sam\ntags: [a, b]\n---\nText\n")
        assert page.metadata["author"] == "Sam"
        assert page.metadata["tags"] == ["a", "b"]

    def test_opening_thematic_breaks_are_markdown(self):
        page = extract_page("notes.md", "---\n\nSome text\n\n---\n\nMore\n")
        assert page.metadata == {"layout": DEFAULT_LAYOUT}
        assert "Some text" in page.content
        assert "More" in page.content
        assert "<hr" in page.content

    def test_layout_comment_inside_code_block_ignored(self):
        page = extract_page("index.md", "Text\n\n```\n<!--- layout: wide -->\n```\n")
        assert page.layout == DEFAULT_LAYOUT
        assert "&lt;!--- layout: wide --&gt;" in page.content

    def test_title_anchor_from_removed_h1(self):
        page = extract_page("index.md", "# Setup\n\nText\n\n## Next step\n")
        assert page.title == "Setup"
        assert page.title_anchor == "setup"
        assert 'href="#setup"' in page.toc

    def test_front_matter_title_has_no_anchor(self):
        page = extract_page("index.md", "---\ntitle: Setup\n---\n# Heading\n")
        assert page.title_anchor is None
