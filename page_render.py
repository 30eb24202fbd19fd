"""Render linked pages through jinja2 layouts."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    TemplateError,
    TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup

from page_metadata import Page
from site_errors import RenderError
from site_tree import SiteTree

# Used when the site has no layouts/default.html of its own
DEFAULT_LAYOUT_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{% if title %}{{ title }}{% if site_title %} · {{ site_title }}{% endif %}{% else %}{{ site_title }}{% endif %}</title>
    <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css" rel="stylesheet" integrity="sha384-QWTKZyjpPEjISv5WaRU9OFeRpok6YctnYmDr5pNlyT2bRjXh0JMhjY6hW+ALEwIH" crossorigin="anonymous">
    <style>
      :root {
        --cm-body-bg: #fcfcfc;
        --cm-text: #222;
        --cm-muted: #6c757d;
        --cm-border: #e5e5e5;
      }
      body { background: var(--cm-body-bg); color: var(--cm-text); }
      .layout-container {
        display: grid;
        grid-template-columns: 240px 1fr 240px;
        column-gap: 2rem;
        min-height: 100vh;
      }
      .sidebar {
        border-right: 1px solid var(--cm-border);
        position: sticky;
        top: 0;
        height: 100vh;
        overflow: auto;
        background: #fafafa;
        padding: 1.25rem;
      }
      .sidebar .nav-link { padding: .2rem .4rem; color: var(--cm-text); }
      .sidebar .nav-link.active { background: #e7effa; border-radius: .25rem; font-weight: 600; }
      .content {
        padding: 3rem 4rem;
        max-width: 980px;
        line-height: 1.7;
        background: white;
        border: 1px solid var(--cm-border);
        border-radius: 8px;
        margin: 2.5rem 0 5rem 0;
      }
      .content img { max-width: 100%; height: auto; }
      .rightbar { position: sticky; top: 2.5rem; align-self: start; margin: 2.5rem 0; }
      .rightbar h2 { font-size: 1rem; text-transform: uppercase; color: var(--cm-muted); }
      a { text-decoration: none; }
      a:hover { text-decoration: underline; }
    </style>
  </head>
  <body>
    {%- macro nav_items(node) %}
      {%- for child in site.children_of(node) %}
      <li class="nav-item">
        <a class="nav-link{% if child.path == page.path %} active{% endif %}" href="{{ root }}{{ child.url }}">{{ child.title or child.path }}</a>
        {%- if child.children %}
        <ul class="list-unstyled ms-3 my-1">{{ nav_items(child) }}</ul>
        {%- endif %}
      </li>
      {%- endfor %}
    {%- endmacro %}
    <div class="layout-container">
      <aside class="sidebar">
        {%- if site.root_page %}
        <a class="btn btn-outline-primary w-100 mb-2" href="{{ root }}{{ site.root_page.url }}">{{ site.root_page.title or "Home" }}</a>
        <ul class="list-unstyled">{{ nav_items(site.root_page) }}</ul>
        {%- endif %}
      </aside>
      <main class="content">
        {%- if ancestors|length > 1 %}
        <nav aria-label="breadcrumb">
          <ol class="breadcrumb">
            {%- for crumb in ancestors[:-1] %}
            <li class="breadcrumb-item"><a href="{{ root }}{{ crumb.url }}">{{ crumb.title or crumb.path }}</a></li>
            {%- endfor %}
            <li class="breadcrumb-item active" aria-current="page">{{ title or page.path }}</li>
          </ol>
        </nav>
        {%- endif %}
        {%- if title %}
        <h1 class="h3"{% if page.title_anchor %} id="{{ page.title_anchor }}"{% endif %}>{{ title }}</h1>
        <hr />
        {%- endif %}
        {{ content }}
        {%- if previous or next %}
        <nav class="d-flex justify-content-between mt-5 pt-3 border-top">
          <span>{% if previous %}<a href="{{ root }}{{ previous.url }}" rel="prev">&larr; {{ previous.title or previous.path }}</a>{% endif %}</span>
          <span>{% if next %}<a href="{{ root }}{{ next.url }}" rel="next">{{ next.title or next.path }} &rarr;</a>{% endif %}</span>
        </nav>
        {%- endif %}
      </main>
      {%- if toc.count("<a ") >= 2 %}
      <aside class="rightbar"><h2>On this page</h2><div class="toc">{{ toc }}</div></aside>
      {%- endif %}
    </div>
  </body>
</html>
"""


class LayoutRenderer:
    """Looks up `<layout>.html` in the site's layouts folder, then the built-in default."""

    def __init__(self, layouts_dir: Optional[Path] = None, site_title: str = ""):
        loaders = []
        if layouts_dir is not None and layouts_dir.is_dir():
            loaders.append(FileSystemLoader(str(layouts_dir)))
        loaders.append(DictLoader({"default.html": DEFAULT_LAYOUT_HTML}))
        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html", "htm", "xml"]),
            keep_trailing_newline=True,
        )
        self.site_title = site_title

    @staticmethod
    def template_name(layout: str) -> str:
        return layout if layout.endswith((".html", ".htm")) else f"{layout}.html"

    def context(self, tree: SiteTree, page: Page) -> Dict[str, Any]:
        """Template variables: front matter keys first, computed fields on top."""
        context: Dict[str, Any] = dict(page.metadata)
        context.update(
            page=page,
            content=Markup(page.content),
            toc=Markup(page.toc),
            title=page.title,
            url=page.url,
            root=page.root_prefix,
            metadata=page.metadata,
            parent=tree.parent_of(page),
            children=tree.children_of(page),
            natural_children=tree.natural_children_of(page),
            ancestors=tree.ancestors_of(page),
            previous=tree.previous_of(page),
            next=tree.next_of(page),
            site=tree,
            site_title=self.site_title,
        )
        return context

    def render(self, tree: SiteTree, page: Page) -> str:
        name = self.template_name(page.layout)
        try:
            template = self.env.get_template(name)
            return template.render(self.context(tree, page))
        except TemplateNotFound as exc:
            raise RenderError(page.path, f"layout '{page.layout}' not found ({exc.name})") from exc
        except TemplateError as exc:
            raise RenderError(page.path, f"template error in '{name}': {exc}") from exc
