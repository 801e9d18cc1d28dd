"""Render stored pages to HTML."""

from dataclasses import dataclass

from django.core.cache import cache
from django.utils.html import escape
from markdown import Markdown
from markdown.extensions.wikilinks import WikiLinkExtension

from .paths import page_slug

RENDER_CACHE_PREFIX = "wiki_render"
RENDER_CACHE_TTL = 1800  # 30 minutes


@dataclass
class RenderedPage:
    """Formatted page body and its table of contents."""

    html: str
    toc: str = ""


def build_wiki_url(label: str, base: str, end: str) -> str:
    """Build the URL of a ``[[Wiki Link]]`` target."""
    return f"{base}{page_slug(label.strip())}{end}"


def render_markdown(content: str, base_path: str = "") -> RenderedPage:
    """Render markdown content to HTML."""
    md = Markdown(
        extensions=[
            "fenced_code",
            "tables",
            "toc",
            WikiLinkExtension(base_url=f"{base_path}/", end_url="", build_url=build_wiki_url),
        ],
    )
    html = md.convert(content)
    return RenderedPage(html=html, toc=md.toc)


def render_text(content: str, base_path: str = "") -> RenderedPage:
    return RenderedPage(html=f"<pre>{escape(content)}</pre>")


RENDERERS = {
    "markdown": render_markdown,
    "txt": render_text,
}


def render_page(page, base_path: str = "") -> RenderedPage:
    """Render a page, caching by blob sha and base path."""
    key = f"{RENDER_CACHE_PREFIX}:{page.format}:{page.blob_sha}:{base_path}"
    if page.blob_sha:
        cached = cache.get(key)
        if cached is not None:
            return cached

    renderer = RENDERERS.get(page.format, RENDERERS["txt"])
    rendered = renderer(page.content, base_path=base_path)

    if page.blob_sha:
        cache.set(key, rendered, RENDER_CACHE_TTL)
    return rendered
