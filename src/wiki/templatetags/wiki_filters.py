"""Custom template filters for wiki app."""

from datetime import datetime

from django import template
from django.utils.timesince import timesince

from wiki.services.paths import page_slug as slug_for_page

register = template.Library()


@register.filter
def page_slug(name: str) -> str:
    """URL slug of a page name.

    Usage in templates:
        {% load wiki_filters %}
        {{ base_path }}/{{ page.directory }}/{{ page.name|page_slug }}
    """
    return slug_for_page(name) or ""


@register.filter
def short_sha(sha: str) -> str:
    """Abbreviate a commit sha to 7 characters."""
    return (sha or "")[:7]


@register.filter
def commit_date(date_str: str) -> str:
    """Turn a git date ("2025-01-06 14:23:45 +0000") into "2 hours ago"."""
    if not date_str:
        return "Unknown"

    try:
        committed = datetime.strptime(date_str.strip(), "%Y-%m-%d %H:%M:%S %z")
    except ValueError:
        return date_str
    return f"{timesince(committed)} ago"
