"""Request path resolution and page slug helpers."""

from dataclasses import dataclass

from django.utils.text import slugify

SEPARATOR = "/"

# Section pages rendered around a page; their names are never slugified
RESERVED_SECTIONS = frozenset({"_Header", "_Footer", "_Sidebar"})


@dataclass(frozen=True)
class ResolvedLocation:
    """A request path split into a page name and its directory."""

    name: str | None
    directory: str | None


def resolve_path(raw_path: str | None, *, directory_terminated: bool = False) -> ResolvedLocation:
    """Split a slash-delimited request path into (name, directory).

    ``"foo/bar"`` resolves to name ``"bar"`` in directory ``"foo"``. A path
    without separators has no directory. Empty or ``None`` paths come back
    unchanged with no directory.

    A trailing separator (``"a/b/"``) only names ``"b"`` when the caller sets
    ``directory_terminated``. Otherwise the whole path is a directory and the
    result has no name: ``name=None, directory="a/b"``.
    """
    if not raw_path:
        return ResolvedLocation(name=raw_path, directory=None)

    segments = raw_path.split(SEPARATOR)
    trailing = segments[-1] == ""
    segments = [segment for segment in segments if segment]
    if not segments:
        return ResolvedLocation(name=None, directory=None)

    if trailing and not directory_terminated:
        return ResolvedLocation(name=None, directory=SEPARATOR.join(segments))

    directory = SEPARATOR.join(segments[:-1]) or None
    return ResolvedLocation(name=segments[-1], directory=directory)


def slugify_name(name: str) -> str:
    """Lower-case a page name and turn whitespace into hyphens for URLs."""
    return slugify(name, allow_unicode=True)


def is_reserved_section(name: str | None) -> bool:
    """Whether ``name`` is one of the header/footer/sidebar section pages."""
    return name in RESERVED_SECTIONS


def page_slug(name: str | None) -> str | None:
    """URL slug for a page name; reserved section names pass through unchanged."""
    if name is None:
        return None
    if is_reserved_section(name):
        return name
    return slugify_name(name)
