"""Page lookup on top of the content store."""

import posixpath

from .git_storage import GitStorageService, WikiPage
from .paths import RESERVED_SECTIONS

ROOT = "/"


def apply_page_dir(directory: str | None, page_file_dir: str | None) -> str:
    """Place ``directory`` under the configured page directory unless it already is."""
    page_dir = (page_file_dir or "").strip("/")
    directory = (directory or "").strip("/")

    if not page_dir or directory == page_dir or directory.startswith(page_dir + "/"):
        return directory or ROOT
    return posixpath.join(page_dir, directory) if directory else page_dir


def locate_page(
    storage: GitStorageService,
    name: str | None,
    directory: str | None = None,
    version: str | None = None,
    exact: bool = True,
) -> WikiPage | None:
    """Find a page, returning None when nothing matches.

    An exact lookup without a directory targets the repository root rather
    than leaving the directory unconstrained.
    """
    if not name:
        return None
    if exact and directory is None:
        directory = ROOT
    return storage.resolve_page(name, directory, exact=exact, version=version)


def find_sub_page(storage: GitStorageService, page: WikiPage, section: str) -> WikiPage | None:
    """Find the nearest ``_Header``/``_Footer``/``_Sidebar`` for a page.

    Looks in the page's own directory first and then in each parent up to
    the root, at the same revision as the page.
    """
    if section not in RESERVED_SECTIONS or page.name == section:
        return None

    directory = page.directory
    while True:
        sub_page = locate_page(storage, section, directory or ROOT, version=page.version)
        if sub_page is not None:
            return sub_page
        if not directory:
            return None
        directory = posixpath.dirname(directory)
