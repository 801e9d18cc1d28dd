"""Decide what a request path addresses: a page, a pinned revision, a raw file, or nothing."""

import logging
import re
from dataclasses import dataclass

from .git_storage import GitStorageService, InvalidPathError, WikiFile, WikiPage
from .locator import ROOT, apply_page_dir, locate_page
from .paths import ResolvedLocation, resolve_path

logger = logging.getLogger(__name__)

# Prefixes owned by the frontend's own static bundle
RESERVED_ASSET_RE = re.compile(r"^/?(javascript|css|images)")

VERSION_PATH_RE = re.compile(r"^/?(?P<path>.+?)/(?P<version>[0-9a-f]{40})$")

PAGE = "page"
VERSION = "version"
FILE = "file"
NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Resolution:
    """Outcome of dispatching one request path."""

    kind: str
    path: str
    location: ResolvedLocation | None = None
    page: WikiPage | None = None
    file: WikiFile | None = None
    version: str | None = None

    @property
    def found(self) -> bool:
        return self.kind != NOT_FOUND

    @property
    def editable(self) -> bool:
        return self.kind == PAGE


def is_reserved_asset(path: str) -> bool:
    return bool(RESERVED_ASSET_RE.match(path))


def split_version(path: str) -> tuple[str, str] | None:
    """Split ``notes/<40 hex>`` into ``("notes", "<40 hex>")``."""
    match = VERSION_PATH_RE.match(path)
    if match is None:
        return None
    return match["path"], match["version"]


class ResourceDispatcher:
    """Routes a request path through the page, file and not-found states."""

    def __init__(self, storage: GitStorageService, page_file_dir: str = ""):
        self.storage = storage
        self.page_file_dir = page_file_dir

    def dispatch(self, path: str) -> Resolution:
        if is_reserved_asset(path):
            return Resolution(kind=NOT_FOUND, path=path)

        pinned = split_version(path)
        if pinned is not None:
            return self.dispatch_version(*pinned)

        return self.dispatch_page_or_file(path)

    def _locate(self, location: ResolvedLocation, version: str | None = None) -> WikiPage | None:
        directory = apply_page_dir(location.directory or ROOT, self.page_file_dir)
        try:
            return locate_page(self.storage, location.name, directory, version=version, exact=True)
        except InvalidPathError:
            logger.info("Rejected invalid page path %r", location)
            return None

    def dispatch_version(self, path: str, version: str) -> Resolution:
        """Look a page up at a pinned revision; there is no raw file fallback."""
        location = resolve_path(path)
        page = self._locate(location, version=version)
        if page is None:
            return Resolution(kind=NOT_FOUND, path=path, location=location, version=version)
        return Resolution(kind=VERSION, path=path, location=location, page=page, version=version)

    def dispatch_page_or_file(self, path: str) -> Resolution:
        """Look a page up at the latest revision, then fall back to a raw file."""
        location = resolve_path(path)
        page = self._locate(location)
        if page is not None:
            return Resolution(kind=PAGE, path=path, location=location, page=page)

        wiki_file = self.storage.resolve_file(path)
        if wiki_file is not None:
            return Resolution(kind=FILE, path=path, location=location, file=wiki_file)

        return Resolution(kind=NOT_FOUND, path=path, location=location)
