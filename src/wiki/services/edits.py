"""Turn page edits into commits."""

import logging
from dataclasses import replace

from .git_storage import CommitInfo, GitStorageService, WikiPage

logger = logging.getLogger(__name__)

# Session key populated by authentication middleware ahead of the wiki
SESSION_AUTHOR_KEY = "wiki.author"


def build_commit_info(message: str | None, session) -> CommitInfo:
    """Build commit metadata for a request.

    The message comes from the request; author name and email only ever come
    from the session.
    """
    author = session.get(SESSION_AUTHOR_KEY) if session is not None else None
    author = author or {}
    return CommitInfo(
        message=message or "",
        name=author.get("name"),
        email=author.get("email"),
    )


def default_commit_message(page: WikiPage, name: str | None, fmt: str | None) -> str:
    return f"Updated {name or page.name} ({fmt or page.format})"


def update_wiki_page(
    storage: GitStorageService,
    page: WikiPage | None,
    content: str | None,
    commit: CommitInfo,
    name: str | None = None,
    fmt: str | None = None,
) -> bool:
    """Commit an edit of ``page``. Returns False when the edit changes nothing."""
    if page is None:
        return False
    if (content is None or page.raw_data == content) and page.format == fmt:
        logger.debug("Skipping no-op edit of %s", page.path)
        return False

    name = name or page.name
    fmt = fmt or page.format
    if content is None:
        content = page.raw_data
    if not commit.message.strip():
        commit = replace(commit, message=default_commit_message(page, name, fmt))

    storage.update_page(page, name, fmt, str(content), commit)
    return True
