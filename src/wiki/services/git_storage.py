"""Git-based content store for wiki pages and raw files."""

import logging
import mimetypes
import os
import posixpath
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path

import frontmatter
from django.conf import settings

from .rendering import RenderedPage, render_page
from .search import SearchHit

logger = logging.getLogger(__name__)

# Page format name -> file extension used when writing pages
PAGE_FORMATS = {
    "markdown": "md",
    "txt": "txt",
}

# File extension -> page format name used when reading pages
EXTENSION_FORMATS = {
    "md": "markdown",
    "mkd": "markdown",
    "mkdn": "markdown",
    "markdown": "markdown",
    "txt": "txt",
}

DEFAULT_AUTHOR_NAME = "Anonymous"
DEFAULT_AUTHOR_EMAIL = "anon@anon.com"

MAX_COMMIT_MESSAGE_LENGTH = 1000

_write_locks: dict[str, threading.Lock] = {}
_write_locks_guard = threading.Lock()


class InvalidPathError(ValueError):
    """Raised when a page path contains invalid characters."""

    pass


class DuplicatePageError(ValueError):
    """Raised when a write would overwrite a different existing page."""

    pass


class GitOperationError(RuntimeError):
    """Raised when a git command fails."""

    pass


def validate_path(path: str) -> str:
    """Validate and normalize a repository path.

    Raises InvalidPathError if path contains directory traversal or invalid characters.
    """
    if not path:
        raise InvalidPathError("Path cannot be empty")

    if "\x00" in path:
        raise InvalidPathError("Path cannot contain null bytes")

    path = path.strip("/")

    if ".." in path.split("/"):
        raise InvalidPathError("Path cannot contain '..'")

    if not path:
        raise InvalidPathError("Path cannot be empty")

    return path


def normalize_dir(directory: str | None) -> str | None:
    """Normalize a directory constraint.

    ``None`` means "no constraint"; the root marker ``/`` becomes ``""``.
    """
    if directory is None:
        return None
    if "\x00" in directory or ".." in directory.split("/"):
        raise InvalidPathError(f"Invalid directory: {directory!r}")
    return "/".join(part for part in directory.split("/") if part)


def validate_commit_message(message: str) -> str:
    """Strip and validate a commit message."""
    message = (message or "").strip()
    if not message:
        raise ValueError("Commit message cannot be empty")
    if len(message) > MAX_COMMIT_MESSAGE_LENGTH:
        raise ValueError(f"Commit message too long (max {MAX_COMMIT_MESSAGE_LENGTH} characters)")
    if "\x00" in message:
        raise ValueError("Commit message contains invalid characters")
    return message


def canonical_name(name: str) -> str:
    """Canonical form used to compare page names with file names."""
    return name.replace(" ", "-").lower()


def page_filename(name: str, fmt: str) -> str:
    """Return the file name a page of ``fmt`` is stored under."""
    if fmt not in PAGE_FORMATS:
        raise ValueError(f"Unknown page format: {fmt}")
    if not name or "/" in name or "\x00" in name or name in (".", ".."):
        raise InvalidPathError(f"Invalid page name: {name!r}")
    return f"{name.replace(' ', '-')}.{PAGE_FORMATS[fmt]}"


@dataclass
class WikiPage:
    """A page at one immutable revision of the repository."""

    name: str
    directory: str
    path: str
    format: str
    raw_data: str
    version: str
    blob_sha: str = ""

    @property
    def url_path(self) -> str:
        """Path of the page without its extension, as used in URLs."""
        return posixpath.join(self.directory, self.name) if self.directory else self.name

    @property
    def metadata(self) -> dict:
        """Front matter of the page, if any."""
        post = frontmatter.loads(self.raw_data)
        return dict(post.metadata) if post.metadata else {}

    @property
    def content(self) -> str:
        """Page body without front matter."""
        return frontmatter.loads(self.raw_data).content

    @property
    def title(self) -> str:
        """Return the page title (from frontmatter or name)."""
        metadata = self.metadata
        if "title" in metadata:
            return str(metadata["title"])
        return self.name.replace("-", " ")


@dataclass
class WikiFile:
    """A raw file at one revision of the repository."""

    path: str
    raw_data: bytes
    version: str
    mime_type: str = "application/octet-stream"


@dataclass
class CommitInfo:
    """Commit metadata: message plus author identity."""

    message: str
    name: str | None = None
    email: str | None = None

    @property
    def author_name(self) -> str:
        return self.name or DEFAULT_AUTHOR_NAME

    @property
    def author_email(self) -> str:
        return self.email or DEFAULT_AUTHOR_EMAIL


def _write_lock(repo_path: Path) -> threading.Lock:
    key = str(repo_path.resolve())
    with _write_locks_guard:
        if key not in _write_locks:
            _write_locks[key] = threading.Lock()
        return _write_locks[key]


class GitStorageService:
    """Service for reading and committing wiki content in a Git repository.

    Reads go through the object database (``ls-tree``/``cat-file``) so that any
    commit can be addressed; writes go through the working tree of the
    configured branch.
    """

    def __init__(
        self,
        repo_path: Path | None = None,
        branch: str | None = None,
        base_path: str = "",
    ):
        self.repo_path = Path(repo_path or settings.WIKI_REPO_PATH)
        self.branch = branch or getattr(settings, "WIKI_REPO_BRANCH", "") or ""
        self.base_path = base_path
        self._commits: dict[str | None, str] = {}
        self._trees: dict[str, list[tuple[str, str, str]]] = {}

    # Low level

    def _env(self, env: dict | None = None) -> dict:
        """Environment for git calls, with discovery stopped at the repository directory."""
        env = dict(os.environ if env is None else env)
        env["GIT_CEILING_DIRECTORIES"] = str(self.repo_path.resolve().parent)
        return env

    def _run(self, *args: str, text: bool = True) -> subprocess.CompletedProcess:
        """Run a git command whose exit status the caller interprets."""
        try:
            return subprocess.run(
                ["git", *args],
                cwd=self.repo_path,
                capture_output=True,
                text=text,
                env=self._env(),
            )
        except OSError as e:
            logger.error("git %s could not run in %s: %s", args[0] if args else "", self.repo_path, e)
            raise GitOperationError(f"git {args[0] if args else ''} could not run") from e

    def _git(self, *args: str, env: dict | None = None, text: bool = True) -> subprocess.CompletedProcess:
        """Run a git command, raising GitOperationError on failure."""
        try:
            return subprocess.run(
                ["git", *args],
                cwd=self.repo_path,
                capture_output=True,
                text=text,
                check=True,
                env=self._env(env),
            )
        except OSError as e:
            logger.error("git %s could not run in %s: %s", args[0] if args else "", self.repo_path, e)
            raise GitOperationError(f"git {args[0] if args else ''} could not run") from e
        except subprocess.CalledProcessError as e:
            logger.error(
                "git %s failed: %s (stdout: %s, stderr: %s)",
                args[0] if args else "",
                e,
                e.stdout,
                e.stderr,
            )
            raise GitOperationError(f"git {args[0] if args else ''} failed") from e

    def _ref(self) -> str:
        return self.branch or "HEAD"

    def resolve_commit(self, version: str | None = None) -> str | None:
        """Return the commit sha for ``version`` (or the branch head), or None.

        None means the revision does not exist (an unknown version, or a
        branch without commits). A missing or broken repository raises
        GitOperationError instead.
        """
        if version in self._commits:
            return self._commits[version]

        ref = version or self._ref()
        result = self._run("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
        if result.returncode != 0:
            self._git("rev-parse", "--git-dir")
            return None

        commit = result.stdout.strip()
        if not commit:
            return None
        self._commits[version] = commit
        self._commits[commit] = commit
        return commit

    def _forget_head(self) -> None:
        self._commits.pop(None, None)

    def _list_tree(self, commit: str, path: str | None = None) -> list[tuple[str, str, str]]:
        """List (type, sha, path) entries of ``commit``, recursively.

        Full listings are kept per commit for the life of the service.
        """
        if path is None and commit in self._trees:
            return self._trees[commit]
        args = ["ls-tree", "-r", "-z", "--full-tree", commit]
        if path is not None:
            args = ["ls-tree", "-z", "--full-tree", commit, "--", path]
        output = self._git(*args).stdout
        entries = []
        for record in output.split("\x00"):
            if not record:
                continue
            meta, entry_path = record.split("\t", 1)
            _mode, entry_type, sha = meta.split(" ")
            entries.append((entry_type, sha, entry_path))
        if path is None:
            self._trees[commit] = entries
        return entries

    def _read_blob(self, sha: str) -> bytes:
        return self._git("cat-file", "blob", sha, text=False).stdout

    # Repository lifecycle

    def ensure_repo_exists(self) -> None:
        """Ensure the Git repository exists, clone if needed.

        Raises GitOperationError when the clone fails.
        """
        if not self.repo_path.exists():
            self.repo_path.mkdir(parents=True, exist_ok=True)

        if not (self.repo_path / ".git").exists():
            repo_url = settings.WIKI_REPO_URL
            if repo_url:
                clone_cmd = ["clone"]
                if self.branch:
                    clone_cmd.extend(["--branch", self.branch])
                clone_cmd.extend([repo_url, "."])
                self._git(*clone_cmd)
                logger.info("Cloned %s into %s", repo_url, self.repo_path)
            else:
                # Initialize empty repo for local development
                self._git("init")

    # Reads

    def resolve_page(
        self,
        name: str | None,
        directory: str | None = None,
        exact: bool = True,
        version: str | None = None,
    ) -> WikiPage | None:
        """Find a page by name and directory at a revision.

        With ``exact`` the page must live directly in ``directory``; otherwise
        any directory below it matches (any directory at all when it is None).
        """
        if not name or "/" in name:
            return None

        checked_dir = normalize_dir(directory)
        commit = self.resolve_commit(version)
        if commit is None:
            return None

        target = canonical_name(name)
        for entry_type, sha, path in self._list_tree(commit):
            if entry_type != "blob":
                continue
            entry_dir, filename = posixpath.split(path)
            stem, ext = posixpath.splitext(filename)
            fmt = EXTENSION_FORMATS.get(ext.lstrip(".").lower())
            if fmt is None or canonical_name(stem) != target:
                continue
            if checked_dir is not None:
                if exact and entry_dir != checked_dir:
                    continue
                if not exact and checked_dir and not (
                    entry_dir == checked_dir or entry_dir.startswith(checked_dir + "/")
                ):
                    continue
            return WikiPage(
                name=stem,
                directory=entry_dir,
                path=path,
                format=fmt,
                raw_data=self._read_blob(sha).decode("utf-8", errors="replace"),
                version=commit,
                blob_sha=sha,
            )
        return None

    def resolve_file(self, path: str, version: str | None = None) -> WikiFile | None:
        """Find a raw file by its full repository path."""
        try:
            path = validate_path(path)
        except InvalidPathError:
            return None

        commit = self.resolve_commit(version)
        if commit is None:
            return None

        for entry_type, sha, entry_path in self._list_tree(commit, path):
            if entry_type == "blob" and entry_path == path:
                mime_type, _encoding = mimetypes.guess_type(path)
                return WikiFile(
                    path=path,
                    raw_data=self._read_blob(sha),
                    version=commit,
                    mime_type=mime_type or "application/octet-stream",
                )
        return None

    def search(self, query: str) -> list[SearchHit]:
        """Count case-insensitive occurrences of ``query`` per page at the branch head."""
        if not query.strip():
            return []

        commit = self.resolve_commit()
        if commit is None:
            return []

        result = self._run("grep", "-c", "-i", "-F", "-e", query, commit, "--")
        # Exit status 1 means no matches
        if result.returncode == 1:
            return []
        if result.returncode != 0:
            logger.error("git grep failed for %r: %s", query, result.stderr)
            raise GitOperationError("git grep failed")

        hits = []
        prefix = f"{commit}:"
        for line in result.stdout.splitlines():
            if not line.startswith(prefix):
                continue
            path, _, count = line[len(prefix):].rpartition(":")
            stem, ext = posixpath.splitext(path)
            if ext.lstrip(".").lower() not in EXTENSION_FORMATS:
                continue
            hits.append(SearchHit(name=stem, count=int(count)))
        return hits

    def page_history(self, page: WikiPage, limit: int = 50) -> list[dict]:
        """Return the commits that touched ``page``, newest first."""
        limit = max(1, min(limit, 1000))
        commit = self.resolve_commit()
        if commit is None:
            return []

        output = self._git("log", f"-{limit}", "--pretty=format:%H|%ai|%an|%s", commit, "--", page.path).stdout

        changes = []
        for line in output.strip().split("\n"):
            parts = line.split("|", 3)
            if len(parts) == 4:
                changes.append(
                    {
                        "sha": parts[0],
                        "date": parts[1],
                        "author": parts[2],
                        "message": parts[3],
                    }
                )
        return changes

    def render(self, page: WikiPage) -> RenderedPage:
        """Format a page with links rooted at this service's base path."""
        return render_page(page, base_path=self.base_path)

    # Writes

    def _commit_env(self, commit: CommitInfo) -> dict:
        env = self._env()
        env.update(
            {
                "GIT_AUTHOR_NAME": commit.author_name,
                "GIT_AUTHOR_EMAIL": commit.author_email,
                "GIT_COMMITTER_NAME": commit.author_name,
                "GIT_COMMITTER_EMAIL": commit.author_email,
            }
        )
        return env

    def _commit(self, paths: list[str], commit: CommitInfo) -> str | None:
        """Stage ``paths`` and commit them. Returns the new sha, or None if nothing changed."""
        message = validate_commit_message(commit.message)
        self._git("add", "-A", "--", *paths)

        status = self._git("status", "--porcelain", "--", *paths)
        if not status.stdout.strip():
            return None

        self._git("commit", "-m", message, "--", *paths, env=self._commit_env(commit))
        self._forget_head()
        return self._git("rev-parse", "HEAD").stdout.strip()

    def write_page(
        self,
        name: str,
        directory: str | None,
        fmt: str,
        content: str,
        commit: CommitInfo,
    ) -> str | None:
        """Create a new page in ``directory``."""
        validate_commit_message(commit.message)
        directory = normalize_dir(directory) or ""
        path = posixpath.join(directory, page_filename(name, fmt)) if directory else page_filename(name, fmt)

        with _write_lock(self.repo_path):
            self._forget_head()
            if self.resolve_page(name, directory or "/", exact=True) is not None:
                raise DuplicatePageError(f"Page already exists: {name}")

            file_path = self.repo_path / path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
            return self._commit([path], commit)

    def update_page(
        self,
        page: WikiPage,
        name: str,
        fmt: str,
        content: str,
        commit: CommitInfo,
    ) -> str | None:
        """Replace ``page`` with new name, format and content as one commit."""
        validate_commit_message(commit.message)
        new_path = posixpath.join(page.directory, page_filename(name, fmt)) if page.directory else page_filename(name, fmt)

        with _write_lock(self.repo_path):
            self._forget_head()
            if new_path != page.path:
                if canonical_name(name) != canonical_name(page.name) and (
                    self.resolve_page(name, page.directory or "/", exact=True) is not None
                ):
                    raise DuplicatePageError(f"Page already exists: {name}")
                old_file = self.repo_path / page.path
                if old_file.exists():
                    old_file.unlink()

            file_path = self.repo_path / new_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")

            paths = [new_path] if new_path == page.path else [page.path, new_path]
            sha = self._commit(paths, commit)

        if sha:
            logger.info("Committed %s as %s", new_path, sha)
        return sha

    # Remote sync

    def _has_remote(self) -> bool:
        return bool(self._git("remote").stdout.strip())

    def push(self) -> bool:
        """Push committed changes to the remote. Returns False when there is no remote."""
        if not self._has_remote():
            return False

        push_cmd = ["push"]
        if self.branch:
            push_cmd.extend(["origin", self.branch])
        self._git(*push_cmd)
        return True

    def pull(self) -> bool:
        """Pull latest changes from the remote. Returns False when there is no remote."""
        if not self._has_remote():
            return False

        pull_cmd = ["pull", "--rebase"]
        if self.branch:
            pull_cmd.extend(["origin", self.branch])
        with _write_lock(self.repo_path):
            self._git(*pull_cmd)
            self._forget_head()
        return True


_repo_ready = False
_repo_ready_lock = threading.Lock()


def get_storage_service(base_path: str = "") -> GitStorageService:
    """Build a storage service for one request.

    ``base_path`` is the externally visible mount point of the wiki and is
    handed to the service directly. The repository is prepared once; a failed
    clone raises GitOperationError and is attempted again on the next call.
    """
    global _repo_ready
    service = GitStorageService(base_path=base_path)
    if not _repo_ready:
        with _repo_ready_lock:
            if not _repo_ready:
                service.ensure_repo_exists()
                _repo_ready = True
    return service


def reset_storage_service() -> None:
    """Forget that the repository was prepared (used by tests)."""
    global _repo_ready
    _repo_ready = False
