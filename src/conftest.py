"""Global pytest fixtures."""

import subprocess
import tempfile
from pathlib import Path

import pytest

from wiki.services.git_storage import GitStorageService, reset_storage_service


def git(repo_path: Path, *args: str) -> str:
    """Run git in ``repo_path`` and return stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo_path,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


class RepoBuilder:
    """Writes files into a test repository and commits them."""

    def __init__(self, path: Path):
        self.path = path

    def commit(self, files: dict[str, str | bytes], message: str = "Test commit") -> str:
        for name, content in files.items():
            file_path = self.path / name
            file_path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                file_path.write_bytes(content)
            else:
                file_path.write_text(content, encoding="utf-8")
        git(self.path, "add", "-A")
        git(self.path, "commit", "-m", message)
        return git(self.path, "rev-parse", "HEAD")

    def commit_count(self) -> int:
        result = subprocess.run(
            ["git", "rev-list", "--count", "HEAD"],
            cwd=self.path,
            capture_output=True,
            text=True,
        )
        return int(result.stdout.strip()) if result.returncode == 0 else 0

    def last_commit(self, fmt: str = "%an|%ae|%s") -> str:
        return git(self.path, "log", "-1", f"--pretty=format:{fmt}")


@pytest.fixture
def repo():
    """Create an initialized, empty git repository."""
    with tempfile.TemporaryDirectory() as tmpdir:
        repo_path = Path(tmpdir)
        git(repo_path, "init")
        git(repo_path, "config", "user.name", "Test")
        git(repo_path, "config", "user.email", "test@test.com")
        git(repo_path, "config", "commit.gpgsign", "false")
        yield RepoBuilder(repo_path)


@pytest.fixture
def storage(repo):
    """Storage service over the test repository."""
    return GitStorageService(repo_path=repo.path)


@pytest.fixture
def wiki_settings(settings, repo):
    """Point the wiki at the test repository."""
    settings.WIKI_REPO_PATH = repo.path
    settings.WIKI_REPO_URL = ""
    settings.WIKI_REPO_BRANCH = ""
    settings.WIKI_PAGE_FILE_DIR = ""
    settings.WIKI_UNIVERSAL_TOC = False
    reset_storage_service()
    yield settings
    reset_storage_service()


@pytest.fixture
def sample_page_content():
    """Sample markdown content for testing."""
    return """# Test Page

This is a test page with some content.

## Section 1

Some text in section 1.

## Section 2

Some text in section 2.
"""
