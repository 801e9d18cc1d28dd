"""Tests for page lookups."""

from unittest.mock import MagicMock, patch

import pytest

from wiki.services.locator import ROOT, apply_page_dir, find_sub_page, locate_page
from wiki.services.paths import RESERVED_SECTIONS


class TestApplyPageDir:
    @pytest.mark.parametrize(
        "directory, page_dir, expected",
        [
            ("/", "", "/"),
            (None, "", "/"),
            ("docs", "", "docs"),
            ("/", "wiki", "wiki"),
            ("docs", "wiki", "wiki/docs"),
            ("wiki", "wiki", "wiki"),
            ("wiki/docs", "/wiki/", "wiki/docs"),
            ("wikipedia", "wiki", "wiki/wikipedia"),
        ],
    )
    def test_forces_directory_under_page_dir(self, directory, page_dir, expected):
        assert apply_page_dir(directory, page_dir) == expected


class TestLocatePage:
    """locate_page normalizes the directory before asking the store."""

    @pytest.fixture
    def mock_storage(self):
        return MagicMock()

    def test_exact_without_directory_targets_root(self, mock_storage):
        locate_page(mock_storage, "Home")
        mock_storage.resolve_page.assert_called_once_with("Home", ROOT, exact=True, version=None)

    def test_fuzzy_without_directory_stays_unconstrained(self, mock_storage):
        locate_page(mock_storage, "Home", exact=False)
        mock_storage.resolve_page.assert_called_once_with("Home", None, exact=False, version=None)

    def test_passes_version_and_directory(self, mock_storage):
        locate_page(mock_storage, "Setup", "docs", version="a" * 40)
        mock_storage.resolve_page.assert_called_once_with("Setup", "docs", exact=True, version="a" * 40)

    def test_missing_name_is_not_found(self, mock_storage):
        assert locate_page(mock_storage, None) is None
        assert locate_page(mock_storage, "") is None
        mock_storage.resolve_page.assert_not_called()

    def test_not_found_is_none(self, mock_storage):
        mock_storage.resolve_page.return_value = None
        assert locate_page(mock_storage, "Missing") is None


class TestFindSubPage:
    """Section pages are looked up from the page directory upwards."""

    def test_locate_page_in_repository(self, repo, storage):
        repo.commit({"Home.md": "# Home", "docs/Home.md": "# Docs home"})
        assert locate_page(storage, "Home").path == "Home.md"
        assert locate_page(storage, "Home", "docs").path == "docs/Home.md"

    def test_nearest_section_wins(self, repo, storage):
        repo.commit(
            {
                "_Sidebar.md": "root sidebar",
                "docs/_Sidebar.md": "docs sidebar",
                "docs/guides/Setup.md": "setup",
                "Home.md": "home",
            }
        )
        setup = locate_page(storage, "Setup", "docs/guides")
        home = locate_page(storage, "Home")

        assert find_sub_page(storage, setup, "_Sidebar").raw_data == "docs sidebar"
        assert find_sub_page(storage, home, "_Sidebar").raw_data == "root sidebar"
        assert find_sub_page(storage, home, "_Footer") is None

    def test_section_at_page_revision(self, repo, storage):
        first = repo.commit({"Home.md": "home", "_Footer.md": "old footer"})
        repo.commit({"_Footer.md": "new footer"})

        pinned = locate_page(storage, "Home", version=first)
        assert find_sub_page(storage, pinned, "_Footer").raw_data == "old footer"

    def test_section_page_has_no_section_of_itself(self, repo, storage):
        repo.commit({"_Sidebar.md": "sidebar"})
        sidebar = locate_page(storage, "_Sidebar")
        assert find_sub_page(storage, sidebar, "_Sidebar") is None

    def test_only_reserved_sections(self, repo, storage):
        repo.commit({"Home.md": "home", "Sidebar.md": "not a section"})
        assert find_sub_page(storage, locate_page(storage, "Home"), "Sidebar") is None

    def test_sections_share_one_tree_listing(self, repo, storage):
        repo.commit({"_Sidebar.md": "sidebar", "docs/guides/Setup.md": "setup"})

        with (
            patch.object(storage, "_git", wraps=storage._git) as git_call,
            patch.object(storage, "_run", wraps=storage._run) as run_call,
        ):
            setup = locate_page(storage, "Setup", "docs/guides")
            for section in RESERVED_SECTIONS:
                find_sub_page(storage, setup, section)

        assert len([c for c in git_call.call_args_list if c.args[0] == "ls-tree"]) == 1
        assert len([c for c in run_call.call_args_list if c.args[0] == "rev-parse"]) == 1
