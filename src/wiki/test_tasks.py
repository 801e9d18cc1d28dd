"""Tests for Celery tasks."""

from unittest.mock import MagicMock, patch

from wiki.tasks import sync_from_remote, sync_to_remote


class TestSyncToRemote:
    """Tests for sync_to_remote task."""

    @patch("wiki.tasks.get_storage_service")
    def test_pushes(self, mock_get_storage):
        mock_service = MagicMock()
        mock_service.push.return_value = True
        mock_get_storage.return_value = mock_service

        assert sync_to_remote() is True
        mock_service.push.assert_called_once_with()

    @patch("wiki.tasks.get_storage_service")
    def test_no_remote(self, mock_get_storage):
        mock_service = MagicMock()
        mock_service.push.return_value = False
        mock_get_storage.return_value = mock_service

        assert sync_to_remote() is False


class TestSyncFromRemote:
    """Tests for sync_from_remote task."""

    @patch("wiki.tasks.get_storage_service")
    def test_pulls(self, mock_get_storage):
        mock_service = MagicMock()
        mock_service.pull.return_value = True
        mock_get_storage.return_value = mock_service

        assert sync_from_remote() is True
        mock_service.pull.assert_called_once_with()
