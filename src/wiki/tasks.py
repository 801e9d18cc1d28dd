"""Celery tasks for syncing the wiki repository with its remote."""

import logging

from celery import shared_task

from .services.git_storage import get_storage_service

logger = logging.getLogger(__name__)


@shared_task
def sync_to_remote():
    """Push committed changes to the remote repository."""
    service = get_storage_service()
    pushed = service.push()
    if not pushed:
        logger.debug("No remote configured, skipping push")
    return pushed


@shared_task
def sync_from_remote():
    """Pull latest changes from the remote repository."""
    service = get_storage_service()
    return service.pull()
