"""Per-application advisory lock, kept in the Django cache.

Two mentions for the same app would otherwise race on the manifest commit
and on the status narration. The lock expires on its own after
DEPLOY_LOCK_TIMEOUT_SECONDS so a killed worker cannot wedge an app forever.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from django.conf import settings
from django.core.cache import cache

from apps.deploys.exceptions import DeploymentInProgress

logger = logging.getLogger(__name__)


class ApplicationLock:
    def __init__(self, application: str, owner: str, timeout: int | None = None):
        self.application = application
        self.owner = owner
        self.timeout = (
            timeout
            if timeout is not None
            else int(getattr(settings, "DEPLOY_LOCK_TIMEOUT_SECONDS", 900))
        )

    @property
    def key(self) -> str:
        return f"deploy-bot:lock:{self.application}"

    def acquire(self) -> bool:
        return cache.add(self.key, self.owner, timeout=self.timeout)

    def release(self) -> None:
        # Only the owner may release; an expired-and-retaken lock is left alone.
        if cache.get(self.key) == self.owner:
            cache.delete(self.key)

    def holder(self) -> str | None:
        return cache.get(self.key)


@contextmanager
def application_lock(
    application: str, owner: str, enabled: bool = True, timeout: int | None = None
) -> Iterator[ApplicationLock | None]:
    """Hold the lock for the block, or raise DeploymentInProgress."""
    if not enabled:
        yield None
        return

    lock = ApplicationLock(application, owner, timeout=timeout)
    if not lock.acquire():
        logger.info(f"Deploy lock for {application} held by run {lock.holder()}")
        raise DeploymentInProgress(
            f"a deployment of {application} is already in progress",
            narration=f"_A deployment of `{application}` is already in progress_",
        )
    try:
        yield lock
    finally:
        lock.release()
