"""Tests for the per-application deploy lock."""

from django.core.cache import cache
from django.test import SimpleTestCase

from apps.deploys.exceptions import DeploymentInProgress
from apps.deploys.locks import ApplicationLock, application_lock


class ApplicationLockTests(SimpleTestCase):
    def setUp(self):
        cache.clear()

    def tearDown(self):
        cache.clear()

    def test_second_acquire_fails(self):
        first = ApplicationLock("checkout", "run-1", timeout=60)
        second = ApplicationLock("checkout", "run-2", timeout=60)

        self.assertTrue(first.acquire())
        self.assertFalse(second.acquire())
        self.assertEqual(second.holder(), "run-1")

    def test_only_owner_releases(self):
        first = ApplicationLock("checkout", "run-1", timeout=60)
        first.acquire()

        ApplicationLock("checkout", "run-2", timeout=60).release()
        self.assertEqual(first.holder(), "run-1")

        first.release()
        self.assertIsNone(first.holder())

    def test_context_manager_releases_on_error(self):
        with self.assertRaises(RuntimeError):
            with application_lock("checkout", "run-1", timeout=60):
                raise RuntimeError("boom")

        self.assertIsNone(ApplicationLock("checkout", "x").holder())

    def test_context_manager_refuses_when_held(self):
        ApplicationLock("checkout", "run-1", timeout=60).acquire()

        with self.assertRaises(DeploymentInProgress) as ctx:
            with application_lock("checkout", "run-2", timeout=60):
                pass

        self.assertEqual(
            ctx.exception.narration, "_A deployment of `checkout` is already in progress_"
        )

    def test_disabled_lock_never_blocks(self):
        ApplicationLock("checkout", "run-1", timeout=60).acquire()

        with application_lock("checkout", "run-2", enabled=False) as lock:
            self.assertIsNone(lock)
