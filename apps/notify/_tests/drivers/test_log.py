"""Tests for LogNotifyDriver."""

import io

from django.test import SimpleTestCase

from apps.notify.drivers import get_driver
from apps.notify.drivers.base import NotificationMessage
from apps.notify.drivers.log import LogNotifyDriver


class LogNotifyDriverTests(SimpleTestCase):
    def test_writes_to_stream(self):
        stream = io.StringIO()
        result = LogNotifyDriver().send(NotificationMessage(text="hello"), {"stream": stream})

        self.assertTrue(result["success"])
        self.assertEqual(stream.getvalue(), "hello\n")

    def test_logs_without_stream(self):
        with self.assertLogs("apps.notify.drivers.log", level="INFO") as logs:
            result = LogNotifyDriver().send(NotificationMessage(text="hello"), {})

        self.assertTrue(result["success"])
        self.assertIn("hello", logs.output[0])

    def test_rejects_unwritable_stream(self):
        result = LogNotifyDriver().send(NotificationMessage(text="x"), {"stream": object()})
        self.assertFalse(result["success"])

    def test_registry_lookup(self):
        self.assertIsInstance(get_driver("log"), LogNotifyDriver)
        with self.assertRaises(ValueError):
            get_driver("pigeon")
