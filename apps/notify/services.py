"""Narration sink.

A `NotificationSink` is bound to one destination (a Slack thread, or the log)
for the lifetime of one orchestration run. `send()` is fire-and-forget: it
never raises and never retries, and callers never look at its outcome.
Delivery failures are logged so nothing disappears silently.
"""

from __future__ import annotations

import logging
from typing import Any, TextIO

from django.conf import settings

from apps.notify.drivers import BaseNotifyDriver, NotificationMessage, SlackNotifyDriver, get_driver

logger = logging.getLogger(__name__)


class NotificationSink:
    """One-way narration channel for a single run."""

    def __init__(
        self,
        driver: BaseNotifyDriver,
        config: dict[str, Any] | None = None,
        channel: str = "",
        thread_ts: str | None = None,
    ):
        self.driver = driver
        self.config = config or {}
        self.channel = channel
        self.thread_ts = thread_ts
        # Local transcript of what this run narrated, in order.
        self.transcript: list[str] = []

    @classmethod
    def for_slack(cls, channel: str, thread_ts: str | None = None) -> "NotificationSink":
        """Sink answering into a Slack thread using the bot token from settings."""
        config = {
            "token": getattr(settings, "SLACK_BOT_TOKEN", ""),
            "api_url": getattr(settings, "SLACK_API_URL", SlackNotifyDriver.DEFAULT_API_URL),
            "timeout": getattr(settings, "DEPLOY_HTTP_TIMEOUT_SECONDS", 15),
        }
        return cls(get_driver("slack"), config, channel=channel, thread_ts=thread_ts)

    @classmethod
    def for_log(cls, stream: TextIO | None = None, channel: str = "") -> "NotificationSink":
        """Sink writing to the application log (and optionally a stream)."""
        config = {"stream": stream} if stream is not None else {}
        return cls(get_driver("log"), config, channel=channel)

    def send(self, text: str, severity: str = "info") -> None:
        self.transcript.append(text)
        message = NotificationMessage(
            text=text,
            channel=self.channel,
            thread_ts=self.thread_ts,
            severity=severity,
        )
        try:
            result = self.driver.send(message, self.config)
        except Exception:
            logger.exception(f"Notify driver {self.driver.name} raised while sending narration")
            return

        if not result.get("success"):
            logger.error(
                f"Narration not delivered via {self.driver.name}: {result.get('error')}",
                extra={"channel": self.channel},
            )
