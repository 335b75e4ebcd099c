"""Slack notification driver (Web API, threaded replies)."""

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from apps.notify.drivers.base import BaseNotifyDriver, NotificationMessage

logger = logging.getLogger(__name__)


class SlackNotifyDriver(BaseNotifyDriver):
    """
    Driver for posting narration into a Slack thread.

    Uses `chat.postMessage` with a bot token rather than an incoming webhook,
    because narration has to land in the thread of the mention that started
    the deployment (`thread_ts`).
    """

    name = "slack"

    DEFAULT_API_URL = "https://slack.com/api"

    def validate_config(self, config: dict[str, Any]) -> bool:
        """Validate Slack configuration."""
        token = config.get("token")
        return isinstance(token, str) and token.startswith("xox")

    def send(self, message: NotificationMessage, config: dict[str, Any]) -> dict[str, Any]:
        """Post `message.text` to `message.channel`, threaded when `thread_ts` is set."""
        if not self.validate_config(config):
            return {
                "success": False,
                "error": "Invalid Slack configuration (bot token required)",
            }
        if not message.channel:
            return {"success": False, "error": "Slack channel is required"}

        api_url = (config.get("api_url") or self.DEFAULT_API_URL).rstrip("/")
        timeout = config.get("timeout", 10)

        payload: dict[str, Any] = {
            "channel": message.channel,
            "text": message.text,
            "mrkdwn": True,
        }
        if message.thread_ts:
            payload["thread_ts"] = message.thread_ts

        try:
            request = urllib.request.Request(
                f"{api_url}/chat.postMessage",
                data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                headers={
                    "Content-Type": "application/json; charset=utf-8",
                    "Authorization": f"Bearer {config['token']}",
                },
                method="POST",
            )

            with urllib.request.urlopen(request, timeout=timeout) as response:
                body = json.loads(response.read().decode("utf-8") or "{}")

            # Slack answers 200 even for API errors; the verdict is in "ok".
            if body.get("ok"):
                logger.debug(f"Slack narration sent to {message.channel}")
                return {
                    "success": True,
                    "message_id": body.get("ts", ""),
                    "metadata": {"channel": body.get("channel", message.channel)},
                }
            error = body.get("error", "unknown_error")
            logger.warning(f"Slack API rejected message: {error}")
            return {"success": False, "error": f"Slack API error: {error}"}

        except urllib.error.HTTPError as e:
            return self._handle_http_error(e, "Slack")
        except urllib.error.URLError as e:
            return self._handle_url_error(e, "Slack")
        except Exception as e:
            return self._handle_exception(e, "Slack", "send message to")
