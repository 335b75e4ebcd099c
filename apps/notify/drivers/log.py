"""Log/console notification driver.

Used when there is no chat thread to answer into: the webhook relay path
without a configured channel, and `manage.py deploy` from a terminal.
"""

import logging
from typing import Any

from apps.notify.drivers.base import BaseNotifyDriver, NotificationMessage

logger = logging.getLogger(__name__)


class LogNotifyDriver(BaseNotifyDriver):
    name = "log"

    def validate_config(self, config: dict[str, Any]) -> bool:
        stream = config.get("stream")
        return stream is None or hasattr(stream, "write")

    def send(self, message: NotificationMessage, config: dict[str, Any]) -> dict[str, Any]:
        if not self.validate_config(config):
            return {"success": False, "error": "stream must be writable"}

        logger.info(f"[narration] {message.text}", extra={"channel": message.channel})
        stream = config.get("stream")
        if stream is not None:
            stream.write(f"{message.text}\n")
        return {"success": True}
