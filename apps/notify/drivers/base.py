"""Base driver and data structures for narration delivery.

Drivers deliver one narration line to a chat platform (or the log) and
normalize the result into a small dict, so the sink never has to know which
backend it is talking to.

Public API:
- NotificationMessage
- BaseNotifyDriver
"""

from __future__ import annotations

import logging
import urllib.error
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class NotificationMessage:
    """One narration line addressed to a channel/thread."""

    text: str
    channel: str = ""
    thread_ts: str | None = None
    severity: str = "info"  # "critical", "warning", "info", "success"

    def __post_init__(self) -> None:
        self.severity = (self.severity or "").lower()
        if self.severity not in ("critical", "warning", "info", "success"):
            self.severity = "info"


class BaseNotifyDriver(ABC):
    """Abstract base class for narration delivery drivers."""

    name: str = "base"

    @abstractmethod
    def validate_config(self, config: dict[str, Any]) -> bool:
        """Validate that the driver configuration is valid."""

    @abstractmethod
    def send(self, message: NotificationMessage, config: dict[str, Any]) -> dict[str, Any]:
        """Send a narration and return result metadata.

        Returns:
            Dictionary with keys like:
            - success: bool
            - message_id: str (if available)
            - error: str (if failed)
        """

    def _handle_http_error(self, e: urllib.error.HTTPError, service_name: str) -> dict[str, Any]:
        """Handle HTTP errors consistently across drivers."""
        error_body = e.read().decode("utf-8") if e.fp else str(e)
        logger.error(f"{service_name} HTTP error {e.code}: {error_body}")
        return {"success": False, "error": f"{service_name} API error ({e.code}): {error_body}"}

    def _handle_url_error(self, e: urllib.error.URLError, service_name: str) -> dict[str, Any]:
        """Handle URL errors consistently across drivers."""
        logger.error(f"{service_name} URL error: {e.reason}")
        return {"success": False, "error": f"Failed to connect to {service_name}: {e.reason}"}

    def _handle_exception(self, e: Exception, service_name: str, action: str) -> dict[str, Any]:
        """Handle general exceptions consistently across drivers."""
        logger.exception(f"Failed to {action} {service_name}: {e}")
        return {"success": False, "error": f"Failed to {action} {service_name}: {e}"}
