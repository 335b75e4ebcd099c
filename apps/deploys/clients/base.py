"""Shared JSON-over-HTTP plumbing for the GitHub and ArgoCD clients.

Every request carries a timeout; a hung upstream must never pin a
deployment run forever.
"""

from __future__ import annotations

import json
import logging
import ssl
import urllib.error
import urllib.request
from typing import Any

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """An upstream call failed (transport error, non-2xx, or unreadable body)."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class JsonHttpClient:
    """Minimal JSON client on top of urllib."""

    service_name = "HTTP"

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 15.0,
        ssl_context: ssl.SSLContext | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout
        self.ssl_context = ssl_context

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        payload: Any = None,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body ({} when empty)."""
        body = data
        request_headers = dict(self.headers)
        if payload is not None:
            body = json.dumps(payload).encode("utf-8")
            request_headers["Content-Type"] = "application/json"
        request_headers.update(headers or {})

        url = self.url_for(path)
        request = urllib.request.Request(url, data=body, headers=request_headers, method=method)
        logger.debug(f"{self.service_name} {method} {url}")

        try:
            with urllib.request.urlopen(
                request, timeout=self.timeout, context=self.ssl_context
            ) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8", errors="ignore") if e.fp else ""
            raise ServiceError(
                f"{self.service_name} HTTP {e.code}: {error_body or e.reason}",
                status_code=e.code,
                body=error_body,
            ) from e
        except urllib.error.URLError as e:
            raise ServiceError(f"{self.service_name} request failed: {e.reason}") from e
        except TimeoutError as e:
            raise ServiceError(f"{self.service_name} request timed out after {self.timeout}s") from e

        if not raw:
            return {}
        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise ServiceError(f"{self.service_name} returned a non-JSON body") from e
