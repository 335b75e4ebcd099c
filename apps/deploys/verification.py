"""Request signature checks for inbound Slack and GitHub webhooks."""

from __future__ import annotations

import hashlib
import hmac
import time

# Slack rejects requests older than five minutes; so do we.
SLACK_MAX_AGE_SECONDS = 60 * 5


def verify_slack_signature(
    signing_secret: str,
    timestamp: str | None,
    body: bytes,
    signature: str | None,
    now: float | None = None,
) -> bool:
    """Check `X-Slack-Signature` (v0=HMAC-SHA256 of `v0:<timestamp>:<body>`)."""
    if not signing_secret or not timestamp or not signature:
        return False
    try:
        sent_at = int(timestamp)
    except ValueError:
        return False

    now = time.time() if now is None else now
    if abs(now - sent_at) > SLACK_MAX_AGE_SECONDS:
        return False

    base = b"v0:" + timestamp.encode("utf-8") + b":" + body
    expected = "v0=" + hmac.new(signing_secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


def verify_github_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check `X-Hub-Signature-256` (sha256=HMAC-SHA256 of the raw body)."""
    if not secret or not signature:
        return False
    expected = "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)
