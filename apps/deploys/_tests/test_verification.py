"""Tests for Slack and GitHub request signature checks."""

import hashlib
import hmac

from django.test import SimpleTestCase

from apps.deploys.verification import verify_github_signature, verify_slack_signature

SECRET = "8f742231b10e8888abcd99yyyzzz85a5"


def slack_signature(secret, timestamp, body):
    base = f"v0:{timestamp}:".encode() + body
    return "v0=" + hmac.new(secret.encode(), base, hashlib.sha256).hexdigest()


class SlackSignatureTests(SimpleTestCase):
    body = b'{"type":"event_callback"}'

    def test_valid(self):
        sig = slack_signature(SECRET, "1700000000", self.body)

        self.assertTrue(verify_slack_signature(SECRET, "1700000000", self.body, sig, now=1700000010))

    def test_tampered_body(self):
        sig = slack_signature(SECRET, "1700000000", self.body)

        self.assertFalse(
            verify_slack_signature(SECRET, "1700000000", b"{}", sig, now=1700000010)
        )

    def test_stale_timestamp(self):
        sig = slack_signature(SECRET, "1700000000", self.body)

        self.assertFalse(
            verify_slack_signature(SECRET, "1700000000", self.body, sig, now=1700000000 + 301)
        )

    def test_missing_parts(self):
        sig = slack_signature(SECRET, "1700000000", self.body)

        self.assertFalse(verify_slack_signature("", "1700000000", self.body, sig))
        self.assertFalse(verify_slack_signature(SECRET, None, self.body, sig))
        self.assertFalse(verify_slack_signature(SECRET, "1700000000", self.body, None))
        self.assertFalse(verify_slack_signature(SECRET, "yesterday", self.body, sig))


class GitHubSignatureTests(SimpleTestCase):
    body = b'{"ref":"refs/heads/main"}'

    def _sign(self, body):
        return "sha256=" + hmac.new(b"hook-secret", body, hashlib.sha256).hexdigest()

    def test_valid(self):
        self.assertTrue(verify_github_signature("hook-secret", self.body, self._sign(self.body)))

    def test_invalid(self):
        self.assertFalse(verify_github_signature("hook-secret", self.body, self._sign(b"other")))
        self.assertFalse(verify_github_signature("hook-secret", self.body, None))
        self.assertFalse(verify_github_signature("", self.body, self._sign(self.body)))
