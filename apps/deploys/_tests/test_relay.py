"""Tests for the GitHub push relay."""

from unittest.mock import MagicMock

from django.test import SimpleTestCase, override_settings

from apps.deploys.clients import ServiceError
from apps.deploys.dtos import ReconcileResult, PollTally, Verdict
from apps.deploys.relay import application_from_push, relay_push, relay_sink
from apps.notify.drivers import LogNotifyDriver, SlackNotifyDriver
from apps.notify.services import NotificationSink


class ApplicationFromPushTests(SimpleTestCase):
    def test_matches_head_commit(self):
        payload = {"head_commit": {"modified": ["README.md", "checkout/values.yaml"]}}

        self.assertEqual(application_from_push(payload, "{app}/values.yaml"), "checkout")

    def test_falls_back_to_commits_and_added_files(self):
        payload = {
            "head_commit": {"modified": ["docs/index.md"]},
            "commits": [{"added": ["apps/payments/values.yaml"]}],
        }

        self.assertEqual(application_from_push(payload, "apps/{app}/values.yaml"), "payments")

    def test_nested_paths_do_not_match(self):
        payload = {"head_commit": {"modified": ["a/b/values.yaml"]}}

        self.assertIsNone(application_from_push(payload, "{app}/values.yaml"))

    def test_empty_payload(self):
        self.assertIsNone(application_from_push({}, "{app}/values.yaml"))


class RelayPushTests(SimpleTestCase):
    def setUp(self):
        self.argocd = MagicMock()
        self.reconciler = MagicMock()
        self.reconciler.reconcile_after_relay.return_value = ReconcileResult(
            verdict=Verdict.SUCCESS, iterations=1, tally=PollTally(iteration=1)
        )
        self.sink = NotificationSink.for_log()

    def _relay(self, application="checkout"):
        return relay_push(
            b'{"ref": "refs/heads/main"}',
            application,
            self.sink,
            argocd=self.argocd,
            reconciler=self.reconciler,
        )

    def test_forwards_syncs_and_reconciles(self):
        verdict = self._relay()

        self.assertIs(verdict, Verdict.SUCCESS)
        self.argocd.forward_webhook.assert_called_once_with(
            b'{"ref": "refs/heads/main"}', event="push"
        )
        self.argocd.sync.assert_called_once_with("checkout")
        self.reconciler.reconcile_after_relay.assert_called_once_with("checkout", self.sink)
        self.assertEqual(self.sink.transcript, ["_`checkout` sync underway_"])

    def test_forward_failure_is_narrated(self):
        self.argocd.forward_webhook.side_effect = ServiceError("ArgoCD HTTP 500")

        self.assertIsNone(self._relay())
        self.assertEqual(
            self.sink.transcript, ["_Error forwarding gitshot to Argocd: `ArgoCD HTTP 500`_"]
        )
        self.argocd.sync.assert_not_called()

    def test_push_without_application_only_forwards(self):
        self.assertIsNone(self._relay(application=None))

        self.argocd.forward_webhook.assert_called_once()
        self.argocd.sync.assert_not_called()
        self.assertEqual(self.sink.transcript, [])

    def test_sync_failure_is_narrated(self):
        self.argocd.sync.side_effect = ServiceError("ArgoCD HTTP 403")

        self.assertIsNone(self._relay())
        self.assertEqual(
            self.sink.transcript, ["_Error syncing checkout in Argocd: `ArgoCD HTTP 403`_"]
        )
        self.reconciler.reconcile_after_relay.assert_not_called()


class RelaySinkTests(SimpleTestCase):
    @override_settings(DEPLOY_RELAY_CHANNEL="C0DEPLOYS")
    def test_slack_when_channel_configured(self):
        sink = relay_sink()

        self.assertIsInstance(sink.driver, SlackNotifyDriver)
        self.assertEqual(sink.channel, "C0DEPLOYS")

    @override_settings(DEPLOY_RELAY_CHANNEL="")
    def test_log_otherwise(self):
        self.assertIsInstance(relay_sink().driver, LogNotifyDriver)
