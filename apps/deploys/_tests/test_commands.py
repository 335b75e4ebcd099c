"""Tests for the `deploy` management command."""

import json
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase

from apps.deploys.dtos import DeployResult, DeployStatus


def _fake_run(status, **fields):
    def run(request, sink, run_id=None):
        sink.send("_Fetching https://github.com/acme/checkout/pull/42_")
        return DeployResult(request=request, status=status, run_id="r1", **fields)

    return run


class DeployCommandTests(SimpleTestCase):
    @patch("apps.deploys.management.commands.deploy.DeploymentOrchestrator")
    def test_narrates_to_stdout(self, mock_orchestrator):
        mock_orchestrator.return_value.run.side_effect = _fake_run(DeployStatus.SUCCEEDED)
        out = StringIO()

        call_command("deploy", "checkout", "42", stdout=out)

        output = out.getvalue()
        self.assertIn("_Fetching https://github.com/acme/checkout/pull/42_", output)
        self.assertIn("Deployment SUCCEEDED", output)

    @patch("apps.deploys.management.commands.deploy.DeploymentOrchestrator")
    def test_failure_reports_error(self, mock_orchestrator):
        mock_orchestrator.return_value.run.side_effect = _fake_run(
            DeployStatus.FAILED, error_type="ArtifactNotFound", error="checkout:abc does not exist"
        )
        out = StringIO()

        call_command("deploy", "checkout", "42", stdout=out)

        self.assertIn("ArtifactNotFound: checkout:abc does not exist", out.getvalue())

    @patch("apps.deploys.management.commands.deploy.DeploymentOrchestrator")
    def test_json_output(self, mock_orchestrator):
        mock_orchestrator.return_value.run.side_effect = _fake_run(DeployStatus.GAVE_UP)
        out, err = StringIO(), StringIO()

        call_command("deploy", "checkout", "main", "--json", stdout=out, stderr=err)

        payload = json.loads(out.getvalue())
        self.assertIn("_Fetching", err.getvalue())
        self.assertEqual(payload["status"], "GAVE_UP")
        self.assertEqual(payload["ref"], "main")

    @patch("apps.deploys.management.commands.deploy.DeploymentOrchestrator")
    def test_invalid_ref(self, mock_orchestrator):
        with self.assertRaises(CommandError):
            call_command("deploy", "checkout", "feature-x", stdout=StringIO())

        mock_orchestrator.assert_not_called()
