"""Shared test fixtures for the deploys app."""

from unittest.mock import MagicMock

import pytest

from apps.deploys._tests.factories import VALUES_YAML
from apps.deploys.clients import ArgoCDClient, GitHubClient, RegistryClient
from apps.deploys.dtos import ManifestFile


@pytest.fixture
def github():
    client = MagicMock(spec=GitHubClient)
    client.get_pull_request.return_value = {
        "number": 42,
        "html_url": "https://github.com/acme/checkout/pull/42",
        "head": {"sha": "abc123"},
    }
    client.get_branch_head.return_value = "def4567890"
    client.checks_completed.return_value = True
    client.download_manifest.return_value = ManifestFile(
        path="checkout/values.yaml", content=VALUES_YAML, blob_sha="blob-1"
    )
    client.commit_manifest.return_value = "c0ffee"
    return client


@pytest.fixture
def ecr():
    client = MagicMock()
    client.describe_images.return_value = {"imageDetails": [{"imageTags": ["abc123"]}]}
    return client


@pytest.fixture
def registry(ecr):
    return RegistryClient(region="us-east-1", repository_template="{app}", tag_length=7, client=ecr)


@pytest.fixture
def argocd():
    client = MagicMock(spec=ArgoCDClient)
    client.application_url.side_effect = lambda app: f"https://argocd.test/applications/{app}"
    return client
