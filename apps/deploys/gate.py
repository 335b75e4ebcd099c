"""Artifact gate: is the image built, and has CI finished with its commit?"""

from __future__ import annotations

from apps.deploys.clients import GitHubClient, RegistryClient
from apps.deploys.dtos import ArtifactIdentifier


class ArtifactGate:
    def __init__(
        self,
        registry: RegistryClient | None = None,
        github: GitHubClient | None = None,
    ):
        self.registry = registry or RegistryClient()
        self.github = github or GitHubClient()

    def exists(self, application: str, commit_sha: str) -> tuple[ArtifactIdentifier, bool]:
        return self.registry.exists(application, commit_sha)

    def checks_completed(self, application: str, commit_sha: str) -> bool:
        return self.github.checks_completed(application, commit_sha)
