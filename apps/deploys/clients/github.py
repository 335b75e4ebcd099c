"""GitHub REST client: pull requests, check runs, and the GitOps manifest."""

from __future__ import annotations

import base64
import logging
import urllib.parse
from typing import Any

from django.conf import settings

from apps.deploys.clients.base import JsonHttpClient, ServiceError
from apps.deploys.dtos import ArtifactIdentifier, ManifestFile

logger = logging.getLogger(__name__)


class GitHubClient(JsonHttpClient):
    service_name = "GitHub"

    def __init__(
        self,
        token: str | None = None,
        owner: str | None = None,
        api_url: str | None = None,
        gitops_repo: str | None = None,
        gitops_branch: str | None = None,
        manifest_path_template: str | None = None,
        timeout: float | None = None,
    ):
        token = token if token is not None else getattr(settings, "GITHUB_TOKEN", "")
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "deploy-bot",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        super().__init__(
            api_url or getattr(settings, "GITHUB_API_URL", "https://api.github.com"),
            headers=headers,
            timeout=(
                timeout
                if timeout is not None
                else float(getattr(settings, "DEPLOY_HTTP_TIMEOUT_SECONDS", 15.0))
            ),
        )
        self.owner = owner if owner is not None else getattr(settings, "GITHUB_OWNER", "")
        self.gitops_repo = gitops_repo or getattr(settings, "GITOPS_REPO", "gitops")
        self.gitops_branch = gitops_branch or getattr(settings, "GITOPS_BRANCH", "main")
        self.manifest_path_template = manifest_path_template or getattr(
            settings, "DEPLOY_MANIFEST_PATH_TEMPLATE", "{app}/values.yaml"
        )

    def _repo(self, repo: str) -> str:
        return f"repos/{self.owner}/{urllib.parse.quote(repo)}"

    def get_pull_request(self, application: str, number: int) -> dict[str, Any]:
        """Fetch a PR from the application's repository. 404 raises ServiceError."""
        return self.request("GET", f"{self._repo(application)}/pulls/{number}")

    def get_branch_head(self, application: str, branch: str) -> str:
        data = self.request(
            "GET", f"{self._repo(application)}/branches/{urllib.parse.quote(branch)}"
        )
        sha = (data.get("commit") or {}).get("sha")
        if not isinstance(sha, str) or not sha:
            raise ServiceError(f"GitHub branch {branch} of {application} has no head commit")
        return sha

    def checks_completed(self, application: str, commit_sha: str) -> bool:
        """True when the commit has check runs and every one of them is completed."""
        data = self.request(
            "GET", f"{self._repo(application)}/commits/{commit_sha}/check-runs?per_page=100"
        )
        runs = data.get("check_runs") or []
        if not runs:
            logger.info(f"No check runs reported yet for {application}@{commit_sha}")
            return False
        pending = [run.get("name", "?") for run in runs if run.get("status") != "completed"]
        if pending:
            logger.info(f"Checks still running for {application}@{commit_sha}: {pending}")
        return not pending

    def manifest_path(self, application: str) -> str:
        return self.manifest_path_template.format(app=application)

    def download_manifest(self, application: str) -> ManifestFile:
        path = self.manifest_path(application)
        query = urllib.parse.urlencode({"ref": self.gitops_branch})
        data = self.request("GET", f"{self._repo(self.gitops_repo)}/contents/{path}?{query}")

        encoded = data.get("content")
        blob_sha = data.get("sha")
        if not isinstance(encoded, str) or not isinstance(blob_sha, str):
            raise ServiceError(f"GitHub returned no file content for {path}")
        return ManifestFile(path=path, content=base64.b64decode(encoded), blob_sha=blob_sha)

    def commit_manifest(
        self, manifest: ManifestFile, document: bytes, artifact: ArtifactIdentifier
    ) -> str:
        """Commit the new manifest on the GitOps branch; returns the new commit sha."""
        payload = {
            "message": f"deploy-bot: {artifact.image}",
            "content": base64.b64encode(document).decode("ascii"),
            "sha": manifest.blob_sha,
            "branch": self.gitops_branch,
        }
        data = self.request(
            "PUT", f"{self._repo(self.gitops_repo)}/contents/{manifest.path}", payload=payload
        )
        return (data.get("commit") or {}).get("sha", "")
