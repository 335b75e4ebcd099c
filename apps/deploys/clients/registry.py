"""ECR lookups for built images."""

from __future__ import annotations

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from apps.deploys.clients.base import ServiceError
from apps.deploys.dtos import ArtifactIdentifier

logger = logging.getLogger(__name__)

_MISSING_CODES = {"ImageNotFoundException", "RepositoryNotFoundException"}


class RegistryClient:
    """Answers "has CI pushed the image for this commit yet?"."""

    def __init__(
        self,
        region: str | None = None,
        repository_template: str | None = None,
        tag_length: int | None = None,
        client=None,
    ):
        self.region = region or getattr(settings, "AWS_REGION", "us-east-1")
        self.repository_template = repository_template or getattr(
            settings, "DEPLOY_ECR_REPOSITORY_TEMPLATE", "{app}"
        )
        self.tag_length = (
            tag_length
            if tag_length is not None
            else int(getattr(settings, "DEPLOY_IMAGE_TAG_LENGTH", 7))
        )
        self._client = client

    @property
    def client(self):
        if self._client is None:
            timeout = float(getattr(settings, "DEPLOY_HTTP_TIMEOUT_SECONDS", 15.0))
            self._client = boto3.client(
                "ecr",
                region_name=self.region,
                config=Config(
                    connect_timeout=timeout,
                    read_timeout=timeout,
                    retries={"max_attempts": 3, "mode": "standard"},
                ),
            )
        return self._client

    def identify(self, application: str, commit_sha: str) -> ArtifactIdentifier:
        tag = commit_sha[: self.tag_length] if self.tag_length > 0 else commit_sha
        return ArtifactIdentifier(
            repository=self.repository_template.format(app=application),
            tag=tag,
            commit_sha=commit_sha,
        )

    def exists(self, application: str, commit_sha: str) -> tuple[ArtifactIdentifier, bool]:
        artifact = self.identify(application, commit_sha)
        try:
            response = self.client.describe_images(
                repositoryName=artifact.repository,
                imageIds=[{"imageTag": artifact.tag}],
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in _MISSING_CODES:
                logger.info(f"{artifact.image} not found in ECR ({code})")
                return artifact, False
            raise ServiceError(f"ECR describe_images failed: {e}") from e
        except BotoCoreError as e:
            raise ServiceError(f"ECR request failed: {e}") from e

        return artifact, bool(response.get("imageDetails"))
