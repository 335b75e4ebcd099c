"""Builders for ArgoCD documents, ECR errors and manifests used across tests."""

from botocore.exceptions import ClientError

VALUES_YAML = b"""\
# checkout production values
replicaCount: 3
image:
  repository: 123456789012.dkr.ecr.us-east-1.amazonaws.com/checkout
  tag: "0000000"  # managed by deploy-bot
  pullPolicy: IfNotPresent
worker:
  image:
    tag: "keep-me"
"""


def argo_document(*resources):
    """Build an ArgoCD application document from (kind, name, status) tuples."""
    return {
        "metadata": {"name": "checkout"},
        "status": {
            "resources": [
                {"kind": kind, "name": name, "status": status} for kind, name, status in resources
            ]
        },
    }


def deployments(**states):
    """Shorthand: deployments(web="Synced") -> document with Deployment resources."""
    return argo_document(*[("Deployment", name, state) for name, state in states.items()])


def image_not_found():
    return ClientError(
        {"Error": {"Code": "ImageNotFoundException", "Message": "not found"}},
        "DescribeImages",
    )
