"""
Clients for the systems a deployment touches: GitHub, ECR and ArgoCD.
"""

from apps.deploys.clients.argocd import ArgoCDClient
from apps.deploys.clients.base import JsonHttpClient, ServiceError
from apps.deploys.clients.github import GitHubClient
from apps.deploys.clients.registry import RegistryClient

__all__ = [
    "ArgoCDClient",
    "GitHubClient",
    "JsonHttpClient",
    "RegistryClient",
    "ServiceError",
]
