"""
Turning an app mention into a DeploymentRequest.

Accepted shapes (the bot mention itself is stripped first):

    @deploy-bot checkout 42
    @deploy-bot checkout #42
    @deploy-bot checkout main
"""

from __future__ import annotations

import re

from django.conf import settings

from apps.deploys.dtos import DeploymentRequest
from apps.deploys.exceptions import InvalidRequest

_MENTION_RE = re.compile(r"<@[A-Z0-9]+(?:\|[^>]*)?>")
_APP_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,99}$")
PR_NUMBER_RE = re.compile(r"[0-9]+")


def usage(main_branch: str) -> str:
    return f"_Usage: `@deploy-bot <app> <pr-number|{main_branch}>`_"


def parse_mention(text: str, main_branch: str | None = None) -> DeploymentRequest:
    """
    Extract `{application, ref}` from the mention text.

    Raises:
        InvalidRequest: When the text does not name an app and a PR number or
            the main branch. The exception narration is the usage line.
    """
    main_branch = main_branch or getattr(settings, "DEPLOY_MAIN_BRANCH", "main")
    tokens = _MENTION_RE.sub(" ", text or "").split()

    if len(tokens) != 2:
        raise InvalidRequest(
            f"expected `<app> <ref>`, got {len(tokens)} argument(s)",
            narration=usage(main_branch),
        )

    application, ref = tokens
    if not _APP_RE.match(application):
        raise InvalidRequest(
            f"`{application}` is not a valid application name",
            narration=f"_`{application}` is not a valid application name_",
        )

    if ref != main_branch:
        ref = ref.lstrip("#")
        if not PR_NUMBER_RE.fullmatch(ref) or int(ref) <= 0:
            raise InvalidRequest(
                f"`{tokens[1]}` is neither a pull request number nor `{main_branch}`",
                narration=usage(main_branch),
            )

    return DeploymentRequest(application=application, ref=ref)
