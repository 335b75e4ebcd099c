"""Tests for mention parsing."""

import pytest

from apps.deploys.dtos import DeploymentRequest
from apps.deploys.exceptions import InvalidRequest
from apps.deploys.parsing import parse_mention, usage


@pytest.mark.parametrize(
    "text, expected",
    [
        ("<@U024BE7LH> checkout 42", DeploymentRequest("checkout", "42")),
        ("<@U024BE7LH|deploy-bot> checkout #42", DeploymentRequest("checkout", "42")),
        ("<@U024BE7LH>   checkout   main  ", DeploymentRequest("checkout", "main")),
        ("checkout-api 7 <@U024BE7LH>", DeploymentRequest("checkout-api", "7")),
    ],
)
def test_parses_valid_mentions(text, expected):
    assert parse_mention(text, main_branch="main") == expected


@pytest.mark.parametrize(
    "text",
    [
        "<@U024BE7LH>",
        "<@U024BE7LH> checkout",
        "<@U024BE7LH> checkout 42 now",
        "<@U024BE7LH> checkout feature-x",
        "<@U024BE7LH> checkout 0",
        "<@U024BE7LH> checkout -3",
        "<@U024BE7LH> checkout \u00b2",
        "<@U024BE7LH> checkout \u0664\u0662",
        "<@U024BE7LH> checkout #\uff14\uff12",
        "",
    ],
)
def test_rejects_with_usage(text):
    with pytest.raises(InvalidRequest) as excinfo:
        parse_mention(text, main_branch="main")

    assert excinfo.value.narration == usage("main")


def test_rejects_bad_application_name():
    with pytest.raises(InvalidRequest) as excinfo:
        parse_mention("<@U1> ../etc 42", main_branch="main")

    assert "`../etc`" in excinfo.value.narration


def test_custom_main_branch():
    assert parse_mention("checkout trunk", main_branch="trunk") == DeploymentRequest(
        "checkout", "trunk"
    )
    with pytest.raises(InvalidRequest):
        parse_mention("checkout main", main_branch="trunk")


def test_usage_line():
    assert usage("main") == "_Usage: `@deploy-bot <app> <pr-number|main>`_"
