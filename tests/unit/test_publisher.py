"""Unit tests for repository publishing and URL extraction.

URL extraction runs against literal samples of what `gh repo create` prints,
so no subprocess is involved.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from uigen_export.export.errors import PublishError
from uigen_export.export.publisher import extract_repository_url, publish
from uigen_export.export.workspace import Workspace


@pytest.mark.parametrize(
    ("output", "expected"),
    [
        ("https://github.com/acme/my-app\n", "https://github.com/acme/my-app"),
        (
            "✓ Created repository acme/my-app on GitHub\n"
            "  https://github.com/acme/my-app\n"
            "✓ Added remote https://github.com/acme/my-app.git\n"
            "✓ Pushed commits to https://github.com/acme/my-app.git\n",
            "https://github.com/acme/my-app",
        ),
        (
            "see https://github.com/acme/my-app/tree/main for details",
            "https://github.com/acme/my-app",
        ),
        ("https://github.com/acme/first https://github.com/acme/second", "https://github.com/acme/first"),
        ("prefix text https://github.com/Org-1/repo_name.v2\tsuffix", "https://github.com/Org-1/repo_name.v2"),
    ],
)
def test_extract_repository_url(output: str, expected: str) -> None:
    assert extract_repository_url(output) == expected


@pytest.mark.parametrize(
    "output",
    [
        "",
        "Repository created.",
        "https://github.com/only-owner",
        "http://github.com/acme/insecure",
        "https://gitlab.com/acme/my-app",
        "https://github.com/ acme/my-app",
    ],
)
def test_extract_repository_url_no_match(output: str) -> None:
    assert extract_repository_url(output) is None


def test_extract_repository_url_custom_host() -> None:
    output = "https://github.example.com/team/app\nhttps://github.com/acme/other"

    assert (
        extract_repository_url(output, host="github.example.com")
        == "https://github.example.com/team/app"
    )


def test_publish_uses_url_from_output(tmp_path: Path, make_toolchain) -> None:
    toolchain = make_toolchain(publish_output="https://github.com/acme/my-app\n")
    workspace = Workspace(root_path=tmp_path)

    result = publish(toolchain, workspace, "my-app")

    assert result.repository_url == "https://github.com/acme/my-app"
    assert result.repository_name == "my-app"
    assert result.fallback is False
    assert toolchain.calls == [("publish_and_push", tmp_path, "my-app", "public")]


def test_publish_falls_back_when_output_has_no_url(
    tmp_path: Path, make_toolchain
) -> None:
    toolchain = make_toolchain(publish_output="done, nothing to see here")

    result = publish(toolchain, Workspace(root_path=tmp_path), "my-app", visibility="private")

    assert result.repository_url == "https://github.com/my-app"
    assert result.fallback is True
    assert toolchain.calls[0][3] == "private"


def test_publish_failure_preserves_tool_message(
    tmp_path: Path, make_toolchain, tool_error
) -> None:
    message = "GraphQL: Name already exists on this account (createRepository)"
    toolchain = make_toolchain(failures={"publish_and_push": tool_error("gh", stderr=message)})

    with pytest.raises(PublishError) as excinfo:
        publish(toolchain, Workspace(root_path=tmp_path), "my-app")

    assert message in excinfo.value.message
