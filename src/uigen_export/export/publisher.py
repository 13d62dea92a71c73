"""Create the remote repository, push, and work out where it lives.

The hosting tool reports the new repository only as free-form text, so the URL
is recovered by pattern matching. When that fails the export still succeeds,
but with a URL synthesised from the repository name: callers must treat a
result with ``fallback=True`` as a best guess, not the verified location.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from uigen_export.export.errors import PublishError, ToolInvocationError
from uigen_export.export.toolchain import Toolchain
from uigen_export.export.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PublishResult:
    repository_url: str
    repository_name: str
    fallback: bool = False


def extract_repository_url(output: str, *, host: str = "github.com") -> str | None:
    """Return the first `https://<host>/<owner>/<name>` URL found in `output`.

    Owner and name may not contain whitespace or further `/` segments.
    """

    pattern = re.compile(rf"https://{re.escape(host)}/[^/\s]+/[^/\s]+")
    match = pattern.search(output)
    return match.group(0) if match else None


def fallback_repository_url(repo_name: str, *, host: str = "github.com") -> str:
    return f"https://{host}/{repo_name}"


def publish(
    toolchain: Toolchain,
    workspace: Workspace,
    repo_name: str,
    *,
    host: str = "github.com",
    visibility: str = "public",
) -> PublishResult:
    try:
        output = toolchain.publish_and_push(workspace.root_path, repo_name, visibility)
    except ToolInvocationError as e:
        raise PublishError(e.output) from e

    url = extract_repository_url(output, host=host)
    if url is None:
        url = fallback_repository_url(repo_name, host=host)
        logger.warning(
            "No repository URL in publish output; using synthesised URL",
            extra={"repo_name": repo_name, "repository_url": url},
        )
        return PublishResult(repository_url=url, repository_name=repo_name, fallback=True)

    logger.info("Repository published", extra={"repository_url": url})
    return PublishResult(repository_url=url, repository_name=repo_name)
