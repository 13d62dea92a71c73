"""Turn a staged workspace into a local git repository with a single commit."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from uigen_export.export.errors import ToolInvocationError, VcsError
from uigen_export.export.toolchain import Toolchain
from uigen_export.export.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommitHandle:
    repository_path: Path
    message: str


def commit_all(toolchain: Toolchain, workspace: Workspace, message: str) -> CommitHandle:
    directory = workspace.root_path
    try:
        toolchain.vcs_init(directory)
        toolchain.vcs_stage_all(directory)
        toolchain.vcs_commit(directory, message)
    except ToolInvocationError as e:
        raise VcsError(f"Failed to create local git commit: {e.output}") from e

    logger.info("Local commit created", extra={"workspace": str(directory)})
    return CommitHandle(repository_path=directory, message=message)
