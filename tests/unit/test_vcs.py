"""Unit tests for the local commit step."""

from __future__ import annotations

from pathlib import Path

import pytest

from uigen_export.export.errors import VcsError
from uigen_export.export.vcs import commit_all
from uigen_export.export.workspace import Workspace


def test_commit_all_runs_init_add_commit_in_workspace(
    tmp_path: Path, fake_toolchain
) -> None:
    handle = commit_all(fake_toolchain, Workspace(root_path=tmp_path), "Initial commit from UIGen")

    assert fake_toolchain.calls == [
        ("vcs_init", tmp_path),
        ("vcs_stage_all", tmp_path),
        ("vcs_commit", tmp_path, "Initial commit from UIGen"),
    ]
    assert handle.repository_path == tmp_path
    assert handle.message == "Initial commit from UIGen"


def test_commit_failure_is_vcs_error(
    tmp_path: Path, make_toolchain, tool_error
) -> None:
    toolchain = make_toolchain(
        failures={"vcs_commit": tool_error("git", stderr="Author identity unknown")}
    )

    with pytest.raises(VcsError, match="Author identity unknown"):
        commit_all(toolchain, Workspace(root_path=tmp_path), "msg")

    assert toolchain.steps == ["vcs_init", "vcs_stage_all", "vcs_commit"]


def test_init_failure_stops_before_commit(
    tmp_path: Path, make_toolchain, tool_error
) -> None:
    toolchain = make_toolchain(failures={"vcs_init": tool_error("git")})

    with pytest.raises(VcsError):
        commit_all(toolchain, Workspace(root_path=tmp_path), "msg")

    assert toolchain.steps == ["vcs_init"]
