"""Test configuration and fixtures."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from uigen_export.export.config import ExportSettings
from uigen_export.export.errors import ToolInvocationError
from uigen_export.export.projects import ProjectData, ProjectRecord
from uigen_export.export.toolchain import Toolchain


def _tool_error(step: str, *, stderr: str = "boom", returncode: int = 1) -> ToolInvocationError:
    return ToolInvocationError(
        f"{step} failed (exit {returncode})",
        command=[step],
        returncode=returncode,
        stderr=stderr,
    )


class FakeToolchain(Toolchain):
    """Records every capability call; raises whatever `failures[step]` holds.

    `hooks[step]` is called after the step is recorded and before any failure.
    """

    def __init__(
        self,
        *,
        failures: dict[str, BaseException] | None = None,
        hooks: dict[str, Callable[[], object]] | None = None,
        publish_output: str = "https://github.com/acme/my-app\n",
    ) -> None:
        self.failures = failures or {}
        self.hooks = hooks or {}
        self.publish_output = publish_output
        self.calls: list[tuple[object, ...]] = []
        self.published_trees: list[dict[str, str]] = []
        self.cwd_during_calls: set[str] = set()

    def _record(self, step: str, *args: object) -> None:
        self.calls.append((step, *args))
        self.cwd_during_calls.add(os.getcwd())
        hook = self.hooks.get(step)
        if hook is not None:
            hook()
        exc = self.failures.get(step)
        if exc is not None:
            raise exc

    @property
    def steps(self) -> list[str]:
        return [str(call[0]) for call in self.calls]

    def version_check(self) -> None:
        self._record("version_check")

    def auth_status(self) -> None:
        self._record("auth_status")

    def vcs_init(self, directory: Path) -> None:
        self._record("vcs_init", directory)

    def vcs_stage_all(self, directory: Path) -> None:
        self._record("vcs_stage_all", directory)

    def vcs_commit(self, directory: Path, message: str) -> None:
        self._record("vcs_commit", directory, message)

    def publish_and_push(self, directory: Path, repo_name: str, visibility: str) -> str:
        self._record("publish_and_push", directory, repo_name, visibility)
        self.published_trees.append(
            {
                p.relative_to(directory).as_posix(): p.read_text(encoding="utf-8")
                for p in sorted(directory.rglob("*"))
                if p.is_file()
            }
        )
        return self.publish_output


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Path:
    return tmp_path / "workspaces"


@pytest.fixture
def export_settings(tmp_path: Path, workspace_dir: Path) -> ExportSettings:
    """Settings isolated from any developer `.env`."""
    return ExportSettings(
        _env_file=None,
        workspace_dir=workspace_dir,
        state_path=tmp_path / "state",
    )


@pytest.fixture
def tool_error() -> Callable[..., ToolInvocationError]:
    """Build the error a failing gh/git invocation raises."""
    return _tool_error


@pytest.fixture
def make_toolchain() -> type[FakeToolchain]:
    """Factory for recording toolchains with scripted failures and hooks."""
    return FakeToolchain


@pytest.fixture
def fake_toolchain(make_toolchain: type[FakeToolchain]) -> FakeToolchain:
    return make_toolchain()


@pytest.fixture
def project() -> ProjectRecord:
    return ProjectRecord(
        id="project-1",
        owner_id="user-1",
        name="My App",
        data=ProjectData(files={"App.tsx": "export default function App(){}"}),
    )
