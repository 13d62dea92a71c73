"""Unit tests for workspace allocation, staging and cleanup."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import uigen_export.export.workspace as workspace_module
from uigen_export.export.errors import StagingError
from uigen_export.export.manifest import build_manifest
from uigen_export.export.projects import ProjectData, ProjectRecord
from uigen_export.export.workspace import (
    allocate_workspace,
    remove_workspace,
    resolve_project_path,
    stage_workspace,
    workspace_scope,
)


def _project(files: dict[str, object], name: str = "My App") -> ProjectRecord:
    return ProjectRecord(id="p", owner_id="u", name=name, data=ProjectData(files=files))


def test_allocate_workspace_names_are_unique(tmp_path: Path) -> None:
    roots = {allocate_workspace(tmp_path, "uigen-export").root_path for _ in range(50)}

    assert len(roots) == 50
    for root in roots:
        assert root.is_dir()
        assert root.parent == tmp_path.resolve()
        assert root.name.startswith("uigen-export-")


def test_allocate_workspace_failure_is_staging_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(StagingError):
        allocate_workspace(blocker, "uigen-export")


def test_stage_workspace_writes_scaffold_and_files(tmp_path: Path) -> None:
    project = _project(
        {
            "App.tsx": "export default function App(){}",
            "components/Button.tsx": "export const Button = () => null;\r\n",
            "lib/deep/nested/util.ts": "export {};",
        }
    )
    workspace = allocate_workspace(tmp_path, "t")

    written = stage_workspace(workspace, project, build_manifest(project.name))

    root = workspace.root_path
    assert (root / "src").is_dir()
    assert (root / "src" / "components").is_dir()
    assert json.loads((root / "package.json").read_text(encoding="utf-8"))["name"] == "my-app"
    assert (root / "README.md").read_text(encoding="utf-8").startswith("# My App")
    assert (root / "src" / "App.tsx").read_text(encoding="utf-8") == (
        "export default function App(){}"
    )
    # Content is written byte-for-byte, line endings included.
    assert (root / "src" / "components" / "Button.tsx").read_bytes() == (
        b"export const Button = () => null;\r\n"
    )
    assert (root / "src" / "lib" / "deep" / "nested" / "util.ts").exists()
    assert len(written) == 3


def test_stage_workspace_skips_non_text_entries(tmp_path: Path) -> None:
    project = _project({"App.tsx": "ok", "data.bin": {"type": "binary"}, "n.ts": None, "x": 1})
    workspace = allocate_workspace(tmp_path, "t")

    written = stage_workspace(workspace, project, build_manifest(project.name))

    assert [p.name for p in written] == ["App.tsx"]
    assert not (workspace.source_path / "data.bin").exists()


def test_stage_workspace_creates_components_dir_for_empty_project(tmp_path: Path) -> None:
    workspace = allocate_workspace(tmp_path, "t")

    assert stage_workspace(workspace, _project({}), build_manifest("Empty")) == []
    assert (workspace.source_path / "components").is_dir()


@pytest.mark.parametrize(
    "bad_path",
    [
        "../../etc/passwd",
        "../outside.txt",
        "components/../../escape.ts",
        "/etc/passwd",
        "/App.tsx",
        "C:\\Windows\\system32\\x.dll",
        "..\\..\\evil.ts",
        "",
        ".",
        "nul\x00byte.ts",
    ],
)
def test_resolve_project_path_rejects_escapes(tmp_path: Path, bad_path: str) -> None:
    with pytest.raises(StagingError):
        resolve_project_path(tmp_path / "src", bad_path)


def test_resolve_project_path_stays_under_source_root(tmp_path: Path) -> None:
    source_root = tmp_path / "src"

    target = resolve_project_path(source_root, "components/./Card.tsx")

    assert target == (source_root / "components" / "Card.tsx").resolve()
    assert target.is_relative_to(source_root.resolve())


def test_stage_workspace_rejects_escape_before_writing_anything(tmp_path: Path) -> None:
    project = _project({"App.tsx": "fine", "../../etc/passwd": "pwned"})
    workspace = allocate_workspace(tmp_path / "ws", "t")

    with pytest.raises(StagingError):
        stage_workspace(workspace, project, build_manifest(project.name))

    assert not (workspace.source_path / "App.tsx").exists()
    assert not (tmp_path / "etc").exists()
    assert not any(p.name == "passwd" for p in tmp_path.rglob("*"))


def test_stage_workspace_filesystem_error_is_staging_error(tmp_path: Path) -> None:
    # A file map entry that collides with the generated components directory.
    project = _project({"components": "not a directory"})
    workspace = allocate_workspace(tmp_path, "t")

    with pytest.raises(StagingError):
        stage_workspace(workspace, project, build_manifest(project.name))


def test_workspace_scope_removes_on_success(tmp_path: Path) -> None:
    with workspace_scope(tmp_path, "t") as workspace:
        (workspace.root_path / "file.txt").write_text("x", encoding="utf-8")
        root = workspace.root_path

    assert not root.exists()


def test_workspace_scope_removes_on_error(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError, match="injected"):
        with workspace_scope(tmp_path, "t") as workspace:
            root = workspace.root_path
            raise RuntimeError("injected")

    assert not root.exists()


def test_workspace_scope_cleanup_failure_is_logged_not_raised(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    calls: list[Path] = []

    def failing_rmtree(path: Path) -> None:
        calls.append(path)
        raise PermissionError("locked")

    monkeypatch.setattr(workspace_module.shutil, "rmtree", failing_rmtree)

    with pytest.raises(ValueError, match="original"):
        with workspace_scope(tmp_path, "t"):
            raise ValueError("original")

    assert len(calls) == 1
    assert "Failed to clean up workspace" in caplog.text


def test_remove_workspace_tolerates_missing_directory(tmp_path: Path) -> None:
    workspace = allocate_workspace(tmp_path, "t")
    workspace.root_path.rmdir()

    assert remove_workspace(workspace) is True
