"""Per-export workspaces: allocation, staging and guaranteed removal.

A workspace is a uniquely named temporary directory owned by exactly one
export. It is created by :func:`workspace_scope` and removed when that scope
exits, whatever the outcome of the export.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath, PureWindowsPath

from uigen_export.export.errors import StagingError
from uigen_export.export.manifest import GeneratedManifest
from uigen_export.export.projects import ProjectRecord

logger = logging.getLogger(__name__)

SOURCE_DIR = "src"
COMPONENTS_DIR = "components"


@dataclass(frozen=True, slots=True)
class Workspace:
    root_path: Path
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def source_path(self) -> Path:
        return self.root_path / SOURCE_DIR


def allocate_workspace(base_dir: Path, prefix: str) -> Workspace:
    """Create a fresh workspace directory under `base_dir`.

    The name combines `prefix`, a millisecond timestamp and a random suffix;
    `mkdtemp` creates it atomically, so two exports can never be handed the
    same directory.
    """

    stamp = int(time.time() * 1000)
    try:
        base_dir.mkdir(parents=True, exist_ok=True)
        root = Path(tempfile.mkdtemp(prefix=f"{prefix}-{stamp}-", dir=base_dir)).resolve()
    except OSError as e:
        raise StagingError(f"Failed to create export workspace: {e}") from e

    workspace = Workspace(root_path=root)
    logger.info("Workspace created", extra={"workspace": str(root)})
    return workspace


def remove_workspace(workspace: Workspace) -> bool:
    """Recursively delete the workspace. Never raises; returns False on failure."""

    try:
        shutil.rmtree(workspace.root_path)
    except FileNotFoundError:
        return True
    except Exception:
        logger.warning(
            "Failed to clean up workspace",
            extra={"workspace": str(workspace.root_path)},
            exc_info=True,
        )
        return False

    logger.info("Workspace removed", extra={"workspace": str(workspace.root_path)})
    return True


@contextmanager
def workspace_scope(base_dir: Path, prefix: str) -> Iterator[Workspace]:
    """Allocate a workspace and remove it when the block exits, on every path."""

    workspace = allocate_workspace(base_dir, prefix)
    try:
        yield workspace
    finally:
        remove_workspace(workspace)


def resolve_project_path(source_root: Path, relative_path: str) -> Path:
    """Map a project file path to its location under `source_root`.

    Raises:
        StagingError: The path is empty, absolute, contains `..` or otherwise
            resolves outside `source_root`.
    """

    if not relative_path or "\x00" in relative_path:
        raise StagingError(f"Invalid file path in project: {relative_path!r}")

    normalized = PurePosixPath(relative_path.replace("\\", "/"))
    windows = PureWindowsPath(relative_path)
    if normalized.is_absolute() or windows.drive or windows.root:
        raise StagingError(f"Refusing absolute file path in project: {relative_path!r}")
    if ".." in normalized.parts:
        raise StagingError(f"Refusing file path outside the project: {relative_path!r}")

    root = source_root.resolve()
    target = (root / normalized).resolve()
    if target == root or not target.is_relative_to(root):
        raise StagingError(f"Refusing file path outside the project: {relative_path!r}")
    return target


def stage_workspace(
    workspace: Workspace, project: ProjectRecord, manifest: GeneratedManifest
) -> list[Path]:
    """Write scaffold files and the project's file map into the workspace.

    Every file path is validated before anything is written, so a project with a
    single unsafe path leaves no project files behind.

    Returns:
        The project files written, in file map order.
    """

    source_root = workspace.source_path
    planned: list[tuple[Path, str]] = []
    for relative_path, content in project.data.files.items():
        if not isinstance(content, str):
            logger.debug(
                "Skipping non-text project entry",
                extra={"path": relative_path, "type": type(content).__name__},
            )
            continue
        planned.append((resolve_project_path(source_root, relative_path), content))

    try:
        (source_root / COMPONENTS_DIR).mkdir(parents=True, exist_ok=True)
        (workspace.root_path / "package.json").write_text(
            manifest.package_json_text(), encoding="utf-8"
        )
        (workspace.root_path / "README.md").write_text(manifest.readme, encoding="utf-8")

        written: list[Path] = []
        for target, content in planned:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8", newline="")
            written.append(target)
    except OSError as e:
        raise StagingError(f"Failed to write project files: {e}") from e

    logger.info(
        "Workspace staged",
        extra={"workspace": str(workspace.root_path), "files": len(written)},
    )
    return written
