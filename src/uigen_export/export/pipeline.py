"""The export pipeline: check, stage, commit, publish.

Each export runs on its own :class:`ExportPipeline` instance, strictly one step
at a time. The first failure ends the run in ``FAILED``; the workspace is
removed on every path out of the staging..publishing span.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from uigen_export.export.config import ExportSettings
from uigen_export.export.errors import ExportCancelled, ProjectNotFound
from uigen_export.export.manifest import build_manifest
from uigen_export.export.preconditions import check_preconditions
from uigen_export.export.projects import ProjectRecord, ProjectStore
from uigen_export.export.publisher import PublishResult, publish
from uigen_export.export.toolchain import CliToolchain, Toolchain
from uigen_export.export.vcs import commit_all
from uigen_export.export.workspace import stage_workspace, workspace_scope

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    CHECKING_PRECONDITIONS = "checking_preconditions"
    STAGING = "staging"
    COMMITTING = "committing"
    PUBLISHING = "publishing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


ALLOWED_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    PipelineState.IDLE: {PipelineState.CHECKING_PRECONDITIONS, PipelineState.FAILED},
    PipelineState.CHECKING_PRECONDITIONS: {PipelineState.STAGING, PipelineState.FAILED},
    PipelineState.STAGING: {PipelineState.COMMITTING, PipelineState.FAILED},
    PipelineState.COMMITTING: {PipelineState.PUBLISHING, PipelineState.FAILED},
    PipelineState.PUBLISHING: {PipelineState.SUCCEEDED, PipelineState.FAILED},
    PipelineState.SUCCEEDED: set(),
    PipelineState.FAILED: set(),
}


class IllegalTransitionError(ValueError):
    pass


def transition(*, current: PipelineState, to: PipelineState) -> PipelineState:
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    return to


@dataclass(frozen=True, slots=True)
class ExportRequest:
    project_id: str
    requester_id: str


class ExportPipeline:
    """Runs one export. Instances are single-use."""

    def __init__(
        self,
        *,
        settings: ExportSettings,
        toolchain: Toolchain,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._settings = settings
        self._toolchain = toolchain
        self._cancel_event = cancel_event or threading.Event()
        self.state = PipelineState.IDLE
        self.history: list[PipelineState] = [PipelineState.IDLE]

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel_event

    def cancel(self) -> None:
        """Ask the pipeline to stop; any running tool is killed and cleanup still runs."""

        self._cancel_event.set()

    def _advance(self, to: PipelineState) -> None:
        self.state = transition(current=self.state, to=to)
        self.history.append(to)
        logger.debug("Export pipeline state changed", extra={"state": to.value})

    def _checkpoint(self) -> None:
        if self._cancel_event.is_set():
            raise ExportCancelled(f"Export cancelled before {self.state.value} finished")

    def run(self, project: ProjectRecord) -> PublishResult:
        """Export `project` to a new remote repository.

        Raises:
            PreconditionError: Tooling missing or unauthenticated (nothing touched).
            StagingError, VcsError, PublishError, ExportCancelled: A later step failed.
        """

        if self.state is not PipelineState.IDLE:
            raise IllegalTransitionError("ExportPipeline instances cannot be reused")

        settings = self._settings
        try:
            self._advance(PipelineState.CHECKING_PRECONDITIONS)
            self._checkpoint()
            check_preconditions(self._toolchain)

            manifest = build_manifest(project.name)
            self._checkpoint()
            self._advance(PipelineState.STAGING)
            with workspace_scope(settings.workspace_dir, settings.workspace_prefix) as workspace:
                stage_workspace(workspace, project, manifest)

                self._checkpoint()
                self._advance(PipelineState.COMMITTING)
                commit_all(self._toolchain, workspace, settings.commit_message)

                self._checkpoint()
                self._advance(PipelineState.PUBLISHING)
                result = publish(
                    self._toolchain,
                    workspace,
                    manifest.repo_name,
                    host=settings.github_host,
                    visibility=settings.repo_visibility,
                )
        except BaseException:
            failed_in = self.state
            self._advance(PipelineState.FAILED)
            logger.info("Export failed", extra={"project_id": project.id, "step": failed_in.value})
            raise

        self._advance(PipelineState.SUCCEEDED)
        logger.info(
            "Export succeeded",
            extra={"project_id": project.id, "repository_url": result.repository_url},
        )
        return result


ToolchainFactory = Callable[[ExportSettings, threading.Event], Toolchain]


def default_toolchain_factory(
    settings: ExportSettings, cancel_event: threading.Event
) -> Toolchain:
    return CliToolchain(settings, cancel_event=cancel_event)


def export_project(
    request: ExportRequest,
    *,
    store: ProjectStore,
    settings: ExportSettings,
    toolchain_factory: ToolchainFactory = default_toolchain_factory,
    cancel_event: threading.Event | None = None,
) -> PublishResult:
    """Look up the requester's project and run a fresh pipeline for it.

    Raises:
        ProjectNotFound: The project does not exist or is owned by someone else.
    """

    project = store.find(request.project_id, request.requester_id)
    if project is None:
        raise ProjectNotFound()

    cancel_event = cancel_event or threading.Event()
    pipeline = ExportPipeline(
        settings=settings,
        toolchain=toolchain_factory(settings, cancel_event),
        cancel_event=cancel_event,
    )
    return pipeline.run(project)
