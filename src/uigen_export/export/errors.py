"""Failure kinds of the export pipeline.

Every step of the pipeline translates whatever went wrong into exactly one of
these, so callers (HTTP handler, CLI) only need to know the hierarchy to pick a
status code or exit code.
"""

from __future__ import annotations


class ExportError(Exception):
    """Base class for export failures. `message` is safe to show to the user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PreconditionError(ExportError):
    """Required tooling is missing or not ready. Raised before any side effect."""


class ToolNotInstalled(PreconditionError):
    pass


class ToolNotAuthenticated(PreconditionError):
    pass


class StagingError(ExportError):
    """The workspace could not be allocated or populated."""


class VcsError(ExportError):
    """A local git operation failed."""


class PublishError(ExportError):
    """Creating or pushing the remote repository failed."""


class ExportCancelled(ExportError):
    """The export was cancelled (deadline or caller going away) between or during steps."""


class ToolInvocationError(Exception):
    """An external command could not be run or exited non-zero.

    This never escapes the pipeline: each step wraps it in its own error kind.
    """

    def __init__(
        self,
        message: str,
        *,
        command: list[str],
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.timed_out = timed_out

    @property
    def output(self) -> str:
        """The most useful text the tool printed, preferring stderr."""

        if self.timed_out:
            return str(self)
        return (self.stderr.strip() or self.stdout.strip()) or str(self)


class ProjectNotFound(ExportError):
    """No project with that id belongs to the requester."""

    def __init__(self, message: str = "Project not found") -> None:
        super().__init__(message)
