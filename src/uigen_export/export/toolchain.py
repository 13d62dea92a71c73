"""External tool capability used by the export pipeline.

The pipeline only talks to :class:`Toolchain`. :class:`CliToolchain` implements
it with the `gh` and `git` executables; tests substitute a recording double.

Every command is run with an explicit argument list (no shell) and an explicit
working directory. The process-wide current directory is never touched, so any
number of exports can run side by side in one process.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from uigen_export.export.config import ExportSettings
from uigen_export.export.errors import ExportCancelled, ToolInvocationError

logger = logging.getLogger(__name__)

_POLL_INTERVAL_SECONDS = 0.2
_DRAIN_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True, slots=True)
class CommandResult:
    command: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def combined_output(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


class Toolchain(ABC):
    """Abstract capability set of the hosting and version-control tools.

    Any implementation is substitutable as long as failures are reported by
    raising :class:`ToolInvocationError`.
    """

    @abstractmethod
    def version_check(self) -> None:
        """Succeed if the hosting tool is installed."""

    @abstractmethod
    def auth_status(self) -> None:
        """Succeed if the hosting tool is authenticated."""

    @abstractmethod
    def vcs_init(self, directory: Path) -> None:
        pass

    @abstractmethod
    def vcs_stage_all(self, directory: Path) -> None:
        pass

    @abstractmethod
    def vcs_commit(self, directory: Path, message: str) -> None:
        pass

    @abstractmethod
    def publish_and_push(self, directory: Path, repo_name: str, visibility: str) -> str:
        """Create the remote repository from `directory` and push it.

        Returns:
            The tool's combined output (stdout, then stderr).
        """


class CliToolchain(Toolchain):
    """`gh` + `git` implementation of :class:`Toolchain`."""

    def __init__(
        self,
        settings: ExportSettings,
        *,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._settings = settings
        self._cancel_event = cancel_event

        # Never let git or gh block on an interactive prompt.
        env = dict(os.environ)
        env["GIT_TERMINAL_PROMPT"] = "0"
        env["GH_PROMPT_DISABLED"] = "1"
        env["NO_COLOR"] = "1"
        self._env = env

    def version_check(self) -> None:
        self._run(
            [self._settings.gh_binary, "--version"],
            cwd=None,
            timeout=self._settings.check_timeout_seconds,
        )

    def auth_status(self) -> None:
        self._run(
            [self._settings.gh_binary, "auth", "status", "--hostname", self._settings.github_host],
            cwd=None,
            timeout=self._settings.check_timeout_seconds,
        )

    def vcs_init(self, directory: Path) -> None:
        self._run(
            [self._settings.git_binary, "init", "-b", self._settings.default_branch],
            cwd=directory,
            timeout=self._settings.vcs_timeout_seconds,
        )

    def vcs_stage_all(self, directory: Path) -> None:
        self._run(
            [self._settings.git_binary, "add", "--all", "."],
            cwd=directory,
            timeout=self._settings.vcs_timeout_seconds,
        )

    def vcs_commit(self, directory: Path, message: str) -> None:
        cmd = [self._settings.git_binary]
        if self._settings.git_author_name:
            cmd += ["-c", f"user.name={self._settings.git_author_name}"]
        if self._settings.git_author_email:
            cmd += ["-c", f"user.email={self._settings.git_author_email}"]
        cmd += ["commit", "--no-verify", "-m", message]
        self._run(cmd, cwd=directory, timeout=self._settings.vcs_timeout_seconds)

    def publish_and_push(self, directory: Path, repo_name: str, visibility: str) -> str:
        result = self._run(
            [
                self._settings.gh_binary,
                "repo",
                "create",
                repo_name,
                f"--{visibility}",
                "--source",
                str(directory),
                "--push",
            ],
            cwd=directory,
            timeout=self._settings.publish_timeout_seconds,
        )
        return result.combined_output

    def _run(self, cmd: list[str], *, cwd: Path | None, timeout: float) -> CommandResult:
        """Run `cmd` to completion, bounded by `timeout` and the cancel event.

        Raises:
            ToolInvocationError: The executable is missing, exits non-zero or times out.
            ExportCancelled: The cancel event was set while the command was running.
        """

        logger.debug("Running command", extra={"argv": cmd, "cwd": str(cwd) if cwd else None})
        try:
            process = subprocess.Popen(
                cmd,
                cwd=cwd,
                env=self._env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                # Own process group, so a kill also reaches helpers such as git-remote-https.
                start_new_session=True,
            )
        except OSError as e:
            # Missing executable (FileNotFoundError) or not executable (PermissionError).
            raise ToolInvocationError(
                f"Could not run {cmd[0]}: {e}", command=cmd, returncode=None
            ) from e

        deadline = time.monotonic() + timeout
        while True:
            if self._cancel_event is not None and self._cancel_event.is_set():
                _kill(process)
                raise ExportCancelled(f"Export cancelled while running {cmd[0]} {cmd[1]}")

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                stdout, stderr = _kill(process)
                raise ToolInvocationError(
                    f"{cmd[0]} {cmd[1]} timed out after {timeout:g}s",
                    command=cmd,
                    stdout=stdout,
                    stderr=stderr,
                    timed_out=True,
                )

            try:
                stdout, stderr = process.communicate(
                    timeout=min(remaining, _POLL_INTERVAL_SECONDS)
                )
                break
            except subprocess.TimeoutExpired:
                # Retrying communicate() after a timeout does not lose output.
                continue

        result = CommandResult(
            command=cmd, returncode=process.returncode, stdout=stdout, stderr=stderr
        )
        if result.returncode != 0:
            raise ToolInvocationError(
                f"{cmd[0]} {cmd[1]} failed (exit {result.returncode})",
                command=cmd,
                returncode=result.returncode,
                stdout=stdout,
                stderr=stderr,
            )
        return result


def _kill(process: subprocess.Popen[str]) -> tuple[str, str]:
    """Kill the command and every process it spawned, then drain its pipes."""

    if hasattr(os, "killpg"):
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            # Group already gone.
            pass
    process.kill()
    try:
        stdout, stderr = process.communicate(timeout=_DRAIN_TIMEOUT_SECONDS)
    except subprocess.TimeoutExpired:
        logger.warning(
            "Killed command did not release its output; discarding it",
            extra={"argv": process.args},
        )
        return "", ""
    return stdout or "", stderr or ""
