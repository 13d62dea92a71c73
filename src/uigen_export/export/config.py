"""Configuration for the export pipeline.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Tool locations, timeouts and the workspace location are all configurable so
that the pipeline can run against GitHub Enterprise hosts or in sandboxes
where the temp dir lives somewhere unusual.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExportSettings(BaseSettings):
    """Settings for exporting projects to GitHub.

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `ExportSettings(_env_file=path_to_env)`.
    """

    gh_binary: str = Field(
        default="gh",
        validation_alias="UIGEN_GH_BINARY",
        description="GitHub CLI executable",
    )
    git_binary: str = Field(
        default="git",
        validation_alias="UIGEN_GIT_BINARY",
        description="git executable",
    )
    github_host: str = Field(
        default="github.com",
        validation_alias="UIGEN_GITHUB_HOST",
        description="Host used to recognise and synthesise repository URLs",
    )
    repo_visibility: Literal["public", "private", "internal"] = Field(
        default="public",
        validation_alias="UIGEN_REPO_VISIBILITY",
    )

    commit_message: str = Field(
        default="Initial commit from UIGen",
        validation_alias="UIGEN_COMMIT_MESSAGE",
    )
    default_branch: str = Field(
        default="main",
        validation_alias="UIGEN_DEFAULT_BRANCH",
    )
    git_author_name: str = Field(
        default="",
        validation_alias="UIGEN_GIT_AUTHOR_NAME",
        description="Commit author name; empty means use the git config of the host",
    )
    git_author_email: str = Field(
        default="",
        validation_alias="UIGEN_GIT_AUTHOR_EMAIL",
        description="Commit author email; empty means use the git config of the host",
    )

    workspace_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        validation_alias="UIGEN_WORKSPACE_DIR",
        description="Directory under which per-export workspaces are created",
    )
    workspace_prefix: str = Field(
        default="uigen-export",
        validation_alias="UIGEN_WORKSPACE_PREFIX",
    )

    check_timeout_seconds: float = Field(
        default=30.0, gt=0, validation_alias="UIGEN_CHECK_TIMEOUT_SECONDS"
    )
    vcs_timeout_seconds: float = Field(
        default=60.0, gt=0, validation_alias="UIGEN_VCS_TIMEOUT_SECONDS"
    )
    publish_timeout_seconds: float = Field(
        default=300.0, gt=0, validation_alias="UIGEN_PUBLISH_TIMEOUT_SECONDS"
    )
    export_timeout_seconds: float = Field(
        default=600.0,
        gt=0,
        validation_alias="UIGEN_EXPORT_TIMEOUT_SECONDS",
        description="Overall deadline for one export, after which it is cancelled",
    )

    state_path: Path = Field(
        default=Path("uigen_state"),
        validation_alias="UIGEN_STATE_PATH",
        description="Directory where local project and session state is persisted",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def projects_state_file(self) -> Path:
        """Path where project records are persisted."""

        return self.state_path / "projects.json"

    @property
    def sessions_state_file(self) -> Path:
        """Path where issued session tokens are persisted."""

        return self.state_path / "sessions.json"
