"""Readiness checks for the hosting tool, run before any side effect."""

from __future__ import annotations

import logging

from uigen_export.export.errors import (
    ToolInvocationError,
    ToolNotAuthenticated,
    ToolNotInstalled,
)
from uigen_export.export.toolchain import Toolchain

logger = logging.getLogger(__name__)

NOT_INSTALLED_MESSAGE = (
    "GitHub CLI not installed. Please install GitHub CLI (https://cli.github.com/) "
    'and authenticate with "gh auth login"'
)
NOT_AUTHENTICATED_MESSAGE = (
    'Not authenticated with GitHub CLI. Please run "gh auth login" to authenticate.'
)


def check_preconditions(toolchain: Toolchain) -> None:
    """Verify the tool is installed, then that it is authenticated.

    The order matters: asking a missing tool for its auth status only produces
    a confusing error, so the auth check is skipped when the first one fails.
    """

    try:
        toolchain.version_check()
    except ToolInvocationError as e:
        logger.warning("GitHub CLI unavailable", extra={"detail": e.output})
        raise ToolNotInstalled(NOT_INSTALLED_MESSAGE) from e

    try:
        toolchain.auth_status()
    except ToolInvocationError as e:
        logger.warning("GitHub CLI not authenticated", extra={"detail": e.output})
        raise ToolNotAuthenticated(NOT_AUTHENTICATED_MESSAGE) from e
