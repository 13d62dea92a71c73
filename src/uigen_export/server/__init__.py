"""FastAPI server adapter for uigen-export.

Design intent:
- Keep business logic in `uigen_export.export.*`
- Keep server-specific concerns (routing, sessions, CORS, status codes) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from uigen_export.server.app import create_app
