"""FastAPI app factory.

The export endpoint is a thin wrapper over :func:`uigen_export.export.export_project`:
it resolves the caller, validates input and maps pipeline failures to status
codes. The pipeline itself runs in the thread pool, one instance per request.
"""

from __future__ import annotations

import asyncio
import logging
import threading

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from uigen_export import __version__
from uigen_export.export.errors import (
    ExportCancelled,
    ExportError,
    PreconditionError,
    ProjectNotFound,
)
from uigen_export.export.pipeline import (
    ExportRequest,
    ToolchainFactory,
    default_toolchain_factory,
    export_project,
)
from uigen_export.export.projects import ProjectStore
from uigen_export.server.config import ServerSettings
from uigen_export.server.models import ErrorResponse, ExportResponse
from uigen_export.server.sessions import SessionStore

logger = logging.getLogger(__name__)


def _session_token(request: Request, settings: ServerSettings) -> str | None:
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


async def _project_id_from_body(request: Request) -> str:
    try:
        body = await request.json()
    except ValueError:
        body = None
    project_id = body.get("projectId") if isinstance(body, dict) else None
    if not isinstance(project_id, str) or not project_id.strip():
        raise HTTPException(status_code=400, detail="Project ID is required")
    return project_id.strip()


def create_app(
    settings: ServerSettings | None = None,
    *,
    toolchain_factory: ToolchainFactory | None = None,
) -> FastAPI:
    settings = settings or ServerSettings()

    app = FastAPI(
        title="UIGen Export",
        version=__version__,
        description="Export UIGen projects to GitHub repositories.",
    )

    # Expose settings and collaborators for request handlers (and tests) to read.
    app.state.settings = settings
    app.state.projects = ProjectStore(settings.projects_state_file)
    app.state.sessions = SessionStore(settings.sessions_state_file)
    app.state.toolchain_factory = toolchain_factory or default_toolchain_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def _error_body(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(
        "/export",
        response_model=ExportResponse,
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        },
    )
    async def export(request: Request) -> ExportResponse:
        user_id = await run_in_threadpool(
            app.state.sessions.resolve, _session_token(request, settings)
        )
        if user_id is None:
            raise HTTPException(status_code=401, detail="Unauthorized")

        project_id = await _project_id_from_body(request)

        cancel_event = threading.Event()
        deadline = threading.Timer(settings.export_timeout_seconds, cancel_event.set)
        deadline.daemon = True
        deadline.start()
        try:
            result = await run_in_threadpool(
                export_project,
                ExportRequest(project_id=project_id, requester_id=user_id),
                store=app.state.projects,
                settings=settings,
                toolchain_factory=app.state.toolchain_factory,
                cancel_event=cancel_event,
            )
        except asyncio.CancelledError:
            # Caller went away: stop the worker thread at its next checkpoint.
            cancel_event.set()
            raise
        except ProjectNotFound as e:
            raise HTTPException(status_code=404, detail=e.message) from e
        except PreconditionError as e:
            raise HTTPException(status_code=400, detail=e.message) from e
        except ExportCancelled as e:
            logger.warning("GitHub export cancelled", extra={"project_id": project_id})
            raise HTTPException(
                status_code=500,
                detail=f"Export timed out after {settings.export_timeout_seconds:g}s",
            ) from e
        except ExportError as e:
            logger.warning(
                "GitHub export failed",
                extra={"project_id": project_id, "error_kind": type(e).__name__},
            )
            raise HTTPException(status_code=500, detail=e.message) from e
        except Exception as e:
            logger.exception("GitHub export error", extra={"project_id": project_id})
            raise HTTPException(
                status_code=500, detail=str(e) or "Failed to export to GitHub"
            ) from e
        finally:
            deadline.cancel()

        return ExportResponse(
            repository_url=result.repository_url,
            message=f"Successfully exported project to GitHub repository: {result.repository_url}",
        )

    return app
