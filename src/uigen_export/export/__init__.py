"""Project export pipeline.

Business logic lives here; the HTTP adapter in `uigen_export.server` and the CLI
in `uigen_export.export.main` are thin wrappers over :func:`export_project`.
"""

from __future__ import annotations

from uigen_export.export.pipeline import (
    ExportPipeline,
    ExportRequest,
    PipelineState,
    export_project,
)
from uigen_export.export.publisher import PublishResult

__all__ = [
    "ExportPipeline",
    "ExportRequest",
    "PipelineState",
    "PublishResult",
    "export_project",
]
