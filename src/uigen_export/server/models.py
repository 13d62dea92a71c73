"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ExportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    repository_url: str = Field(alias="repositoryUrl")
    message: str


class ErrorResponse(BaseModel):
    error: str
