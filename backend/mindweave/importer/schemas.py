"""Pydantic schemas for the import API."""

from pydantic import BaseModel

from mindweave.importer.models import ParsedItem, ParseError, ParseStats


class ImportPreviewResponse(BaseModel):
    success: bool
    items: list[ParsedItem]
    errors: list[ParseError]
    warnings: list[str]
    stats: ParseStats
    outcome: str
    message: str | None = None


class SourceInfo(BaseModel):
    id: str
    label: str
    description: str
    accepted_mime: list[str]
    accepted_extensions: list[str]


class SourceListResponse(BaseModel):
    sources: list[SourceInfo]
    max_upload_bytes: int


class DetectResponse(BaseModel):
    candidates: list[str]
