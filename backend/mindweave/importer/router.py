"""Import API routes."""

from fastapi import APIRouter, Depends, Form, UploadFile
from fastapi.responses import JSONResponse

from mindweave.importer.errors import FileTooLarge, InvalidSourceType
from mindweave.importer.models import ParseResult
from mindweave.importer.parsers.detection import SNIFF_WINDOW, matching_sources
from mindweave.importer.schemas import (
    DetectResponse,
    ImportPreviewResponse,
    SourceInfo,
    SourceListResponse,
)
from mindweave.importer.service import ImportService, RawUpload
from mindweave.importer.sources import list_sources
from mindweave.importer.state import ImportOutcome, ImportState

router = APIRouter(prefix="/api/import", tags=["import"])

STATUS_CODES: dict[ImportState, int] = {
    ImportState.COMPLETED: 200,
    ImportState.REJECTED_UNKNOWN_SOURCE: 400,
    ImportState.REJECTED_TOO_LARGE: 413,
    ImportState.REJECTED_INVALID_FORMAT: 400,
    ImportState.FAILED: 422,
    ImportState.TIMED_OUT: 504,
}


def get_import_service() -> ImportService:
    """Dependency placeholder, replaced in the app lifespan."""
    raise RuntimeError("ImportService not configured")


def _respond(outcome: ImportOutcome) -> JSONResponse:
    body = ImportPreviewResponse(
        success=outcome.result.success,
        items=outcome.result.items,
        errors=outcome.result.errors,
        warnings=outcome.result.warnings,
        stats=outcome.result.stats,
        outcome=outcome.state.value,
        message=outcome.message,
    )
    return JSONResponse(
        status_code=STATUS_CODES.get(outcome.state, 500),
        content=body.model_dump(mode="json"),
    )


def _rejection(state: ImportState, error: InvalidSourceType | FileTooLarge) -> JSONResponse:
    return _respond(ImportOutcome(
        state=state,
        result=ParseResult.failure(error.message),
        code=error.code,
        message=error.message,
    ))


@router.get("/sources")
async def get_sources(
    service: ImportService = Depends(get_import_service),
) -> SourceListResponse:
    """List the export formats that can be imported."""
    return SourceListResponse(
        sources=[
            SourceInfo(
                id=s.id.value,
                label=s.label,
                description=s.description,
                accepted_mime=sorted(s.accepted_mime),
                accepted_extensions=list(s.accepted_extensions),
            )
            for s in list_sources()
        ],
        max_upload_bytes=service.limits.max_upload_bytes,
    )


@router.post("/preview")
async def preview_import(
    file: UploadFile,
    source: str = Form(...),
    service: ImportService = Depends(get_import_service),
) -> JSONResponse:
    """Parse an uploaded export and return the items it would create."""
    # The source is validated and the declared size checked before any of
    # the body is read.
    try:
        service.resolve_source(source)
    except InvalidSourceType as e:
        return _rejection(ImportState.REJECTED_UNKNOWN_SOURCE, e)

    limit = service.limits.max_upload_bytes
    try:
        if file.size is not None:
            service.check_size(file.size)
        content = await file.read(limit + 1)
        service.check_size(len(content))
    except FileTooLarge as e:
        return _rejection(ImportState.REJECTED_TOO_LARGE, e)

    outcome = await service.preview(RawUpload(content=content, source=source, filename=file.filename))
    return _respond(outcome)


@router.post("/detect")
async def detect_import(file: UploadFile) -> DetectResponse:
    """Report which sources' signatures match the start of the file."""
    head = await file.read(SNIFF_WINDOW)
    return DetectResponse(candidates=[s.value for s in matching_sources(head, file.filename)])
