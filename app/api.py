"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from app.schemas import ComparisonReport, FormatsResponse, build_report
from models.outcomes import DecodeFailure
from services.pipeline import ComparisonService, StreamSource, build_default_service
from settings import get_settings

router = APIRouter()


def get_service() -> ComparisonService:
    return build_default_service()


async def _read_upload(upload: UploadFile, field_name: str) -> bytes:
    limit = get_settings().max_input_bytes
    contents = await upload.read(limit + 1)
    await upload.close()
    if len(contents) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Upload {field_name!r} exceeds the {limit} byte limit.",
        )
    return contents


@router.get(
    "/formats",
    response_model=FormatsResponse,
    summary="List the registered input format identifiers.",
)
async def list_formats(
    service: ComparisonService = Depends(get_service),
) -> FormatsResponse:
    return FormatsResponse(formats=service.registry.formats())


@router.post(
    "/comparisons",
    response_model=ComparisonReport,
    response_model_exclude_none=True,
    summary="Decode two transaction logs and compare them position by position.",
)
async def compare_files(
    file1: UploadFile = File(..., description="First transaction log."),
    format1: str = Form(..., description="Format identifier of the first log."),
    file2: UploadFile = File(..., description="Second transaction log."),
    format2: str = Form(..., description="Format identifier of the second log."),
    all_mismatches: bool = Form(False, description="Report every positional mismatch."),
    service: ComparisonService = Depends(get_service),
) -> ComparisonReport:
    first = StreamSource(
        data=await _read_upload(file1, "file1"),
        format_name=format1,
        label=file1.filename,
    )
    second = StreamSource(
        data=await _read_upload(file2, "file2"),
        format_name=format2,
        label=file2.filename,
    )

    if not all_mismatches:
        outcome = await run_in_threadpool(service.compare_streams, first, second)
        return build_report(outcome)

    collected = await run_in_threadpool(service.collect_mismatches, first, second)
    if isinstance(collected, DecodeFailure):
        return build_report(collected)
    outcome, mismatches = collected
    return build_report(outcome, mismatches)
