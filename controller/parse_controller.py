# controller/parse_controller.py
from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from model.api import MessageResponse, ParseResponse
from model.report import ParseSummary
from service.parse_service import ParseService
from util.constants import InternalURIs
from util.enums import NamingMode
from util.functions import content_disposition
from controller.controller_dependencies import (
    enforce_max_upload_size,
    get_parse_service,
    rate_limiter,
)

parse_router = APIRouter(dependencies=[Depends(rate_limiter)])


@parse_router.post(
    InternalURIs.PARSE_PDF,
    response_model=ParseResponse,
    dependencies=[Depends(enforce_max_upload_size)],
)
async def parse_pdf(
    file: UploadFile | None = File(None),
    className: str = Form(""),
    sessionId: str | None = Form(None),
    service: ParseService = Depends(get_parse_service),
) -> ParseResponse:
    return await service.parse_pdf(file, className, sessionId)


@parse_router.post(
    InternalURIs.STREAM_PARSE,
    dependencies=[Depends(enforce_max_upload_size)],
)
async def stream_parse(
    file: UploadFile | None = File(None),
    className: str = Form(""),
    sessionId: str | None = Form(None),
    service: ParseService = Depends(get_parse_service),
):
    # Validation errors surface as plain HTTP errors before the stream opens
    prepared = await service.prepare(file, className)
    # runs even when the body is never iterated
    return StreamingResponse(
        service.stream_parse(prepared, sessionId),
        media_type="application/x-ndjson",
        background=BackgroundTask(prepared.document.close),
    )


@parse_router.get(InternalURIs.PARSE, response_model=ParseSummary)
async def get_parse(
    parseId: str,
    service: ParseService = Depends(get_parse_service),
) -> ParseSummary:
    return await service.get_summary(parseId)


@parse_router.delete(InternalURIs.PARSE, response_model=MessageResponse)
async def delete_parse(
    parseId: str,
    service: ParseService = Depends(get_parse_service),
) -> MessageResponse:
    await service.delete_parse(parseId)
    return MessageResponse(message="Parse result deleted")


@parse_router.get(InternalURIs.REPORT_PDF)
async def download_pdf(
    parseId: str,
    reportId: str,
    service: ParseService = Depends(get_parse_service),
) -> Response:
    data, filename = await service.get_report_pdf(parseId, reportId)
    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": content_disposition(filename)},
    )


@parse_router.get(InternalURIs.ZIP)
async def download_zip(
    parseId: str,
    namingMode: NamingMode,
    service: ParseService = Depends(get_parse_service),
) -> Response:
    data, filename = await service.build_zip(parseId, namingMode)
    return Response(
        content=data,
        media_type="application/zip",
        headers={"Content-Disposition": content_disposition(filename)},
    )


@parse_router.delete(InternalURIs.REPORT, response_model=MessageResponse)
async def delete_report(
    parseId: str,
    reportId: str,
    service: ParseService = Depends(get_parse_service),
) -> MessageResponse:
    await service.delete_report(parseId, reportId)
    return MessageResponse(message="Report deleted successfully")
