import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status

# Any authenticated role may read reports
from ..auth.security import get_current_reader

from .schemas import PreviewResponse, ReportRequest
from . import service as report_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    dependencies=[Depends(get_current_reader)],
)

@router.post(
    "",
    response_class=Response,
    responses={
        200: {
            "description": "The encoded report as an attachment",
            "content": {"text/csv": {}, "application/pdf": {}, "application/octet-stream": {}},
        }
    },
)
async def generate_report(report_request: ReportRequest):
    try:
        report = await report_service.build_report_file(report_request)
    except Exception:
        logger.error(
            f"Failed to generate {report_request.report_type.value} report as {report_request.format.value}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate report",
        )
    return Response(
        content=report.body,
        media_type=report.content_type,
        headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
    )

@router.post("/preview", response_model=PreviewResponse)
async def preview_report(report_request: ReportRequest):
    try:
        return await report_service.generate_preview(report_request)
    except Exception:
        logger.error(f"Failed to generate {report_request.report_type.value} report preview", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate report preview",
        )
