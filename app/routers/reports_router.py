# /app/routers/reports_router.py

from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.responses import StreamingResponse
from typing import List

from ..models.report_model import ArchivedReport
from ..services import pdf_service, report_service
from ..services.state_controller import ApplicationStateController, get_state_controller

router = APIRouter()


@router.get("", response_model=List[ArchivedReport], summary="Get All Archived Reports, Newest First")
def get_reports(controller: ApplicationStateController = Depends(get_state_controller)):
    return controller.state.savedReports


@router.get("/export.csv", summary="Export the Archive as CSV", response_class=StreamingResponse)
def export_reports_csv(controller: ApplicationStateController = Depends(get_state_controller)):
    csv_string = report_service.export_reports_csv(controller.state.savedReports)
    return StreamingResponse(iter([csv_string]), media_type="text/csv", headers={"Content-Disposition": "attachment; filename=archived_reports.csv"})


@router.get("/{report_id}", response_model=ArchivedReport, summary="Get an Archived Report")
def get_report(report_id: str, controller: ApplicationStateController = Depends(get_state_controller)):
    report = controller.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Report with ID {report_id} not found")
    return report


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an Archived Report")
async def delete_report(report_id: str, controller: ApplicationStateController = Depends(get_state_controller)):
    was_deleted = await controller.delete_report(report_id)
    if not was_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Report with ID {report_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{report_id}/pdf", summary="Download an Archived Report as PDF")
def download_report_pdf(report_id: str, controller: ApplicationStateController = Depends(get_state_controller)):
    report = controller.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Report with ID {report_id} not found")
    pdf_bytes = pdf_service.build_report_pdf(report)
    file_name = pdf_service.safe_filename(report)
    return Response(content=pdf_bytes, media_type="application/pdf", headers={"Content-Disposition": f"attachment; filename={file_name}"})
