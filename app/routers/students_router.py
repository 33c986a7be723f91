# /app/routers/students_router.py

from fastapi import APIRouter, Depends, HTTPException, status, Response, UploadFile, File

from ..models import student_model
from ..models.report_model import ArchivedReport
from ..services import gemini_service, chart_service
from ..services.state_controller import (
    ApplicationStateController,
    EvaluationFailedError,
    NotFoundError,
    get_state_controller,
)

router = APIRouter()


def get_evaluator():
    """Dependency returning the evaluation client. Overridden in tests."""
    return gemini_service.analyze_student_work


def _get_student_or_404(student_id: str, controller: ApplicationStateController) -> student_model.Student:
    student = controller.get_student(student_id)
    if student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student with ID {student_id} not found")
    return student


@router.get("/{student_id}", response_model=student_model.Student, summary="Get a Student")
def get_student(student_id: str, controller: ApplicationStateController = Depends(get_state_controller)):
    return _get_student_or_404(student_id, controller)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a Student")
async def delete_student(student_id: str, controller: ApplicationStateController = Depends(get_state_controller)):
    was_deleted = await controller.delete_student(student_id)
    if not was_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student with ID {student_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{student_id}/image", response_model=student_model.Student, summary="Upload a Work Sample")
async def upload_work_image(
    student_id: str,
    file: UploadFile = File(...),
    controller: ApplicationStateController = Depends(get_state_controller)
):
    _get_student_or_404(student_id, controller)
    file_bytes = await file.read()
    try:
        updated = await controller.attach_work_image(student_id, file_bytes)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if updated is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="The uploaded file could not be read as an image.")
    return updated


@router.post("/{student_id}/analyze", response_model=student_model.Student, summary="Evaluate the Work Sample with AI")
async def analyze_student(
    student_id: str,
    controller: ApplicationStateController = Depends(get_state_controller),
    evaluate=Depends(get_evaluator)
):
    _get_student_or_404(student_id, controller)
    try:
        updated = await controller.analyze_student(student_id, evaluate)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except EvaluationFailedError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="The evaluation failed. Please try again.")
    if updated is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Upload a work sample before requesting an evaluation.")
    return updated


@router.post("/{student_id}/archive", response_model=ArchivedReport, summary="Save the Current Evaluation to the Archive", status_code=status.HTTP_201_CREATED)
async def archive_student(student_id: str, controller: ApplicationStateController = Depends(get_state_controller)):
    _get_student_or_404(student_id, controller)
    report = await controller.archive_student(student_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This student has no evaluation to archive.")
    return report


@router.get("/{student_id}/radar.png", summary="Radar Chart of the Current Evaluation")
def get_student_radar(student_id: str, controller: ApplicationStateController = Depends(get_state_controller)):
    student = _get_student_or_404(student_id, controller)
    evaluation = student.current_evaluation
    if evaluation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="This student has no evaluation yet.")
    png = chart_service.render_radar_png({student.name: chart_service.evaluation_axes(evaluation)})
    return Response(content=png, media_type="image/png")
