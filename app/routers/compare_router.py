# /app/routers/compare_router.py

from fastapi import APIRouter, Depends, HTTPException, status, Response

from ..models.evaluation_model import PlagiarismComparison
from ..models.state_model import ComparisonResponse
from ..services import chart_service, gemini_service
from ..services.state_controller import ApplicationStateController, NotFoundError, get_state_controller

router = APIRouter()


def get_plagiarism_checker():
    """Dependency returning the plagiarism comparison client. Overridden in tests."""
    return gemini_service.compare_students_for_plagiarism


def _comparison_response(controller: ApplicationStateController) -> ComparisonResponse:
    return ComparisonResponse(
        selection=list(controller.session.comparison_selection),
        rows=chart_service.build_comparison_rows(controller.comparison_students()),
    )


@router.get("", response_model=ComparisonResponse, summary="Get the Comparison Selection and Chart Data")
def get_comparison(controller: ApplicationStateController = Depends(get_state_controller)):
    return _comparison_response(controller)


@router.post("/toggle/{student_id}", response_model=ComparisonResponse, summary="Add or Remove a Student from the Comparison")
def toggle_student(student_id: str, controller: ApplicationStateController = Depends(get_state_controller)):
    try:
        controller.toggle_comparison(student_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return _comparison_response(controller)


@router.delete("", response_model=ComparisonResponse, summary="Clear the Comparison Selection")
def clear_selection(controller: ApplicationStateController = Depends(get_state_controller)):
    controller.clear_comparison()
    return _comparison_response(controller)


@router.get("/chart.png", summary="Radar Chart Comparing the Selected Students")
def get_comparison_chart(controller: ApplicationStateController = Depends(get_state_controller)):
    students = controller.comparison_students()
    if not students:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Select at least one evaluated student to compare.")
    return Response(content=chart_service.render_radar_png(chart_service.comparison_series(students)), media_type="image/png")


@router.post("/plagiarism", response_model=PlagiarismComparison, summary="Check the Selected Students' Stories for Copying")
async def check_plagiarism(
    controller: ApplicationStateController = Depends(get_state_controller),
    compare=Depends(get_plagiarism_checker)
):
    samples = [(s.name, s.current_evaluation.transcribedText) for s in controller.comparison_students()]
    if len(samples) < 2:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Select at least two evaluated students to compare.")
    try:
        return await compare(samples)
    except gemini_service.EvaluationServiceError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="The comparison failed. Please try again.")
