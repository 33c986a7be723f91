# /tests/test_routers.py

import json
import pytest
from unittest.mock import AsyncMock

from app.main import app
from app.models.evaluation_model import PlagiarismComparison
from app.routers.students_router import get_evaluator
from app.routers.compare_router import get_plagiarism_checker
from app.services.gemini_service import EvaluationServiceError


@pytest.fixture
def evaluator(sample_evaluation):
    mock = AsyncMock(return_value=sample_evaluation)
    app.dependency_overrides[get_evaluator] = lambda: mock
    return mock


def _create_class(client, name="5A"):
    response = client.post("/api/classes", json={"name": name})
    assert response.status_code == 201, response.text
    return response.json()


def _create_student(client, class_id, name="Ali"):
    response = client.post(f"/api/classes/{class_id}/students", json={"name": name})
    assert response.status_code == 201, response.text
    return response.json()


def _upload(client, student_id, image_bytes):
    return client.post(
        f"/api/students/{student_id}/image",
        files={"file": ("story.png", image_bytes, "image/png")},
    )


def _evaluated_student(client, image_bytes, class_name="5A", name="Ali"):
    grade = _create_class(client, class_name)
    student = _create_student(client, grade["id"], name)
    assert _upload(client, student["id"], image_bytes).status_code == 200
    response = client.post(f"/api/students/{student['id']}/analyze")
    assert response.status_code == 200, response.text
    return grade, response.json()


def test_health_check(api_client):
    response = api_client.get("/")
    assert response.status_code == 200
    assert response.json()["status"].startswith("Story Grader")


def test_class_lifecycle_with_cascade(api_client):
    grade = _create_class(api_client)
    _create_student(api_client, grade["id"], "Ali")
    _create_student(api_client, grade["id"], "Ece")

    summaries = api_client.get("/api/classes").json()
    assert summaries == [{"id": grade["id"], "name": "5A", "studentCount": 2}]

    details = api_client.get(f"/api/classes/{grade['id']}").json()
    assert [s["name"] for s in details["students"]] == ["Ali", "Ece"]

    assert api_client.delete(f"/api/classes/{grade['id']}").status_code == 204
    assert api_client.get("/api/classes").json() == []
    assert api_client.get(f"/api/classes/{grade['id']}").status_code == 404


def test_blank_class_name_is_rejected(api_client):
    assert api_client.post("/api/classes", json={"name": "   "}).status_code == 422


def test_student_in_unknown_class_is_404(api_client):
    response = api_client.post("/api/classes/cls_missing/students", json={"name": "Ali"})
    assert response.status_code == 404


def test_upload_and_analyze(api_client, evaluator, make_image_bytes):
    grade = _create_class(api_client)
    student = _create_student(api_client, grade["id"])
    assert student["status"] == "no_image"

    uploaded = _upload(api_client, student["id"], make_image_bytes(width=2000, height=1000)).json()
    assert uploaded["status"] == "image_pending"
    assert uploaded["workImage"].startswith("data:image/jpeg;base64,")

    analyzed = api_client.post(f"/api/students/{student['id']}/analyze").json()
    assert analyzed["status"] == "evaluated"
    assert analyzed["evaluation"]["overallScore"] == 82
    assert evaluator.await_args.args[1] == "5A"

    radar = api_client.get(f"/api/students/{student['id']}/radar.png")
    assert radar.status_code == 200
    assert radar.headers["content-type"] == "image/png"


def test_bad_upload_is_rejected(api_client):
    grade = _create_class(api_client)
    student = _create_student(api_client, grade["id"])
    response = _upload(api_client, student["id"], b"not an image")
    assert response.status_code == 422
    assert api_client.get(f"/api/students/{student['id']}").json()["status"] == "no_image"


def test_analyze_without_image_is_conflict(api_client, evaluator):
    grade = _create_class(api_client)
    student = _create_student(api_client, grade["id"])
    assert api_client.post(f"/api/students/{student['id']}/analyze").status_code == 409
    evaluator.assert_not_awaited()


def test_failed_analysis_is_a_generic_error(api_client, make_image_bytes):
    failing = AsyncMock(side_effect=EvaluationServiceError("boom"))
    app.dependency_overrides[get_evaluator] = lambda: failing
    grade = _create_class(api_client)
    student = _create_student(api_client, grade["id"])
    _upload(api_client, student["id"], make_image_bytes())

    response = api_client.post(f"/api/students/{student['id']}/analyze")

    assert response.status_code == 502
    assert "boom" not in response.text
    assert api_client.get(f"/api/students/{student['id']}").json()["status"] == "image_pending"


def test_archive_and_report_endpoints(api_client, evaluator, make_image_bytes):
    grade, student = _evaluated_student(api_client, make_image_bytes())

    response = api_client.post(f"/api/students/{student['id']}/archive")
    assert response.status_code == 201
    report = response.json()
    assert report["studentName"] == "Ali" and report["gradeName"] == "5A"

    # Deleting the class keeps the archived report.
    api_client.delete(f"/api/classes/{grade['id']}")
    reports = api_client.get("/api/reports").json()
    assert [r["id"] for r in reports] == [report["id"]]

    pdf = api_client.get(f"/api/reports/{report['id']}/pdf")
    assert pdf.status_code == 200
    assert pdf.content.startswith(b"%PDF")

    csv_response = api_client.get("/api/reports/export.csv")
    assert csv_response.status_code == 200
    assert "Ali" in csv_response.text

    assert api_client.delete(f"/api/reports/{report['id']}").status_code == 204
    assert api_client.get(f"/api/reports/{report['id']}").status_code == 404


def test_archive_without_evaluation_is_conflict(api_client):
    grade = _create_class(api_client)
    student = _create_student(api_client, grade["id"])
    assert api_client.post(f"/api/students/{student['id']}/archive").status_code == 409
    assert api_client.get("/api/reports").json() == []


def test_comparison_selection_and_chart(api_client, evaluator, make_image_bytes):
    grade, ali = _evaluated_student(api_client, make_image_bytes())
    ece = _create_student(api_client, grade["id"], "Ece")

    api_client.post(f"/api/compare/toggle/{ali['id']}")
    comparison = api_client.post(f"/api/compare/toggle/{ece['id']}").json()

    assert comparison["selection"] == [ali["id"], ece["id"]]
    assert comparison["rows"][-1] == {"subject": "Overall", "Ali": 82}
    assert api_client.get("/api/compare/chart.png").status_code == 200

    cleared = api_client.delete("/api/compare").json()
    assert cleared["selection"] == []
    assert api_client.get("/api/compare/chart.png").status_code == 404


def test_plagiarism_check_needs_two_students(api_client, evaluator, make_image_bytes):
    grade, ali = _evaluated_student(api_client, make_image_bytes())
    api_client.post(f"/api/compare/toggle/{ali['id']}")
    assert api_client.post("/api/compare/plagiarism").status_code == 400

    ece = _create_student(api_client, grade["id"], "Ece")
    _upload(api_client, ece["id"], make_image_bytes())
    api_client.post(f"/api/students/{ece['id']}/analyze")
    api_client.post(f"/api/compare/toggle/{ece['id']}")
    checker = AsyncMock(return_value=PlagiarismComparison(similarityScore=95, note="Same text."))
    app.dependency_overrides[get_plagiarism_checker] = lambda: checker

    response = api_client.post("/api/compare/plagiarism")

    assert response.status_code == 200
    assert response.json()["similarityScore"] == 95
    names = [name for name, _ in checker.await_args.args[0]]
    assert names == ["Ali", "Ece"]


def test_export_import_round_trip(api_client, evaluator, make_image_bytes):
    _, student = _evaluated_student(api_client, make_image_bytes())
    api_client.post(f"/api/students/{student['id']}/archive")
    api_client.put("/api/state/reference-text", json={"referenceText": "The Fox"})

    export = api_client.get("/api/state/export")
    assert export.status_code == 200
    assert "Story_Evaluation_Backup_" in export.headers["content-disposition"]
    document = export.json()

    imported = api_client.post(
        "/api/state/import?confirm=true",
        files={"file": ("backup.json", export.content, "application/json")},
    )
    assert imported.status_code == 200
    assert api_client.get("/api/state/export").json() == document


def test_import_requires_confirmation_and_valid_json(api_client):
    _create_class(api_client)
    body = json.dumps({"grades": []}).encode()

    unconfirmed = api_client.post("/api/state/import", files={"file": ("b.json", body, "application/json")})
    assert unconfirmed.status_code == 409

    broken = api_client.post("/api/state/import?confirm=true", files={"file": ("b.json", b"{oops", "application/json")})
    assert broken.status_code == 400

    assert len(api_client.get("/api/classes").json()) == 1


def test_reference_text_and_onboarding(api_client):
    assert api_client.get("/api/state/reference-text").json() == {"referenceText": ""}
    api_client.put("/api/state/reference-text", json={"referenceText": "Model story"})
    assert api_client.get("/api/state/reference-text").json() == {"referenceText": "Model story"}

    assert api_client.get("/api/state/session").json()["showOnboarding"] is True
    assert api_client.post("/api/state/onboarding/dismiss").json()["showOnboarding"] is False
