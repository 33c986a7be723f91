# /tests/test_gemini_service.py

import base64
import pytest

from app.models.evaluation_model import Evaluation, PlagiarismComparison
from app.services import gemini_service
from app.services.gemini_service import EvaluationServiceError


@pytest.fixture
def work_image(make_image_bytes):
    return "data:image/png;base64," + base64.b64encode(make_image_bytes()).decode()


@pytest.mark.asyncio
async def test_analyze_student_work_builds_prompt_and_validates(mocker, work_image):
    ai_payload = {
        "handwritingScore": 70,
        "originalityScore": 90,
        "creativityScore": 85,
        "overallScore": 81,
        "punctuationErrors": ["Missing full stop"],
        "conceptKnowledge": "Good structure.",
        "transcribedText": "The dragon slept.",
        "plagiarismNote": "Original.",
        "weaknesses": ["Short"],
        "suggestions": [{"topic": "Length", "action": "Add a middle part."}],
    }
    mock_call = mocker.patch.object(gemini_service, "generate_multimodal_json", return_value=ai_payload)

    evaluation = await gemini_service.analyze_student_work(work_image, "5A", "The Lion and the Mouse")

    assert isinstance(evaluation, Evaluation)
    assert evaluation.overallScore == 81
    assert evaluation.suggestions[0].action == "Add a middle part."
    prompt, images = mock_call.call_args.args
    assert '"5A"' in prompt
    assert "The Lion and the Mouse" in prompt
    assert len(images) == 1 and images[0].size == (400, 300)


@pytest.mark.asyncio
async def test_partial_ai_response_gets_defaults(mocker, work_image):
    mocker.patch.object(gemini_service, "generate_multimodal_json", return_value={"overallScore": 55})

    evaluation = await gemini_service.analyze_student_work(work_image, "5A", "")

    assert evaluation.overallScore == 55
    assert evaluation.punctuationErrors == []
    assert evaluation.transcribedText == ""


@pytest.mark.asyncio
async def test_invalid_ai_response_raises_service_error(mocker, work_image):
    mocker.patch.object(gemini_service, "generate_multimodal_json", return_value={"punctuationErrors": "not a list"})
    with pytest.raises(EvaluationServiceError):
        await gemini_service.analyze_student_work(work_image, "5A", "")


@pytest.mark.asyncio
async def test_transport_failure_raises_service_error(mocker, work_image):
    mocker.patch.object(gemini_service, "generate_multimodal_json", side_effect=ConnectionError("offline"))
    with pytest.raises(EvaluationServiceError):
        await gemini_service.analyze_student_work(work_image, "5A", "")


@pytest.mark.asyncio
async def test_missing_api_key_raises_service_error(mocker, monkeypatch, work_image):
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    mocker.patch.object(gemini_service, "_configured", False)
    with pytest.raises(EvaluationServiceError):
        await gemini_service.analyze_student_work(work_image, "5A", "")


@pytest.mark.asyncio
async def test_compare_students_for_plagiarism(mocker):
    mock_call = mocker.patch.object(gemini_service, "generate_json", return_value={
        "similarityScore": 92,
        "note": "Ali and Ece share whole sentences.",
        "suspiciousPairs": [["Ali", "Ece"]],
    })

    result = await gemini_service.compare_students_for_plagiarism([("Ali", "The fox ran."), ("Ece", "The fox ran.")])

    assert isinstance(result, PlagiarismComparison)
    assert result.suspiciousPairs == [["Ali", "Ece"]]
    assert "### Ali" in mock_call.call_args.args[0]
