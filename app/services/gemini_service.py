# /app/services/gemini_service.py

import os
import json
import logging
from typing import List, Dict, Sequence, Tuple
from dotenv import load_dotenv
import google.generativeai as genai
from google.generativeai.types import GenerationConfig
from PIL import Image
from pydantic import ValidationError

# --- Local Imports ---
from . import prompt_library
from .image_service import load_image
from ..models.evaluation_model import Evaluation, PlagiarismComparison

logger = logging.getLogger(__name__)

# --- CONFIGURATION ---
load_dotenv()
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

_configured = False


class EvaluationServiceError(Exception):
    """Any failure of the remote evaluation call. Deliberately carries no structured detail."""


def _configure():
    # The key is checked at call time so the rest of the app (and the tests)
    # can run without one.
    global _configured
    if _configured:
        return
    api_key = os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise EvaluationServiceError("GOOGLE_API_KEY environment variable is not set.")
    genai.configure(api_key=api_key)
    _configured = True


# --- CORE GENERATIVE FUNCTIONS ---

async def generate_json(prompt: str, temperature: float = 0.1) -> Dict:
    """
    Generates a response and guarantees the output is a parsable JSON object
    by using the Gemini API's JSON Mode.
    """
    _configure()
    model = genai.GenerativeModel(GEMINI_MODEL)
    config = GenerationConfig(
        temperature=temperature,
        response_mime_type="application/json"
    )
    response = await model.generate_content_async(prompt, generation_config=config)
    if not response.text:
        raise ValueError("AI model returned an empty response.")
    return json.loads(response.text)


async def generate_multimodal_json(prompt: str, images: List[Image.Image], temperature: float = 0.1) -> Dict:
    """
    Generates a JSON response from a multimodal request (text + images),
    guaranteeing a parsable JSON object by using the Gemini API's JSON Mode.
    """
    _configure()
    model = genai.GenerativeModel(GEMINI_MODEL)
    config = GenerationConfig(
        temperature=temperature,
        response_mime_type="application/json"
    )
    content = [prompt, *images]
    response = await model.generate_content_async(content, generation_config=config)
    if not response.text:
        raise ValueError("AI model returned an empty response.")
    return json.loads(response.text)


# --- DOMAIN CALLS ---

async def analyze_student_work(work_image: str, grade_name: str, reference_text: str) -> Evaluation:
    """
    Sends one handwriting sample to Gemini and returns the validated Evaluation.

    Args:
        work_image: The normalised work sample as a data URL.
        grade_name: Display name of the student's class, used to calibrate expectations.
        reference_text: The shared reference text the story is compared against.

    Raises:
        EvaluationServiceError: on any failure, whatever its cause.
    """
    prompt = prompt_library.STORY_EVALUATION_PROMPT.format(
        grade_name=grade_name,
        reference_text=reference_text or "(none)",
        example_json=prompt_library.STORY_EVALUATION_EXAMPLE_JSON,
    )
    try:
        image = load_image(work_image)
        data = await generate_multimodal_json(prompt, [image])
        return Evaluation.model_validate(data)
    except EvaluationServiceError:
        raise
    except (ValidationError, ValueError, OSError) as e:
        logger.error("Gemini returned an unusable evaluation: %s", e)
        raise EvaluationServiceError("The AI evaluation could not be read.") from e
    except Exception as e:
        logger.error("Gemini evaluation call failed: %s", e)
        raise EvaluationServiceError("The AI evaluation failed.") from e


async def compare_students_for_plagiarism(samples: Sequence[Tuple[str, str]]) -> PlagiarismComparison:
    """Asks Gemini how similar the given (student name, transcribed text) pairs are."""
    stories = "\n\n".join(f"### {name}\n{text}" for name, text in samples)
    prompt = prompt_library.PLAGIARISM_COMPARISON_PROMPT.format(stories=stories)
    try:
        data = await generate_json(prompt)
        return PlagiarismComparison.model_validate(data)
    except EvaluationServiceError:
        raise
    except Exception as e:
        logger.error("Gemini plagiarism comparison failed: %s", e)
        raise EvaluationServiceError("The AI comparison failed.") from e
