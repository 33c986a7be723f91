# /app/services/state_controller.py

"""
This module owns the application's in-memory state and is the ONLY place that
mutates it.

The whole state (classes, students, archived reports, reference text) is one
`AppState` aggregate. Every mutation updates the in-memory aggregate first and
then writes the full snapshot to the persistent store. The in-memory state is
the source of truth for the running process; the store is a best-effort
mirror for the next start, so a failed write is logged and never rolls the
memory back.

Session-only state (active selections, the comparison selection, the
onboarding flag, in-flight analyses) lives in `SessionState` and is never part
of the snapshot. It is initialised empty, except `show_onboarding`, which is
read from its own store key by `load()`.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Union

from fastapi import Request

from ..models.class_model import ClassGroup
from ..models.evaluation_model import Evaluation
from ..models.report_model import ArchivedReport
from ..models.state_model import AppState, SessionInfo
from ..models.student_model import Student
from .database_service import DatabaseService, SNAPSHOT_KEY, ONBOARDING_KEY
from .image_service import normalize_image
from .state_helpers import snapshot

logger = logging.getLogger(__name__)

UNKNOWN_GRADE_NAME = "Unknown"

# (work image, class name, reference text) -> Evaluation
Evaluator = Callable[[str, str, str], Awaitable[Evaluation]]


# --- Domain Errors ---

class NotFoundError(ValueError):
    pass


class EvaluationFailedError(ValueError):
    pass


class ImportFailedError(ValueError):
    pass


class ImportNotConfirmedError(ValueError):
    pass


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


@dataclass
class SessionState:
    active_grade_id: Optional[str] = None
    active_student_id: Optional[str] = None
    comparison_selection: List[str] = field(default_factory=list)
    show_onboarding: bool = False
    # student id -> token of the latest analysis request for that student
    analyses_in_flight: Dict[str, str] = field(default_factory=dict)


class ApplicationStateController:
    def __init__(self, store: DatabaseService):
        self.store = store
        self.state = AppState()
        self.session = SessionState()
        self.is_loaded = False
        self._save_lock = asyncio.Lock()

    # --- Lookups ---

    def get_class(self, class_id: str) -> Optional[ClassGroup]:
        return next((g for g in self.state.grades if g.id == class_id), None)

    def get_student(self, student_id: str) -> Optional[Student]:
        return next((s for s in self.state.students if s.id == student_id), None)

    def get_report(self, report_id: str) -> Optional[ArchivedReport]:
        return next((r for r in self.state.savedReports if r.id == report_id), None)

    def students_in_class(self, class_id: str) -> List[Student]:
        return [s for s in self.state.students if s.gradeId == class_id]

    def grade_name_for(self, student: Student) -> str:
        grade = self.get_class(student.gradeId)
        return grade.name if grade else UNKNOWN_GRADE_NAME

    def _require_student(self, student_id: str) -> Student:
        student = self.get_student(student_id)
        if student is None:
            raise NotFoundError(f"Student with ID {student_id} not found")
        return student

    def _replace_student(self, updated: Student):
        self.state.students = [updated if s.id == updated.id else s for s in self.state.students]

    # --- Load & Save ---

    async def load(self):
        """
        Populates the in-memory state from the store. Runs once at startup and
        is the only place state is read back from storage. A missing or
        malformed snapshot leaves the state empty.
        """
        try:
            document = await asyncio.to_thread(self.store.get, SNAPSHOT_KEY)
            if document:
                self.state = snapshot.state_from_document(document)
            logger.info(
                "Loaded state: %d classes, %d students, %d archived reports.",
                len(self.state.grades), len(self.state.students), len(self.state.savedReports),
            )
        except Exception as e:
            logger.error("Could not load saved state, starting empty: %s", e)
            self.state = AppState()

        try:
            has_seen_onboarding = await asyncio.to_thread(self.store.get, ONBOARDING_KEY)
            self.session.show_onboarding = not has_seen_onboarding
        except Exception as e:
            logger.error("Could not read the onboarding flag: %s", e)
        finally:
            self.is_loaded = True

    async def _save(self):
        # Saving before load() would overwrite a valid snapshot with empty defaults.
        if not self.is_loaded:
            logger.debug("State not loaded yet; skipping save.")
            return
        async with self._save_lock:
            # Taken inside the lock so the last write always carries the latest state.
            document = snapshot.state_to_document(self.state)
            try:
                await asyncio.to_thread(self.store.put, SNAPSHOT_KEY, document)
            except Exception as e:
                logger.error("Could not save state (will retry on the next change): %s", e)

    # --- Class Mutations ---

    async def create_class(self, name: str) -> ClassGroup:
        name = name.strip()
        if not name:
            raise ValueError("Class name must not be blank.")
        new_class = ClassGroup(id=_new_id("cls"), name=name)
        self.state.grades = [*self.state.grades, new_class]
        self.session.active_grade_id = new_class.id
        await self._save()
        return new_class

    def _remove_class_with_students(self, class_id: str) -> List[str]:
        """A class and its students are removed together; no student may outlive its class."""
        removed_ids = [s.id for s in self.state.students if s.gradeId == class_id]
        self.state.grades = [g for g in self.state.grades if g.id != class_id]
        self.state.students = [s for s in self.state.students if s.gradeId != class_id]
        return removed_ids

    def _forget_students(self, student_ids: List[str]):
        if self.session.active_student_id in student_ids:
            self.session.active_student_id = None
        self.session.comparison_selection = [
            sid for sid in self.session.comparison_selection if sid not in student_ids
        ]
        for student_id in student_ids:
            self.session.analyses_in_flight.pop(student_id, None)

    async def delete_class(self, class_id: str) -> bool:
        if self.get_class(class_id) is None:
            return False
        removed_ids = self._remove_class_with_students(class_id)
        if self.session.active_grade_id == class_id:
            self.session.active_grade_id = None
        self._forget_students(removed_ids)
        logger.info("Deleted class %s and %d students.", class_id, len(removed_ids))
        await self._save()
        return True

    def select_class(self, class_id: Optional[str]):
        if class_id is not None and self.get_class(class_id) is None:
            raise NotFoundError(f"Class with ID {class_id} not found")
        self.session.active_grade_id = class_id

    # --- Student Mutations ---

    async def create_student(self, class_id: str, name: str) -> Student:
        if self.get_class(class_id) is None:
            raise NotFoundError(f"Class with ID {class_id} not found")
        name = name.strip()
        if not name:
            raise ValueError("Student name must not be blank.")
        new_student = Student(id=_new_id("stu"), name=name, gradeId=class_id)
        self.state.students = [*self.state.students, new_student]
        await self._save()
        return new_student

    async def delete_student(self, student_id: str) -> bool:
        if self.get_student(student_id) is None:
            return False
        self.state.students = [s for s in self.state.students if s.id != student_id]
        self._forget_students([student_id])
        await self._save()
        return True

    async def attach_work_image(self, student_id: str, image: Union[bytes, str]) -> Optional[Student]:
        """
        Normalises an uploaded image and attaches it to the student, replacing
        any previous one. Returns None (and changes nothing) if the image cannot
        be decoded.
        """
        self._require_student(student_id)
        normalized = await normalize_image(image)
        if normalized is None:
            return None

        # The student may have been removed while the image was being decoded.
        student = self._require_student(student_id)
        updated = student.model_copy(update={"workImage": normalized, "awaitingAnalysis": True})
        self._replace_student(updated)
        # An analysis of the previous image must not land on the new one.
        self.session.analyses_in_flight.pop(student_id, None)
        await self._save()
        return updated

    async def attach_evaluation(self, student_id: str, evaluation: Evaluation) -> Optional[Student]:
        student = self._require_student(student_id)
        if not student.workImage:
            logger.warning("Ignoring evaluation for student %s: no work image.", student_id)
            return None
        updated = student.model_copy(update={"evaluation": evaluation, "awaitingAnalysis": False})
        self._replace_student(updated)
        await self._save()
        return updated

    def _finish_analysis(self, student_id: str, token: str):
        if self.session.analyses_in_flight.get(student_id) == token:
            del self.session.analyses_in_flight[student_id]

    async def analyze_student(self, student_id: str, evaluate: Evaluator) -> Optional[Student]:
        """
        Sends the student's work image for evaluation and attaches the result.

        Returns None if the student has no work image. Each call is tagged with
        a token; if a newer analysis (or a new image) supersedes this call
        before its response arrives, the response is discarded.

        Raises:
            NotFoundError: unknown student, or the student was deleted while
                the evaluation was running.
            EvaluationFailedError: the evaluation call failed; the student is unchanged.
        """
        student = self._require_student(student_id)
        if not student.workImage:
            return None

        token = uuid.uuid4().hex
        self.session.analyses_in_flight[student_id] = token
        try:
            evaluation = await evaluate(
                student.workImage, self.grade_name_for(student), self.state.referenceText
            )
        except Exception as e:
            self._finish_analysis(student_id, token)
            logger.error("Evaluation failed for student %s: %s", student_id, e)
            raise EvaluationFailedError("The evaluation could not be completed.") from e

        if self.session.analyses_in_flight.get(student_id) != token:
            logger.info("Discarding superseded evaluation for student %s.", student_id)
            return self._require_student(student_id)
        self._finish_analysis(student_id, token)

        updated = await self.attach_evaluation(student_id, evaluation)
        self.session.active_student_id = student_id
        return updated

    # --- Archive ---

    async def archive_student(self, student_id: str) -> Optional[ArchivedReport]:
        """
        Copies the student's current evaluation into a new archived report at
        the front of the archive. Returns None and changes nothing when there
        is no current evaluation.
        """
        student = self._require_student(student_id)
        evaluation = student.current_evaluation
        if evaluation is None:
            return None
        report = ArchivedReport(
            id=_new_id("rep"),
            studentName=student.name,
            gradeName=self.grade_name_for(student),
            timestamp=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            evaluation=evaluation.model_copy(deep=True),
            workImage=student.workImage,
        )
        self.state.savedReports = [report, *self.state.savedReports]
        await self._save()
        return report

    async def delete_report(self, report_id: str) -> bool:
        if self.get_report(report_id) is None:
            return False
        self.state.savedReports = [r for r in self.state.savedReports if r.id != report_id]
        await self._save()
        return True

    # --- Reference Text ---

    async def set_reference_text(self, text: str) -> str:
        self.state.referenceText = text or ""
        await self._save()
        return self.state.referenceText

    # --- Import / Export ---

    def export_document(self) -> Dict:
        return snapshot.state_to_document(self.state)

    def export_filename(self) -> str:
        return snapshot.export_filename()

    async def import_document(self, raw: Union[str, bytes], confirmed: bool) -> AppState:
        """
        Replaces the whole state with the contents of a backup file.

        The file is parsed and validated completely before anything changes.
        Importing is destructive, so it only happens when `confirmed` is True.
        """
        try:
            new_state = snapshot.state_from_json(raw)
        except ValueError as e:
            logger.warning("Rejected backup file: %s", e)
            raise ImportFailedError("The backup file could not be read.") from e
        if not confirmed:
            raise ImportNotConfirmedError("Importing replaces all current data and must be confirmed.")

        self.state = new_state
        self._drop_dangling_session_refs()
        logger.info("Imported backup with %d classes and %d students.", len(new_state.grades), len(new_state.students))
        await self._save()
        return self.state

    def _drop_dangling_session_refs(self):
        student_ids = {s.id for s in self.state.students}
        if self.get_class(self.session.active_grade_id or "") is None:
            self.session.active_grade_id = None
        self._forget_students([
            sid for sid in {self.session.active_student_id, *self.session.comparison_selection,
                            *self.session.analyses_in_flight}
            if sid and sid not in student_ids
        ])

    # --- Comparison Selection (never persisted) ---

    def toggle_comparison(self, student_id: str) -> List[str]:
        self._require_student(student_id)
        selection = self.session.comparison_selection
        if student_id in selection:
            self.session.comparison_selection = [sid for sid in selection if sid != student_id]
        else:
            self.session.comparison_selection = [*selection, student_id]
        return list(self.session.comparison_selection)

    def clear_comparison(self):
        self.session.comparison_selection = []

    def comparison_students(self) -> List[Student]:
        """Selected students that have a current evaluation, in roster order."""
        selected = set(self.session.comparison_selection)
        return [s for s in self.state.students if s.id in selected and s.current_evaluation is not None]

    # --- Onboarding ---

    async def dismiss_onboarding(self):
        self.session.show_onboarding = False
        try:
            await asyncio.to_thread(self.store.put, ONBOARDING_KEY, True)
        except Exception as e:
            logger.error("Could not store the onboarding flag: %s", e)

    def session_info(self) -> SessionInfo:
        return SessionInfo(
            activeGradeId=self.session.active_grade_id,
            activeStudentId=self.session.active_student_id,
            comparisonSelection=list(self.session.comparison_selection),
            showOnboarding=self.session.show_onboarding,
            analysesInFlight=sorted(self.session.analyses_in_flight),
        )


# --- Dependency Provider ---

def get_state_controller(request: Request) -> ApplicationStateController:
    """FastAPI dependency returning the process-wide controller created at startup."""
    return request.app.state.controller
