# /app/services/class_service.py

"""
Read-side business logic for classes: listings with student counts and the
full class details view. Writes go through the state controller.
"""

import pandas as pd
from typing import List, Optional

from ..models.class_model import ClassSummary, ClassDetails
from .state_controller import ApplicationStateController


def get_all_classes_with_summary(controller: ApplicationStateController) -> List[ClassSummary]:
    """Returns every class enriched with the number of students it holds."""
    all_classes = controller.state.grades
    if not all_classes:
        return []

    students_df = pd.DataFrame([{"id": s.id, "gradeId": s.gradeId} for s in controller.state.students])

    student_counts = {}
    if not students_df.empty:
        student_counts = students_df.groupby("gradeId").size().to_dict()

    return [
        ClassSummary(id=cls.id, name=cls.name, studentCount=int(student_counts.get(cls.id, 0)))
        for cls in all_classes
    ]


def get_class_details_by_id(class_id: str, controller: ApplicationStateController) -> Optional[ClassDetails]:
    class_info = controller.get_class(class_id)
    if not class_info:
        return None
    return ClassDetails(
        id=class_info.id,
        name=class_info.name,
        students=controller.students_in_class(class_id),
    )
