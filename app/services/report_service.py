# /app/services/report_service.py

import pandas as pd
from typing import List

from ..models.report_model import ArchivedReport

CSV_COLUMNS = [
    "Student Name", "Class Name", "Timestamp",
    "Handwriting", "Originality", "Creativity", "Overall",
    "Punctuation Errors", "Weaknesses",
]


def export_reports_csv(reports: List[ArchivedReport]) -> str:
    """Flattens the archive into one CSV row per report, newest first."""
    export_data = [
        {
            "Student Name": r.studentName,
            "Class Name": r.gradeName,
            "Timestamp": r.timestamp,
            "Handwriting": r.evaluation.handwritingScore,
            "Originality": r.evaluation.originalityScore,
            "Creativity": r.evaluation.creativityScore,
            "Overall": r.evaluation.overallScore,
            "Punctuation Errors": len(r.evaluation.punctuationErrors),
            "Weaknesses": "; ".join(r.evaluation.weaknesses),
        } for r in reports
    ]

    df = pd.DataFrame(export_data, columns=CSV_COLUMNS) if export_data else pd.DataFrame(columns=CSV_COLUMNS)
    return df.to_csv(index=False)
