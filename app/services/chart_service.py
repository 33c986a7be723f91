# /app/services/chart_service.py

"""
Radar charts for a single evaluation and for comparing several students.

The five axes are the three AI scores, a grammar score derived from the
number of punctuation errors, and the overall score.
"""

import io
from typing import Dict, List, Sequence

from ..models.evaluation_model import Evaluation
from ..models.student_model import Student

# Lazy import matplotlib to avoid startup overhead
_plt = None
_np = None

RADAR_AXES = ["Handwriting", "Originality", "Creativity", "Grammar", "Overall"]

SERIES_COLORS = [
    "#4F46E5",  # Indigo
    "#10B981",  # Emerald
    "#F59E0B",  # Amber
    "#EF4444",  # Rose
    "#8B5CF6",  # Violet
    "#EC4899",  # Pink
]

# Each punctuation error costs this many points of the 100-point grammar axis.
GRAMMAR_PENALTY_PER_ERROR = 5


def _get_plt():
    """Lazy load matplotlib."""
    global _plt
    if _plt is None:
        import matplotlib
        matplotlib.use('Agg')  # Non-interactive backend
        import matplotlib.pyplot as plt
        _plt = plt
    return _plt


def _get_np():
    """Lazy load numpy."""
    global _np
    if _np is None:
        import numpy as np
        _np = np
    return _np


def grammar_score(evaluation: Evaluation) -> float:
    return max(0, 100 - len(evaluation.punctuationErrors) * GRAMMAR_PENALTY_PER_ERROR)


def evaluation_axes(evaluation: Evaluation) -> Dict[str, float]:
    return {
        "Handwriting": evaluation.handwritingScore,
        "Originality": evaluation.originalityScore,
        "Creativity": evaluation.creativityScore,
        "Grammar": grammar_score(evaluation),
        "Overall": evaluation.overallScore,
    }


def comparison_series(students: Sequence[Student]) -> Dict[str, Dict[str, float]]:
    """
    Radar values per evaluated student, keyed by a display label.

    Names are not unique, so a repeated name gets a numeric suffix
    ("Ali", "Ali (2)") and every selected student keeps its own series.
    Students without a current evaluation are skipped.
    """
    series = {}
    for student in students:
        if student.current_evaluation is None:
            continue
        label = student.name
        n = 2
        while label in series:
            label = f"{student.name} ({n})"
            n += 1
        series[label] = evaluation_axes(student.current_evaluation)
    return series


def build_comparison_rows(students: Sequence[Student]) -> List[Dict]:
    """
    One row per axis, keyed by the labels of comparison_series:
    [{"subject": "Handwriting", "Ali": 80, "Ece": 65}, ...]
    """
    series = comparison_series(students)
    rows = []
    for axis in RADAR_AXES:
        row = {"subject": axis}
        for label, axes in series.items():
            row[label] = axes[axis]
        rows.append(row)
    return rows


def render_radar_png(series: Dict[str, Dict[str, float]]) -> bytes:
    """Draws one filled polygon per series on a shared 0-100 radar and returns PNG bytes."""
    plt = _get_plt()
    np = _get_np()

    angles = np.linspace(0, 2 * np.pi, len(RADAR_AXES), endpoint=False).tolist()
    angles += angles[:1]

    fig, ax = plt.subplots(figsize=(6, 6), subplot_kw={"polar": True})
    try:
        for idx, (name, axes) in enumerate(series.items()):
            color = SERIES_COLORS[idx % len(SERIES_COLORS)]
            values = [axes[axis] for axis in RADAR_AXES]
            values += values[:1]
            ax.plot(angles, values, color=color, linewidth=3, label=name)
            ax.fill(angles, values, color=color, alpha=0.2)

        ax.set_xticks(angles[:-1])
        ax.set_xticklabels(RADAR_AXES, fontsize=9, fontweight="bold")
        ax.set_ylim(0, 100)
        if len(series) > 1:
            ax.legend(loc="upper right", bbox_to_anchor=(1.3, 1.1))

        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=150, bbox_inches="tight",
                    facecolor="white", edgecolor="none")
        return buf.getvalue()
    finally:
        plt.close(fig)
