# /app/services/state_helpers/snapshot.py

"""
Turns untrusted documents (the stored snapshot, a user-supplied backup file)
into an AppState, and back.

Loading is deliberately tolerant: any of the four top-level fields may be
missing or null and is then replaced by its empty default. This merge step is
the ONLY place where defaults are applied.
"""

import json
from datetime import datetime
from typing import Any, Dict, Union

from ...models.state_model import AppState

SNAPSHOT_DEFAULTS: Dict[str, Any] = {
    "grades": [],
    "students": [],
    "savedReports": [],
    "referenceText": "",
}

EXPORT_FILENAME_TEMPLATE = "Story_Evaluation_Backup_{date}.json"


def merge_with_defaults(document: Any) -> Dict[str, Any]:
    """Returns a copy of `document` where every missing or null field holds its default."""
    if not isinstance(document, dict):
        raise ValueError("A state document must be a JSON object.")
    merged = dict(SNAPSHOT_DEFAULTS)
    for field, default in SNAPSHOT_DEFAULTS.items():
        value = document.get(field)
        if value is not None:
            merged[field] = value
    return merged


def state_from_document(document: Any) -> AppState:
    """Validates a (possibly partial) document into an AppState. Raises ValueError on bad input."""
    return AppState.model_validate(merge_with_defaults(document))


def state_from_json(raw: Union[str, bytes]) -> AppState:
    """Parses JSON text into an AppState. Raises ValueError on bad input."""
    return state_from_document(json.loads(raw))


def state_to_document(state: AppState) -> Dict[str, Any]:
    """
    Serialises the aggregate into the snapshot/export document shape.
    Absent optional fields are omitted and the derived student status is not stored.
    """
    return state.model_dump(
        mode="json",
        exclude_none=True,
        exclude={"students": {"__all__": {"status"}}},
    )


def export_filename(now: datetime = None) -> str:
    now = now or datetime.now()
    return EXPORT_FILENAME_TEMPLATE.format(date=now.strftime("%Y-%m-%d"))
