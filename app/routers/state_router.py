# /app/routers/state_router.py

import json
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Query, Response

from ..models.state_model import AppState, ReferenceTextUpdate, SessionInfo
from ..services.state_controller import (
    ApplicationStateController,
    ImportFailedError,
    ImportNotConfirmedError,
    get_state_controller,
)

router = APIRouter()


@router.get("/export", summary="Download a Full Backup as JSON")
def export_state(controller: ApplicationStateController = Depends(get_state_controller)):
    document = controller.export_document()
    file_name = controller.export_filename()
    return Response(
        content=json.dumps(document, ensure_ascii=False),
        media_type="application/json",
        headers={"Content-Disposition": f"attachment; filename={file_name}"},
    )


@router.post("/import", response_model=AppState, summary="Replace All Data from a Backup File")
async def import_state(
    file: UploadFile = File(...),
    confirm: bool = Query(False, description="Must be true; importing overwrites all current data."),
    controller: ApplicationStateController = Depends(get_state_controller)
):
    raw = await file.read()
    try:
        return await controller.import_document(raw, confirmed=confirm)
    except ImportNotConfirmedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ImportFailedError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The backup file could not be loaded.")


@router.get("/reference-text", response_model=ReferenceTextUpdate, summary="Get the Shared Reference Text")
def get_reference_text(controller: ApplicationStateController = Depends(get_state_controller)):
    return ReferenceTextUpdate(referenceText=controller.state.referenceText)


@router.put("/reference-text", response_model=ReferenceTextUpdate, summary="Set the Shared Reference Text")
async def set_reference_text(payload: ReferenceTextUpdate, controller: ApplicationStateController = Depends(get_state_controller)):
    text = await controller.set_reference_text(payload.referenceText)
    return ReferenceTextUpdate(referenceText=text)


@router.get("/session", response_model=SessionInfo, summary="Get Session-Only State")
def get_session(controller: ApplicationStateController = Depends(get_state_controller)):
    return controller.session_info()


@router.post("/onboarding/dismiss", response_model=SessionInfo, summary="Hide the Introductory Guide for Good")
async def dismiss_onboarding(controller: ApplicationStateController = Depends(get_state_controller)):
    await controller.dismiss_onboarding()
    return controller.session_info()
