# /app/routers/classes_router.py

from fastapi import APIRouter, Depends, HTTPException, status, Response
from typing import List

from ..models import class_model, student_model
from ..services import class_service
from ..services.state_controller import ApplicationStateController, NotFoundError, get_state_controller

router = APIRouter()

# --- CLASS COLLECTION ENDPOINTS (/api/classes) ---

@router.get("", response_model=List[class_model.ClassSummary], summary="Get All Classes with Student Counts")
def get_all_classes(controller: ApplicationStateController = Depends(get_state_controller)):
    return class_service.get_all_classes_with_summary(controller)

@router.post("", response_model=class_model.ClassGroup, status_code=status.HTTP_201_CREATED, summary="Create a New Class")
async def create_new_class(class_create: class_model.ClassCreate, controller: ApplicationStateController = Depends(get_state_controller)):
    return await controller.create_class(class_create.name)

# --- INDIVIDUAL CLASS RESOURCE ENDPOINTS (/api/classes/{class_id}) ---

@router.get("/{class_id}", response_model=class_model.ClassDetails, summary="Get a Single Class with Its Students")
def get_class_by_id(class_id: str, controller: ApplicationStateController = Depends(get_state_controller)):
    class_details = class_service.get_class_details_by_id(class_id, controller)
    if class_details is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Class with ID {class_id} not found")
    controller.select_class(class_id)
    return class_details

@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a Class and Its Students")
async def delete_class(class_id: str, controller: ApplicationStateController = Depends(get_state_controller)):
    was_deleted = await controller.delete_class(class_id)
    if not was_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Class with ID {class_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# --- STUDENT SUB-RESOURCE ENDPOINTS ---

@router.post("/{class_id}/students", response_model=student_model.Student, status_code=status.HTTP_201_CREATED, summary="Add a Student to a Class")
async def add_student(class_id: str, student_create: student_model.StudentCreate, controller: ApplicationStateController = Depends(get_state_controller)):
    try:
        return await controller.create_student(class_id, student_create.name)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
