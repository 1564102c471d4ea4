from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, field_validator

from edconnect.api.dependencies import get_db_service
from edconnect.api.security import get_current_user
from edconnect.core.models import Homework, User
from edconnect.core.services.database import DatabaseService

router = APIRouter(prefix="/api/homework", tags=["homework"])

PRIORITIES = ("low", "medium", "high")


def _check_priority(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip().lower()
    if value not in PRIORITIES:
        raise ValueError(f"priority must be one of: {', '.join(PRIORITIES)}")
    return value


class HomeworkCreate(BaseModel):
    title: str
    subject: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: str = "medium"

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, value):
        return _check_priority(value)


class HomeworkUpdate(BaseModel):
    title: Optional[str] = None
    subject: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    completed: Optional[bool] = None
    priority: Optional[str] = None

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, value):
        return _check_priority(value)


class HomeworkResponse(HomeworkCreate):
    id: int
    student_id: int
    completed: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


def _owned_homework(db_service: DatabaseService, homework_id: int, user: User):
    homework = db_service.get_homework(homework_id)
    if homework is None or homework.student_id != user.id:
        raise HTTPException(status_code=404, detail="Homework not found")
    return homework


@router.get("", response_model=List[HomeworkResponse])
def list_homework(
    current_user: User = Depends(get_current_user),
    db_service: DatabaseService = Depends(get_db_service),
):
    return db_service.get_homework_by_student(current_user.id)


@router.post("", response_model=HomeworkResponse, status_code=201)
def create_homework(
    payload: HomeworkCreate,
    current_user: User = Depends(get_current_user),
    db_service: DatabaseService = Depends(get_db_service),
):
    if not payload.title.strip():
        raise HTTPException(status_code=400, detail="Title is required")
    return db_service.create_homework(
        Homework(student_id=current_user.id, **payload.model_dump())
    )


@router.patch("/{homework_id}", response_model=HomeworkResponse)
def update_homework(
    homework_id: int,
    payload: HomeworkUpdate,
    current_user: User = Depends(get_current_user),
    db_service: DatabaseService = Depends(get_db_service),
):
    _owned_homework(db_service, homework_id, current_user)
    fields = payload.model_dump(exclude_unset=True)
    for required in ("title", "completed", "priority"):
        if required in fields and fields[required] is None:
            raise HTTPException(status_code=400, detail=f"{required} cannot be null")
    return db_service.update_homework(homework_id, **fields)


@router.delete("/{homework_id}", status_code=204)
def delete_homework(
    homework_id: int,
    current_user: User = Depends(get_current_user),
    db_service: DatabaseService = Depends(get_db_service),
):
    _owned_homework(db_service, homework_id, current_user)
    db_service.delete_homework(homework_id)
    return Response(status_code=204)
