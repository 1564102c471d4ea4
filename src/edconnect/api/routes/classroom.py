"""
Classroom API Routes

Classes, enrollments, people listings, grades and attendance. Every listing is
filtered by the caller's access scope; writes are reserved for educators and
administrators and only reach classes inside their scope.
"""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator

from edconnect.api.dependencies import get_db_service
from edconnect.api.routes.auth import UserResponse
from edconnect.api.security import get_current_scope, require_educator_or_admin
from edconnect.core.access import AccessScope
from edconnect.core.exceptions import DatabaseError
from edconnect.core.models import (
    Attendance,
    Enrollment,
    Grade,
    SchoolClass,
    Student,
    User,
)
from edconnect.core.roles import is_educator
from edconnect.core.services.auth import user_to_dict
from edconnect.core.services.database import DatabaseService

router = APIRouter(prefix="/api", tags=["classroom"])

ATTENDANCE_STATUSES = ("present", "absent", "late", "excused")


# --- Pydantic Models ---


class ClassCreate(BaseModel):
    name: str
    code: str
    educator_id: Optional[int] = None
    school_id: Optional[int] = None
    department_id: Optional[int] = None
    subject: Optional[str] = None
    description: Optional[str] = None
    room: Optional[str] = None
    schedule: Optional[str] = None
    grade_level: Optional[int] = None
    capacity: Optional[int] = Field(None, ge=1)


class ClassResponse(ClassCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EnrollmentCreate(BaseModel):
    student_id: int
    class_id: int
    status: str = "active"


class EnrollmentResponse(EnrollmentCreate):
    id: int
    enrollment_date: datetime

    model_config = ConfigDict(from_attributes=True)


class StudentResponse(BaseModel):
    id: int
    user_id: int
    school_id: Optional[int] = None
    grade: Optional[int] = None
    student_number: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class EducatorResponse(BaseModel):
    id: int
    user_id: int
    school_id: Optional[int] = None
    department_id: Optional[int] = None
    subject_specialty: Optional[str] = None
    employee_id: Optional[str] = None
    office_location: Optional[str] = None
    office_hours: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class GradeCreate(BaseModel):
    student_id: int
    class_id: int
    assignment_name: str
    score: float = Field(..., ge=0)
    max_score: float = Field(100.0, gt=0)
    comment: Optional[str] = None


class GradeResponse(GradeCreate):
    id: int
    graded_date: datetime
    percentage: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class AttendanceCreate(BaseModel):
    student_id: int
    class_id: int
    date: date
    status: str
    note: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ATTENDANCE_STATUSES:
            allowed = ", ".join(ATTENDANCE_STATUSES)
            raise ValueError(f"status must be one of: {allowed}")
        return value


class AttendanceResponse(AttendanceCreate):
    id: int
    recorded_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


# --- Helpers ---


def _visible_class(
    db_service: DatabaseService, scope: AccessScope, class_id: int
) -> SchoolClass:
    school_class = db_service.get_scoped(SchoolClass, "classes", class_id, scope)
    if school_class is None:
        raise HTTPException(status_code=404, detail="Class not found")
    return school_class


def _require_enrolled(db_service: DatabaseService, student_id: int, class_id: int):
    enrolled = any(
        e.class_id == class_id for e in db_service.get_enrollments_by_student(student_id)
    )
    if not enrolled:
        raise HTTPException(
            status_code=400, detail="Student is not enrolled in this class"
        )


# --- Classes ---


@router.get("/classes", response_model=List[ClassResponse])
def list_classes(
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return db_service.get_all_classes(scope)


@router.get("/classes/{class_id}", response_model=ClassResponse)
def get_class(
    class_id: int,
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return _visible_class(db_service, scope, class_id)


@router.post("/classes", response_model=ClassResponse, status_code=201)
def create_class(
    payload: ClassCreate,
    current_user: User = Depends(require_educator_or_admin),
    db_service: DatabaseService = Depends(get_db_service),
):
    data = payload.model_dump()
    if is_educator(current_user):
        # Educators always create classes they teach, inside their own school
        educator = db_service.get_educator_by_user_id(current_user.id)
        if educator is None:
            raise HTTPException(status_code=400, detail="Educator profile not found")
        data["educator_id"] = educator.id
        data["school_id"] = educator.school_id
        data["department_id"] = educator.department_id
    elif data["educator_id"] is not None and not db_service.get_educator(
        data["educator_id"]
    ):
        raise HTTPException(status_code=400, detail="Educator not found")

    if db_service.get_class_by_code(payload.code):
        raise HTTPException(status_code=400, detail="Class code already exists")
    try:
        return db_service.create_class(SchoolClass(**data))
    except DatabaseError as e:
        raise HTTPException(status_code=400, detail=str(e))


# --- Enrollments ---


@router.get("/enrollments", response_model=List[EnrollmentResponse])
def list_enrollments(
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return db_service.get_all_enrollments(scope)


@router.post("/enrollments", response_model=EnrollmentResponse, status_code=201)
def create_enrollment(
    payload: EnrollmentCreate,
    current_user: User = Depends(require_educator_or_admin),
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    school_class = _visible_class(db_service, scope, payload.class_id)
    student = db_service.get_student(payload.student_id)
    if student is None:
        raise HTTPException(status_code=400, detail="Student not found")
    # Students only join classes at their own school
    if student.school_id != school_class.school_id:
        raise HTTPException(
            status_code=400, detail="Student does not attend this class's school"
        )
    if not is_educator(current_user) and not db_service.get_scoped(
        Student, "students", student.id, scope
    ):
        raise HTTPException(status_code=404, detail="Student not found")
    enrolled = db_service.get_enrollments_by_student(payload.student_id)
    if any(e.class_id == school_class.id for e in enrolled):
        raise HTTPException(status_code=400, detail="Student is already enrolled")
    if school_class.capacity is not None:
        taken = len(db_service.get_enrollments_by_class(school_class.id))
        if taken >= school_class.capacity:
            raise HTTPException(status_code=400, detail="Class is full")
    try:
        return db_service.create_enrollment(Enrollment(**payload.model_dump()))
    except DatabaseError as e:
        raise HTTPException(status_code=400, detail=str(e))


# --- People ---


@router.get("/students", response_model=List[StudentResponse])
def list_students(
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return db_service.get_all_students(scope)


@router.get("/educators", response_model=List[EducatorResponse])
def list_educators(
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return db_service.get_all_educators(scope)


@router.get("/users", response_model=List[UserResponse])
def list_users(
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return [user_to_dict(u) for u in db_service.get_all_users(scope)]


# --- Grades ---


@router.get("/grades", response_model=List[GradeResponse])
def list_grades(
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return db_service.get_all_grades(scope)


@router.post("/grades", response_model=GradeResponse, status_code=201)
def create_grade(
    payload: GradeCreate,
    current_user: User = Depends(require_educator_or_admin),
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    _visible_class(db_service, scope, payload.class_id)
    _require_enrolled(db_service, payload.student_id, payload.class_id)
    try:
        return db_service.create_grade(
            Grade(**payload.model_dump()), recorded_by=current_user.id
        )
    except DatabaseError as e:
        raise HTTPException(status_code=400, detail=str(e))


# --- Attendance ---


@router.get("/attendance", response_model=List[AttendanceResponse])
def list_attendance(
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    return db_service.get_all_attendance(scope)


@router.post("/attendance", response_model=AttendanceResponse, status_code=201)
def create_attendance(
    payload: AttendanceCreate,
    current_user: User = Depends(require_educator_or_admin),
    scope: AccessScope = Depends(get_current_scope),
    db_service: DatabaseService = Depends(get_db_service),
):
    _visible_class(db_service, scope, payload.class_id)
    _require_enrolled(db_service, payload.student_id, payload.class_id)
    try:
        return db_service.create_attendance(
            Attendance(**payload.model_dump(), recorded_by=current_user.id)
        )
    except DatabaseError as e:
        raise HTTPException(status_code=400, detail=str(e))
