"""
Analytics API Routes

Class and educator performance aggregates, computed in SQL over the rows the
caller's access scope can see.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from edconnect.api.dependencies import get_db
from edconnect.api.security import get_current_scope, require_educator_or_admin
from edconnect.core.access import AccessScope
from edconnect.core.models import (
    Attendance,
    Educator,
    Enrollment,
    Grade,
    SchoolClass,
    User,
)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


class ClassPerformance(BaseModel):
    class_id: int
    class_name: str
    subject: Optional[str] = None
    student_count: int
    grade_count: int
    average_percentage: Optional[float] = None
    attendance_rate: Optional[float] = None


class EducatorPerformance(BaseModel):
    educator_id: int
    user_id: int
    name: str
    subject_specialty: Optional[str] = None
    class_count: int
    student_count: int
    average_percentage: Optional[float] = None


def _round(value) -> Optional[float]:
    return round(float(value), 2) if value is not None else None


_percentage = Grade.score / Grade.max_score * 100.0
_present = case((Attendance.status.in_(("present", "late")), 1), else_=0)


@router.get("/performance", response_model=List[ClassPerformance])
def class_performance(
    scope: AccessScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    """Per-class grade average and attendance rate."""
    classes = (
        db.execute(select(SchoolClass).where(scope.classes()).order_by(SchoolClass.id))
        .scalars()
        .all()
    )
    class_ids = [c.id for c in classes]
    if not class_ids:
        return []

    grade_rows = db.execute(
        select(Grade.class_id, func.count(Grade.id), func.avg(_percentage))
        .where(Grade.class_id.in_(class_ids), scope.grades())
        .group_by(Grade.class_id)
    ).all()
    grades = {class_id: (count, avg) for class_id, count, avg in grade_rows}

    attendance_rows = db.execute(
        select(Attendance.class_id, func.count(Attendance.id), func.sum(_present))
        .where(Attendance.class_id.in_(class_ids), scope.attendance())
        .group_by(Attendance.class_id)
    ).all()
    attendance = {
        class_id: (total, present) for class_id, total, present in attendance_rows
    }

    enrollment_rows = db.execute(
        select(Enrollment.class_id, func.count(Enrollment.id))
        .where(Enrollment.class_id.in_(class_ids), scope.enrollments())
        .group_by(Enrollment.class_id)
    ).all()
    enrolled = dict(enrollment_rows)

    results = []
    for c in classes:
        grade_count, grade_avg = grades.get(c.id, (0, None))
        total, present = attendance.get(c.id, (0, 0))
        results.append(
            ClassPerformance(
                class_id=c.id,
                class_name=c.name,
                subject=c.subject,
                student_count=enrolled.get(c.id, 0),
                grade_count=grade_count,
                average_percentage=_round(grade_avg),
                attendance_rate=_round(present * 100.0 / total) if total else None,
            )
        )
    return results


@router.get("/educator-performance", response_model=List[EducatorPerformance])
def educator_performance(
    current_user: User = Depends(require_educator_or_admin),
    scope: AccessScope = Depends(get_current_scope),
    db: Session = Depends(get_db),
):
    """Per-educator class count, distinct students and grade average."""
    rows = db.execute(
        select(Educator, User)
        .join(User, User.id == Educator.user_id)
        .where(scope.educators())
        .order_by(Educator.id)
    ).all()

    results = []
    for educator, user in rows:
        class_ids = select(SchoolClass.id).where(SchoolClass.educator_id == educator.id)
        class_count = db.execute(
            select(func.count(SchoolClass.id)).where(
                SchoolClass.educator_id == educator.id
            )
        ).scalar_one()
        student_count = db.execute(
            select(func.count(func.distinct(Enrollment.student_id))).where(
                Enrollment.class_id.in_(class_ids)
            )
        ).scalar_one()
        grade_avg = db.execute(
            select(func.avg(_percentage)).where(Grade.class_id.in_(class_ids))
        ).scalar()
        results.append(
            EducatorPerformance(
                educator_id=educator.id,
                user_id=user.id,
                name=user.full_name,
                subject_specialty=educator.subject_specialty,
                class_count=class_count,
                student_count=student_count,
                average_percentage=_round(grade_avg),
            )
        )
    return results
