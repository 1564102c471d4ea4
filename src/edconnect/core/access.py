"""
Role-scoped data access.

An ``AccessScope`` is resolved once per request from the acting user and then
turned into one SQLAlchemy predicate per entity type, so every "get all X"
query filters in its WHERE clause instead of loading rows and discarding them.

Scopes:
- ``AllScope``: super admin (no admin level, no scoping ids).
- ``DistrictScope`` / ``SchoolScope`` / ``DepartmentScope``: scoped admins.
- ``EducatorScope``: whatever is reachable through the educator's own classes.
- ``OwnScope``: the caller's own records (students, profile-less educators).
- ``NoAccessScope``: matches nothing; callers get empty lists, not errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import and_, false, or_, select, true
from sqlalchemy.orm import Session

from .models import (
    Achievement,
    AdminLevel,
    Attendance,
    Department,
    District,
    Educator,
    Enrollment,
    Grade,
    LearningPath,
    School,
    SchoolClass,
    Student,
    TutoringSession,
    User,
    UserRole,
)
from .roles import parse_admin_level, parse_user_role


class AccessScope:
    """Base scope: every predicate denies unless a subclass widens it."""

    kind = "none"

    def districts(self):
        return District.id.in_(select(School.district_id).where(self.schools()))

    def schools(self):
        return false()

    def departments(self):
        return false()

    def classes(self):
        return false()

    def students(self):
        return false()

    def educators(self):
        return false()

    def users(self):
        return false()

    def enrollments(self):
        return Enrollment.class_id.in_(select(SchoolClass.id).where(self.classes()))

    def grades(self):
        return Grade.student_id.in_(select(Student.id).where(self.students()))

    def attendance(self):
        return Attendance.student_id.in_(select(Student.id).where(self.students()))

    def achievements(self):
        return Achievement.user_id.in_(select(User.id).where(self.users()))

    def tutoring_sessions(self):
        return TutoringSession.student_id.in_(
            select(Student.user_id).where(self.students())
        )

    def learning_paths(self):
        return or_(
            LearningPath.school_id.is_(None),
            LearningPath.school_id.in_(select(School.id).where(self.schools())),
        )


class NoAccessScope(AccessScope):
    kind = "none"

    def learning_paths(self):
        return false()


class AllScope(AccessScope):
    kind = "all"

    def districts(self):
        return true()

    def schools(self):
        return true()

    def departments(self):
        return true()

    def classes(self):
        return true()

    def students(self):
        return true()

    def educators(self):
        return true()

    def users(self):
        return true()

    def enrollments(self):
        return true()

    def grades(self):
        return true()

    def attendance(self):
        return true()

    def achievements(self):
        return true()

    def tutoring_sessions(self):
        return true()

    def learning_paths(self):
        return true()


def _district_school_ids(district_id: int):
    return select(School.id).where(School.district_id == district_id)


@dataclass(frozen=True)
class DistrictScope(AccessScope):
    district_id: int
    kind = "district"

    def districts(self):
        return District.id == self.district_id

    def schools(self):
        return School.district_id == self.district_id

    def departments(self):
        return Department.school_id.in_(_district_school_ids(self.district_id))

    def classes(self):
        return SchoolClass.school_id.in_(_district_school_ids(self.district_id))

    def students(self):
        return Student.school_id.in_(_district_school_ids(self.district_id))

    def educators(self):
        return Educator.school_id.in_(_district_school_ids(self.district_id))

    def users(self):
        return or_(
            User.district_id == self.district_id,
            User.school_id.in_(_district_school_ids(self.district_id)),
        )


@dataclass(frozen=True)
class SchoolScope(AccessScope):
    school_id: int
    kind = "school"

    def schools(self):
        return School.id == self.school_id

    def departments(self):
        return Department.school_id == self.school_id

    def classes(self):
        return SchoolClass.school_id == self.school_id

    def students(self):
        return Student.school_id == self.school_id

    def educators(self):
        return Educator.school_id == self.school_id

    def users(self):
        return or_(
            User.school_id == self.school_id,
            User.id.in_(select(Student.user_id).where(self.students())),
            User.id.in_(select(Educator.user_id).where(self.educators())),
        )


@dataclass(frozen=True)
class DepartmentScope(AccessScope):
    department_id: int
    kind = "department"

    def schools(self):
        return School.id.in_(
            select(Department.school_id).where(Department.id == self.department_id)
        )

    def departments(self):
        return Department.id == self.department_id

    def classes(self):
        return SchoolClass.department_id == self.department_id

    def students(self):
        # Students belong to a department only through its classes
        return Student.id.in_(
            select(Enrollment.student_id)
            .join(SchoolClass, SchoolClass.id == Enrollment.class_id)
            .where(SchoolClass.department_id == self.department_id)
        )

    def educators(self):
        return Educator.department_id == self.department_id

    def users(self):
        return or_(
            User.department_id == self.department_id,
            User.id.in_(select(Student.user_id).where(self.students())),
        )


@dataclass(frozen=True)
class EducatorScope(AccessScope):
    user_id: int
    educator_id: int
    school_id: Optional[int] = None
    department_id: Optional[int] = None
    kind = "educator"

    def _class_ids(self):
        return select(SchoolClass.id).where(SchoolClass.educator_id == self.educator_id)

    def _student_user_ids(self):
        return select(Student.user_id).where(self.students())

    def schools(self):
        if self.school_id is None:
            return false()
        return School.id == self.school_id

    def departments(self):
        if self.department_id is not None:
            return Department.id == self.department_id
        if self.school_id is not None:
            return Department.school_id == self.school_id
        return false()

    def classes(self):
        return SchoolClass.educator_id == self.educator_id

    def students(self):
        return Student.id.in_(
            select(Enrollment.student_id).where(
                Enrollment.class_id.in_(self._class_ids())
            )
        )

    def educators(self):
        if self.school_id is None:
            return Educator.id == self.educator_id
        return Educator.school_id == self.school_id

    def users(self):
        clauses = [User.id == self.user_id, User.id.in_(self._student_user_ids())]
        if self.school_id is not None:
            clauses.append(
                and_(User.role == UserRole.EDUCATOR, User.school_id == self.school_id)
            )
        return or_(*clauses)

    def grades(self):
        return Grade.class_id.in_(self._class_ids())

    def attendance(self):
        return Attendance.class_id.in_(self._class_ids())

    def achievements(self):
        return or_(
            Achievement.user_id == self.user_id,
            Achievement.user_id.in_(self._student_user_ids()),
        )


@dataclass(frozen=True)
class OwnScope(AccessScope):
    user_id: int
    student_id: Optional[int] = None
    school_id: Optional[int] = None
    kind = "own"

    def schools(self):
        if self.school_id is None:
            return false()
        return School.id == self.school_id

    def departments(self):
        if self.school_id is None:
            return false()
        return Department.school_id == self.school_id

    def classes(self):
        if self.student_id is None:
            return false()
        return SchoolClass.id.in_(
            select(Enrollment.class_id).where(Enrollment.student_id == self.student_id)
        )

    def students(self):
        if self.student_id is None:
            return false()
        return Student.id == self.student_id

    def educators(self):
        return Educator.id.in_(select(SchoolClass.educator_id).where(self.classes()))

    def users(self):
        return User.id == self.user_id

    def enrollments(self):
        if self.student_id is None:
            return false()
        return Enrollment.student_id == self.student_id

    def grades(self):
        if self.student_id is None:
            return false()
        return Grade.student_id == self.student_id

    def attendance(self):
        if self.student_id is None:
            return false()
        return Attendance.student_id == self.student_id

    def achievements(self):
        own = Achievement.user_id == self.user_id
        if self.school_id is None:
            return own
        # Public achievements are shared within the student's school only
        schoolmate = or_(
            Achievement.user_id.in_(select(User.id).where(User.school_id == self.school_id)),
            Achievement.user_id.in_(
                select(Student.user_id).where(Student.school_id == self.school_id)
            ),
        )
        return or_(own, and_(Achievement.is_public.is_(True), schoolmate))

    def tutoring_sessions(self):
        return TutoringSession.student_id == self.user_id


_ADMIN_SCOPES = (
    (AdminLevel.DISTRICT, "district_id", DistrictScope),
    (AdminLevel.SCHOOL, "school_id", SchoolScope),
    (AdminLevel.DEPARTMENT, "department_id", DepartmentScope),
)


def _admin_scope(user: User) -> AccessScope:
    level = parse_admin_level(user.admin_level)
    if level is not None:
        for admin_level, attr, scope_cls in _ADMIN_SCOPES:
            if admin_level == level:
                value = getattr(user, attr)
                return scope_cls(value) if value is not None else NoAccessScope()

    for _, attr, scope_cls in _ADMIN_SCOPES:
        value = getattr(user, attr)
        if value is not None:
            return scope_cls(value)
    return AllScope()


def resolve_scope(session: Session, user: User) -> AccessScope:
    """Compute the acting user's scope; unknown roles see nothing."""
    role = parse_user_role(user.role)

    if role == UserRole.ADMIN:
        return _admin_scope(user)

    if role == UserRole.EDUCATOR:
        educator = session.execute(
            select(Educator).where(Educator.user_id == user.id)
        ).scalar_one_or_none()
        if educator is None:
            return OwnScope(user_id=user.id, school_id=user.school_id)
        return EducatorScope(
            user_id=user.id,
            educator_id=educator.id,
            school_id=educator.school_id or user.school_id,
            department_id=educator.department_id or user.department_id,
        )

    if role == UserRole.STUDENT:
        student = session.execute(
            select(Student).where(Student.user_id == user.id)
        ).scalar_one_or_none()
        return OwnScope(
            user_id=user.id,
            student_id=student.id if student else None,
            school_id=(student.school_id if student else None) or user.school_id,
        )

    return NoAccessScope()
