"""
Database service for EdConnect

Owns the SQLAlchemy engine and session factory and implements the storage
interface: getters by id/code/owner, creates and merges, and the role-scoped
``get_all_*`` accessors that filter through an ``AccessScope`` predicate.
"""

import os
import sqlite3
from datetime import date
from typing import Any, Dict, List, Optional, Union
from sqlalchemy import create_engine, event, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload, sessionmaker, Session

from ..access import AccessScope, resolve_scope
from ..exceptions import DatabaseError, ValidationError
from ..models import (
    Base,
    Achievement,
    AdminLevel,
    Attendance,
    AuditLog,
    Department,
    District,
    Educator,
    Enrollment,
    Grade,
    Homework,
    LearningPath,
    LearningPathNode,
    MessageRole,
    School,
    SchoolClass,
    Student,
    TutoringMessage,
    TutoringSession,
    User,
    UserRole,
)
from .logging import get_logging_service
from .settings_config_service import get_settings_service

UserContext = Union[User, AccessScope, None]


def _resolve_database_url(db_path: Optional[str]) -> str:
    if db_path:
        return f"sqlite:///{db_path}"
    env_url = os.getenv("EDCONNECT_DATABASE_URL")
    if env_url:
        return env_url
    env_path = os.getenv("EDCONNECT_DB_PATH")
    if env_path:
        return f"sqlite:///{env_path}"
    return get_settings_service().get("database", "url", "sqlite:///edconnect.db")


def validate_achievement_progress(
    progress: Optional[int], max_progress: Optional[int]
) -> None:
    """Achievement progress must stay within [0, max_progress]."""
    if progress is not None and progress < 0:
        raise ValidationError("Achievement progress cannot be negative")
    if progress is not None and max_progress is not None and progress > max_progress:
        raise ValidationError("Achievement progress cannot exceed max progress")


class DatabaseService:
    """Database service for managing connections, sessions and storage queries"""

    def __init__(self, db_path: Optional[str] = None, database_url: Optional[str] = None):
        self.database_url = database_url or _resolve_database_url(db_path)
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker[Session]] = None
        self.logging_service = get_logging_service()
        self.logger = self.logging_service.get_logger("database")

        self._setup_engine()
        self._create_tables()

    def _setup_engine(self):
        """Set up SQLAlchemy engine"""
        settings = get_settings_service()
        connect_args = {}
        if self.database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            path = self.database_url.replace("sqlite:///", "", 1)
            if path and path != ":memory:":
                os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

        self.engine = create_engine(
            self.database_url,
            echo=settings.getboolean("database", "echo", False),
            connect_args=connect_args,
            pool_pre_ping=True,
        )

        @event.listens_for(self.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            if isinstance(dbapi_connection, sqlite3.Connection):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA synchronous=NORMAL")
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        # Rows are handed to API code after the session closes
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def _create_tables(self):
        """Create all database tables"""
        if self.engine is None:
            raise RuntimeError("Database engine not initialized")
        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get a database session"""
        if self.SessionLocal is None:
            raise RuntimeError("Database session factory not initialized")
        return self.SessionLocal()

    def close(self):
        """Close database connections"""
        if self.engine:
            self.engine.dispose()

    # ----- generic helpers -------------------------------------------------

    def _get(self, model, record_id: int):
        with self.get_session() as session:
            return session.get(model, record_id)

    def _first(self, stmt):
        with self.get_session() as session:
            return session.execute(stmt).scalars().first()

    def _list(self, stmt) -> list:
        with self.get_session() as session:
            return list(session.execute(stmt).scalars().all())

    def _create(self, record, entity: str, user_id: Optional[int] = None):
        try:
            with self.get_session() as session:
                session.add(record)
                session.commit()
                session.refresh(record)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create {entity}: {e}") from e
        self.logging_service.log_crud_operation(
            "create", entity, record.id, user_id=user_id
        )
        return record

    def _update(self, model, record_id: int, fields: Dict[str, Any], entity: str):
        with self.get_session() as session:
            record = session.get(model, record_id)
            if record is None:
                return None
            for key, value in fields.items():
                if not hasattr(model, key) or key == "id":
                    raise ValidationError(f"Unknown {entity} field: {key}")
                setattr(record, key, value)
            session.commit()
            session.refresh(record)
        self.logging_service.log_crud_operation(
            "update", entity, record_id, fields=sorted(fields)
        )
        return record

    def resolve_scope(self, user_context: UserContext) -> Optional[AccessScope]:
        """Resolve a user into an ``AccessScope``; scopes pass through unchanged."""
        if user_context is None or isinstance(user_context, AccessScope):
            return user_context
        with self.get_session() as session:
            return resolve_scope(session, user_context)

    def _scoped_list(
        self, model, entity: str, user_context: UserContext, order_by=None, stmt=None
    ) -> list:
        """All rows of ``model``, filtered by the caller's scope when one is given."""
        stmt = select(model) if stmt is None else stmt
        with self.get_session() as session:
            if user_context is not None:
                scope = (
                    user_context
                    if isinstance(user_context, AccessScope)
                    else resolve_scope(session, user_context)
                )
                stmt = stmt.where(getattr(scope, entity)())
            stmt = stmt.order_by(*(order_by or [model.id]))
            return list(session.execute(stmt).scalars().all())

    def get_scoped(self, model, entity: str, record_id: int, user_context: UserContext):
        """One row by id, or None when it is missing or outside the caller's scope."""
        with self.get_session() as session:
            stmt = select(model).where(model.id == record_id)
            if user_context is not None:
                scope = (
                    user_context
                    if isinstance(user_context, AccessScope)
                    else resolve_scope(session, user_context)
                )
                stmt = stmt.where(getattr(scope, entity)())
            return session.execute(stmt).scalars().first()

    # ----- users -----------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        return self._get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self._first(select(User).where(User.username == username))

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._first(select(User).where(User.email == email))

    def create_user(self, user: User) -> User:
        return self._create(user, "user")

    def update_user(self, user_id: int, **fields) -> Optional[User]:
        return self._update(User, user_id, fields, "user")

    def get_all_users(self, user_context: UserContext = None) -> List[User]:
        return self._scoped_list(User, "users", user_context)

    # ----- organization ----------------------------------------------------

    def get_district(self, district_id: int) -> Optional[District]:
        return self._get(District, district_id)

    def get_district_by_code(self, code: str) -> Optional[District]:
        return self._first(select(District).where(District.code == code))

    def create_district(self, district: District) -> District:
        return self._create(district, "district")

    def get_all_districts(self, user_context: UserContext = None) -> List[District]:
        return self._scoped_list(District, "districts", user_context)

    def get_school(self, school_id: int) -> Optional[School]:
        return self._get(School, school_id)

    def get_school_by_code(self, code: str) -> Optional[School]:
        return self._first(select(School).where(School.code == code))

    def get_schools_by_district(self, district_id: int) -> List[School]:
        return self._list(
            select(School).where(School.district_id == district_id).order_by(School.id)
        )

    def create_school(self, school: School) -> School:
        return self._create(school, "school")

    def get_all_schools(self, user_context: UserContext = None) -> List[School]:
        return self._scoped_list(School, "schools", user_context)

    def get_department(self, department_id: int) -> Optional[Department]:
        return self._get(Department, department_id)

    def get_departments_by_school(self, school_id: int) -> List[Department]:
        return self._list(
            select(Department)
            .where(Department.school_id == school_id)
            .order_by(Department.id)
        )

    def create_department(self, department: Department) -> Department:
        return self._create(department, "department")

    def get_all_departments(self, user_context: UserContext = None) -> List[Department]:
        return self._scoped_list(Department, "departments", user_context)

    # ----- students and educators ------------------------------------------

    def get_student(self, student_id: int) -> Optional[Student]:
        return self._get(Student, student_id)

    def get_student_by_user_id(self, user_id: int) -> Optional[Student]:
        return self._first(select(Student).where(Student.user_id == user_id))

    def get_students_by_school(self, school_id: int) -> List[Student]:
        return self._list(
            select(Student).where(Student.school_id == school_id).order_by(Student.id)
        )

    def create_student(self, student: Student) -> Student:
        return self._create(student, "student")

    def get_all_students(self, user_context: UserContext = None) -> List[Student]:
        return self._scoped_list(Student, "students", user_context)

    def get_educator(self, educator_id: int) -> Optional[Educator]:
        return self._get(Educator, educator_id)

    def get_educator_by_user_id(self, user_id: int) -> Optional[Educator]:
        return self._first(select(Educator).where(Educator.user_id == user_id))

    def get_educators_by_school(self, school_id: int) -> List[Educator]:
        return self._list(
            select(Educator).where(Educator.school_id == school_id).order_by(Educator.id)
        )

    def get_educators_by_department(self, department_id: int) -> List[Educator]:
        return self._list(
            select(Educator)
            .where(Educator.department_id == department_id)
            .order_by(Educator.id)
        )

    def create_educator(self, educator: Educator) -> Educator:
        return self._create(educator, "educator")

    def get_all_educators(self, user_context: UserContext = None) -> List[Educator]:
        return self._scoped_list(Educator, "educators", user_context)

    # ----- classes, enrollments, grades, attendance ------------------------

    def get_class(self, class_id: int) -> Optional[SchoolClass]:
        return self._get(SchoolClass, class_id)

    def get_class_by_code(self, code: str) -> Optional[SchoolClass]:
        return self._first(select(SchoolClass).where(SchoolClass.code == code))

    def get_classes_by_educator(self, educator_id: int) -> List[SchoolClass]:
        return self._list(
            select(SchoolClass)
            .where(SchoolClass.educator_id == educator_id)
            .order_by(SchoolClass.id)
        )

    def get_classes_by_school(self, school_id: int) -> List[SchoolClass]:
        return self._list(
            select(SchoolClass)
            .where(SchoolClass.school_id == school_id)
            .order_by(SchoolClass.id)
        )

    def get_classes_by_department(self, department_id: int) -> List[SchoolClass]:
        return self._list(
            select(SchoolClass)
            .where(SchoolClass.department_id == department_id)
            .order_by(SchoolClass.id)
        )

    def create_class(self, school_class: SchoolClass) -> SchoolClass:
        return self._create(school_class, "class")

    def get_all_classes(self, user_context: UserContext = None) -> List[SchoolClass]:
        return self._scoped_list(SchoolClass, "classes", user_context)

    def get_enrollments_by_student(self, student_id: int) -> List[Enrollment]:
        return self._list(
            select(Enrollment)
            .where(Enrollment.student_id == student_id)
            .order_by(Enrollment.id)
        )

    def get_enrollments_by_class(self, class_id: int) -> List[Enrollment]:
        return self._list(
            select(Enrollment)
            .where(Enrollment.class_id == class_id)
            .order_by(Enrollment.id)
        )

    def create_enrollment(self, enrollment: Enrollment) -> Enrollment:
        return self._create(enrollment, "enrollment")

    def get_all_enrollments(self, user_context: UserContext = None) -> List[Enrollment]:
        return self._scoped_list(Enrollment, "enrollments", user_context)

    def get_grades_by_student(self, student_id: int) -> List[Grade]:
        return self._list(
            select(Grade).where(Grade.student_id == student_id).order_by(Grade.id)
        )

    def get_grades_by_class(self, class_id: int) -> List[Grade]:
        return self._list(
            select(Grade).where(Grade.class_id == class_id).order_by(Grade.id)
        )

    def create_grade(self, grade: Grade, recorded_by: Optional[int] = None) -> Grade:
        return self._create(grade, "grade", user_id=recorded_by)

    def get_all_grades(self, user_context: UserContext = None) -> List[Grade]:
        return self._scoped_list(Grade, "grades", user_context)

    def get_attendance_by_student(self, student_id: int) -> List[Attendance]:
        return self._list(
            select(Attendance)
            .where(Attendance.student_id == student_id)
            .order_by(Attendance.date, Attendance.id)
        )

    def get_attendance_by_class(self, class_id: int) -> List[Attendance]:
        return self._list(
            select(Attendance)
            .where(Attendance.class_id == class_id)
            .order_by(Attendance.date, Attendance.id)
        )

    def create_attendance(self, attendance: Attendance) -> Attendance:
        return self._create(attendance, "attendance", user_id=attendance.recorded_by)

    def get_all_attendance(self, user_context: UserContext = None) -> List[Attendance]:
        return self._scoped_list(
            Attendance,
            "attendance",
            user_context,
            order_by=[Attendance.date, Attendance.id],
        )

    # ----- achievements ----------------------------------------------------

    def get_achievement(self, achievement_id: int) -> Optional[Achievement]:
        return self._get(Achievement, achievement_id)

    def get_achievements_by_user(self, user_id: int) -> List[Achievement]:
        return self._list(
            select(Achievement)
            .where(Achievement.user_id == user_id)
            .order_by(Achievement.earned_at.desc(), Achievement.id.desc())
        )

    def create_achievement(self, achievement: Achievement) -> Achievement:
        validate_achievement_progress(achievement.progress, achievement.max_progress)
        return self._create(achievement, "achievement", user_id=achievement.user_id)

    def update_achievement(self, achievement_id: int, **fields) -> Optional[Achievement]:
        existing = self.get_achievement(achievement_id)
        if existing is None:
            return None
        validate_achievement_progress(
            fields.get("progress", existing.progress),
            fields.get("max_progress", existing.max_progress),
        )
        return self._update(Achievement, achievement_id, fields, "achievement")

    def get_all_achievements(
        self, user_context: UserContext = None
    ) -> List[Achievement]:
        return self._scoped_list(
            Achievement,
            "achievements",
            user_context,
            order_by=[Achievement.earned_at.desc(), Achievement.id.desc()],
        )

    # ----- learning paths --------------------------------------------------

    @staticmethod
    def _learning_paths_query():
        return select(LearningPath).options(selectinload(LearningPath.nodes))

    def get_learning_path(self, path_id: int) -> Optional[LearningPath]:
        return self._first(self._learning_paths_query().where(LearningPath.id == path_id))

    def get_learning_path_node(self, node_key: str) -> Optional[LearningPathNode]:
        return self._first(
            select(LearningPathNode).where(LearningPathNode.node_key == node_key)
        )

    def create_learning_path(
        self, path: LearningPath, nodes: List[LearningPathNode]
    ) -> LearningPath:
        """Store a path with its nodes; node order is taken from the list."""
        try:
            with self.get_session() as session:
                with session.begin():
                    for position, node in enumerate(nodes):
                        node.position = position
                        path.nodes.append(node)
                    session.add(path)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create learning path: {e}") from e
        self.logging_service.log_crud_operation(
            "create", "learning_path", path.id, user_id=path.created_by, nodes=len(nodes)
        )
        return self.get_learning_path(path.id)

    def get_all_learning_paths(
        self, user_context: UserContext = None, subject: Optional[str] = None
    ) -> List[LearningPath]:
        stmt = self._learning_paths_query()
        if subject:
            stmt = stmt.where(func.lower(LearningPath.subject) == subject.strip().lower())
        return self._scoped_list(LearningPath, "learning_paths", user_context, stmt=stmt)

    def get_path_achievements(self, user_id: int) -> List[Achievement]:
        """The user's achievements that are tied to a learning path node."""
        return self._list(
            select(Achievement)
            .where(
                Achievement.user_id == user_id,
                Achievement.path_node_id.is_not(None),
            )
            .order_by(Achievement.earned_at, Achievement.id)
        )

    # ----- homework --------------------------------------------------------

    def get_homework(self, homework_id: int) -> Optional[Homework]:
        return self._get(Homework, homework_id)

    def get_homework_by_student(self, student_user_id: int) -> List[Homework]:
        """Homework for a student, soonest due first; undated items last."""
        return self._list(
            select(Homework)
            .where(Homework.student_id == student_user_id)
            .order_by(Homework.due_date.is_(None), Homework.due_date, Homework.id)
        )

    def create_homework(self, homework: Homework) -> Homework:
        return self._create(homework, "homework", user_id=homework.student_id)

    def update_homework(self, homework_id: int, **fields) -> Optional[Homework]:
        return self._update(Homework, homework_id, fields, "homework")

    def delete_homework(self, homework_id: int) -> bool:
        with self.get_session() as session:
            homework = session.get(Homework, homework_id)
            if homework is None:
                return False
            session.delete(homework)
            session.commit()
        self.logging_service.log_crud_operation("delete", "homework", homework_id)
        return True

    # ----- tutoring --------------------------------------------------------

    def get_tutoring_session(self, session_id: int) -> Optional[TutoringSession]:
        return self._get(TutoringSession, session_id)

    def get_active_tutoring_session(
        self, student_id: int, subject: Optional[str] = None
    ) -> Optional[TutoringSession]:
        """The student's open session (for ``subject`` when given), or None."""
        stmt = select(TutoringSession).where(
            TutoringSession.student_id == student_id,
            TutoringSession.ended_at.is_(None),
        )
        if subject is not None:
            stmt = stmt.where(TutoringSession.subject == subject)
        return self._first(
            stmt.order_by(TutoringSession.started_at.desc(), TutoringSession.id.desc())
        )

    def get_or_create_active_tutoring_session(
        self,
        student_id: int,
        subject: str,
        topic: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> TutoringSession:
        """Reuse the open session for this student and subject or open one.

        The partial unique index on open sessions decides concurrent opens:
        the loser's insert fails and it returns the winner's session.
        """
        active = self.get_active_tutoring_session(student_id, subject)
        if active is not None:
            return active

        tutoring_session = TutoringSession(
            student_id=student_id,
            subject=subject,
            topic=topic,
            difficulty=difficulty,
            concepts_covered=[],
            improvement_areas=[],
            strength_areas=[],
        )
        try:
            with self.get_session() as session:
                with session.begin():
                    session.add(tutoring_session)
                session.refresh(tutoring_session)
        except IntegrityError:
            active = self.get_active_tutoring_session(student_id, subject)
            if active is None:
                raise
            return active

        self.logging_service.log_crud_operation(
            "create", "tutoring_session", tutoring_session.id, user_id=student_id
        )
        return tutoring_session

    def create_tutoring_session(self, tutoring_session: TutoringSession) -> TutoringSession:
        return self._create(
            tutoring_session, "tutoring_session", user_id=tutoring_session.student_id
        )

    def get_tutoring_sessions_by_student_id(
        self, student_id: int
    ) -> List[TutoringSession]:
        """Newest first."""
        return self._list(
            select(TutoringSession)
            .where(TutoringSession.student_id == student_id)
            .order_by(TutoringSession.started_at.desc(), TutoringSession.id.desc())
        )

    def update_tutoring_session(
        self, session_id: int, **fields
    ) -> Optional[TutoringSession]:
        return self._update(TutoringSession, session_id, fields, "tutoring_session")

    def get_all_tutoring_sessions(
        self, user_context: UserContext = None
    ) -> List[TutoringSession]:
        return self._scoped_list(
            TutoringSession,
            "tutoring_sessions",
            user_context,
            order_by=[TutoringSession.started_at.desc(), TutoringSession.id.desc()],
        )

    def get_tutoring_message(self, message_id: int) -> Optional[TutoringMessage]:
        return self._get(TutoringMessage, message_id)

    def get_tutoring_messages_by_session_id(
        self, session_id: int
    ) -> List[TutoringMessage]:
        """Oldest first."""
        return self._list(
            select(TutoringMessage)
            .where(TutoringMessage.session_id == session_id)
            .order_by(TutoringMessage.timestamp, TutoringMessage.id)
        )

    def create_tutoring_message(self, message: TutoringMessage) -> TutoringMessage:
        return self._create(message, "tutoring_message")

    def add_tutoring_exchange(
        self,
        session_id: int,
        messages: List[TutoringMessage],
        concepts: List[str],
    ) -> TutoringSession:
        """Append messages and update session counters in one transaction.

        Counters are incremented in SQL and concepts merged after the row is
        write-locked, so concurrent exchanges on one session are all counted.

        Raises:
            ValidationError: Unknown or already ended session
        """
        questions = sum(1 for m in messages if m.role == MessageRole.USER)
        with self.get_session() as session:
            with session.begin():
                result = session.execute(
                    update(TutoringSession)
                    .where(
                        TutoringSession.id == session_id,
                        TutoringSession.ended_at.is_(None),
                    )
                    .values(
                        total_messages=TutoringSession.total_messages + len(messages),
                        student_questions=TutoringSession.student_questions + questions,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    raise ValidationError(
                        f"Tutoring session {session_id} not found or already ended"
                    )
                tutoring_session = session.execute(
                    select(TutoringSession)
                    .where(TutoringSession.id == session_id)
                    .with_for_update()
                ).scalar_one()
                merged = list(tutoring_session.concepts_covered or [])
                merged.extend(c for c in concepts if c not in merged)
                tutoring_session.concepts_covered = merged
                for message in messages:
                    message.session_id = session_id
                    session.add(message)
            session.refresh(tutoring_session)
        return tutoring_session

    # ----- audit -----------------------------------------------------------

    def create_audit_log(self, audit_log: AuditLog) -> AuditLog:
        with self.get_session() as session:
            session.add(audit_log)
            session.commit()
            session.refresh(audit_log)
            return audit_log

    def count_rows(self, model) -> int:
        with self.get_session() as session:
            return session.execute(select(func.count()).select_from(model)).scalar_one()


# Global database service instance
_db_service: Optional[DatabaseService] = None


def get_db_service() -> DatabaseService:
    """Get the global database service instance"""
    global _db_service
    if _db_service is None:
        _db_service = DatabaseService()
        if get_settings_service().getboolean("database", "seed_demo", False):
            seed_demo_data(_db_service)
    return _db_service


def init_db_service(db_path: Optional[str] = None) -> DatabaseService:
    """Initialize the global database service"""
    global _db_service
    if _db_service is not None:
        _db_service.close()
    _db_service = DatabaseService(db_path)
    return _db_service


DEMO_PASSWORDS = {
    "admin": "AdminED2025!",
    "teacher": "TeachNYC2025!",
    "student": "EdConnect2025!",
}


def seed_demo_data(db_service: DatabaseService) -> bool:
    """Seed a demo district with one admin, educator and student.

    Does nothing when any user already exists. Returns True when data was
    written.
    """
    from ..security import hash_password
    from .learning_paths import LearningPathService

    if db_service.count_rows(User) > 0:
        return False

    district = db_service.create_district(
        District(
            name="New York City Public Schools",
            code="NYC-01",
            city="New York",
            state="NY",
        )
    )
    school = db_service.create_school(
        School(
            name="Lincoln High School",
            code="LHS-001",
            district_id=district.id,
            address="100 Main Street, New York, NY",
            principal="Dr. Maria Lopez",
        )
    )
    math_dept = db_service.create_department(
        Department(name="Mathematics", school_id=school.id)
    )

    admin = db_service.create_user(
        User(
            username="admin",
            email="admin@edconnect.example",
            password_hash=hash_password(DEMO_PASSWORDS["admin"]),
            role=UserRole.ADMIN,
            first_name="System",
            last_name="Administrator",
            district_id=district.id,
            admin_level=AdminLevel.DISTRICT,
        )
    )
    teacher = db_service.create_user(
        User(
            username="teacher",
            email="john.doe@edconnect.example",
            password_hash=hash_password(DEMO_PASSWORDS["teacher"]),
            role=UserRole.EDUCATOR,
            first_name="John",
            last_name="Doe",
            district_id=district.id,
            school_id=school.id,
            department_id=math_dept.id,
        )
    )
    student_user = db_service.create_user(
        User(
            username="student",
            email="alex.chen@edconnect.example",
            password_hash=hash_password(DEMO_PASSWORDS["student"]),
            role=UserRole.STUDENT,
            first_name="Alex",
            last_name="Chen",
            district_id=district.id,
            school_id=school.id,
        )
    )

    educator = db_service.create_educator(
        Educator(
            user_id=teacher.id,
            school_id=school.id,
            department_id=math_dept.id,
            subject_specialty="Mathematics",
            employee_id="EMP-1001",
            office_location="Room 204",
            office_hours="Mon/Wed 3-4pm",
        )
    )
    student = Student(
        user_id=student_user.id, school_id=school.id, grade=10, student_number="S-10001"
    )
    student.set_encrypted_private_details(
        {"date_of_birth": "2009-04-15", "guardian_name": "Wei Chen"}
    )
    student = db_service.create_student(student)

    subjects = [
        ("Mathematics", "MATH-101", math_dept.id),
        ("Science", "SCI-101", None),
        ("English", "ENG-101", None),
        ("History", "HIST-101", None),
    ]
    today = date.today()
    for index, (name, code, dept_id) in enumerate(subjects):
        school_class = db_service.create_class(
            SchoolClass(
                name=name,
                code=code,
                subject=name,
                educator_id=educator.id,
                school_id=school.id,
                department_id=dept_id,
                room=f"{101 + index}",
                grade_level=10,
                capacity=30,
            )
        )
        db_service.create_enrollment(
            Enrollment(student_id=student.id, class_id=school_class.id)
        )
        db_service.create_grade(
            Grade(
                student_id=student.id,
                class_id=school_class.id,
                assignment_name=f"{name} Unit 1 Quiz",
                score=85 + index * 3,
                max_score=100,
            )
        )
        db_service.create_attendance(
            Attendance(
                student_id=student.id,
                class_id=school_class.id,
                date=today,
                status="present",
                recorded_by=teacher.id,
            )
        )

    LearningPathService(db_service).create_path(
        title="Algebra Foundations",
        subject="Mathematics",
        description="From expressions to linear equations",
        school_id=school.id,
        created_by=teacher.id,
        nodes=[
            {"key": "alg-expressions", "title": "Algebraic Expressions"},
            {
                "key": "alg-linear-equations",
                "title": "Linear Equations",
                "type": "skill",
                "dependencies": ["alg-expressions"],
            },
            {
                "key": "alg-unit-test",
                "title": "Unit Test",
                "type": "assessment",
                "difficulty": "intermediate",
                "dependencies": ["alg-linear-equations"],
            },
        ],
    )
    db_service.create_achievement(
        Achievement(
            user_id=student_user.id,
            title="First Tutoring Session",
            type="milestone",
            subject="Mathematics",
            path_node_id="alg-expressions",
            progress=1,
            max_progress=1,
            is_public=True,
        )
    )
    db_service.logger.info("Seeded demo data", admin_id=admin.id, school_id=school.id)
    return True

