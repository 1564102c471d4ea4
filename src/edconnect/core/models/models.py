"""
SQLAlchemy models for EdConnect

Organization (districts, schools, departments), people (users with their
student/educator extension records), classroom facts (classes, enrollments,
grades, attendance), achievements, homework, and the AI tutoring tables.
"""

import enum
import json
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Boolean,
    ForeignKey,
    Text,
    Enum as SQLEnum,
    Index,
    Date,
    Float,
    JSON,
    text,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from cryptography.fernet import Fernet, InvalidToken

Base = declarative_base()

# Encryption setup - use persistent key from security_utils
from ..security_utils import get_or_create_encryption_key

ENCRYPTION_KEY = get_or_create_encryption_key()
cipher = Fernet(ENCRYPTION_KEY)


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRole(enum.Enum):
    """Account roles"""

    STUDENT = "student"
    EDUCATOR = "educator"
    ADMIN = "admin"


class AdminLevel(enum.Enum):
    """Scope tag narrowing an admin's visible data"""

    DISTRICT = "district"
    SCHOOL = "school"
    DEPARTMENT = "department"


class MessageRole(enum.Enum):
    """Author of a tutoring message"""

    USER = "user"
    ASSISTANT = "assistant"


class EventType(enum.Enum):
    """Audit event types"""

    AUTH = "auth"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"


def encrypt_data(data: str) -> str:
    """Encrypt sensitive data"""
    if not data:
        return data
    return cipher.encrypt(data.encode()).decode()


def decrypt_data(encrypted_data: str) -> str:
    """Decrypt sensitive data"""
    if not encrypted_data:
        return encrypted_data
    try:
        return cipher.decrypt(encrypted_data.encode()).decode()
    except InvalidToken:
        return encrypted_data  # Stored before encryption was enabled


class District(Base):
    __tablename__ = "districts"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    schools = relationship("School", back_populates="district")

    def __repr__(self):
        return f"<District(id={self.id}, code='{self.code}')>"


class School(Base):
    __tablename__ = "schools"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    district_id = Column(Integer, ForeignKey("districts.id"), nullable=True, index=True)
    address = Column(String(255), nullable=True)
    principal = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    district = relationship("District", back_populates="schools")
    departments = relationship("Department", back_populates="school")

    def __repr__(self):
        return f"<School(id={self.id}, code='{self.code}')>"


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=False, index=True)
    head_educator_id = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    school = relationship("School", back_populates="departments")


class User(Base):
    """Login account; the role decides which extension record exists"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    district_id = Column(Integer, ForeignKey("districts.id"), nullable=True, index=True)
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=True, index=True)
    department_id = Column(
        Integer, ForeignKey("departments.id"), nullable=True, index=True
    )
    admin_level = Column(SQLEnum(AdminLevel), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    student_profile = relationship("Student", back_populates="user", uselist=False)
    educator_profile = relationship("Educator", back_populates="user", uselist=False)
    audit_logs = relationship("AuditLog", back_populates="user")

    def __repr__(self):
        return (
            f"<User(id={self.id}, username='{self.username}', role={self.role.value})>"
        )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True
    )
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=True, index=True)
    grade = Column(Integer, nullable=True)
    student_number = Column(String(50), nullable=True, index=True)
    private_details = Column(Text, nullable=True)  # Encrypted JSON
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="student_profile")
    enrollments = relationship("Enrollment", back_populates="student")

    @property
    def decrypted_private_details(self) -> Dict[str, Any]:
        """Date of birth and guardian contact details"""
        if self.private_details:
            try:
                decrypted = decrypt_data(self.private_details)
                return json.loads(decrypted) if decrypted else {}
            except ValueError:
                return {}
        return {}

    def set_encrypted_private_details(self, details: Optional[Dict[str, Any]]):
        cleaned = {k: v for k, v in (details or {}).items() if v}
        if cleaned:
            self.private_details = encrypt_data(json.dumps(cleaned))
        else:
            self.private_details = None


class Educator(Base):
    __tablename__ = "educators"

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True
    )
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=True, index=True)
    department_id = Column(
        Integer, ForeignKey("departments.id"), nullable=True, index=True
    )
    subject_specialty = Column(String(100), nullable=True)
    employee_id = Column(String(50), nullable=True)
    office_location = Column(String(100), nullable=True)
    office_hours = Column(String(200), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="educator_profile")
    classes = relationship("SchoolClass", back_populates="educator")


class SchoolClass(Base):
    """A class section taught by one educator"""

    __tablename__ = "classes"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    educator_id = Column(Integer, ForeignKey("educators.id"), nullable=True, index=True)
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=True, index=True)
    department_id = Column(
        Integer, ForeignKey("departments.id"), nullable=True, index=True
    )
    subject = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    room = Column(String(50), nullable=True)
    schedule = Column(String(200), nullable=True)
    grade_level = Column(Integer, nullable=True)
    capacity = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    educator = relationship("Educator", back_populates="classes")
    enrollments = relationship("Enrollment", back_populates="school_class")


class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    status = Column(String(20), default="active", nullable=False)
    enrollment_date = Column(DateTime, default=utcnow, nullable=False)

    student = relationship("Student", back_populates="enrollments")
    school_class = relationship("SchoolClass", back_populates="enrollments")

    __table_args__ = (
        Index("idx_enrollment_student_class", "student_id", "class_id", unique=True),
    )


class Grade(Base):
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    assignment_name = Column(String(200), nullable=False)
    score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False, default=100.0)
    comment = Column(Text, nullable=True)
    graded_date = Column(DateTime, default=utcnow, nullable=False)

    @property
    def percentage(self) -> Optional[float]:
        if not self.max_score:
            return None
        return round(self.score / self.max_score * 100.0, 2)


class Attendance(Base):
    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)  # present, absent, late, excused
    note = Column(Text, nullable=True)
    recorded_by = Column(Integer, ForeignKey("users.id"), nullable=True)


class Achievement(Base):
    """Badge, certificate or milestone earned by a user"""

    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(50), nullable=False, default="badge")
    subject = Column(String(100), nullable=True)
    earned_at = Column(DateTime, default=utcnow, nullable=False)
    path_node_id = Column(String(100), nullable=True)
    progress = Column(Integer, nullable=True)
    max_progress = Column(Integer, nullable=True)
    level = Column(Integer, nullable=True)
    icon_type = Column(String(50), nullable=True)
    shared = Column(Boolean, default=False, nullable=False)
    visible = Column(Boolean, default=True, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    created_by_educator = Column(Integer, ForeignKey("users.id"), nullable=True)


class LearningPath(Base):
    """An ordered graph of learning steps for one subject.

    ``school_id`` null means the path is shared with every school.
    """

    __tablename__ = "learning_paths"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    subject = Column(String(100), nullable=False, index=True)
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    nodes = relationship(
        "LearningPathNode",
        back_populates="path",
        order_by="LearningPathNode.position",
        cascade="all, delete-orphan",
    )


class LearningPathNode(Base):
    """One step of a learning path.

    ``node_key`` is the identifier achievements point at through
    ``Achievement.path_node_id``; ``dependencies`` lists keys of earlier nodes.
    """

    __tablename__ = "learning_path_nodes"

    id = Column(Integer, primary_key=True)
    path_id = Column(Integer, ForeignKey("learning_paths.id"), nullable=False, index=True)
    node_key = Column(String(100), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    node_type = Column(String(30), nullable=False, default="concept")
    difficulty = Column(String(20), nullable=False, default="beginner")
    estimated_hours = Column(Float, nullable=False, default=1.0)
    dependencies = Column(JSON, nullable=False, default=list)
    position = Column(Integer, nullable=False, default=0)

    path = relationship("LearningPath", back_populates="nodes")

    __table_args__ = (
        Index("idx_path_node_key", "node_key", unique=True),
    )


class Homework(Base):
    __tablename__ = "homework"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    subject = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)
    completed = Column(Boolean, default=False, nullable=False)
    priority = Column(String(20), default="medium", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class TutoringSession(Base):
    """A bounded exchange between a student and the AI tutor.

    ``ended_at`` stays null while the session is active; the summary columns
    are written when the session is ended.
    """

    __tablename__ = "tutoring_sessions"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    started_at = Column(DateTime, default=utcnow, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    subject = Column(String(100), nullable=False)
    topic = Column(String(200), nullable=True)
    difficulty = Column(String(20), nullable=True)
    total_messages = Column(Integer, default=0, nullable=False)
    student_questions = Column(Integer, default=0, nullable=False)
    concepts_covered = Column(JSON, nullable=False, default=list)
    session_summary = Column(Text, nullable=True)
    performance_score = Column(Integer, nullable=True)
    improvement_areas = Column(JSON, nullable=False, default=list)
    strength_areas = Column(JSON, nullable=False, default=list)

    messages = relationship(
        "TutoringMessage",
        back_populates="session",
        order_by="TutoringMessage.timestamp",
    )

    __table_args__ = (
        Index("idx_tutoring_student_subject", "student_id", "subject"),
        # At most one open session per student and subject
        Index(
            "uq_tutoring_open_session",
            "student_id",
            "subject",
            unique=True,
            sqlite_where=text("ended_at IS NULL"),
            postgresql_where=text("ended_at IS NULL"),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    def calculate_duration(self) -> Optional[int]:
        """Session length in minutes, None while active"""
        if self.started_at and self.ended_at:
            return int((self.ended_at - self.started_at).total_seconds() / 60)
        return None


class TutoringMessage(Base):
    __tablename__ = "tutoring_messages"

    id = Column(Integer, primary_key=True)
    session_id = Column(
        Integer, ForeignKey("tutoring_sessions.id"), nullable=False, index=True
    )
    role = Column(SQLEnum(MessageRole), nullable=False)
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=utcnow, nullable=False)
    concepts_discussed = Column(JSON, nullable=False, default=list)

    session = relationship("TutoringSession", back_populates="messages")


class AuditLog(Base):
    """Audit trail for account events"""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    event_type = Column(SQLEnum(EventType), nullable=False, index=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="audit_logs")
