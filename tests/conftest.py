"""
Test configuration and setup for EdConnect
"""

import os
import sys
import tempfile
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

# Add this repo's `src/` to path for imports
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

# Set test environment variables before any edconnect import
os.environ["EDCONNECT_TEST_MODE"] = "1"
os.environ["EDCONNECT_CONFIG_FILE"] = str(project_root / "env-test.properties")
os.environ["EDCONNECT_JWT_SECRET"] = "test-jwt-secret-for-edconnect-suite"
os.environ.setdefault("EDCONNECT_LOG_DIR", tempfile.mkdtemp(prefix="edconnect_logs_"))
# Generate a valid Fernet key for testing
from cryptography.fernet import Fernet

os.environ["EDCONNECT_ENCRYPTION_KEY"] = Fernet.generate_key().decode()

from edconnect.core.services.settings_config_service import reset_settings_service

reset_settings_service()

DEFAULT_PASSWORD = "Password123!"


def text_response(text, input_tokens=12, output_tokens=34):
    """Shape of an Anthropic Messages API reply with one text block."""
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)],
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens),
    )


@pytest.fixture
def test_db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture(autouse=True)
def setup_test_env(test_db_path):
    """Fresh database and service singletons for every test"""
    from edconnect.core.services.ai_service import reset_ai_service
    from edconnect.core.services.auth import reset_auth_service
    from edconnect.core.services.concept_extraction import reset_concept_extractor
    from edconnect.core.services.database import init_db_service
    from edconnect.core.services.pii_redaction import reset_pii_redactor
    from edconnect.core.services.tutoring_service import reset_tutoring_service

    db = init_db_service(str(test_db_path))
    for reset in (
        reset_ai_service,
        reset_auth_service,
        reset_concept_extractor,
        reset_pii_redactor,
        reset_tutoring_service,
    ):
        reset()

    yield

    reset_tutoring_service()
    reset_ai_service()
    db.close()


@pytest.fixture(autouse=True)
def _patch_ai_client(monkeypatch):
    """Swap the Anthropic client for a MagicMock so no test reaches the network"""
    from edconnect.core.services.ai_service import AIService

    def _fake_setup_client(self):
        self._client = MagicMock()
        self._client.messages.create.return_value = text_response(
            "Let's work through it together. What is the first step?"
        )

    monkeypatch.setattr(AIService, "_setup_client", _fake_setup_client)


@pytest.fixture
def db_service():
    from edconnect.core.services.database import get_db_service

    return get_db_service()


@pytest.fixture
def ai_client():
    """The mocked Anthropic client behind the global AI service"""
    from edconnect.core.services.ai_service import get_ai_service

    return get_ai_service()._client


@pytest.fixture
def client():
    """FastAPI TestClient bound to the per-test database"""
    from fastapi.testclient import TestClient
    from edconnect.api.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db_service):
    """Factory creating a user plus its student/educator profile record"""
    from edconnect.core.models import Educator, Student, User, UserRole
    from edconnect.core.security import hash_password

    def _make_user(
        username,
        role=UserRole.STUDENT,
        first_name="Test",
        last_name="User",
        school_id=None,
        district_id=None,
        department_id=None,
        admin_level=None,
        student_number=None,
        with_profile=True,
    ):
        user = db_service.create_user(
            User(
                username=username,
                email=f"{username}@example.com",
                password_hash=hash_password(DEFAULT_PASSWORD),
                role=role,
                first_name=first_name,
                last_name=last_name,
                school_id=school_id,
                district_id=district_id,
                department_id=department_id,
                admin_level=admin_level,
            )
        )
        if with_profile and role == UserRole.STUDENT:
            db_service.create_student(
                Student(
                    user_id=user.id, school_id=school_id, student_number=student_number
                )
            )
        elif with_profile and role == UserRole.EDUCATOR:
            db_service.create_educator(
                Educator(
                    user_id=user.id, school_id=school_id, department_id=department_id
                )
            )
        return user

    return _make_user


@pytest.fixture
def test_student(make_user):
    return make_user("api_test_student", first_name="API", last_name="Student")


@pytest.fixture
def test_educator(make_user):
    from edconnect.core.models import UserRole

    return make_user(
        "api_test_educator", role=UserRole.EDUCATOR, first_name="API", last_name="Teacher"
    )


@pytest.fixture
def login(client):
    """Log in through the API and return bearer headers"""

    def _login(username, password=DEFAULT_PASSWORD):
        resp = client.post(
            "/api/login", data={"username": username, "password": password}
        )
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _login


@pytest.fixture
def student_headers(login, test_student):
    return login(test_student.username)


@pytest.fixture
def educator_headers(login, test_educator):
    return login(test_educator.username)


@pytest.fixture
def school_world(db_service, make_user):
    """Two schools in one district, each with an educator, a class and a student"""
    from edconnect.core.models import (
        AdminLevel,
        Attendance,
        District,
        Enrollment,
        Grade,
        School,
        SchoolClass,
        UserRole,
    )
    from datetime import date

    district = db_service.create_district(District(name="District", code="D-1"))
    schools = [
        db_service.create_school(
            School(name=f"School {n}", code=f"S-{n}", district_id=district.id)
        )
        for n in (1, 2)
    ]

    world = {"district": district, "schools": schools, "students": [], "classes": []}
    for index, school in enumerate(schools, start=1):
        educator_user = make_user(
            f"educator{index}", role=UserRole.EDUCATOR, school_id=school.id
        )
        educator = db_service.get_educator_by_user_id(educator_user.id)
        student_user = make_user(f"student{index}", school_id=school.id)
        student = db_service.get_student_by_user_id(student_user.id)
        school_class = db_service.create_class(
            SchoolClass(
                name=f"Algebra {index}",
                code=f"ALG-{index}",
                educator_id=educator.id,
                school_id=school.id,
                subject="Mathematics",
            )
        )
        db_service.create_enrollment(
            Enrollment(student_id=student.id, class_id=school_class.id)
        )
        db_service.create_grade(
            Grade(
                student_id=student.id,
                class_id=school_class.id,
                assignment_name="Quiz 1",
                score=70 + index * 10,
            )
        )
        db_service.create_attendance(
            Attendance(
                student_id=student.id,
                class_id=school_class.id,
                date=date(2025, 9, 1),
                status="present",
            )
        )
        world[f"educator_user{index}"] = educator_user
        world[f"student_user{index}"] = student_user
        world["students"].append(student)
        world["classes"].append(school_class)

    world["school_admin"] = make_user(
        "school_admin",
        role=UserRole.ADMIN,
        school_id=schools[0].id,
        admin_level=AdminLevel.SCHOOL,
    )
    world["super_admin"] = make_user("super_admin", role=UserRole.ADMIN)
    return world
