"""
Test cases for authentication functionality
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlalchemy import select

from edconnect.core.exceptions import (
    AuthenticationError,
    UserNotFoundError,
    ValidationError,
)
from edconnect.core.models import AuditLog, EventType, UserRole
from edconnect.core.services.auth import AuthService


class TestAuthService:
    """Test authentication service"""

    @pytest.fixture
    def auth_service(self):
        return AuthService()

    @pytest.fixture
    def sample_user_data(self):
        """Sample user data for testing"""
        return {
            "username": "testuser",
            "email": "Test@Example.com",
            "password": "TestPass123!",
            "first_name": "Test",
            "last_name": "User",
            "role": UserRole.STUDENT,
        }

    def test_user_registration(self, auth_service, sample_user_data):
        user_data = auth_service.register_user(**sample_user_data, grade=7)

        assert user_data["username"] == "testuser"
        assert user_data["email"] == "test@example.com"
        assert user_data["role"] == "student"
        assert "password_hash" not in user_data

        student = auth_service.db_service.get_student_by_user_id(user_data["id"])
        assert student is not None
        assert student.grade == 7

    def test_educator_registration_creates_profile(self, auth_service, sample_user_data):
        sample_user_data["role"] = "teacher"
        user_data = auth_service.register_user(**sample_user_data)

        assert user_data["role"] == "educator"
        assert auth_service.db_service.get_educator_by_user_id(user_data["id"])

    def test_admin_cannot_self_register(self, auth_service, sample_user_data):
        sample_user_data["role"] = "admin"
        with pytest.raises(AuthenticationError):
            auth_service.register_user(**sample_user_data)
        assert auth_service.db_service.get_user_by_username("testuser") is None

    def test_duplicate_username_registration(self, auth_service, sample_user_data):
        auth_service.register_user(**sample_user_data)

        duplicate_data = dict(sample_user_data, email="different@example.com")
        with pytest.raises(AuthenticationError, match="Username already exists"):
            auth_service.register_user(**duplicate_data)

    def test_duplicate_email_registration(self, auth_service, sample_user_data):
        auth_service.register_user(**sample_user_data)

        duplicate_data = dict(sample_user_data, username="differentuser")
        with pytest.raises(AuthenticationError, match="Email already exists"):
            auth_service.register_user(**duplicate_data)

    @pytest.mark.parametrize(
        "password", ["short1!", "alllowercase1!", "ALLUPPERCASE1!", "NoDigits!!", "NoSpecial123"]
    )
    def test_weak_passwords_rejected(self, auth_service, sample_user_data, password):
        sample_user_data["password"] = password
        with pytest.raises(AuthenticationError):
            auth_service.register_user(**sample_user_data)

    def test_user_login_success(self, auth_service, sample_user_data):
        user_data = auth_service.register_user(**sample_user_data)

        result = auth_service.login_user("testuser", "TestPass123!")

        assert result["user"]["id"] == user_data["id"]
        assert result["user"]["last_login"] is not None
        assert result["expires_at"] > datetime.now(timezone.utc)
        validated = auth_service.validate_token(result["token"])
        assert validated.id == user_data["id"]

    def test_user_login_wrong_password(self, auth_service, sample_user_data):
        auth_service.register_user(**sample_user_data)

        with pytest.raises(AuthenticationError, match="Invalid username or password"):
            auth_service.login_user("testuser", "WrongPass123!")

    def test_user_login_unknown_user(self, auth_service):
        with pytest.raises(AuthenticationError, match="Invalid username or password"):
            auth_service.login_user("ghost", "TestPass123!")

    def test_auth_events_are_audited(self, auth_service, sample_user_data):
        auth_service.register_user(**sample_user_data)
        auth_service.login_user("testuser", "TestPass123!")
        with pytest.raises(AuthenticationError):
            auth_service.login_user("testuser", "nope")

        with auth_service.db_service.get_session() as session:
            events = [
                (row.event_type, row.details["event_key"])
                for row in session.execute(select(AuditLog).order_by(AuditLog.id)).scalars()
            ]
        assert events == [
            (EventType.CREATE, "auth.register"),
            (EventType.LOGIN, "auth.login"),
            (EventType.LOGIN, "auth.failed_login"),
        ]


class TestTokens:
    @pytest.fixture
    def auth_service(self):
        return AuthService()

    def test_token_without_exp_is_rejected(self, auth_service, test_student):
        token = jwt.encode(
            {"user_id": test_student.id}, auth_service.jwt_secret, algorithm="HS256"
        )
        assert auth_service.validate_token(token) is None

    def test_expired_token_is_rejected(self, auth_service, test_student):
        token = jwt.encode(
            {
                "user_id": test_student.id,
                "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
            },
            auth_service.jwt_secret,
            algorithm="HS256",
        )
        assert auth_service.validate_token(token) is None

    def test_token_signed_with_other_secret_is_rejected(self, auth_service, test_student):
        token = jwt.encode(
            {
                "user_id": test_student.id,
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
            },
            "some-other-secret",
            algorithm="HS256",
        )
        assert auth_service.validate_token(token) is None

    def test_token_for_inactive_user_is_rejected(self, auth_service, db_service, test_student):
        token = auth_service._generate_jwt_token(test_student)
        db_service.update_user(test_student.id, active=False)
        assert auth_service.validate_token(token) is None


class TestProfileUpdate:
    def test_update_profile(self, test_student):
        result = AuthService().update_profile(
            test_student.id, first_name=" Ada ", email="ADA@example.com"
        )
        assert result["first_name"] == "Ada"
        assert result["last_name"] == "Student"
        assert result["email"] == "ada@example.com"

    def test_blank_name_rejected(self, test_student):
        with pytest.raises(ValidationError):
            AuthService().update_profile(test_student.id, last_name="   ")

    def test_email_in_use(self, test_student, test_educator):
        with pytest.raises(ValidationError, match="Email already in use"):
            AuthService().update_profile(test_student.id, email=test_educator.email)

    def test_unknown_user(self):
        with pytest.raises(UserNotFoundError):
            AuthService().update_profile(9999, first_name="Ghost")
