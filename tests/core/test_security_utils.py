"""
Test security utilities
"""

from edconnect.core.security import hash_password, verify_password
from edconnect.core.security_utils import (
    get_or_create_encryption_key,
    get_or_create_jwt_secret,
    sanitize_input,
    scrub_sensitive_data,
)


class TestEncryptionKeyPersistence:
    """Test encryption key persistence"""

    def test_encryption_key_generated_once(self, tmp_path, monkeypatch):
        security_dir = tmp_path / ".edconnect"
        monkeypatch.delenv("EDCONNECT_ENCRYPTION_KEY", raising=False)
        monkeypatch.setattr("edconnect.core.security_utils.SECURITY_DIR", security_dir)
        monkeypatch.setattr(
            "edconnect.core.security_utils.ENCRYPTION_KEY_FILE",
            security_dir / "encryption.key",
        )

        key1 = get_or_create_encryption_key()
        assert key1
        assert (security_dir / "encryption.key").exists()

        key2 = get_or_create_encryption_key()
        assert key1 == key2

    def test_encryption_key_from_env(self, monkeypatch):
        test_key = b"test_encryption_key_12345678901234567890123456789012"
        monkeypatch.setenv("EDCONNECT_ENCRYPTION_KEY", test_key.decode())

        assert get_or_create_encryption_key() == test_key


class TestJWTSecretPersistence:
    """Test JWT secret persistence"""

    def test_jwt_secret_generated_once(self, tmp_path, monkeypatch):
        security_dir = tmp_path / ".edconnect"
        monkeypatch.delenv("EDCONNECT_JWT_SECRET", raising=False)
        monkeypatch.setattr("edconnect.core.security_utils.SECURITY_DIR", security_dir)
        monkeypatch.setattr(
            "edconnect.core.security_utils.JWT_SECRET_FILE", security_dir / "jwt.secret"
        )

        secret1 = get_or_create_jwt_secret()
        assert len(secret1) > 20
        assert get_or_create_jwt_secret() == secret1

    def test_jwt_secret_from_env(self, monkeypatch):
        monkeypatch.setenv("EDCONNECT_JWT_SECRET", "test_jwt_secret_1234567890")

        assert get_or_create_jwt_secret() == "test_jwt_secret_1234567890"


class TestInputSanitization:
    """Test input sanitization"""

    def test_sanitize_removes_control_characters(self):
        assert sanitize_input("Hello\x00World\x07") == "HelloWorld"

    def test_sanitize_keeps_newlines_and_tabs(self):
        assert sanitize_input("line 1\nline 2\tend") == "line 1\nline 2\tend"

    def test_sanitize_truncates(self):
        assert len(sanitize_input("a" * 50, max_length=10)) == 10

    def test_sanitize_empty(self):
        assert sanitize_input("") == ""
        assert sanitize_input(None) == ""


class TestLogScrubbing:
    def test_scrubs_anthropic_keys(self):
        scrubbed = scrub_sensitive_data("auth failed for sk-ant-api03-abcDEF123")
        assert "abcDEF123" not in scrubbed
        assert "sk-ant-***" in scrubbed

    def test_scrubs_bearer_tokens(self):
        scrubbed = scrub_sensitive_data("header Bearer abc.def.ghi rejected")
        assert "abc.def.ghi" not in scrubbed

    def test_scrubs_passwords(self):
        assert "hunter2" not in scrub_sensitive_data("password=hunter2")


def test_password_hash_round_trip():
    hashed = hash_password("Password123!")
    assert hashed != "Password123!"
    assert verify_password("Password123!", hashed)
    assert not verify_password("password123!", hashed)
