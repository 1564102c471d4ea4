"""
Security utilities for EdConnect

This module provides centralized security functions for:
- Encryption key management (student private details at rest)
- JWT secret management
- Input sanitization of student chat messages
- Scrubbing credentials out of log lines
"""

import os
import re
import logging
from pathlib import Path
from cryptography.fernet import Fernet
import secrets

logger = logging.getLogger(__name__)


# Security configuration
SECURITY_DIR = Path.home() / ".edconnect"
ENCRYPTION_KEY_FILE = SECURITY_DIR / "encryption.key"
JWT_SECRET_FILE = SECURITY_DIR / "jwt.secret"

# Input sanitization limits
MAX_INPUT_LENGTH = 10000  # Maximum characters for a student message


def _write_secret_file(path: Path, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)

    # Owner read/write only
    try:
        os.chmod(path, 0o600)
    except OSError as e:
        logger.debug(f"Cannot set file permissions on {path}: {e}")


def get_or_create_encryption_key() -> bytes:
    """
    Get or create persistent encryption key.

    The key is stored in ~/.edconnect/encryption.key with restricted permissions.
    If the key doesn't exist, a new one is generated and saved.

    Returns:
        bytes: The Fernet key

    Raises:
        PermissionError: If unable to create security directory or key file
    """
    env_key = os.getenv("EDCONNECT_ENCRYPTION_KEY")
    if env_key:
        return env_key.encode()

    SECURITY_DIR.mkdir(parents=True, exist_ok=True)

    if ENCRYPTION_KEY_FILE.exists():
        with open(ENCRYPTION_KEY_FILE, "rb") as f:
            return f.read()

    key = Fernet.generate_key()
    _write_secret_file(ENCRYPTION_KEY_FILE, key)
    return key


def get_or_create_jwt_secret() -> str:
    """
    Get or create persistent JWT secret.

    The secret is stored in ~/.edconnect/jwt.secret with restricted permissions.
    """
    env_secret = os.getenv("EDCONNECT_JWT_SECRET")
    if env_secret:
        return env_secret

    SECURITY_DIR.mkdir(parents=True, exist_ok=True)

    if JWT_SECRET_FILE.exists():
        with open(JWT_SECRET_FILE, "r") as f:
            return f.read().strip()

    secret = secrets.token_urlsafe(32)
    _write_secret_file(JWT_SECRET_FILE, secret.encode())
    return secret


def sanitize_input(text: str, max_length: int = MAX_INPUT_LENGTH) -> str:
    """
    Sanitize a student message before it enters the tutoring pipeline.

    Removes control characters (except newlines and tabs) and truncates
    to ``max_length``.
    """
    if not text:
        return ""

    sanitized = "".join(
        char for char in text if char.isprintable() or char in ("\n", "\t", "\r")
    )

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


def scrub_sensitive_data(message: str) -> str:
    """
    Remove credentials from log messages.

    Redacts API keys, passwords, bearer tokens and JWTs.
    """
    patterns = [
        (r"sk-ant-[A-Za-z0-9\-_]+", "sk-ant-***"),
        (r'api[_-]?key["\']?\s*[:=]\s*["\']?([A-Za-z0-9\-_]+)', "api_key=***"),
        (r'password["\']?\s*[:=]\s*["\']?([^\s"\']+)', "password=***"),
        (r"Bearer\s+([A-Za-z0-9\-_\.]+)", "Bearer ***"),
        (r"eyJ[A-Za-z0-9\-_]+\.eyJ[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+", "jwt_token=***"),
    ]

    scrubbed = message
    for pattern, replacement in patterns:
        scrubbed = re.sub(pattern, replacement, scrubbed, flags=re.IGNORECASE)

    return scrubbed
