"""
Core services for EdConnect
"""

from .database import DatabaseService, get_db_service, init_db_service
from .auth import AuthService, get_auth_service
from .logging import LoggingService, get_logging_service, get_logger
from .ai_service import AIService, get_ai_service, init_ai_service
from .pii_redaction import PIIRedactor, StudentContext, redact_pii
from .concept_extraction import ConceptExtractor, extract_concepts
from .tutor_prompts import build_system_prompt
from .tutoring_service import TutoringService, get_tutoring_service

__all__ = [
    "DatabaseService",
    "get_db_service",
    "init_db_service",
    "AuthService",
    "get_auth_service",
    "LoggingService",
    "get_logging_service",
    "get_logger",
    "AIService",
    "get_ai_service",
    "init_ai_service",
    "PIIRedactor",
    "StudentContext",
    "redact_pii",
    "ConceptExtractor",
    "extract_concepts",
    "build_system_prompt",
    "TutoringService",
    "get_tutoring_service",
]
