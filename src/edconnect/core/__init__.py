"""
Core module for EdConnect
"""

from .models import (
    Base,
    User,
    UserRole,
    Student,
    Educator,
    TutoringSession,
    TutoringMessage,
    AuditLog,
)
from .services import (
    DatabaseService,
    get_db_service,
    init_db_service,
    AuthService,
    get_auth_service,
    LoggingService,
    get_logging_service,
    get_logger,
)
