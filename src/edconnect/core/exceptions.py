"""
Custom exceptions for EdConnect

This module contains all custom exceptions used throughout the application.
"""


class EdConnectException(Exception):
    """Base exception for all EdConnect exceptions"""


class ConfigurationError(EdConnectException):
    """Raised when there's a configuration error"""


class ValidationError(EdConnectException):
    """Raised when validation fails"""


class AuthenticationError(EdConnectException):
    """Raised when authentication fails"""


class AuthorizationError(EdConnectException):
    """Raised when authorization fails"""


class DatabaseError(EdConnectException):
    """Raised when there's a database error"""


class AIServiceError(EdConnectException):
    """Raised when the AI tutor provider fails"""


class NotFoundError(EdConnectException):
    """Raised when a requested record does not exist"""


class UserNotFoundError(NotFoundError):
    """Raised when user is not found"""


class SessionNotFoundError(NotFoundError):
    """Raised when a tutoring session is not found"""
