"""
Models package for EdConnect

This package contains all database models and enums for the application.
"""

from .models import (
    Base,
    District,
    School,
    Department,
    User,
    Student,
    Educator,
    SchoolClass,
    Enrollment,
    Grade,
    Attendance,
    Achievement,
    LearningPath,
    LearningPathNode,
    Homework,
    TutoringSession,
    TutoringMessage,
    AuditLog,
    UserRole,
    AdminLevel,
    MessageRole,
    EventType,
    encrypt_data,
    decrypt_data,
    utcnow,
)

__all__ = [
    "Base",
    "District",
    "School",
    "Department",
    "User",
    "Student",
    "Educator",
    "SchoolClass",
    "Enrollment",
    "Grade",
    "Attendance",
    "Achievement",
    "LearningPath",
    "LearningPathNode",
    "Homework",
    "TutoringSession",
    "TutoringMessage",
    "AuditLog",
    "UserRole",
    "AdminLevel",
    "MessageRole",
    "EventType",
    "encrypt_data",
    "decrypt_data",
    "utcnow",
]
