"""Database module."""
from .models import (
    Base,
    User,
    Classroom,
    ClassMember,
    Assignment,
    Submission,
    Comment,
    UserRole,
    MemberRole,
    SubmissionStatus,
    Visibility,
    utcnow,
)
from .connection import engine, SessionLocal, get_db, get_db_context, init_db

__all__ = [
    "Base",
    "User",
    "Classroom",
    "ClassMember",
    "Assignment",
    "Submission",
    "Comment",
    "UserRole",
    "MemberRole",
    "SubmissionStatus",
    "Visibility",
    "utcnow",
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "init_db",
]
