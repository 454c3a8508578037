"""API module for the Classroom system."""
from .routes import (
    auth_router,
    profile_router,
    users_router,
    classes_router,
    assignments_router,
    submissions_router,
)
from .deps import get_current_user, require_roles

__all__ = [
    "auth_router",
    "profile_router",
    "users_router",
    "classes_router",
    "assignments_router",
    "submissions_router",
    "get_current_user",
    "require_roles",
]
