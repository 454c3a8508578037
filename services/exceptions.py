"""
Custom exceptions for the Classroom system.

Every exception carries the HTTP status code it is rendered with, so the
client can tell "log in again" (401) from "no access" (403) from "does not
exist" (404) from "bad input" (400).
"""
from typing import Optional


class ClassroomError(Exception):
    """Base class for all domain errors."""
    
    status_code = 500
    
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class AuthenticationError(ClassroomError):
    """Raised when no valid identity can be resolved for the request."""
    
    status_code = 401


class AuthorizationError(ClassroomError):
    """Raised when a known user attempts an operation they may not perform."""
    
    status_code = 403
    
    def __init__(self, message: str, user_id: int = None, action: str = None):
        self.user_id = user_id
        self.action = action
        super().__init__(message)


class RoleNotAllowed(AuthorizationError):
    """Raised by the role gate when the user's role is not permitted."""
    
    def __init__(self, user_id: int, role: Optional[str], action: str):
        message = f"Forbidden: Role {role or 'NONE'} is not authorized to {action}."
        self.role = role
        super().__init__(message, user_id=user_id, action=action)


class NotClassMember(AuthorizationError):
    """Raised when a user is neither a member, the teacher, nor an admin."""
    
    def __init__(self, user_id: int, class_id: int, action: str):
        message = "Forbidden: You are not a member of this class."
        self.class_id = class_id
        super().__init__(message, user_id=user_id, action=action)


class NotResourceOwner(AuthorizationError):
    """Raised when an ownership check against a loaded resource fails."""
    
    def __init__(self, user_id: int, action: str, message: str = None):
        super().__init__(
            message or "Forbidden: You do not own this resource.",
            user_id=user_id,
            action=action,
        )


class NotFoundError(ClassroomError):
    """Raised when a referenced resource does not exist."""
    
    status_code = 404
    
    def __init__(self, resource: str, resource_id=None, message: str = None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message or f"{resource} not found.")


class InvalidUserError(NotFoundError):
    """Raised when a user is not found."""
    
    def __init__(self, user_id):
        super().__init__("User", user_id, f"User with id {user_id} not found")


class ValidationError(ClassroomError):
    """Raised when input validation fails."""
    
    status_code = 400
    
    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message)
