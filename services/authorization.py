"""
Authorization module for the Classroom system.
Implements the role gate, the ownership predicates and the class
membership predicates every operation is checked against.

RULES:
1. Never trust the client for role - always read it from the identity store
2. Admins pass every fine-grained check
3. Not-found is reported before ownership is evaluated
4. References are normalised to canonical ids before any comparison
"""
import logging
from functools import singledispatch
from typing import Iterable, NamedTuple, Optional

from sqlalchemy.orm import Session

from database import User, Classroom, Assignment, Submission, UserRole
from .common import canonical_id, same_id
from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    RoleNotAllowed,
    NotClassMember,
    NotResourceOwner,
    NotFoundError,
    InvalidUserError,
)

logger = logging.getLogger(__name__)

RESOURCE_NAMES = {Classroom: "Class"}


def role_of(user) -> Optional[UserRole]:
    """Return the user's role as a closed enum, or None if it is unknown."""
    try:
        return UserRole(user.role)
    except (AttributeError, ValueError):
        return None


def is_admin(user) -> bool:
    return role_of(user) is UserRole.ADMIN


def _deny(error: AuthorizationError) -> AuthorizationError:
    logger.warning(
        "Denied user=%s action=%s: %s", error.user_id, error.action, error.message
    )
    return error


def require_role(user, roles: Iterable, action: str = "access this resource"):
    """
    Role gate: admit the user only if their role is one of ``roles``.
    
    Args:
        user: Acting user, or None when no identity was resolved
        roles: Non-empty collection of permitted roles
        action: Description of the operation, used in errors and logs
        
    Returns:
        The user, unchanged
        
    Raises:
        AuthenticationError: If there is no acting user
        RoleNotAllowed: If the user's role is not permitted
    """
    permitted = {UserRole(role) for role in roles}
    if not permitted:
        raise ValueError("A role gate needs at least one permitted role")
    if user is None:
        raise AuthenticationError("Unauthorized: User not found or token invalid.")
    if role_of(user) not in permitted:
        raise _deny(RoleNotAllowed(user.id, user.role, action))
    return user


@singledispatch
def resource_owner_id(resource) -> int:
    """
    Owner of a resource for the generic ownership predicate.
    
    Classes are deliberately not registered here: they use the
    class-teacher predicate instead.
    """
    raise TypeError(f"Ownership is not defined for {type(resource).__name__}")


@resource_owner_id.register
def _submission_owner(resource: Submission) -> int:
    return canonical_id(resource.student_id)


@resource_owner_id.register
def _assignment_owner(resource: Assignment) -> int:
    return canonical_id(resource.created_by)


class SubmissionChain(NamedTuple):
    """Submission resolved together with its assignment and class."""
    submission: Submission
    assignment: Assignment
    classroom: Classroom


class AuthorizationService:
    """
    Service for handling authorization checks.
    All role information is fetched from the database, never trusted from client.
    """
    
    def __init__(self, db: Session):
        self.db = db
    
    def get_user(self, user_id) -> User:
        """
        Get user from database.
        
        Raises:
            InvalidUserError: If user not found
        """
        user = self.db.query(User).filter(User.id == canonical_id(user_id)).first()
        if not user:
            raise InvalidUserError(user_id)
        return user
    
    def load(self, model, resource_id, **scope):
        """
        Load a resource by id.
        
        Keyword arguments name fields the resource must match (for example
        ``class_id`` for an assignment addressed under a class); a mismatch
        is reported exactly like a missing resource.
        
        Raises:
            NotFoundError: If the resource does not exist or is out of scope
        """
        name = RESOURCE_NAMES.get(model, model.__name__)
        rid = canonical_id(resource_id)
        resource = None
        if rid is not None:
            resource = self.db.query(model).filter(model.id == rid).first()
        if resource is None:
            raise NotFoundError(name, resource_id)
        for field, expected in scope.items():
            if not same_id(getattr(resource, field), expected):
                raise NotFoundError(name, resource_id, f"{name} not found in this class.")
        return resource
    
    # ----- generic ownership -----
    
    def is_owner(self, user, resource) -> bool:
        return is_admin(user) or same_id(user, resource_owner_id(resource))
    
    def enforce_ownership(self, user, resource, action: str, message: str = None) -> None:
        """
        Raises:
            NotResourceOwner: If the user does not own the resource and is not an admin
        """
        if not self.is_owner(user, resource):
            raise _deny(NotResourceOwner(user.id, action, message))
    
    def load_owned(self, user, model, resource_id, action: str, message: str = None, **scope):
        """
        Load a resource, then check ownership against it.
        
        Returns:
            The loaded resource, so the caller does not read it twice
        """
        resource = self.load(model, resource_id, **scope)
        self.enforce_ownership(user, resource, action, message)
        return resource
    
    # ----- class predicates -----
    
    @staticmethod
    def _teacher_ref(classroom: Classroom):
        return classroom.teacher_id if classroom.teacher_id is not None else classroom.teacher
    
    def is_class_teacher(self, user, classroom: Optional[Classroom]) -> bool:
        """Teacher of the class, without any admin bypass."""
        return bool(classroom is not None and same_id(user, self._teacher_ref(classroom)))
    
    def is_class_teacher_or_admin(self, user, classroom: Optional[Classroom]) -> bool:
        return is_admin(user) or self.is_class_teacher(user, classroom)
    
    def is_class_member(self, user, classroom: Optional[Classroom]) -> bool:
        """Listed member, the class teacher, or an admin."""
        if is_admin(user) or self.is_class_teacher(user, classroom):
            return True
        if classroom is None:
            return False
        return any(
            same_id(user, m.user_id if m.user_id is not None else m.user)
            for m in classroom.members
        )
    
    def enforce_class_teacher(self, user, classroom: Classroom, action: str, message: str) -> None:
        """
        Raises:
            NotResourceOwner: If the user is not the teacher of the class
        """
        if not self.is_class_teacher(user, classroom):
            raise _deny(NotResourceOwner(user.id, action, message))
    
    def enforce_class_teacher_or_admin(
        self, user, classroom: Classroom, action: str, message: str = None
    ) -> None:
        """
        Raises:
            NotResourceOwner: If the user is neither the class teacher nor an admin
        """
        if not self.is_class_teacher_or_admin(user, classroom):
            raise _deny(NotResourceOwner(
                user.id,
                action,
                message or "Forbidden: Only the class teacher or an admin can do this.",
            ))
    
    def enforce_class_membership(self, user, classroom: Classroom, action: str) -> None:
        """
        Raises:
            NotClassMember: If the user is not a member, the teacher, or an admin
        """
        if not self.is_class_member(user, classroom):
            raise _deny(NotClassMember(user.id, classroom.id, action))
    
    # ----- transitive chains -----
    
    def resolve_assignment_class(self, assignment: Assignment) -> Classroom:
        """
        Raises:
            NotFoundError: If the assignment's class no longer exists
        """
        return self.load(Classroom, assignment.class_id)
    
    def resolve_submission_chain(self, submission_id) -> SubmissionChain:
        """
        Resolve submission -> assignment -> class, one hop at a time.
        
        Raises:
            NotFoundError: Naming the first hop that does not resolve
        """
        submission = self.load(Submission, submission_id)
        assignment = self.load(Assignment, submission.assignment_id)
        classroom = self.resolve_assignment_class(assignment)
        return SubmissionChain(submission, assignment, classroom)
    
    def can_access_submission(self, user, chain: SubmissionChain) -> bool:
        """Submission owner, teacher of the submission's class, or admin."""
        return (
            same_id(user, chain.submission.student_id)
            or self.is_class_teacher(user, chain.classroom)
            or is_admin(user)
        )
    
    def enforce_submission_access(self, user, chain: SubmissionChain, action: str, message: str) -> None:
        """
        Raises:
            NotResourceOwner: If the user may not access the submission
        """
        if not self.can_access_submission(user, chain):
            raise _deny(NotResourceOwner(user.id, action, message))


def get_authorization_service(db: Session) -> AuthorizationService:
    """Factory function to create AuthorizationService."""
    return AuthorizationService(db)
