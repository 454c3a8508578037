"""
Identity tools for the Classroom system.
Handles registration, login, token resolution and user management.
"""
import logging
from typing import Dict, Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import User, UserRole
from .authorization import AuthorizationService, require_role
from .common import paginate, search
from .exceptions import AuthenticationError, InvalidUserError, ValidationError
from .security import create_access_token, decode_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _with_token(user: User) -> Dict[str, Any]:
    data = user.to_dict()
    data["token"] = create_access_token(user)
    return data


def _commit_email(db: Session, message: str) -> None:
    """Commit, reporting a lost race on the unique email as a validation error."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError(message, field="email")


def register_user(db: Session, name: str, email: str, password: str) -> Dict[str, Any]:
    """
    Register a new account. Self-registration always yields a student.
    
    Raises:
        ValidationError: If a required field is empty or the email is taken
    """
    if not name or not email or not password:
        raise ValidationError("Please enter all required fields: name, email, and password.")
    
    email = _normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ValidationError("User already exists", field="email")
    
    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=UserRole.STUDENT.value,
    )
    db.add(user)
    _commit_email(db, "User already exists")
    db.refresh(user)
    
    logger.info("Registered user id=%s", user.id)
    return _with_token(user)


def authenticate(db: Session, email: str, password: str) -> Dict[str, Any]:
    """
    Verify credentials and issue a token.
    
    Raises:
        AuthenticationError: If the email is unknown or the password is wrong
    """
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return _with_token(user)


def get_user_from_token(db: Session, token: Optional[str]) -> User:
    """
    Resolve the acting identity from a bearer token.
    
    Raises:
        AuthenticationError: If the token is missing, invalid, or its user is gone
    """
    if not token:
        raise AuthenticationError("Not authorized, no token")
    payload = decode_access_token(token)
    try:
        return AuthorizationService(db).get_user(payload["sub"])
    except InvalidUserError:
        raise AuthenticationError("Not authorized, user not found")


def get_user(db: Session, user_id: int) -> Dict[str, Any]:
    """
    Raises:
        InvalidUserError: If user not found
    """
    return AuthorizationService(db).get_user(user_id).to_dict()


def list_users(
    db: Session,
    actor: User,
    role: Optional[str] = None,
    q: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """
    List users, optionally filtered by role and searched by name/email.
    
    AUTHORIZATION: Admin only.
    """
    require_role(actor, [UserRole.ADMIN], "list users")
    
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    query = search(query, q, User.name, User.email).order_by(User.id)
    return paginate(query, page, limit)


def update_user_role(db: Session, actor: User, user_id: int, role: str) -> Dict[str, Any]:
    """
    Change a user's role.
    
    AUTHORIZATION: Admin only.
    
    Raises:
        ValidationError: If the role is not one of student/teacher/admin
        InvalidUserError: If the user does not exist
    """
    require_role(actor, [UserRole.ADMIN], "change user roles")
    
    try:
        new_role = UserRole(role)
    except ValueError:
        raise ValidationError("Invalid role specified.", field="role")
    
    user = AuthorizationService(db).get_user(user_id)
    user.role = new_role.value
    db.commit()
    db.refresh(user)
    
    logger.info("User id=%s role changed to %s by admin id=%s", user.id, new_role.value, actor.id)
    return user.to_dict()


def update_profile(
    db: Session,
    actor: User,
    name: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
    bio: Optional[str] = None,
    school_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Update the caller's own record. There is no target id: a user can only
    ever edit themselves through this path.
    
    Raises:
        ValidationError: If the new email belongs to another account
    """
    if name:
        actor.name = name.strip()
    if email:
        email = _normalize_email(email)
        taken = db.query(User).filter(User.email == email, User.id != actor.id).first()
        if taken:
            raise ValidationError("This email is already in use.", field="email")
        actor.email = email
    if password:
        actor.password_hash = hash_password(password)
    if bio is not None:
        actor.bio = bio
    if school_id is not None:
        actor.school_id = school_id
    
    _commit_email(db, "This email is already in use.")
    db.refresh(actor)
    return actor.to_dict()


def ensure_admin(db: Session, email: str, password: str, name: str = "Administrator") -> Optional[User]:
    """
    Create the bootstrap admin account if no user holds the email yet.
    
    Returns:
        The created user, or None if the email already existed
    """
    email = _normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        return None
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=UserRole.ADMIN.value,
    )
    db.add(user)
    db.commit()
    logger.info("Seeded admin account %s", email)
    return user
