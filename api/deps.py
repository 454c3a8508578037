"""
Request dependencies: acting identity and role gates.
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from database import get_db, User
from services import AuthenticationError, get_user_from_token, require_role


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the acting user from the bearer token.
    Runs before any entity is loaded for the request.
    """
    token = None
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() != "bearer" or not credentials.strip():
            raise AuthenticationError("Invalid authorization header")
        token = credentials.strip()
    return get_user_from_token(db, token)


def require_roles(*roles: str):
    """Build a dependency that admits only users holding one of ``roles``."""
    if not roles:
        raise ValueError("require_roles needs at least one role")

    def dependency(user: User = Depends(get_current_user)) -> User:
        return require_role(user, roles, "access this resource")

    return dependency
