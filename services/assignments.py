"""
Assignment tools for the Classroom system.
Assignments live inside a class; update and delete rights follow the
assignment's creator, not the class's current teacher.
"""
import logging
from datetime import datetime
from typing import Dict, Any, List, Optional

from sqlalchemy.orm import Session

from database import Assignment, Classroom, User, UserRole, Visibility
from .authorization import AuthorizationService, require_role
from .common import as_utc, utcnow, paginate, search
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

ALL_ROLES = (UserRole.STUDENT, UserRole.TEACHER, UserRole.ADMIN)

STATUS_FILTERS = ("upcoming", "overdue")


def _future_due_date(due_at: datetime, message: str) -> datetime:
    due_at = as_utc(due_at)
    if due_at <= utcnow():
        raise ValidationError(message, field="due_at")
    return due_at


def _visibility(value: Optional[str]) -> str:
    try:
        return Visibility(value or Visibility.ACTIVE.value).value
    except ValueError:
        raise ValidationError("Visibility must be one of active, draft, archived", field="visibility")


def _validate_max_score(max_score: Optional[float]) -> None:
    if max_score is not None and max_score <= 0:
        raise ValidationError("Max score must be positive", field="max_score")


def create_assignment(
    db: Session,
    actor: User,
    class_id: int,
    title: str,
    due_at: datetime,
    description: Optional[str] = None,
    attachments: Optional[List[Dict[str, Any]]] = None,
    max_score: Optional[float] = None,
    visibility: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create an assignment in a class.
    
    AUTHORIZATION: Teacher of the class.
    
    Raises:
        NotFoundError: If the class does not exist
        NotResourceOwner: If the caller is not the class teacher
        ValidationError: If the due date is not strictly in the future
    """
    require_role(actor, [UserRole.TEACHER], "create assignments")
    
    if not (title and title.strip()) or due_at is None:
        raise ValidationError("Assignment title and due date are required.")
    
    auth_service = AuthorizationService(db)
    classroom = auth_service.load(Classroom, class_id)
    auth_service.enforce_class_teacher(
        actor, classroom, "create_assignment",
        "Forbidden: You can only create assignments in your own classes.",
    )
    
    due_at = _future_due_date(due_at, "Due date must be set in the future.")
    _validate_max_score(max_score)
    
    assignment = Assignment(
        class_id=classroom.id,
        title=title.strip(),
        description=description,
        due_at=due_at,
        attachments=attachments or [],
        created_by=actor.id,
        max_score=max_score if max_score is not None else 100,
        visibility=_visibility(visibility),
    )
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    
    logger.info("Assignment id=%s created in class id=%s by user id=%s", assignment.id, classroom.id, actor.id)
    return assignment.to_dict()


def list_assignments(
    db: Session,
    actor: User,
    class_id: int,
    status_filter: Optional[str] = None,
    q: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Paginated assignments of a class.
    
    AUTHORIZATION: Member, class teacher, or admin.
    """
    require_role(actor, ALL_ROLES, "list assignments")
    auth_service = AuthorizationService(db)
    classroom = auth_service.load(Classroom, class_id)
    auth_service.enforce_class_membership(actor, classroom, "list_assignments")
    
    query = db.query(Assignment).filter(Assignment.class_id == classroom.id)
    if status_filter:
        if status_filter not in STATUS_FILTERS:
            raise ValidationError("statusFilter must be 'upcoming' or 'overdue'", field="statusFilter")
        now = utcnow()
        if status_filter == "upcoming":
            query = query.filter(Assignment.due_at > now)
        else:
            query = query.filter(Assignment.due_at < now)
    query = search(query, q, Assignment.title, Assignment.description)
    return paginate(query.order_by(Assignment.due_at, Assignment.id), page, limit)


def get_assignment(db: Session, actor: User, class_id: int, assignment_id: int) -> Dict[str, Any]:
    """
    AUTHORIZATION: Member of the parent class, its teacher, or admin.
    """
    require_role(actor, ALL_ROLES, "view assignments")
    auth_service = AuthorizationService(db)
    assignment = auth_service.load(Assignment, assignment_id, class_id=class_id)
    classroom = auth_service.resolve_assignment_class(assignment)
    auth_service.enforce_class_membership(actor, classroom, "view_assignment")
    return assignment.to_dict()


def update_assignment(
    db: Session,
    actor: User,
    class_id: int,
    assignment_id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    due_at: Optional[datetime] = None,
    attachments: Optional[List[Dict[str, Any]]] = None,
    max_score: Optional[float] = None,
    visibility: Optional[str] = None,
) -> Dict[str, Any]:
    """
    AUTHORIZATION: Teacher who created the assignment.
    """
    require_role(actor, [UserRole.TEACHER], "update assignments")
    assignment = AuthorizationService(db).load_owned(
        actor, Assignment, assignment_id, "update_assignment",
        "Forbidden: You can only update assignments you created.",
        class_id=class_id,
    )
    
    if due_at is not None:
        assignment.due_at = _future_due_date(due_at, "New due date must be set in the future.")
    if title is not None:
        if not title.strip():
            raise ValidationError("Assignment title cannot be blank.", field="title")
        assignment.title = title.strip()
    if description is not None:
        assignment.description = description
    if attachments is not None:
        assignment.attachments = attachments
    if max_score is not None:
        _validate_max_score(max_score)
        assignment.max_score = max_score
    if visibility is not None:
        assignment.visibility = _visibility(visibility)
    
    db.commit()
    db.refresh(assignment)
    return assignment.to_dict()


def delete_assignment(db: Session, actor: User, class_id: int, assignment_id: int) -> Dict[str, Any]:
    """
    Delete an assignment together with its submissions and their comments.
    
    AUTHORIZATION: Creator of the assignment, or admin.
    """
    require_role(actor, [UserRole.TEACHER, UserRole.ADMIN], "delete assignments")
    assignment = AuthorizationService(db).load_owned(
        actor, Assignment, assignment_id, "delete_assignment",
        "Forbidden: Only the creator or an admin can delete this assignment.",
        class_id=class_id,
    )
    db.delete(assignment)
    db.commit()
    
    logger.info("Assignment id=%s deleted by user id=%s", assignment_id, actor.id)
    return {"message": "Assignment deleted successfully."}
