"""
Class tools for the Classroom system.
Class CRUD and membership management.
"""
import logging
import re
from typing import Dict, Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import Classroom, ClassMember, User, UserRole, MemberRole
from .authorization import AuthorizationService, require_role, is_admin, role_of
from .common import canonical_id, same_id, paginate, search
from .exceptions import AuthorizationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALL_ROLES = (UserRole.STUDENT, UserRole.TEACHER, UserRole.ADMIN)
STAFF_ROLES = (UserRole.TEACHER, UserRole.ADMIN)

CODE_PATTERN = re.compile(r"^[A-Z0-9]{6}$")


def _normalize_code(code: str) -> str:
    code = (code or "").strip().upper()
    if not CODE_PATTERN.match(code):
        raise ValidationError("Code must be 6 alphanumeric characters", field="code")
    return code


def _ensure_code_free(db: Session, code: str, message: str) -> None:
    if db.query(Classroom).filter(Classroom.code == code).first():
        raise ValidationError(message, field="code")


def _validate_description(description: Optional[str]) -> None:
    if description and len(description) > 500:
        raise ValidationError("Description cannot exceed 500 characters", field="description")


def _commit(db: Session, message: str) -> None:
    """Commit, turning store-level uniqueness violations into validation errors."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError(message)


def create_class(
    db: Session,
    actor: User,
    title: str,
    code: str,
    description: Optional[str] = None,
    teacher_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Create a class.
    
    AUTHORIZATION: Teacher or admin. A teacher always becomes the class
    teacher; an admin must name an existing teacher or admin.
    
    Raises:
        ValidationError: Missing fields, bad or duplicate code, invalid teacher
    """
    require_role(actor, STAFF_ROLES, "create classes")
    
    if not (title and title.strip()) or not code:
        raise ValidationError("Please provide a class title and a unique code.")
    code = _normalize_code(code)
    _validate_description(description)
    
    raw_teacher_id = actor.id if role_of(actor) is UserRole.TEACHER else teacher_id
    if raw_teacher_id is None:
        raise ValidationError("A teacher ID must be assigned for this class.", field="teacher_id")
    
    teacher = None
    teacher_pk = canonical_id(raw_teacher_id)
    if teacher_pk is not None:
        teacher = db.query(User).filter(User.id == teacher_pk).first()
    if teacher is None or teacher.role not in (UserRole.TEACHER.value, UserRole.ADMIN.value):
        raise ValidationError(
            "Assigned teacher user not found or does not have a valid role (Teacher/Admin).",
            field="teacher_id",
        )
    
    _ensure_code_free(db, code, "This class code is already in use. Please choose another.")
    
    classroom = Classroom(
        title=title.strip(),
        code=code,
        description=description,
        teacher_id=teacher.id,
        created_by=actor.id,
    )
    classroom.members.append(
        ClassMember(user_id=teacher.id, role_in_class=MemberRole.TEACHER.value)
    )
    db.add(classroom)
    _commit(db, "This class code is already in use. Please choose another.")
    db.refresh(classroom)
    
    logger.info("Class id=%s (%s) created by user id=%s", classroom.id, classroom.code, actor.id)
    return classroom.to_dict(with_members=True)


def list_classes(
    db: Session,
    actor: User,
    mine: bool = True,
    q: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """
    List classes the caller is a member of.
    
    Only an admin who explicitly asks for ``mine=False`` gets every class.
    """
    require_role(actor, ALL_ROLES, "list classes")
    
    query = db.query(Classroom)
    if not (is_admin(actor) and not mine):
        query = query.filter(Classroom.members.any(ClassMember.user_id == actor.id))
    query = search(query, q, Classroom.title, Classroom.description, Classroom.code)
    return paginate(query.order_by(Classroom.id), page, limit)


def get_class(db: Session, actor: User, class_id: int) -> Dict[str, Any]:
    """
    Class detail with its roster.
    
    AUTHORIZATION: Member, class teacher, or admin.
    """
    require_role(actor, ALL_ROLES, "view classes")
    auth_service = AuthorizationService(db)
    classroom = auth_service.load(Classroom, class_id)
    auth_service.enforce_class_membership(actor, classroom, "view_class")
    return classroom.to_dict(with_members=True)


def update_class(
    db: Session,
    actor: User,
    class_id: int,
    title: Optional[str] = None,
    description: Optional[str] = None,
    code: Optional[str] = None,
    teacher_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Update class details, and (admin only) reassign the class teacher.
    
    AUTHORIZATION: Class teacher or admin.
    """
    require_role(actor, STAFF_ROLES, "update classes")
    auth_service = AuthorizationService(db)
    classroom = auth_service.load(Classroom, class_id)
    auth_service.enforce_class_teacher_or_admin(
        actor, classroom, "update_class",
        "Forbidden: Only the class teacher or an admin can update class details.",
    )
    
    if teacher_id is not None and not is_admin(actor):
        raise AuthorizationError(
            "Forbidden: Only administrators can reassign the class teacher.",
            user_id=actor.id,
            action="reassign_teacher",
        )
    
    if title is not None:
        if not title.strip():
            raise ValidationError("Class title cannot be blank.", field="title")
        classroom.title = title.strip()
    if description:
        _validate_description(description)
        classroom.description = description
    
    if code:
        code = _normalize_code(code)
        if code != classroom.code:
            _ensure_code_free(db, code, "This class code is already in use.")
            classroom.code = code
    
    if teacher_id is not None:
        new_teacher_id = canonical_id(teacher_id)
        new_teacher = None
        if new_teacher_id is not None:
            new_teacher = db.query(User).filter(User.id == new_teacher_id).first()
        if new_teacher is None or new_teacher.role != UserRole.TEACHER.value:
            raise ValidationError(
                "New teacher ID is invalid or user is not a teacher.", field="teacher_id"
            )
        
        old_teacher_id = classroom.teacher_id
        classroom.members = [
            m for m in classroom.members if not same_id(m.user_id, old_teacher_id)
        ]
        classroom.teacher_id = new_teacher.id
        if not any(same_id(m.user_id, new_teacher.id) for m in classroom.members):
            classroom.members.append(
                ClassMember(user_id=new_teacher.id, role_in_class=MemberRole.TEACHER.value)
            )
        logger.info(
            "Class id=%s teacher reassigned %s -> %s by admin id=%s",
            classroom.id, old_teacher_id, new_teacher.id, actor.id,
        )
    
    _commit(db, "This class code is already in use.")
    db.refresh(classroom)
    return classroom.to_dict(with_members=True)


def delete_class(db: Session, actor: User, class_id: int) -> Dict[str, Any]:
    """
    Delete a class together with its memberships, assignments, submissions
    and comments.
    
    AUTHORIZATION: Admin only.
    """
    require_role(actor, [UserRole.ADMIN], "delete classes")
    classroom = AuthorizationService(db).load(Classroom, class_id)
    db.delete(classroom)
    db.commit()
    
    logger.info("Class id=%s deleted by admin id=%s", class_id, actor.id)
    return {"message": "Class deleted successfully."}


def enroll_member(
    db: Session,
    actor: User,
    class_id: Optional[int] = None,
    code: Optional[str] = None,
    email: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Enroll a student in a class.
    
    A student enrolls themselves with the class join code. A teacher or
    admin enrolls another user by email; a teacher only into their own class.
    
    Raises:
        NotFoundError: Unknown class, code or email
        NotResourceOwner: A teacher enrolling into someone else's class
        ValidationError: Malformed request or user already a member
    """
    require_role(actor, ALL_ROLES, "enroll members")
    auth_service = AuthorizationService(db)
    role = role_of(actor)
    
    if role is UserRole.STUDENT and code:
        user = actor
        classroom = db.query(Classroom).filter(Classroom.code == code.strip().upper()).first()
        if classroom is None:
            raise NotFoundError("Class", code, "Class not found with that code.")
    elif role in STAFF_ROLES and email:
        classroom = auth_service.load(Classroom, class_id)
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if user is None:
            raise NotFoundError("User", email, f"User with email {email} not found.")
        if role is UserRole.TEACHER:
            auth_service.enforce_class_teacher_or_admin(
                actor, classroom, "enroll_member",
                "Forbidden: Teachers can only enroll students in their own classes.",
            )
    else:
        raise ValidationError(
            "Invalid enrollment request. Provide email (Admin/Teacher) or code (Student)."
        )
    
    if any(same_id(m.user_id, user) for m in classroom.members):
        raise ValidationError(f"{user.name} is already a member of this class.")
    
    classroom.members.append(
        ClassMember(user_id=user.id, role_in_class=MemberRole.STUDENT.value)
    )
    _commit(db, f"{user.name} is already a member of this class.")
    db.refresh(classroom)
    
    logger.info("User id=%s enrolled in class id=%s by user id=%s", user.id, classroom.id, actor.id)
    return {
        "message": f"{user.name} successfully enrolled in {classroom.title}.",
        "class": classroom.to_dict(with_members=True),
    }


def remove_member(db: Session, actor: User, class_id: int, user_id: int) -> Dict[str, Any]:
    """
    Remove a member from a class. The current class teacher can never be
    removed this way, whoever asks.
    
    AUTHORIZATION: Class teacher or admin.
    """
    require_role(actor, STAFF_ROLES, "remove members")
    auth_service = AuthorizationService(db)
    classroom = auth_service.load(Classroom, class_id)
    auth_service.enforce_class_teacher_or_admin(
        actor, classroom, "remove_member",
        "Forbidden: Only the class teacher or an admin can remove members.",
    )
    
    if same_id(classroom.teacher_id, user_id):
        raise ValidationError(
            "Cannot remove the assigned class teacher. Reassign the teacher first.",
            field="user_id",
        )
    
    member = next((m for m in classroom.members if same_id(m.user_id, user_id)), None)
    if member is None:
        raise NotFoundError("Member", user_id, "User not found in class members.")
    
    classroom.members.remove(member)
    db.commit()
    db.refresh(classroom)
    
    logger.info("User id=%s removed from class id=%s by user id=%s", user_id, classroom.id, actor.id)
    return {
        "message": "Member successfully removed.",
        "class": classroom.to_dict(with_members=True),
    }
