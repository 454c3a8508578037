"""
Submission tools for the Classroom system.
Students submit (and resubmit) work; the class teacher grades it.
"""
import logging
from typing import Dict, Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import Assignment, Submission, SubmissionStatus, User, UserRole
from .authorization import AuthorizationService, require_role
from .common import utcnow, paginate
from .exceptions import AuthorizationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALL_ROLES = (UserRole.STUDENT, UserRole.TEACHER, UserRole.ADMIN)

ENTRY_TYPES = ("link", "file")


def _validate_entries(link_or_files: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    if not link_or_files:
        raise ValidationError(
            "Submission must contain at least one link or file reference.", field="link_or_files"
        )
    for entry in link_or_files:
        if entry.get("type") not in ENTRY_TYPES:
            raise ValidationError("Each entry type must be 'link' or 'file'.", field="link_or_files")
        if not entry.get("url"):
            raise ValidationError("Each entry needs a url.", field="link_or_files")
    return link_or_files


def _with_assignment(submission: Submission) -> Dict[str, Any]:
    data = submission.to_dict()
    assignment = submission.assignment
    if assignment is not None:
        data["assignment"] = {
            "id": assignment.id,
            "title": assignment.title,
            "due_at": assignment.due_at.isoformat(),
            "max_score": assignment.max_score,
            "class_id": assignment.class_id,
            "class_title": assignment.classroom.title if assignment.classroom else None,
        }
    return data


def submit_work(
    db: Session,
    actor: User,
    class_id: int,
    assignment_id: int,
    link_or_files: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Submit, or replace a previous submission of, work for an assignment.
    
    AUTHORIZATION: Student member of the assignment's class.
    
    Lateness is fixed at submission time. Once a submission has been graded,
    replacing it after the due date is refused.
    
    Raises:
        NotFoundError: If the assignment or its class does not exist
        NotClassMember: If the student is not enrolled
        AuthorizationError: Late resubmission of a graded submission
        ValidationError: If no link or file is given
    """
    require_role(actor, [UserRole.STUDENT], "submit work")
    link_or_files = _validate_entries(link_or_files)
    
    auth_service = AuthorizationService(db)
    assignment = auth_service.load(Assignment, assignment_id, class_id=class_id)
    classroom = auth_service.resolve_assignment_class(assignment)
    auth_service.enforce_class_membership(actor, classroom, "submit_work")
    
    submitted_at = utcnow()
    is_late = submitted_at > assignment.due_at
    
    existing = (
        db.query(Submission)
        .filter(Submission.assignment_id == assignment.id)
        .filter(Submission.student_id == actor.id)
        .first()
    )
    
    if is_late and existing is not None and existing.status == SubmissionStatus.GRADED.value:
        logger.warning(
            "Denied user=%s action=resubmit: submission id=%s already graded and overdue",
            actor.id, existing.id,
        )
        raise AuthorizationError(
            "Assignment is overdue and your submission has already been graded. Resubmission blocked.",
            user_id=actor.id,
            action="resubmit",
        )
    
    submission = existing or Submission(assignment_id=assignment.id, student_id=actor.id)
    submission.link_or_files = link_or_files
    submission.submitted_at = submitted_at
    submission.late = is_late
    submission.status = SubmissionStatus.SUBMITTED.value
    submission.clear_grade()
    submission.updated_by = actor.id
    
    if existing is None:
        db.add(submission)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("A submission for this assignment already exists.")
    db.refresh(submission)
    
    logger.info(
        "Submission id=%s %s by student id=%s (late=%s)",
        submission.id, "replaced" if existing else "created", actor.id, is_late,
    )
    return {
        "message": "Submission replaced successfully." if existing else "Submission created successfully.",
        "submission": submission.to_dict(),
    }


def list_assignment_submissions(
    db: Session,
    actor: User,
    class_id: int,
    assignment_id: int,
    status: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Teacher's submission queue for one assignment.
    
    AUTHORIZATION: Class teacher or admin.
    """
    require_role(actor, [UserRole.TEACHER, UserRole.ADMIN], "view submission queues")
    auth_service = AuthorizationService(db)
    assignment = auth_service.load(Assignment, assignment_id, class_id=class_id)
    classroom = auth_service.resolve_assignment_class(assignment)
    auth_service.enforce_class_teacher_or_admin(
        actor, classroom, "list_submissions",
        "Forbidden: You can only view submissions for your own class assignments.",
    )
    
    query = db.query(Submission).filter(Submission.assignment_id == assignment.id)
    if status:
        try:
            query = query.filter(Submission.status == SubmissionStatus(status).value)
        except ValueError:
            raise ValidationError("Unknown submission status.", field="status")
    return paginate(query.order_by(Submission.submitted_at, Submission.id), page, limit)


def list_my_submissions(
    db: Session,
    actor: User,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """
    The caller's own submissions across every class.
    
    AUTHORIZATION: Student; the query itself is restricted to the caller.
    """
    require_role(actor, [UserRole.STUDENT], "list own submissions")
    query = (
        db.query(Submission)
        .filter(Submission.student_id == actor.id)
        .order_by(Submission.submitted_at.desc(), Submission.id.desc())
    )
    return paginate(query, page, limit, serializer=_with_assignment)


def get_submission(db: Session, actor: User, submission_id: int) -> Dict[str, Any]:
    """
    AUTHORIZATION: Submission owner, teacher of the class, or admin.
    """
    require_role(actor, ALL_ROLES, "view submissions")
    auth_service = AuthorizationService(db)
    chain = auth_service.resolve_submission_chain(submission_id)
    auth_service.enforce_submission_access(
        actor, chain, "view_submission",
        "Forbidden: You can only view your own submissions or submissions from your classes.",
    )
    return _with_assignment(chain.submission)


def get_my_submission_for_assignment(db: Session, actor: User, assignment_id: int) -> Dict[str, Any]:
    """
    The caller's own submission for one assignment.
    
    Raises:
        NotFoundError: If the caller has not submitted anything yet
    """
    require_role(actor, ALL_ROLES, "view submissions")
    submission = (
        db.query(Submission)
        .filter(Submission.assignment_id == assignment_id)
        .filter(Submission.student_id == actor.id)
        .first()
    )
    if submission is None:
        raise NotFoundError(
            "Submission", assignment_id, "No existing submission found for this assignment."
        )
    return _with_assignment(submission)


def grade_submission(
    db: Session,
    actor: User,
    submission_id: int,
    score: float,
    feedback: Optional[str] = None,
    late_override: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Grade a submission. The teacher may also overwrite the stored late flag.
    
    AUTHORIZATION: Teacher of the submission's class, resolved through
    submission -> assignment -> class.
    """
    require_role(actor, [UserRole.TEACHER], "grade submissions")
    
    if score is None:
        raise ValidationError("Score is required for grading.", field="score")
    if score < 0:
        raise ValidationError("Score cannot be negative.", field="score")
    
    auth_service = AuthorizationService(db)
    chain = auth_service.resolve_submission_chain(submission_id)
    auth_service.enforce_class_teacher(
        actor, chain.classroom, "grade_submission",
        "Forbidden: You can only grade submissions for your own classes.",
    )
    
    submission = chain.submission
    submission.grade_score = score
    submission.grade_feedback = feedback or ""
    submission.graded_by = actor.id
    submission.graded_at = utcnow()
    submission.status = SubmissionStatus.GRADED.value
    submission.updated_by = actor.id
    if late_override is not None:
        submission.late = bool(late_override)
    
    db.commit()
    db.refresh(submission)
    
    logger.info("Submission id=%s graded %.2f by teacher id=%s", submission.id, score, actor.id)
    return {
        "message": "Submission graded successfully.",
        "submission": submission.to_dict(),
    }
