"""
Comment tools for the Classroom system.
Threaded discussion attached to a submission, visible to the submitting
student, the class teacher and admins.
"""
import logging
from typing import Dict, Any, Optional

from sqlalchemy.orm import Session

from database import Comment, User
from .authorization import AuthorizationService, is_admin
from .common import canonical_id
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 500


def _authorized_chain(db: Session, actor: User, submission_id: int, action: str, message: str):
    auth_service = AuthorizationService(db)
    chain = auth_service.resolve_submission_chain(submission_id)
    # Admins pass on role alone
    if not is_admin(actor):
        auth_service.enforce_submission_access(actor, chain, action, message)
    return chain


def list_comments(db: Session, actor: User, submission_id: int) -> Dict[str, Any]:
    """
    All comments of a submission, oldest first.
    
    AUTHORIZATION: Submission owner, class teacher, or admin.
    """
    chain = _authorized_chain(
        db, actor, submission_id, "list_comments",
        "Forbidden: Cannot access comments for this submission.",
    )
    comments = (
        db.query(Comment)
        .filter(Comment.submission_id == chain.submission.id)
        .order_by(Comment.created_at, Comment.id)
        .all()
    )
    return {"comments": [c.to_dict() for c in comments]}


def post_comment(
    db: Session,
    actor: User,
    submission_id: int,
    text: str,
    parent_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Add a comment, optionally as a reply to another comment on the same
    submission.
    
    AUTHORIZATION: Submission owner, class teacher, or admin.
    
    Raises:
        ValidationError: Empty or oversized text, or a parent from elsewhere
    """
    chain = _authorized_chain(
        db, actor, submission_id, "post_comment",
        "Forbidden: Cannot post comments on this submission.",
    )
    
    if not text or not text.strip():
        raise ValidationError("Comment text is required.", field="text")
    if len(text) > MAX_COMMENT_LENGTH:
        raise ValidationError(
            f"Comment text cannot exceed {MAX_COMMENT_LENGTH} characters.", field="text"
        )
    
    parent = None
    if parent_id is not None:
        parent = db.query(Comment).filter(Comment.id == canonical_id(parent_id)).first()
        if parent is None or parent.submission_id != chain.submission.id:
            raise ValidationError("Parent comment not found on this submission.", field="parent_id")
    
    comment = Comment(
        submission_id=chain.submission.id,
        author_id=actor.id,
        text=text,
        parent_id=parent.id if parent else None,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    
    logger.info("Comment id=%s posted on submission id=%s by user id=%s", comment.id, chain.submission.id, actor.id)
    return {"comment": comment.to_dict()}
