"""
Reporting tools for the Classroom system.
Read models over graded submissions: grade distribution per assignment and
the teacher dashboard metrics.
"""
from typing import Dict, Any, Optional, List
from statistics import mean, median
from sqlalchemy.orm import Session

from database import Assignment, Classroom, Submission, SubmissionStatus, User, UserRole
from .authorization import AuthorizationService, require_role

# (lower bound inclusive, upper bound exclusive, label)
GRADE_BUCKETS = [
    (0, 60, "0-59 (F)"),
    (60, 70, "60-69 (D)"),
    (70, 80, "70-79 (C)"),
    (80, 90, "80-89 (B)"),
    (90, 101, "90-100 (A)"),
]
OTHER_BUCKET = "Ungraded/Other"

PENDING_STATUSES = (SubmissionStatus.SUBMITTED.value, SubmissionStatus.LATE.value)


def compute_statistics(grades: List[float]) -> Dict[str, Any]:
    """
    Compute statistics for a list of grades.
    
    Args:
        grades: List of grade values
        
    Returns:
        Dictionary with mean, median, min, max, total
    """
    if not grades:
        return {
            "mean": None,
            "median": None,
            "min": None,
            "max": None,
            "total_grades": 0
        }
    
    return {
        "mean": round(mean(grades), 2),
        "median": round(median(grades), 2),
        "min": min(grades),
        "max": max(grades),
        "total_grades": len(grades)
    }


def bucket_scores(scores: List[Optional[float]]) -> List[Dict[str, Any]]:
    """
    Count scores per letter-grade range. Empty ranges are left out; scores
    outside every range (or missing) are counted as Ungraded/Other.
    """
    counts = {label: 0 for _, _, label in GRADE_BUCKETS}
    other = 0
    for score in scores:
        label = None
        if score is not None:
            label = next((lbl for low, high, lbl in GRADE_BUCKETS if low <= score < high), None)
        if label is None:
            other += 1
        else:
            counts[label] += 1
    
    distribution = [
        {"range": label, "count": counts[label]}
        for _, _, label in GRADE_BUCKETS
        if counts[label]
    ]
    if other:
        distribution.append({"range": OTHER_BUCKET, "count": other})
    return distribution


def get_grade_distribution(
    db: Session,
    actor: User,
    class_id: int,
    assignment_id: int
) -> Dict[str, Any]:
    """
    Grade distribution for one assignment.
    
    AUTHORIZATION: Class teacher or admin.
    
    Args:
        db: Database session
        actor: Requesting user
        class_id: Class the assignment is addressed under
        assignment_id: Assignment to report on
        
    Returns:
        Dictionary with the bucketed distribution and summary statistics
    """
    require_role(actor, [UserRole.TEACHER, UserRole.ADMIN], "view grade analytics")
    auth_service = AuthorizationService(db)
    assignment = auth_service.load(Assignment, assignment_id, class_id=class_id)
    classroom = auth_service.resolve_assignment_class(assignment)
    auth_service.enforce_class_teacher_or_admin(
        actor, classroom, "grade_distribution",
        "Forbidden: You can only view analytics for your own classes.",
    )
    
    scores = [
        row.grade_score
        for row in db.query(Submission.grade_score)
        .filter(Submission.assignment_id == assignment.id)
        .filter(Submission.status == SubmissionStatus.GRADED.value)
        .all()
    ]
    
    return {
        "assignment_id": assignment.id,
        "distribution": bucket_scores(scores),
        "statistics": compute_statistics([s for s in scores if s is not None]),
    }


def get_teacher_metrics(db: Session, actor: User) -> Dict[str, Any]:
    """
    Dashboard metrics across every class the caller teaches.
    
    AUTHORIZATION: Teacher only.
    
    Returns:
        Dictionary with the number of submissions waiting for a grade and
        the rounded average of graded scores (0 when nothing is graded)
    """
    require_role(actor, [UserRole.TEACHER], "view teacher metrics")
    
    submissions = (
        db.query(Submission.status, Submission.grade_score)
        .join(Assignment, Submission.assignment_id == Assignment.id)
        .join(Classroom, Assignment.class_id == Classroom.id)
        .filter(Classroom.teacher_id == actor.id)
        .all()
    )
    
    pending = sum(1 for row in submissions if row.status in PENDING_STATUSES)
    scores = [
        row.grade_score for row in submissions
        if row.status == SubmissionStatus.GRADED.value and row.grade_score is not None
    ]
    
    return {
        "pending_grade_count": pending,
        "average_score": round(mean(scores)) if scores else 0,
    }
