"""
API routes for the Classroom system.

Each route passes the role gate as a dependency; the service it calls
repeats the gate and applies the ownership and membership checks, so the
rules hold even when a service is called directly.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db, User
from services import (
    register_user,
    authenticate,
    list_users,
    update_user_role,
    update_profile,
    create_class,
    list_classes,
    get_class,
    update_class,
    delete_class,
    enroll_member,
    remove_member,
    create_assignment,
    list_assignments,
    get_assignment,
    update_assignment,
    delete_assignment,
    submit_work,
    list_assignment_submissions,
    list_my_submissions,
    get_submission,
    get_my_submission_for_assignment,
    grade_submission,
    list_comments,
    post_comment,
    get_grade_distribution,
    get_teacher_metrics,
)
from .deps import get_current_user, require_roles
from .schemas import (
    RegisterRequest,
    LoginRequest,
    ProfileUpdate,
    RoleUpdate,
    UserResponse,
    AuthResponse,
    ClassCreate,
    ClassUpdate,
    EnrollRequest,
    JoinRequest,
    AssignmentCreate,
    AssignmentUpdate,
    SubmissionCreate,
    GradeRequest,
    CommentCreate,
)


auth_router = APIRouter(prefix="/api/auth", tags=["Auth"])

profile_router = APIRouter(prefix="/api/me", tags=["Profile"])

users_router = APIRouter(prefix="/api/users", tags=["Users"])

classes_router = APIRouter(prefix="/api/classes", tags=["Classes"])

assignments_router = APIRouter(prefix="/api/assignments", tags=["Assignments"])

submissions_router = APIRouter(prefix="/api/submissions", tags=["Submissions"])

any_role = require_roles("student", "teacher", "admin")
staff = require_roles("teacher", "admin")
teacher_only = require_roles("teacher")
student_only = require_roles("student")
admin_only = require_roles("admin")


def _success(**payload):
    return {"status": "success", **payload}


# ============== Auth Endpoints ==============

@auth_router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new account. New accounts are always students."""
    return register_user(db, name=request.name, email=request.email, password=request.password)


@auth_router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange credentials for a bearer token."""
    return authenticate(db, email=request.email, password=request.password)


@auth_router.get("/me", response_model=UserResponse)
async def me(current: User = Depends(get_current_user)):
    """Current user profile."""
    return current.to_dict()


@profile_router.patch("", response_model=UserResponse)
async def update_me(
    request: ProfileUpdate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update the caller's own profile."""
    return update_profile(db, current, **request.model_dump(exclude_none=True))


# ============== User Endpoints ==============

@users_router.get("")
async def get_users(
    role: Optional[str] = None,
    q: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    current: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """List users (admin only). Filter by `role`, search name/email with `q`."""
    result = list_users(db, current, role=role, q=q, page=page, limit=limit)
    return _success(results=len(result["items"]), **result)


@users_router.patch("/{user_id}/role")
async def change_user_role(
    user_id: int,
    request: RoleUpdate,
    current: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """Change a user's role (admin only)."""
    user = update_user_role(db, current, user_id, request.role)
    return _success(message=f"Role updated to {user['role']}", user=user)


# ============== Class Endpoints ==============

@classes_router.post("", status_code=status.HTTP_201_CREATED)
async def create_class_endpoint(
    request: ClassCreate,
    current: User = Depends(staff),
    db: Session = Depends(get_db),
):
    """Create a class (teacher or admin)."""
    return _success(**{"class": create_class(db, current, **request.model_dump())})


@classes_router.get("")
async def list_classes_endpoint(
    mine: Optional[str] = None,
    q: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    current: User = Depends(any_role),
    db: Session = Depends(get_db),
):
    """
    Classes the caller belongs to. Admins may pass `mine=0` (or `mine=false`)
    to list every class.
    """
    only_mine = mine not in ("0", "false")
    return _success(**list_classes(db, current, mine=only_mine, q=q, page=page, limit=limit))


@classes_router.post("/join")
async def join_class(
    request: JoinRequest,
    current: User = Depends(student_only),
    db: Session = Depends(get_db),
):
    """Student self-enrollment with a class join code."""
    return _success(**enroll_member(db, current, code=request.code))


@classes_router.get("/{class_id}")
async def get_class_endpoint(
    class_id: int,
    current: User = Depends(any_role),
    db: Session = Depends(get_db),
):
    """Class detail and roster (members, class teacher, admin)."""
    return _success(**{"class": get_class(db, current, class_id)})


@classes_router.patch("/{class_id}")
async def update_class_endpoint(
    class_id: int,
    request: ClassUpdate,
    current: User = Depends(staff),
    db: Session = Depends(get_db),
):
    """Update a class (class teacher or admin; only admins may reassign the teacher)."""
    return _success(**{"class": update_class(db, current, class_id, **request.model_dump())})


@classes_router.delete("/{class_id}")
async def delete_class_endpoint(
    class_id: int,
    current: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """Delete a class (admin only)."""
    return _success(**delete_class(db, current, class_id))


@classes_router.post("/{class_id}/enroll")
async def enroll_endpoint(
    class_id: int,
    request: EnrollRequest,
    current: User = Depends(any_role),
    db: Session = Depends(get_db),
):
    """Enroll by join code (student) or by email (class teacher or admin)."""
    return _success(**enroll_member(
        db, current, class_id=class_id, code=request.code, email=request.email
    ))


@classes_router.delete("/{class_id}/members/{user_id}")
async def remove_member_endpoint(
    class_id: int,
    user_id: int,
    current: User = Depends(staff),
    db: Session = Depends(get_db),
):
    """Remove a member (class teacher or admin)."""
    return _success(**remove_member(db, current, class_id, user_id))


# ============== Assignment Endpoints ==============

@classes_router.post("/{class_id}/assignments", status_code=status.HTTP_201_CREATED)
async def create_assignment_endpoint(
    class_id: int,
    request: AssignmentCreate,
    current: User = Depends(teacher_only),
    db: Session = Depends(get_db),
):
    """Create an assignment (class teacher only)."""
    data = request.model_dump()
    return _success(assignment=create_assignment(db, current, class_id, **data))


@classes_router.get("/{class_id}/assignments")
async def list_assignments_endpoint(
    class_id: int,
    status_filter: Optional[str] = Query(None, alias="statusFilter"),
    q: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Assignments of a class. `statusFilter` is `upcoming` or `overdue`."""
    return _success(**list_assignments(
        db, current, class_id, status_filter=status_filter, q=q, page=page, limit=limit
    ))


@classes_router.get("/{class_id}/assignments/{assignment_id}")
async def get_assignment_endpoint(
    class_id: int,
    assignment_id: int,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Single assignment (class members)."""
    return _success(assignment=get_assignment(db, current, class_id, assignment_id))


@classes_router.patch("/{class_id}/assignments/{assignment_id}")
async def update_assignment_endpoint(
    class_id: int,
    assignment_id: int,
    request: AssignmentUpdate,
    current: User = Depends(teacher_only),
    db: Session = Depends(get_db),
):
    """Update an assignment (its creator only)."""
    data = request.model_dump(exclude_none=True)
    return _success(
        message="Assignment updated.",
        assignment=update_assignment(db, current, class_id, assignment_id, **data),
    )


@classes_router.delete("/{class_id}/assignments/{assignment_id}")
async def delete_assignment_endpoint(
    class_id: int,
    assignment_id: int,
    current: User = Depends(staff),
    db: Session = Depends(get_db),
):
    """Delete an assignment (its creator or an admin)."""
    return _success(**delete_assignment(db, current, class_id, assignment_id))


@assignments_router.get("/metrics/teacher")
async def teacher_metrics_endpoint(
    current: User = Depends(teacher_only),
    db: Session = Depends(get_db),
):
    """Pending-grade count and average score across the caller's classes."""
    return _success(data=get_teacher_metrics(db, current))


# ============== Submission Endpoints ==============

@classes_router.post(
    "/{class_id}/assignments/{assignment_id}/submissions",
    status_code=status.HTTP_201_CREATED,
)
async def submit_work_endpoint(
    class_id: int,
    assignment_id: int,
    request: SubmissionCreate,
    current: User = Depends(student_only),
    db: Session = Depends(get_db),
):
    """Submit or replace work (enrolled students)."""
    entries = [entry.model_dump() for entry in request.link_or_files]
    return _success(**submit_work(db, current, class_id, assignment_id, entries))


@classes_router.get("/{class_id}/assignments/{assignment_id}/submissions")
async def submissions_queue_endpoint(
    class_id: int,
    assignment_id: int,
    submission_status: Optional[str] = Query(None, alias="status"),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    current: User = Depends(staff),
    db: Session = Depends(get_db),
):
    """Submission queue for an assignment (class teacher or admin)."""
    return _success(**list_assignment_submissions(
        db, current, class_id, assignment_id, status=submission_status, page=page, limit=limit
    ))


@classes_router.get("/{class_id}/assignments/{assignment_id}/grades/distribution")
async def grade_distribution_endpoint(
    class_id: int,
    assignment_id: int,
    current: User = Depends(staff),
    db: Session = Depends(get_db),
):
    """Grade distribution for an assignment (class teacher or admin)."""
    return _success(**get_grade_distribution(db, current, class_id, assignment_id))


@submissions_router.get("/me")
async def my_submissions_endpoint(
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    current: User = Depends(student_only),
    db: Session = Depends(get_db),
):
    """The caller's own submissions across all classes."""
    return _success(**list_my_submissions(db, current, page=page, limit=limit))


@submissions_router.get("/by-assignment/{assignment_id}")
async def my_submission_for_assignment_endpoint(
    assignment_id: int,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's own submission for one assignment."""
    return _success(submission=get_my_submission_for_assignment(db, current, assignment_id))


@submissions_router.get("/{submission_id}")
async def get_submission_endpoint(
    submission_id: int,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Single submission (owner, class teacher, or admin)."""
    return _success(submission=get_submission(db, current, submission_id))


@submissions_router.patch("/{submission_id}/grade")
async def grade_submission_endpoint(
    submission_id: int,
    request: GradeRequest,
    current: User = Depends(teacher_only),
    db: Session = Depends(get_db),
):
    """Grade a submission (teacher of the submission's class)."""
    return _success(**grade_submission(
        db, current, submission_id,
        score=request.score,
        feedback=request.feedback,
        late_override=request.late_override,
    ))


# ============== Comment Endpoints ==============

@submissions_router.get("/{submission_id}/comments")
async def list_comments_endpoint(
    submission_id: int,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Comment thread of a submission (owner, class teacher, or admin)."""
    return _success(**list_comments(db, current, submission_id))


@submissions_router.post("/{submission_id}/comments", status_code=status.HTTP_201_CREATED)
async def post_comment_endpoint(
    submission_id: int,
    request: CommentCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Post a comment or reply (owner, class teacher, or admin)."""
    return _success(**post_comment(db, current, submission_id, request.text, request.parent_id))
