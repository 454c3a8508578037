"""
Services module for the Classroom system.

Every operation resolves the acting user, passes the role gate, then the
ownership or membership checks, before it touches the store.
"""
from .exceptions import (
    ClassroomError,
    AuthenticationError,
    AuthorizationError,
    RoleNotAllowed,
    NotClassMember,
    NotResourceOwner,
    NotFoundError,
    InvalidUserError,
    ValidationError,
)

from .authorization import (
    AuthorizationService,
    SubmissionChain,
    get_authorization_service,
    require_role,
    resource_owner_id,
    role_of,
    is_admin,
)

from .common import canonical_id, same_id, paginate

from .security import (
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
)

from .identity import (
    register_user,
    authenticate,
    get_user_from_token,
    get_user,
    list_users,
    update_user_role,
    update_profile,
    ensure_admin,
)

from .classes import (
    create_class,
    list_classes,
    get_class,
    update_class,
    delete_class,
    enroll_member,
    remove_member,
)

from .assignments import (
    create_assignment,
    list_assignments,
    get_assignment,
    update_assignment,
    delete_assignment,
)

from .submissions import (
    submit_work,
    list_assignment_submissions,
    list_my_submissions,
    get_submission,
    get_my_submission_for_assignment,
    grade_submission,
)

from .comments import (
    list_comments,
    post_comment,
)

from .reporting import (
    compute_statistics,
    bucket_scores,
    get_grade_distribution,
    get_teacher_metrics,
)

__all__ = [
    # Exceptions
    "ClassroomError",
    "AuthenticationError",
    "AuthorizationError",
    "RoleNotAllowed",
    "NotClassMember",
    "NotResourceOwner",
    "NotFoundError",
    "InvalidUserError",
    "ValidationError",
    # Authorization
    "AuthorizationService",
    "SubmissionChain",
    "get_authorization_service",
    "require_role",
    "resource_owner_id",
    "role_of",
    "is_admin",
    "canonical_id",
    "same_id",
    "paginate",
    # Security
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_access_token",
    # Identity
    "register_user",
    "authenticate",
    "get_user_from_token",
    "get_user",
    "list_users",
    "update_user_role",
    "update_profile",
    "ensure_admin",
    # Classes
    "create_class",
    "list_classes",
    "get_class",
    "update_class",
    "delete_class",
    "enroll_member",
    "remove_member",
    # Assignments
    "create_assignment",
    "list_assignments",
    "get_assignment",
    "update_assignment",
    "delete_assignment",
    # Submissions
    "submit_work",
    "list_assignment_submissions",
    "list_my_submissions",
    "get_submission",
    "get_my_submission_for_assignment",
    "grade_submission",
    # Comments
    "list_comments",
    "post_comment",
    # Reporting
    "compute_statistics",
    "bucket_scores",
    "get_grade_distribution",
    "get_teacher_metrics",
]
