"""
Database models for the Classroom system.
Defines the identity store and the class, assignment, submission and
comment registries as SQLAlchemy models.
"""
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, Integer, String, Float, Text, Boolean, DateTime, Enum, ForeignKey,
    JSON, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC wall-clock time, the representation stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class UserRole(str, PyEnum):
    """System-wide roles."""
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class MemberRole(str, PyEnum):
    """Role of a user inside a single class."""
    STUDENT = "student"
    TEACHER = "teacher"


class SubmissionStatus(str, PyEnum):
    """Lifecycle states of a submission."""
    SUBMITTED = "submitted"
    GRADED = "graded"
    MISSING = "missing"
    LATE = "late"


class Visibility(str, PyEnum):
    """Assignment visibility."""
    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"


def _values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    """
    Users table - the identity store.
    
    Attributes:
        id: Unique identifier
        name: Display name
        email: Unique login email
        password_hash: bcrypt hash of the password
        role: 'student', 'teacher' or 'admin'
    """
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(*_values(UserRole), name="user_role"),
        nullable=False,
        default=UserRole.STUDENT.value,
    )
    bio = Column(Text, nullable=True)
    school_id = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    
    memberships = relationship("ClassMember", back_populates="user")
    
    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
    
    def to_dict(self):
        """Public representation, never includes the password hash."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "bio": self.bio,
            "school_id": self.school_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
    
    def to_ref(self):
        """Short reference used when a user is embedded in another record."""
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role}


class Classroom(Base):
    """
    Classes table.
    
    Attributes:
        id: Unique identifier
        title: Class title
        code: Unique 6 character join code
        teacher_id: Owning teacher (write authority)
        created_by: User that created the class
    """
    __tablename__ = "classes"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    code = Column(String(6), nullable=False, unique=True)
    description = Column(String(500), nullable=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    
    teacher = relationship("User", foreign_keys=[teacher_id])
    members = relationship(
        "ClassMember", back_populates="classroom", cascade="all, delete-orphan"
    )
    assignments = relationship(
        "Assignment", back_populates="classroom", cascade="all, delete-orphan"
    )
    
    def __repr__(self):
        return f"<Classroom(id={self.id}, code='{self.code}', teacher_id={self.teacher_id})>"
    
    def to_dict(self, with_members: bool = False):
        data = {
            "id": self.id,
            "title": self.title,
            "code": self.code,
            "description": self.description,
            "teacher_id": self.teacher_id,
            "teacher": self.teacher.to_ref() if self.teacher else None,
            "created_by": self.created_by,
            "member_count": len(self.members),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if with_members:
            data["members"] = [m.to_dict() for m in self.members]
        return data


class ClassMember(Base):
    """
    Association table linking users to the classes they belong to.
    
    Attributes:
        class_id: Foreign key to classes table
        user_id: Foreign key to users table
        role_in_class: 'student' or 'teacher'
    """
    __tablename__ = "class_members"
    
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role_in_class = Column(
        Enum(*_values(MemberRole), name="member_role"),
        nullable=False,
        default=MemberRole.STUDENT.value,
    )
    
    classroom = relationship("Classroom", back_populates="members")
    user = relationship("User", back_populates="memberships")
    
    def __repr__(self):
        return f"<ClassMember(class_id={self.class_id}, user_id={self.user_id}, role='{self.role_in_class}')>"
    
    def to_dict(self):
        return {
            "user_id": self.user_id,
            "user": self.user.to_ref() if self.user else None,
            "role_in_class": self.role_in_class,
        }


class Assignment(Base):
    """
    Assignments table, scoped to one class.
    
    Ownership for update/delete follows created_by, which is not rewritten
    when the class teacher changes.
    """
    __tablename__ = "assignments"
    __table_args__ = (
        Index("ix_assignments_class_due", "class_id", "due_at"),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    due_at = Column(DateTime, nullable=False)
    attachments = Column(JSON, nullable=False, default=list)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    max_score = Column(Float, nullable=False, default=100)
    visibility = Column(
        Enum(*_values(Visibility), name="assignment_visibility"),
        nullable=False,
        default=Visibility.ACTIVE.value,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    
    classroom = relationship("Classroom", back_populates="assignments")
    submissions = relationship(
        "Submission", back_populates="assignment", cascade="all, delete-orphan"
    )
    
    def __repr__(self):
        return f"<Assignment(id={self.id}, class_id={self.class_id}, title='{self.title}')>"
    
    def to_dict(self):
        return {
            "id": self.id,
            "class_id": self.class_id,
            "title": self.title,
            "description": self.description,
            "due_at": _iso(self.due_at),
            "attachments": self.attachments or [],
            "created_by": self.created_by,
            "max_score": self.max_score,
            "visibility": self.visibility,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Submission(Base):
    """
    Submissions table - one row per (assignment, student) pair.
    The grade sub-record is stored in the grade_* columns.
    """
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
        Index("ix_submissions_assignment_status", "assignment_id", "status"),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    link_or_files = Column(JSON, nullable=False, default=list)
    submitted_at = Column(DateTime, nullable=False, default=utcnow)
    status = Column(
        Enum(*_values(SubmissionStatus), name="submission_status"),
        nullable=False,
        default=SubmissionStatus.SUBMITTED.value,
    )
    late = Column(Boolean, nullable=False, default=False)
    grade_score = Column(Float, nullable=True)
    grade_feedback = Column(Text, nullable=True)
    graded_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    graded_at = Column(DateTime, nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    
    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User", foreign_keys=[student_id])
    comments = relationship(
        "Comment", back_populates="submission", cascade="all, delete-orphan"
    )
    
    def __repr__(self):
        return f"<Submission(id={self.id}, assignment_id={self.assignment_id}, student_id={self.student_id}, status='{self.status}')>"
    
    def clear_grade(self):
        self.grade_score = None
        self.grade_feedback = None
        self.graded_by = None
        self.graded_at = None
    
    def to_dict(self):
        return {
            "id": self.id,
            "assignment_id": self.assignment_id,
            "student_id": self.student_id,
            "student": self.student.to_ref() if self.student else None,
            "link_or_files": self.link_or_files or [],
            "submitted_at": _iso(self.submitted_at),
            "status": self.status,
            "late": self.late,
            "grade": {
                "score": self.grade_score,
                "feedback": self.grade_feedback,
                "graded_by": self.graded_by,
                "graded_at": _iso(self.graded_at),
            },
            "updated_by": self.updated_by,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Comment(Base):
    """
    Comments table - threaded discussion attached to a submission.
    """
    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_submission_created", "submission_id", "created_at"),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    submission_id = Column(Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    text = Column(String(500), nullable=False)
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    
    submission = relationship("Submission", back_populates="comments")
    author = relationship("User")
    parent = relationship("Comment", remote_side=[id], back_populates="replies")
    replies = relationship("Comment", back_populates="parent")
    
    def __repr__(self):
        return f"<Comment(id={self.id}, submission_id={self.submission_id}, author_id={self.author_id})>"
    
    def to_dict(self):
        return {
            "id": self.id,
            "submission_id": self.submission_id,
            "author_id": self.author_id,
            "author": (
                {"id": self.author.id, "name": self.author.name, "role": self.author.role}
                if self.author else None
            ),
            "text": self.text,
            "parent_id": self.parent_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
