"""
Pydantic schemas for API requests and responses.
"""
from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, EmailStr, Field


# Auth / users
class RegisterRequest(BaseModel):
    """Self-registration. The role is always student."""
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    """Changes to the caller's own profile."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    bio: Optional[str] = None
    school_id: Optional[str] = None


class RoleUpdate(BaseModel):
    role: str = Field(..., description="student, teacher or admin")


class UserResponse(BaseModel):
    """User information response."""
    id: int
    name: str
    email: str
    role: str
    bio: Optional[str] = None
    school_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AuthResponse(UserResponse):
    """User information plus a bearer token."""
    token: str


# Classes
class ClassCreate(BaseModel):
    title: str
    code: str = Field(..., description="6 alphanumeric characters")
    description: Optional[str] = Field(None, max_length=500)
    teacher_id: Optional[int] = Field(None, description="Required when an admin creates the class")


class ClassUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    code: Optional[str] = None
    teacher_id: Optional[int] = Field(None, description="Admin only: reassign the class teacher")


class EnrollRequest(BaseModel):
    """Students send the join code; teachers and admins send the user's email."""
    code: Optional[str] = None
    email: Optional[EmailStr] = None


class JoinRequest(BaseModel):
    code: str


# Assignments
class Attachment(BaseModel):
    file_name: Optional[str] = None
    url: str
    file_type: Optional[str] = None


class AssignmentCreate(BaseModel):
    title: str
    due_at: datetime
    description: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)
    max_score: Optional[float] = Field(None, gt=0)
    visibility: Optional[Literal["active", "draft", "archived"]] = None


class AssignmentUpdate(BaseModel):
    title: Optional[str] = None
    due_at: Optional[datetime] = None
    description: Optional[str] = None
    attachments: Optional[List[Attachment]] = None
    max_score: Optional[float] = Field(None, gt=0)
    visibility: Optional[Literal["active", "draft", "archived"]] = None


# Submissions
class LinkOrFile(BaseModel):
    type: Literal["link", "file"]
    url: str
    content_type: Optional[str] = None
    size: Optional[int] = Field(None, ge=0)


class SubmissionCreate(BaseModel):
    link_or_files: List[LinkOrFile] = Field(default_factory=list)


class GradeRequest(BaseModel):
    score: float = Field(..., ge=0)
    feedback: Optional[str] = None
    late_override: Optional[bool] = None


# Comments
class CommentCreate(BaseModel):
    text: str = Field(..., max_length=500)
    parent_id: Optional[int] = None


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
    type: Optional[str] = None
