from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

from models import CourseLevel


class RegisterRequest(BaseModel):
    """Schema for account registration"""

    username: str = Field(..., min_length=3, max_length=50, description="Unique login name")
    password: str = Field(..., min_length=6, max_length=128, description="Plain-text password")
    email: Optional[str] = Field(None, max_length=255, description="Contact email")
    displayName: Optional[str] = Field(None, max_length=100, description="Name shown in the UI")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        v = v.strip()
        if not v.replace("_", "").replace("-", "").replace(".", "").isalnum():
            raise ValueError("Username may only contain letters, digits, '.', '-' and '_'")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if v is None:
            return v
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Invalid email address")
        return v


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class ProfileUpdateRequest(BaseModel):
    """Schema for updating the current user's profile or password"""

    displayName: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    avatarUrl: Optional[str] = Field(None, max_length=500)
    currentPassword: Optional[str] = Field(None, max_length=128)
    newPassword: Optional[str] = Field(None, min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if v is None:
            return v
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class EnrollmentCreate(BaseModel):
    courseId: int = Field(..., gt=0, description="Course to enroll in")


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5, description="Star rating")
    comment: Optional[str] = Field(None, max_length=2000)


class CourseUpdate(BaseModel):
    """Schema for admin course edits; omitted fields stay unchanged"""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    level: Optional[CourseLevel] = None
    duration: Optional[str] = Field(None, max_length=100)
    price: Optional[int] = Field(None, ge=0)
    originalPrice: Optional[int] = Field(None, ge=0)
    instructorId: Optional[int] = Field(None, gt=0)
    imageUrl: Optional[str] = Field(None, max_length=500)
    categoryIds: Optional[List[int]] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip() if v else v


def _check_email(v: str) -> str:
    v = v.strip().lower()
    local, _, domain = v.partition("@")
    if not local or "." not in domain or domain.startswith(".") or domain.endswith("."):
        raise ValueError("Invalid email address")
    return v


class SubscriptionCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, description="Address to receive the newsletter")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)


class ContactMessageCreate(BaseModel):
    """Schema for the public contact form"""

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)

    @field_validator("name", "subject", "message")
    @classmethod
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Field cannot be blank")
        return v.strip()
