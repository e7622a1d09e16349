"""RBAC: Admins, Teachers, Parents."""
from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import Document, Indexed
from pydantic import EmailStr, Field


class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    PARENT = "parent"


class User(Document):
    """User document; parents are linked to the students they may view."""

    email: Indexed(EmailStr, unique=True)
    role: UserRole
    full_name: str
    phone: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Parent-specific: linked student IDs
    student_ids: list[str] = Field(default_factory=list)

    class Settings:
        name = "users"
        use_state_management = True

    def can_view_student(self, student_id: str) -> bool:
        if self.role == UserRole.PARENT:
            return student_id in (self.student_ids or [])
        return True
