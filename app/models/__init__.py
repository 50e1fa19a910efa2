# Database models

from app.models.organization import Organization
from app.models.school import School
from app.models.user import User
from app.models.student import Student
from app.models.auth_token import PasswordResetToken, RefreshToken

__all__ = [
    "Organization",
    "School",
    "User",
    "Student",
    "RefreshToken",
    "PasswordResetToken",
]
