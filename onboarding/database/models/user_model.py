from beanie import Document, Indexed
from pydantic import Field
from datetime import datetime
from typing import Optional

from onboarding.schemas.enums import UserRole, UserStatus


class User(Document):
    username: Indexed(str, unique=True) = Field(..., description="Login name of the user")
    email: Indexed(str, unique=True) = Field(..., description="Email address of the user")
    first_name: str = Field(..., description="First name of the user")
    last_name: str = Field(..., description="Last name of the user")
    hashed_password: str = Field(..., description="Hashed password for the user account")
    role: UserRole = Field(default=UserRole.operator, description="Role that drives route permissions")
    status: UserStatus = Field(default=UserStatus.active, description="Suspended users cannot log in")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Timestamp when the user was created")
    updated_at: Optional[datetime] = Field(None, description="Timestamp when the user was last updated")

    class Settings:
        name = "users"
