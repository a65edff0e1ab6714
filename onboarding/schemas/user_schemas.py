from pydantic import BaseModel, EmailStr, Field

from onboarding.schemas.enums import UserRole


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, description="Login name of the user")
    email: EmailStr = Field(..., description="Email address of the user")
    first_name: str = Field(..., min_length=1, max_length=100, description="First name of the user")
    last_name: str = Field(..., min_length=1, max_length=100, description="Last name of the user")
    password: str = Field(..., min_length=8, description="Password for the user account")
    role: UserRole = Field(default=UserRole.operator, description="Role granted to the user")

