from onboarding.database.models import User
from onboarding.schemas import UserCreate
from onboarding.schemas.enums import UserRole, UserStatus
from onboarding.core.config import settings
from onboarding.core.exceptions import ConflictError, UnauthorizedError, InternalError, ValidationError, from_duplicate_key, from_pydantic
from pydantic import ValidationError as PydanticValidationError
from onboarding.core.security import hash_password, verify_password, create_access_token, is_valid_password
from pymongo.errors import DuplicateKeyError
from typing import Dict, Optional
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


def user_to_dict(user: User) -> Dict:
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": user.role.value if isinstance(user.role, UserRole) else user.role,
        "status": user.status.value if isinstance(user.status, UserStatus) else user.status,
    }


class UserService:
    # Register a new user; username and email are unique
    @staticmethod
    async def create_user(user_data: UserCreate) -> Dict:
        username = user_data.username.strip().lower()
        email = user_data.email.lower()

        if await User.find_one(User.username == username):
            raise ConflictError("Username already registered", field="username")
        if await User.find_one(User.email == email):
            raise ConflictError("Email already registered", field="email")

        if not is_valid_password(user_data.password):
            raise ValidationError.for_field("password", "Password must be at least 8 characters long")

        try:
            hashed_password = hash_password(user_data.password)
        except ValueError:
            logger.warning("Password hashing failed for new user %s", username)
            raise ValidationError.for_field("password", "Invalid password format")

        new_user = User(
            username=username,
            email=email,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            hashed_password=hashed_password,
            role=user_data.role,
            created_at=datetime.utcnow(),
        )

        try:
            await new_user.insert()
        except DuplicateKeyError as e:
            raise from_duplicate_key(e, default_field="username")

        logger.info("User %s created with role %s", username, new_user.role.value)
        return user_to_dict(new_user)

    # Authenticate user and generate access token
    @staticmethod
    async def login_user(username: str, password: str) -> Dict:
        username = (username or "").strip().lower()
        user = await User.find_one(User.username == username)

        if not user or not verify_password(password, user.hashed_password):
            logger.warning("Failed login attempt for username: %s", username)
            raise UnauthorizedError("Invalid username or password")

        if user.status != UserStatus.active:
            logger.warning("Login attempt for suspended user: %s", username)
            raise UnauthorizedError("User account is suspended")

        try:
            access_token = create_access_token(data={"sub": user.username, "role": user.role.value})
        except ValueError as e:
            logger.error("Token creation failed: %s", e)
            raise InternalError("Could not create access token")

        logger.debug("Created JWT access token for sub: %s", user.username)
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "user": user_to_dict(user),
        }

    # Retrieve user information by username
    @staticmethod
    async def get_user_by_username(username: str) -> Optional[Dict]:
        user = await User.find_one(User.username == username)
        if not user:
            return None
        return user_to_dict(user)

    # Create the first SUPER user from settings when none exists
    @staticmethod
    async def ensure_superuser() -> Optional[Dict]:
        if not (settings.SUPERUSER_USERNAME and settings.SUPERUSER_PASSWORD and settings.SUPERUSER_EMAIL):
            logger.debug("Superuser bootstrap skipped: SUPERUSER_* settings not configured")
            return None

        if await User.find_one(User.role == UserRole.super):
            return None

        try:
            bootstrap = UserCreate(
                username=settings.SUPERUSER_USERNAME,
                email=settings.SUPERUSER_EMAIL,
                first_name="Super",
                last_name="User",
                password=settings.SUPERUSER_PASSWORD,
                role=UserRole.super,
            )
        except PydanticValidationError as e:
            raise from_pydantic(e)
        user = await UserService.create_user(bootstrap)
        logger.info("Bootstrapped superuser %s", user["username"])
        return user


user_service = UserService()
