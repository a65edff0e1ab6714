from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from typing import Optional, Dict, Any
from onboarding.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 8


# Validates that a password meets minimum length requirements
def is_valid_password(password: str) -> bool:
    return password is not None and len(password) >= MIN_PASSWORD_LENGTH


# Hashes a password using bcrypt after validating its length
def hash_password(password: str) -> str:
    if not is_valid_password(password):
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    try:
        return pwd_context.hash(password)
    except Exception as e:
        raise ValueError("Failed to hash password") from e


# Verifies a plain password against its hashed version
def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(password, hashed_password)
    except (ValueError, TypeError):
        return False


# Creates a JWT access token carrying the username and role
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    if not settings.JWT_SECRET_KEY:
        raise ValueError("JWT_SECRET_KEY is not configured")
    try:
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))
        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    except Exception as e:
        raise ValueError("Failed to create access token") from e


# Decodes and validates a JWT token returning its payload
def decode_token(token: str) -> Optional[Dict[str, Any]]:
    if not settings.JWT_SECRET_KEY:
        return None
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
