from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from onboarding.core.exceptions import ForbiddenError
from onboarding.core.security import decode_token
from onboarding.schemas.enums import UserRole, UserStatus
from onboarding.services.user_service import user_service
from typing import Dict
import logging

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/usuarios/login")

# Roles allowed to change clients, income, documents and applications
WRITER_ROLES = (UserRole.super, UserRole.admin, UserRole.operator)
REVIEWER_ROLES = (UserRole.super, UserRole.admin)
OVERSIGHT_ROLES = (UserRole.super, UserRole.admin, UserRole.auditor)


# Extracts and validates JWT token to retrieve current authenticated user
async def get_current_user(token: str = Depends(oauth2_scheme)) -> Dict:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        logger.warning("Token validation failed")
        raise credentials_exception

    username = payload.get("sub")
    if username is None:
        logger.debug("No 'sub' field in token payload.")
        raise credentials_exception

    user = await user_service.get_user_by_username(username)
    if user is None or user.get("status") != UserStatus.active.value:
        raise credentials_exception

    return user


# Builds a dependency that only lets the given roles through
def require_roles(*roles: UserRole):
    allowed = {UserRole(r).value for r in roles}

    async def dependency(current_user: Dict = Depends(get_current_user)) -> Dict:
        if current_user.get("role") not in allowed:
            logger.warning("User %s with role %s denied (needs one of %s)",
                           current_user.get("username"), current_user.get("role"), sorted(allowed))
            raise ForbiddenError()
        return current_user

    return dependency
