from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from typing import Dict

from onboarding.core.auth_dependencies import REVIEWER_ROLES, get_current_user, require_roles
from onboarding.core.exceptions import AppError
from onboarding.helpers.response_builder import success_response
from onboarding.schemas import UserCreate
from onboarding.services.audit_service import audit_service
from onboarding.services.user_service import user_service

router = APIRouter(
    prefix="/usuarios",
    tags=["Usuarios"]
)


# Authenticates user credentials and returns an access token
@router.post("/login", status_code=status.HTTP_200_OK)
async def login_user(form_data: OAuth2PasswordRequestForm = Depends()) -> Dict:
    try:
        token_data = await user_service.login_user(form_data.username, form_data.password)
    except AppError:
        await audit_service.record("login", actor=form_data.username, status="failed")
        raise
    await audit_service.record("login", actor=form_data.username, acted=token_data["user"]["id"])
    # OAuth2 clients read access_token at the top level
    return {**success_response("Login successful", token_data), **token_data}


# Creates a new user account (SUPER or ADMIN only)
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(user_data: UserCreate, current_user: Dict = Depends(require_roles(*REVIEWER_ROLES))) -> Dict:
    created = await user_service.create_user(user_data)
    await audit_service.record("create_user", actor=current_user["username"], acted=created["id"])
    return success_response("User created successfully", created)


# Returns the authenticated user's profile
@router.get("/me")
async def read_current_user(current_user: Dict = Depends(get_current_user)) -> Dict:
    return success_response("Current user", current_user)
