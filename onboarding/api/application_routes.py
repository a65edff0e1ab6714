from fastapi import APIRouter, Depends, Query, status
from typing import Dict, Optional

from onboarding.core.auth_dependencies import REVIEWER_ROLES, WRITER_ROLES, get_current_user, require_roles
from onboarding.helpers.response_builder import success_response
from onboarding.schemas import (
    ApplicationCreate,
    ApplicationListParams,
    ApplicationTransition,
    RequestedProductSchema,
    RequestedProductUpdate,
)
from onboarding.schemas.enums import ApplicationStatus, ProductCode
from onboarding.services.application_service import application_service
from onboarding.services.audit_service import audit_service

router = APIRouter(
    prefix="/solicitudes",
    tags=["Solicitudes"]
)


# Creates a product application with its requested products
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_application(payload: ApplicationCreate, current_user: Dict = Depends(require_roles(*WRITER_ROLES))) -> Dict:
    application = await application_service.create_application(payload, actor=current_user["username"])
    await audit_service.record("create_application", actor=current_user["username"], acted=application["folio"])
    return success_response("Application created successfully", application)


@router.get("")
async def list_applications(
    client_id: Optional[str] = Query(None),
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    product_code: Optional[ProductCode] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: Dict = Depends(get_current_user),
) -> Dict:
    params = ApplicationListParams(
        client_id=client_id,
        status=status_filter,
        product_code=product_code,
        page=page,
        limit=limit,
    )
    result = await application_service.list_applications(params)
    return success_response("Applications retrieved", result["items"], pagination=result["pagination"])


@router.get("/{application_id}")
async def get_application(application_id: str, current_user: Dict = Depends(get_current_user)) -> Dict:
    application = await application_service.get_application(application_id)
    return success_response("Application retrieved", application)


# Moves the application to a new status
@router.api_route("/{application_id}", methods=["PUT", "PATCH"])
async def transition_application(
    application_id: str,
    payload: ApplicationTransition,
    current_user: Dict = Depends(require_roles(*WRITER_ROLES)),
) -> Dict:
    application = await application_service.transition(
        application_id, payload.status, actor=current_user["username"], comment=payload.comment
    )
    await audit_service.record(f"application_{payload.status.value}", actor=current_user["username"], acted=application["folio"])
    return success_response(f"Application moved to {payload.status.value}", application)


# Adds a product line while the application is initiated
@router.post("/{application_id}/productos", status_code=status.HTTP_201_CREATED)
async def add_product(
    application_id: str,
    payload: RequestedProductSchema,
    current_user: Dict = Depends(require_roles(*WRITER_ROLES)),
) -> Dict:
    application = await application_service.add_product(application_id, payload, actor=current_user["username"])
    await audit_service.record("add_product", actor=current_user["username"], acted=application["folio"])
    return success_response("Product added to the application", application)


@router.put("/{application_id}/productos/{line_id}")
async def update_product(
    application_id: str,
    line_id: str,
    payload: RequestedProductUpdate,
    current_user: Dict = Depends(require_roles(*WRITER_ROLES)),
) -> Dict:
    application = await application_service.update_product(application_id, line_id, payload, actor=current_user["username"])
    await audit_service.record("update_product", actor=current_user["username"], acted=application["folio"])
    return success_response("Product updated successfully", application)


@router.delete("/{application_id}/productos/{line_id}")
async def remove_product(
    application_id: str,
    line_id: str,
    current_user: Dict = Depends(require_roles(*REVIEWER_ROLES)),
) -> Dict:
    application = await application_service.remove_product(application_id, line_id, actor=current_user["username"])
    await audit_service.record("remove_product", actor=current_user["username"], acted=application["folio"])
    return success_response("Product removed from the application", application)
