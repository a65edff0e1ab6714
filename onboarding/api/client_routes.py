from fastapi import APIRouter, Depends, Query, status
from typing import Dict, Optional

from onboarding.core.auth_dependencies import WRITER_ROLES, get_current_user, require_roles
from onboarding.helpers.response_builder import success_response
from onboarding.schemas import ClientCreate, ClientListParams, ClientStatusUpdate, ClientUpdate, IncomeCreate
from onboarding.schemas.enums import ClientStatus, PersonType, SortDirection
from onboarding.services.audit_service import audit_service
from onboarding.services.client_service import client_service
from onboarding.services.document_service import document_service
from onboarding.services.income_service import income_service

router = APIRouter(
    prefix="/clientes",
    tags=["Clientes"]
)


# Registers a new client (PF, PF_AE or PM)
@router.post("", status_code=status.HTTP_201_CREATED)
async def register_client(payload: ClientCreate, current_user: Dict = Depends(require_roles(*WRITER_ROLES))) -> Dict:
    client = await client_service.register_client(payload, actor=current_user["username"])
    await audit_service.record("register_client", actor=current_user["username"], acted=client["id"])
    return success_response("Client registered successfully", client)


# Lists clients with filters, pagination and sorting
@router.get("")
async def list_clients(
    person_type: Optional[PersonType] = Query(None),
    status_filter: Optional[ClientStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("created_at", pattern="^(created_at|rfc|email|legal_name|last_name)$"),
    sort_dir: SortDirection = Query(SortDirection.desc),
    current_user: Dict = Depends(get_current_user),
) -> Dict:
    params = ClientListParams(
        person_type=person_type,
        status=status_filter,
        search=search,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_dir=sort_dir.value,
    )
    result = await client_service.list_clients(params)
    return success_response("Clients retrieved", result["items"], pagination=result["pagination"])


# Looks a client up by RFC with its profile flags
@router.get("/buscar/rfc/{rfc}")
async def find_client_by_rfc(rfc: str, current_user: Dict = Depends(get_current_user)) -> Dict:
    result = await client_service.find_by_rfc(rfc)
    return success_response("Client found", result)


# Tells whether a returning client can reuse the documents on file
@router.get("/evaluar/rfc/{rfc}")
async def evaluate_returning_client(rfc: str, current_user: Dict = Depends(get_current_user)) -> Dict:
    result = await client_service.evaluate_returning_client(rfc)
    return success_response(result["message"], result)


# Returns a client with income history, documents and applications
@router.get("/{client_id}")
async def get_client(client_id: str, current_user: Dict = Depends(get_current_user)) -> Dict:
    client = await client_service.get_client(client_id)
    return success_response("Client retrieved", client)


# Updates contact and address data
@router.patch("/{client_id}")
async def update_client(client_id: str, payload: ClientUpdate, current_user: Dict = Depends(require_roles(*WRITER_ROLES))) -> Dict:
    client = await client_service.update_client(client_id, payload, actor=current_user["username"])
    await audit_service.record("update_client", actor=current_user["username"], acted=client_id)
    return success_response("Client updated successfully", client)


# Sets the client status to any allowed value
@router.patch("/{client_id}/estatus")
async def update_client_status(client_id: str, payload: ClientStatusUpdate, current_user: Dict = Depends(require_roles(*WRITER_ROLES))) -> Dict:
    client = await client_service.update_status(client_id, payload.status, actor=current_user["username"])
    await audit_service.record(f"client_status_{payload.status.value}", actor=current_user["username"], acted=client_id)
    return success_response("Client status updated", client)


# Appends an income declaration
@router.post("/{client_id}/ingresos", status_code=status.HTTP_201_CREATED)
async def record_income(client_id: str, payload: IncomeCreate, current_user: Dict = Depends(require_roles(*WRITER_ROLES))) -> Dict:
    income = await income_service.record_income(client_id, payload, actor=current_user["username"])
    await audit_service.record("record_income", actor=current_user["username"], acted=client_id)
    return success_response("Income recorded successfully", income)


# Income history, newest first
@router.get("/{client_id}/ingresos")
async def list_income(client_id: str, current_user: Dict = Depends(get_current_user)) -> Dict:
    history = await income_service.list_income(client_id)
    return success_response("Income history retrieved", history)


@router.get("/{client_id}/documentos")
async def list_client_documents(client_id: str, current_user: Dict = Depends(get_current_user)) -> Dict:
    documents = await document_service.list_client_documents(client_id)
    return success_response("Documents retrieved", documents)


# Document completeness for the client's person-type
@router.get("/{client_id}/completitud")
async def get_completeness(client_id: str, current_user: Dict = Depends(get_current_user)) -> Dict:
    completeness = await document_service.compute_completeness(client_id)
    return success_response("Completeness computed", completeness)
