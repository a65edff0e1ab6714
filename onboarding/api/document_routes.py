from datetime import date
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from typing import Dict, Optional

from onboarding.core.auth_dependencies import OVERSIGHT_ROLES, REVIEWER_ROLES, WRITER_ROLES, get_current_user, require_roles
from onboarding.helpers.response_builder import success_response
from onboarding.schemas import DocumentReview, DocumentTypeCreate, DocumentTypeUpdate
from onboarding.schemas.enums import PersonType
from onboarding.services.audit_service import audit_service
from onboarding.services.document_service import document_service

router = APIRouter(
    prefix="/documentos",
    tags=["Documentos"]
)


# Document catalog, optionally filtered by person-type
@router.get("/tipos")
async def list_document_types(
    person_type: Optional[PersonType] = Query(None),
    current_user: Dict = Depends(get_current_user),
) -> Dict:
    types = await document_service.list_document_types(person_type)
    return success_response("Document types retrieved", types)


# Adds a document type to the catalog
@router.post("/tipos", status_code=status.HTTP_201_CREATED)
async def create_document_type(payload: DocumentTypeCreate, current_user: Dict = Depends(require_roles(*REVIEWER_ROLES))) -> Dict:
    doc_type = await document_service.create_document_type(payload, actor=current_user["username"])
    await audit_service.record("create_document_type", actor=current_user["username"], acted=doc_type["code"])
    return success_response("Document type created successfully", doc_type)


@router.put("/tipos/{type_id}")
async def update_document_type(
    type_id: str,
    payload: DocumentTypeUpdate,
    current_user: Dict = Depends(require_roles(*REVIEWER_ROLES)),
) -> Dict:
    doc_type = await document_service.update_document_type(type_id, payload, actor=current_user["username"])
    await audit_service.record("update_document_type", actor=current_user["username"], acted=doc_type["code"])
    return success_response("Document type updated successfully", doc_type)


# Refused while submissions reference the type
@router.delete("/tipos/{type_id}")
async def delete_document_type(type_id: str, current_user: Dict = Depends(require_roles(*REVIEWER_ROLES))) -> Dict:
    await document_service.delete_document_type(type_id, actor=current_user["username"])
    await audit_service.record("delete_document_type", actor=current_user["username"], acted=type_id)
    return success_response("Document type deleted successfully")


# Submissions past their expiration date
@router.get("/vencidos")
async def list_expired_documents(
    client_id: Optional[str] = Query(None),
    current_user: Dict = Depends(require_roles(*OVERSIGHT_ROLES)),
) -> Dict:
    documents = await document_service.list_expired_documents(client_id)
    return success_response(f"{len(documents)} expired document(s)", documents)


# Uploads a KYC document for a client (PDF, JPEG or PNG, max 5 MB)
@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_document(
    client_id: str = Form(...),
    document_type_id: str = Form(...),
    document_date: date = Form(...),
    file: UploadFile = File(...),
    current_user: Dict = Depends(require_roles(*WRITER_ROLES)),
) -> Dict:
    submission = await document_service.submit_document(
        client_id, document_type_id, document_date, file, actor=current_user["username"]
    )
    await audit_service.record("submit_document", actor=current_user["username"], acted=submission["id"])
    return success_response("Document uploaded successfully", submission)


# Returns a submission with a fresh signed URL
@router.get("/{document_id}")
async def get_document(document_id: str, current_user: Dict = Depends(get_current_user)) -> Dict:
    submission = await document_service.get_document(document_id)
    return success_response("Document retrieved", submission)


# Approves or rejects a pending submission
@router.patch("/{document_id}/revision")
async def review_document(
    document_id: str,
    review: DocumentReview,
    current_user: Dict = Depends(require_roles(*REVIEWER_ROLES)),
) -> Dict:
    submission = await document_service.review_document(
        document_id, review.decision, review.comment, reviewer=current_user["username"]
    )
    await audit_service.record(f"review_document_{review.decision.value}", actor=current_user["username"], acted=document_id)
    return success_response(f"Document {review.decision.value}", submission)
