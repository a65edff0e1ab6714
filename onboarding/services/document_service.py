import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pymongo
from beanie import UpdateResponse
from beanie.odm.operators.update.general import Set
from fastapi import UploadFile
from pymongo.errors import DuplicateKeyError

from onboarding.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError, from_duplicate_key
from onboarding.database.models import Client, DocumentSubmission, DocumentType
from onboarding.document_catalog import DOCUMENT_TYPES_CATALOG
from onboarding.helpers.response_builder import document_to_dict
from onboarding.schemas import DocumentTypeCreate, DocumentTypeUpdate
from onboarding.schemas.enums import PersonType, ReviewDecision, SubmissionStatus
from onboarding.services.income_service import income_service
from onboarding.services.storage_service import StorageService, build_storage_path, storage_service
from onboarding.utils.converters import parse_object_id, to_date, to_datetime
from onboarding.workflow.completeness import client_flags, compute_completeness, expiration_for

logger = logging.getLogger(__name__)

NON_NULLABLE_TYPE_FIELDS = ("name", "applies_to", "optional")


def document_type_to_dict(doc_type: DocumentType) -> Dict[str, Any]:
    data = document_to_dict(doc_type)
    data["applies_to"] = [PersonType(p).value for p in doc_type.applies_to]
    return data


class DocumentService:
    def __init__(self, storage: Optional[StorageService] = None):
        self.storage = storage or storage_service

    # Insert catalog entries that are not stored yet; stored entries are left as edited
    async def seed_document_types(self) -> int:
        created = 0
        for entry in DOCUMENT_TYPES_CATALOG:
            if await DocumentType.find_one(DocumentType.code == entry["code"]):
                continue
            await DocumentType(
                code=entry["code"],
                name=entry["name"],
                applies_to=sorted(entry["applies_to"], key=lambda p: p.value),
                validity_days=entry["validity_days"],
                optional=entry["optional"],
                description=entry["description"],
            ).insert()
            created += 1
        if created:
            logger.info("Seeded %d document types", created)
        return created

    async def list_document_types(self, person_type: Optional[PersonType] = None) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        if person_type:
            query["applies_to"] = PersonType(person_type).value
        types = await DocumentType.find(query).sort([("_id", pymongo.ASCENDING)]).to_list()
        return [document_type_to_dict(t) for t in types]

    async def _document_type(self, type_id: str) -> DocumentType:
        doc_type = await DocumentType.get(parse_object_id(type_id, "DocumentType"))
        if not doc_type:
            raise NotFoundError("DocumentType", type_id)
        return doc_type

    async def create_document_type(self, payload: DocumentTypeCreate, actor: Optional[str] = None) -> Dict[str, Any]:
        doc_type = DocumentType(**{
            **payload.model_dump(),
            "applies_to": sorted(set(payload.applies_to), key=lambda p: p.value),
        })
        try:
            await doc_type.insert()
        except DuplicateKeyError as e:
            logger.warning("Duplicate document type %s", payload.code)
            raise from_duplicate_key(e, default_field="code")
        logger.info("Document type %s created by %s", doc_type.code, actor)
        return document_type_to_dict(doc_type)

    # Partial edit; the code is the stable key and never changes
    async def update_document_type(self, type_id: str, payload: DocumentTypeUpdate, actor: Optional[str] = None) -> Dict[str, Any]:
        doc_type = await self._document_type(type_id)
        changes = payload.model_dump(exclude_unset=True)
        errors = [
            {"field": field, "message": f"{field} cannot be null"}
            for field in NON_NULLABLE_TYPE_FIELDS
            if field in changes and changes[field] is None
        ]
        if errors:
            raise ValidationError("Invalid document type data", details=errors)
        if not changes:
            return document_type_to_dict(doc_type)

        if "applies_to" in changes:
            changes["applies_to"] = sorted({PersonType(p) for p in changes["applies_to"]}, key=lambda p: p.value)
        for field, value in changes.items():
            setattr(doc_type, field, value)
        try:
            await doc_type.save()
        except DuplicateKeyError as e:
            raise from_duplicate_key(e, default_field="name")
        logger.info("Document type %s updated by %s: %s", doc_type.code, actor, sorted(changes))
        return document_type_to_dict(doc_type)

    # Types referenced by submissions are kept so history stays readable
    async def delete_document_type(self, type_id: str, actor: Optional[str] = None) -> None:
        doc_type = await self._document_type(type_id)
        in_use = await DocumentSubmission.find(DocumentSubmission.document_type_id == doc_type.id).count()
        if in_use:
            raise ConflictError(
                f"Document type {doc_type.code} has {in_use} submission(s) and cannot be deleted",
                field="document_type_id",
            )
        await doc_type.delete()
        logger.info("Document type %s deleted by %s", doc_type.code, actor)

    async def _client(self, client_id: str) -> Client:
        client = await Client.get(parse_object_id(client_id, "Client"))
        if not client:
            logger.warning("Document operation on missing client %s", client_id)
            raise NotFoundError("Client", client_id)
        return client

    # Upload the file, then persist the submission; the blob is removed if the insert fails
    async def submit_document(
        self,
        client_id: str,
        document_type_id: str,
        document_date: date,
        file: UploadFile,
        actor: Optional[str] = None,
    ) -> Dict[str, Any]:
        client = await self._client(client_id)
        doc_type = await self._document_type(document_type_id)

        if client.person_type not in doc_type.applies_to:
            raise ValidationError.for_field(
                "document_type_id",
                f"{doc_type.name} does not apply to person type {client.person_type.value}",
            )
        if document_date > date.today():
            raise ValidationError.for_field("document_date", "document_date cannot be in the future")

        contents, content_type = await self.storage.read_upload(file)
        path = build_storage_path(str(client.id), doc_type.code, file.filename)
        await self.storage.upload(path, contents, content_type)

        submission = DocumentSubmission(
            client_id=client.id,
            document_type_id=doc_type.id,
            storage_locator=path,
            original_filename=file.filename or path.rsplit("/", 1)[-1],
            content_type=content_type,
            size_bytes=len(contents),
            document_date=to_datetime(document_date),
            expiration_date=to_datetime(expiration_for(document_date, doc_type.validity_days)),
            status=SubmissionStatus.pending,
            uploaded_by=actor,
            uploaded_at=datetime.utcnow(),
        )
        try:
            await submission.insert()
        except Exception:
            logger.exception("Failed to save submission for client %s; removing %s", client_id, path)
            await self.storage.delete(path)
            raise

        logger.info("Document %s (%s) submitted for client %s by %s", submission.id, doc_type.code, client_id, actor)
        return document_to_dict(submission)

    # pending -> approved|rejected in one conditional update
    async def review_document(
        self,
        submission_id: str,
        decision: ReviewDecision,
        comment: Optional[str] = None,
        reviewer: Optional[str] = None,
    ) -> Dict[str, Any]:
        oid = parse_object_id(submission_id, "DocumentSubmission")
        target = SubmissionStatus(ReviewDecision(decision).value)

        updated = await DocumentSubmission.find_one(
            DocumentSubmission.id == oid,
            DocumentSubmission.status == SubmissionStatus.pending,
        ).update(
            Set({
                DocumentSubmission.status: target,
                DocumentSubmission.reviewer_comment: comment,
                DocumentSubmission.reviewed_by: reviewer,
                DocumentSubmission.reviewed_at: datetime.utcnow(),
            }),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )

        if updated is None:
            existing = await DocumentSubmission.get(oid)
            if existing is None:
                raise NotFoundError("DocumentSubmission", submission_id)
            raise InvalidStateError(
                f"Document was already reviewed ({existing.status.value})",
                current=existing.status.value,
                target=target.value,
            )

        logger.info("Document %s marked %s by %s", submission_id, target.value, reviewer)
        return document_to_dict(updated)

    async def get_document(self, submission_id: str) -> Dict[str, Any]:
        submission = await DocumentSubmission.get(parse_object_id(submission_id, "DocumentSubmission"))
        if not submission:
            raise NotFoundError("DocumentSubmission", submission_id)
        data = document_to_dict(submission)
        data["signed_url"] = await self.storage.signed_url(submission.storage_locator)
        return data

    async def list_client_documents(self, client_id: str) -> List[Dict[str, Any]]:
        client = await self._client(client_id)
        submissions = await DocumentSubmission.find(
            DocumentSubmission.client_id == client.id
        ).sort([("uploaded_at", pymongo.DESCENDING), ("_id", pymongo.DESCENDING)]).to_list()
        return [document_to_dict(s) for s in submissions]

    # Submissions past their expiration date that were not rejected, oldest first
    async def list_expired_documents(self, client_id: Optional[str] = None, today: Optional[date] = None) -> List[Dict[str, Any]]:
        today = today or date.today()
        query: Dict[str, Any] = {
            "expiration_date": {"$lte": to_datetime(today)},
            "status": {"$ne": SubmissionStatus.rejected.value},
        }
        if client_id:
            query["client_id"] = (await self._client(client_id)).id
        submissions = await DocumentSubmission.find(query).sort(
            [("expiration_date", pymongo.ASCENDING), ("_id", pymongo.ASCENDING)]
        ).to_list()
        items = []
        for submission in submissions:
            data = document_to_dict(submission)
            data["days_expired"] = (today - to_date(submission.expiration_date)).days
            items.append(data)
        return items

    # Recomputed from the stored submissions on every call
    async def compute_completeness(self, client_id: str, today: Optional[date] = None) -> Dict[str, Any]:
        client = await self._client(client_id)
        catalog = await DocumentType.find_all().sort([("_id", pymongo.ASCENDING)]).to_list()
        submissions = await DocumentSubmission.find(DocumentSubmission.client_id == client.id).to_list()

        result = compute_completeness(client.person_type, catalog, submissions, today=today)
        result["client_id"] = str(client.id)
        result.update(client_flags(client, result, await income_service.latest_income(client_id)))
        return result


document_service = DocumentService()
