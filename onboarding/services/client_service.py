import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import pymongo
from pymongo.errors import DuplicateKeyError

from onboarding.core.config import settings
from onboarding.core.exceptions import ConflictError, NotFoundError, ValidationError, from_duplicate_key
from onboarding.database.models import Address, Client, DocumentSubmission, ProductApplication
from onboarding.helpers.response_builder import build_pagination, document_to_dict
from onboarding.schemas import ClientCreate, ClientListParams, ClientUpdate
from onboarding.schemas.enums import ClientStatus
from onboarding.services.application_service import application_to_dict
from onboarding.services.document_service import document_service
from onboarding.services.income_service import income_service
from onboarding.utils.converters import parse_object_id, to_date, to_datetime
from onboarding.workflow.completeness import blocking_types
from onboarding.workflow.validators import address_complete, basic_data_complete, client_errors, display_name

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("first_name", "last_name", "second_last_name", "legal_name", "rfc", "email")
IDENTITY_FIELDS = ("rfc", "email")
RULE_FIELDS = (
    "person_type", "rfc", "curp", "first_name", "last_name", "birth_date",
    "legal_name", "incorporation_date", "address",
)
RFC_LENGTHS = (12, 13)


def client_to_dict(client: Client) -> Dict[str, Any]:
    data = document_to_dict(client)
    data["display_name"] = display_name(client)
    for field in ("birth_date", "incorporation_date"):
        value = to_date(getattr(client, field))
        data[field] = value.isoformat() if value else None
    return data


class ClientService:
    # Load a client document or raise NotFoundError
    @staticmethod
    async def get_client_document(client_id: str) -> Client:
        client = await Client.get(parse_object_id(client_id, "Client"))
        if not client:
            logger.warning("Client %s not found", client_id)
            raise NotFoundError("Client", client_id)
        return client

    # Friendly pre-check; the unique indexes remain the authority
    @staticmethod
    async def _ensure_unique(rfc: Optional[str], email: Optional[str], exclude_id=None) -> None:
        if rfc:
            existing = await Client.find_one(Client.rfc == rfc)
            if existing and existing.id != exclude_id:
                raise ConflictError(f"A client with RFC {rfc} already exists", field="rfc")
        if email:
            existing = await Client.find_one(Client.email == email)
            if existing and existing.id != exclude_id:
                raise ConflictError(f"A client with email {email} already exists", field="email")

    # Register a client after person-type validation and uniqueness checks
    @staticmethod
    async def register_client(payload: ClientCreate, actor: Optional[str] = None) -> Dict[str, Any]:
        data = payload.model_dump()
        errors = client_errors(data, minimum_age=settings.MINIMUM_CLIENT_AGE)
        if errors:
            logger.warning("Client registration rejected: %s", [e["field"] for e in errors])
            raise ValidationError("Invalid client data", details=errors)

        await ClientService._ensure_unique(payload.rfc, payload.email)

        now = datetime.utcnow()
        client = Client(
            **{
                **data,
                "birth_date": to_datetime(payload.birth_date),
                "incorporation_date": to_datetime(payload.incorporation_date),
            },
            status=ClientStatus.active,
            created_by=actor,
            created_at=now,
            updated_at=now,
        )
        try:
            await client.insert()
        except DuplicateKeyError as e:
            logger.warning("Duplicate key while registering client %s", payload.rfc)
            raise from_duplicate_key(e, default_field="rfc")

        logger.info("Client %s registered (%s) by %s", client.id, client.person_type.value, actor)
        return client_to_dict(client)

    # Client detail joined with income, documents and applications
    @staticmethod
    async def get_client(client_id: str) -> Dict[str, Any]:
        client = await ClientService.get_client_document(client_id)

        incomes = await income_service.list_income(client_id)
        submissions = await DocumentSubmission.find(
            DocumentSubmission.client_id == client.id
        ).sort([("uploaded_at", pymongo.DESCENDING), ("_id", pymongo.DESCENDING)]).to_list()
        applications = await ProductApplication.find(
            ProductApplication.client_id == client.id
        ).sort([("created_at", pymongo.DESCENDING), ("_id", pymongo.DESCENDING)]).to_list()

        data = client_to_dict(client)
        data["current_income"] = await income_service.latest_income(client_id)
        data["income_history"] = incomes
        data["documents"] = [document_to_dict(s) for s in submissions]
        data["applications"] = [application_to_dict(a) for a in applications]
        return data

    @staticmethod
    def build_filters(params: ClientListParams) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if params.person_type:
            query["person_type"] = params.person_type.value
        if params.status:
            query["status"] = params.status.value
        if params.search and params.search.strip():
            pattern = re.escape(params.search.strip())
            query["$or"] = [{field: {"$regex": pattern, "$options": "i"}} for field in SEARCH_FIELDS]
        return query

    # Paginated, filtered and sorted client listing
    @staticmethod
    async def list_clients(params: ClientListParams) -> Dict[str, Any]:
        query = ClientService.build_filters(params)
        direction = pymongo.ASCENDING if params.sort_dir == "asc" else pymongo.DESCENDING

        total = await Client.find(query).count()
        clients = await Client.find(query).sort(
            [(params.sort_by, direction), ("_id", direction)]
        ).skip((params.page - 1) * params.limit).limit(params.limit).to_list()

        return {
            "items": [client_to_dict(c) for c in clients],
            "pagination": build_pagination(total, params.page, params.limit),
        }

    # Partial update of contact data; person_type is immutable
    @staticmethod
    async def update_client(client_id: str, payload: ClientUpdate, actor: Optional[str] = None) -> Dict[str, Any]:
        client = await ClientService.get_client_document(client_id)
        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            return client_to_dict(client)

        # An explicit null clears optional fields only; the merged record must pass registration rules
        errors: List[Dict[str, str]] = [
            {"field": field, "message": f"{field} cannot be cleared"}
            for field in IDENTITY_FIELDS
            if field in changes and changes[field] is None
        ]
        merged = {
            **client.model_dump(include=set(RULE_FIELDS)),
            "birth_date": to_date(client.birth_date),
            "incorporation_date": to_date(client.incorporation_date),
            **changes,
        }
        reported = {e["field"] for e in errors}
        errors += [e for e in client_errors(merged, minimum_age=settings.MINIMUM_CLIENT_AGE) if e["field"] not in reported]
        if errors:
            logger.warning("Update of client %s rejected: %s", client_id, [e["field"] for e in errors])
            raise ValidationError("Invalid client data", details=errors)

        await ClientService._ensure_unique(
            changes.get("rfc") if changes.get("rfc") != client.rfc else None,
            changes.get("email") if changes.get("email") != client.email else None,
            exclude_id=client.id,
        )

        if changes.get("address") is not None:
            changes["address"] = Address(**changes["address"])
        for field, value in changes.items():
            setattr(client, field, value)
        client.updated_at = datetime.utcnow()
        try:
            await client.save()
        except DuplicateKeyError as e:
            raise from_duplicate_key(e, default_field="rfc")

        logger.info("Client %s updated by %s: %s", client_id, actor, sorted(changes))
        return client_to_dict(client)

    # Any status value is accepted; there is no transition table for clients
    @staticmethod
    async def update_status(client_id: str, new_status: ClientStatus, actor: Optional[str] = None) -> Dict[str, Any]:
        client = await ClientService.get_client_document(client_id)
        client.status = ClientStatus(new_status)
        client.updated_at = datetime.utcnow()
        await client.save()
        logger.info("Client %s status set to %s by %s", client_id, client.status.value, actor)
        return client_to_dict(client)

    @staticmethod
    async def _find_by_rfc(rfc: str) -> Optional[Client]:
        rfc = (rfc or "").strip().upper()
        if len(rfc) not in RFC_LENGTHS:
            raise ValidationError.for_field("rfc", "rfc must have 12 or 13 characters")
        return await Client.find_one(Client.rfc == rfc)

    # Lookup by tax id with the profile flags used at the counter
    @staticmethod
    async def find_by_rfc(rfc: str) -> Dict[str, Any]:
        client = await ClientService._find_by_rfc(rfc)
        if not client:
            raise NotFoundError("Client", rfc.strip().upper())
        return {
            "client": client_to_dict(client),
            "basic_data_complete": basic_data_complete(client),
            "address_complete": address_complete(client),
        }

    # Whether a known client can reuse the documents already on file
    @staticmethod
    async def evaluate_returning_client(rfc: str) -> Dict[str, Any]:
        client = await ClientService._find_by_rfc(rfc)
        if not client:
            return {
                "returning_client": False,
                "client_id": None,
                "documents_to_renew": [],
                "can_reuse_documents": False,
                "message": "No client is registered with this RFC",
            }

        completeness = await document_service.compute_completeness(str(client.id))
        to_renew = blocking_types(completeness)
        can_reuse = not to_renew
        return {
            "returning_client": True,
            "client_id": str(client.id),
            "documents_to_renew": to_renew,
            "can_reuse_documents": can_reuse,
            "message": (
                "The client can reuse the documents on file"
                if can_reuse
                else f"The client must renew {len(to_renew)} expired or rejected document(s)"
            ),
        }


client_service = ClientService()
