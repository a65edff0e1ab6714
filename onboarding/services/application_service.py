import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import pymongo
from beanie import UpdateResponse
from beanie.odm.operators.update.array import Push
from beanie.odm.operators.update.general import Set
from pymongo.errors import DuplicateKeyError

from onboarding.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from onboarding.database.models import Client, ProductApplication, RequestedProduct, StatusChange
from onboarding.helpers.response_builder import build_pagination, document_to_dict
from onboarding.product_catalog import product_name, validate_requested_products
from onboarding.schemas import ApplicationCreate, ApplicationListParams, RequestedProductSchema, RequestedProductUpdate
from onboarding.schemas.enums import ApplicationStatus
from onboarding.utils.converters import parse_object_id
from onboarding.utils.folio import generate_folio, is_valid_folio
from onboarding.workflow.state_machine import INITIAL_STATUS, ensure_transition

logger = logging.getLogger(__name__)

MAX_FOLIO_ATTEMPTS = 5


def application_to_dict(application: ProductApplication) -> Dict[str, Any]:
    data = document_to_dict(application)
    for line in data.get("products", []):
        line["product_name"] = product_name(line["product_code"])
    return data


def _is_folio_collision(exc: DuplicateKeyError) -> bool:
    details = getattr(exc, "details", None) or {}
    return "folio" in (details.get("keyPattern") or details.get("keyValue") or {})


class ApplicationService:
    # Create an application with its requested products embedded in order
    @staticmethod
    async def create_application(payload: ApplicationCreate, actor: Optional[str] = None) -> Dict[str, Any]:
        client = await Client.get(parse_object_id(payload.client_id, "Client"))
        if not client:
            logger.warning("Application requested for missing client %s", payload.client_id)
            raise NotFoundError("Client", payload.client_id)

        lines = [p.model_dump() for p in payload.products]
        errors = validate_requested_products(lines)
        if errors:
            logger.warning("Application for client %s rejected: %s", payload.client_id, [e["field"] for e in errors])
            raise ValidationError("Invalid requested products", details=errors)

        now = datetime.utcnow()
        for attempt in range(1, MAX_FOLIO_ATTEMPTS + 1):
            application = ProductApplication(
                folio=generate_folio(now),
                client_id=client.id,
                status=INITIAL_STATUS,
                observations=payload.observations,
                products=[RequestedProduct(**line) for line in lines],
                status_history=[StatusChange(to_status=INITIAL_STATUS, changed_by=actor, changed_at=now)],
                created_by=actor,
                created_at=now,
                updated_at=now,
            )
            try:
                await application.insert()
            except DuplicateKeyError as e:
                if not _is_folio_collision(e):
                    raise
                logger.warning("Folio collision on attempt %d/%d", attempt, MAX_FOLIO_ATTEMPTS)
                continue
            logger.info("Application %s created for client %s by %s", application.folio, payload.client_id, actor)
            return application_to_dict(application)

        raise ConflictError("Could not allocate a unique folio", field="folio")

    # Accepts the ObjectId or the folio
    @staticmethod
    async def get_application_document(application_id: str) -> ProductApplication:
        if is_valid_folio(application_id):
            application = await ProductApplication.find_one(ProductApplication.folio == application_id)
        else:
            application = await ProductApplication.get(parse_object_id(application_id, "ProductApplication"))
        if not application:
            raise NotFoundError("ProductApplication", application_id)
        return application

    @staticmethod
    async def get_application(application_id: str) -> Dict[str, Any]:
        application = await ApplicationService.get_application_document(application_id)
        return application_to_dict(application)

    @staticmethod
    def build_filters(params: ApplicationListParams) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if params.client_id:
            query["client_id"] = parse_object_id(params.client_id, "Client")
        if params.status:
            query["status"] = params.status.value
        if params.product_code:
            query["products.product_code"] = params.product_code.value
        return query

    @staticmethod
    async def list_applications(params: ApplicationListParams) -> Dict[str, Any]:
        query = ApplicationService.build_filters(params)
        total = await ProductApplication.find(query).count()
        applications = await ProductApplication.find(query).sort(
            [("created_at", pymongo.DESCENDING), ("_id", pymongo.DESCENDING)]
        ).skip((params.page - 1) * params.limit).limit(params.limit).to_list()
        return {
            "items": [application_to_dict(a) for a in applications],
            "pagination": build_pagination(total, params.page, params.limit),
        }

    # Move to target status if the table allows it and nobody moved it first
    @staticmethod
    async def transition(
        application_id: str,
        target_status: ApplicationStatus,
        actor: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        application = await ApplicationService.get_application_document(application_id)

        current = application.status
        target = ApplicationStatus(target_status)
        ensure_transition(current, target)

        now = datetime.utcnow()
        updated = await ProductApplication.find_one(
            ProductApplication.id == application.id,
            ProductApplication.status == current,
        ).update(
            Set({
                ProductApplication.status: target,
                ProductApplication.updated_at: now,
            }),
            Push({
                ProductApplication.status_history: StatusChange(
                    from_status=current,
                    to_status=target,
                    changed_by=actor,
                    comment=comment,
                    changed_at=now,
                ),
            }),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if updated is None:
            logger.warning("Concurrent transition on application %s (%s -> %s)", application_id, current.value, target.value)
            raise InvalidStateError(
                "Application status changed concurrently; reload and retry",
                current=current.value,
                target=target.value,
            )

        logger.info("Application %s moved %s -> %s by %s", updated.folio, current.value, target.value, actor)
        return application_to_dict(updated)

    @staticmethod
    async def _editable(application_id: str) -> ProductApplication:
        application = await ApplicationService.get_application_document(application_id)
        if application.status != ApplicationStatus.initiated:
            raise InvalidStateError(
                f"Products can only change while the application is initiated (it is {application.status.value})",
                current=application.status.value,
            )
        return application

    @staticmethod
    def _line_index(application: ProductApplication, line_id: str) -> int:
        for index, line in enumerate(application.products):
            if str(line.line_id) == line_id:
                return index
        raise NotFoundError("RequestedProduct", line_id)

    # Writes the whole line list, filtered on the status and updated_at that were read
    @staticmethod
    async def _replace_products(
        application: ProductApplication,
        lines: List[Dict[str, Any]],
        actor: Optional[str],
        action: str,
    ) -> Dict[str, Any]:
        errors = validate_requested_products(lines)
        if errors:
            logger.warning("Product %s on %s rejected: %s", action, application.folio, [e["field"] for e in errors])
            raise ValidationError("Invalid requested products", details=errors)

        updated = await ProductApplication.find_one(
            ProductApplication.id == application.id,
            ProductApplication.status == ApplicationStatus.initiated,
            ProductApplication.updated_at == application.updated_at,
        ).update(
            Set({
                ProductApplication.products: [RequestedProduct(**line) for line in lines],
                ProductApplication.updated_at: datetime.utcnow(),
            }),
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        if updated is None:
            logger.warning("Concurrent product %s on application %s", action, application.folio)
            raise InvalidStateError("Application changed concurrently; reload and retry")

        logger.info("Product %s on application %s by %s", action, updated.folio, actor)
        return application_to_dict(updated)

    @staticmethod
    async def add_product(application_id: str, payload: RequestedProductSchema, actor: Optional[str] = None) -> Dict[str, Any]:
        application = await ApplicationService._editable(application_id)
        lines = [line.model_dump() for line in application.products] + [payload.model_dump()]
        return await ApplicationService._replace_products(application, lines, actor, "added")

    @staticmethod
    async def update_product(
        application_id: str,
        line_id: str,
        payload: RequestedProductUpdate,
        actor: Optional[str] = None,
    ) -> Dict[str, Any]:
        application = await ApplicationService._editable(application_id)
        index = ApplicationService._line_index(application, line_id)
        lines = [line.model_dump() for line in application.products]
        lines[index].update(payload.model_dump(exclude_unset=True))
        return await ApplicationService._replace_products(application, lines, actor, "updated")

    # The last line cannot be removed
    @staticmethod
    async def remove_product(application_id: str, line_id: str, actor: Optional[str] = None) -> Dict[str, Any]:
        application = await ApplicationService._editable(application_id)
        index = ApplicationService._line_index(application, line_id)
        lines = [line.model_dump() for i, line in enumerate(application.products) if i != index]
        return await ApplicationService._replace_products(application, lines, actor, "removed")


application_service = ApplicationService()
