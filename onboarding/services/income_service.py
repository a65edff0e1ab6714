import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import pymongo

from onboarding.core.exceptions import NotFoundError
from onboarding.database.models import Client, IncomeDeclaration
from onboarding.helpers.response_builder import document_to_dict
from onboarding.schemas import IncomeCreate
from onboarding.utils.converters import parse_object_id

logger = logging.getLogger(__name__)

NEWEST_FIRST = [("recorded_at", pymongo.DESCENDING), ("_id", pymongo.DESCENDING)]


class IncomeService:
    @staticmethod
    async def _client(client_id: str) -> Client:
        client = await Client.get(parse_object_id(client_id, "Client"))
        if not client:
            logger.warning("Income operation on missing client %s", client_id)
            raise NotFoundError("Client", client_id)
        return client

    # Append a declaration; earlier ones are kept as history
    @staticmethod
    async def record_income(client_id: str, payload: IncomeCreate, actor: Optional[str] = None) -> Dict[str, Any]:
        client = await IncomeService._client(client_id)

        declaration = IncomeDeclaration(
            client_id=client.id,
            person_type=client.person_type,
            sector=payload.sector,
            activity=payload.activity,
            annual_income=payload.annual_income,
            currency=payload.currency,
            recorded_by=actor,
            recorded_at=datetime.utcnow(),
        )
        await declaration.insert()
        logger.info("Income declaration %s recorded for client %s", declaration.id, client_id)
        return document_to_dict(declaration)

    # Full history, newest first
    @staticmethod
    async def list_income(client_id: str) -> List[Dict[str, Any]]:
        client = await IncomeService._client(client_id)
        declarations = await IncomeDeclaration.find(
            IncomeDeclaration.client_id == client.id
        ).sort(NEWEST_FIRST).to_list()
        return [document_to_dict(d) for d in declarations]

    @staticmethod
    async def latest_income(client_id: str) -> Optional[Dict[str, Any]]:
        client = await IncomeService._client(client_id)
        declaration = await IncomeDeclaration.find(
            IncomeDeclaration.client_id == client.id
        ).sort(NEWEST_FIRST).first_or_none()
        return document_to_dict(declaration) if declaration else None


income_service = IncomeService()
