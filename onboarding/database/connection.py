import logging
import re

import motor.motor_asyncio
from beanie import init_beanie

from onboarding.core.config import settings
from onboarding.database.models import DOCUMENT_MODELS

logger = logging.getLogger(__name__)

# Global database instance
database = None


def mask_mongo_uri(uri: str) -> str:
    """Hide credentials before a connection URI reaches the logs."""
    if not uri:
        return "mongodb://<redacted>"
    m = re.match(r"(?P<prefix>mongodb(?:\+srv)?://)(?:(?P<creds>[^@]+)@)?(?P<rest>.+)", uri)
    if not m:
        return "mongodb://<redacted>"
    host_part = m.group("rest").split("/")[0]
    return f"{m.group('prefix')}***@{host_part}"


async def init_db():
    global database

    mongodb_uri = settings.MONGODB_URI
    mongodb_db_name = settings.MONGODB_DB_NAME

    if not mongodb_uri:
        logger.error("MONGODB_URI is not set in environment variables")
        raise RuntimeError("Configuration error: MONGODB_URI is not set")
    if not mongodb_db_name:
        logger.error("MONGODB_DB_NAME is not set in environment variables")
        raise RuntimeError("Configuration error: MONGODB_DB_NAME is not set")

    logger.info("Connecting to MongoDB at %s (database %s)", mask_mongo_uri(mongodb_uri), mongodb_db_name)

    client_kwargs = {
        "serverSelectionTimeoutMS": 30000,
        "connectTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "retryWrites": True,
    }
    if settings.MONGODB_TLS:
        client_kwargs["tls"] = True
    client = motor.motor_asyncio.AsyncIOMotorClient(mongodb_uri, **client_kwargs)

    try:
        await client.admin.command("ping")
        logger.info("Successfully connected to MongoDB")

        database = client[mongodb_db_name]
        # Creates the unique indexes declared on the models.
        await init_beanie(database, document_models=DOCUMENT_MODELS)
        logger.info("Beanie initialized with %d document models", len(DOCUMENT_MODELS))
        return database
    except Exception as e:
        logger.error("Database initialization failed: %s (%s)", e, type(e).__name__)
        raise

