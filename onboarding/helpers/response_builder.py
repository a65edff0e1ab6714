import math
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from beanie.odm.fields import PydanticObjectId
from bson import ObjectId


def convert_objectid(obj):
    """Convert ObjectId values (and dates) to JSON-friendly types."""
    if isinstance(obj, dict):
        return {key: convert_objectid(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple, set)):
        return [convert_objectid(item) for item in obj]
    elif isinstance(obj, (PydanticObjectId, ObjectId)):
        return str(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, Decimal):
        return float(obj)
    return obj


def document_to_dict(document) -> Dict[str, Any]:
    """Dump a Beanie document with ``id`` as a string."""
    data = document.model_dump(mode="json")
    data["id"] = str(document.id) if document.id is not None else None
    data.pop("revision_id", None)
    return convert_objectid(data)


def build_pagination(total: int, page: int, limit: int) -> Dict[str, Any]:
    pages = math.ceil(total / limit) if limit else 0
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": pages,
        "hasNext": page < pages,
        "hasPrev": page > 1,
    }


def success_response(message: str, data: Any = None, pagination: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = convert_objectid(data)
    if pagination is not None:
        body["pagination"] = pagination
    return body


def error_response(message: str, code: str, details: Any = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code}
    if details is not None:
        error["details"] = convert_objectid(details)
    return {"success": False, "message": message, "error": error}
