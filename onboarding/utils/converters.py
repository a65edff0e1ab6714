from datetime import date, datetime, time
from typing import Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId

from onboarding.core.exceptions import NotFoundError


def parse_object_id(value: str, resource: str) -> PydanticObjectId:
    """Parse a path id; a malformed id is reported as a missing resource."""
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundError(resource, value)


def to_datetime(value: Optional[date]) -> Optional[datetime]:
    """Midnight datetime for a calendar date (BSON has no date type)."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def to_date(value) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value
