"""KYC document completeness for a client.

Everything here is a pure function over catalog entries and submissions so the
same rules serve the API and the tests. Catalog entries need ``id``, ``code``,
``name``, ``applies_to``, ``validity_days`` and ``optional``; submissions need
``id``, ``document_type_id``, ``status``, ``expiration_date`` and
``uploaded_at``. Dicts and objects are both accepted.
"""
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional

from onboarding.schemas.enums import PersonType, SubmissionStatus
from onboarding.workflow.validators import address_complete, basic_data_complete

PROCEED_MIN_PERCENTAGE = 50.0
BLOCKING_STATES = ("expired", "rejected")


def _get(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def _sort_key(submission: Any):
    uploaded_at = _get(submission, "uploaded_at") or datetime.min
    return (uploaded_at, str(_get(submission, "id") or ""))


def required_types_for(person_type: PersonType, catalog: Iterable[Any], include_optional: bool = False) -> List[Any]:
    """Catalog entries that apply to ``person_type``, in catalog order.

    Optional types are left out unless ``include_optional`` is set; a type
    whose ``applies_to`` does not contain the person-type is never returned.
    """
    person_type = PersonType(person_type)
    selected = []
    for doc_type in catalog:
        applies_to = {PersonType(p) for p in (_get(doc_type, "applies_to") or ())}
        if person_type not in applies_to:
            continue
        if _get(doc_type, "optional", False) and not include_optional:
            continue
        selected.append(doc_type)
    return selected


def expiration_for(document_date: Optional[date], validity_days: Optional[int]) -> Optional[date]:
    if document_date is None or not validity_days:
        return None
    return _as_date(document_date) + timedelta(days=validity_days)


def is_expired(submission: Any, today: date) -> bool:
    expiration = _as_date(_get(submission, "expiration_date"))
    return expiration is not None and expiration <= today


def is_active(submission: Any, today: date) -> bool:
    """Not rejected and not expired on ``today``."""
    status = SubmissionStatus(_get(submission, "status"))
    return status != SubmissionStatus.rejected and not is_expired(submission, today)


def round_percentage(approved: int, required: int) -> float:
    if required == 0:
        return 100.0
    raw = Decimal(approved) * Decimal(100) / Decimal(required)
    return float(raw.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def evaluate_type(doc_type: Any, submissions: Iterable[Any], today: date) -> Dict[str, Any]:
    """State of one required type given every submission the client made for it."""
    type_id = str(_get(doc_type, "id"))
    history = sorted(
        (s for s in submissions if str(_get(s, "document_type_id")) == type_id),
        key=_sort_key,
        reverse=True,
    )
    active = [s for s in history if is_active(s, today)]
    approved = [s for s in active if SubmissionStatus(_get(s, "status")) == SubmissionStatus.approved]

    current = None
    if approved:
        state = "approved"
        current = approved[0]
    elif active:
        state = "pending"
        current = active[0]
    elif not history:
        state = "missing"
    elif is_expired(history[0], today):
        state = "expired"
    else:
        state = "rejected"

    expiration = _as_date(_get(current, "expiration_date")) if current is not None else None
    return {
        "document_type_id": type_id,
        "code": _get(doc_type, "code"),
        "name": _get(doc_type, "name"),
        "state": state,
        "submission_id": str(_get(current, "id")) if current is not None else None,
        "expiration_date": expiration,
        "days_to_expiration": (expiration - today).days if expiration else None,
        "submitted": bool(active),
        "approved": bool(approved),
    }


def _next_action(types: List[Dict[str, Any]]) -> Optional[str]:
    for state, verb in (("expired", "Renew"), ("rejected", "Resubmit"), ("missing", "Upload")):
        for item in types:
            if item["state"] == state:
                return f"{verb} {item['name']}"
    if any(item["state"] == "pending" for item in types):
        return "Wait for pending documents to be reviewed"
    return None


def compute_completeness(
    person_type: PersonType,
    catalog: Iterable[Any],
    submissions: Iterable[Any],
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Completeness of a client's document set.

    Only approved active submissions move the percentage; pending ones count
    toward ``submitted``. With no required types the percentage is 100.0.
    """
    today = today or date.today()
    submissions = list(submissions)
    required = required_types_for(person_type, catalog)
    types = [evaluate_type(doc_type, submissions, today) for doc_type in required]

    approved = sum(1 for item in types if item["approved"])
    submitted = sum(1 for item in types if item["submitted"])
    return {
        "person_type": PersonType(person_type).value,
        "percentage": round_percentage(approved, len(types)),
        "required": len(types),
        "submitted": submitted,
        "approved": approved,
        "complete": approved == len(types),
        "missing": [item["code"] for item in types if not item["submitted"]],
        "next_action": _next_action(types),
        "types": types,
    }


def blocking_types(completeness: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Required types whose only submissions are expired or rejected."""
    return [item for item in completeness["types"] if item["state"] in BLOCKING_STATES]


def client_flags(client: Any, completeness: Dict[str, Any], current_income: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Client-data dimensions reported next to the document percentage.

    They never change ``percentage``. ``can_proceed`` needs the basic data and
    address, no blocking document and at least half of the required types
    approved.
    """
    basic = basic_data_complete(client)
    address = address_complete(client)
    return {
        "basic_data_complete": basic,
        "address_complete": address,
        "has_income": current_income is not None,
        "current_income": current_income,
        "file_complete": basic and address and completeness["complete"],
        "can_proceed": (
            basic
            and address
            and not blocking_types(completeness)
            and completeness["percentage"] >= PROCEED_MIN_PERCENTAGE
        ),
    }
