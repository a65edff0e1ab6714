"""Person-type rules for client records.

Pydantic schemas check shapes and lengths; the functions here check the rules
that depend on the person-type (which name fields are mandatory, which RFC
layout applies, minimum age).
"""
import re
from datetime import date
from typing import Any, Dict, List, Optional

from onboarding.schemas.enums import PersonType

RFC_PATTERNS = {
    PersonType.individual: re.compile(r"^[A-ZÑ&]{4}[0-9]{6}[A-Z0-9]{3}$"),
    PersonType.individual_business: re.compile(r"^[A-ZÑ&]{4}[0-9]{6}[A-Z0-9]{3}$"),
    PersonType.corporate: re.compile(r"^[A-ZÑ&]{3}[0-9]{6}[A-Z0-9]{3}$"),
}
CURP_PATTERN = re.compile(r"^[A-Z]{4}[0-9]{6}[HM][A-Z]{5}[0-9A-Z][0-9]$")
POSTAL_CODE_PATTERN = re.compile(r"^[0-9]{5}$")

INDIVIDUAL_REQUIRED_FIELDS = ("first_name", "last_name", "birth_date")
CORPORATE_REQUIRED_FIELDS = ("legal_name", "incorporation_date")


def normalize_rfc(rfc: Optional[str]) -> Optional[str]:
    return rfc.strip().upper() if rfc else rfc


def is_valid_rfc(rfc: str, person_type: PersonType) -> bool:
    if not rfc:
        return False
    return bool(RFC_PATTERNS[PersonType(person_type)].match(normalize_rfc(rfc)))


def is_valid_curp(curp: str) -> bool:
    return bool(curp) and bool(CURP_PATTERN.match(curp.strip().upper()))


def age_on(birth_date: date, today: date) -> int:
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def client_errors(data: Dict[str, Any], today: Optional[date] = None, minimum_age: int = 18) -> List[Dict[str, str]]:
    """Return field-level errors for a client registration payload.

    ``data`` is the dumped registration schema. An empty list means the
    payload satisfies every person-type rule.
    """
    today = today or date.today()
    errors: List[Dict[str, str]] = []
    person_type = PersonType(data["person_type"])

    required = INDIVIDUAL_REQUIRED_FIELDS if person_type.is_individual else CORPORATE_REQUIRED_FIELDS
    for field in required:
        if _missing(data.get(field)):
            errors.append({"field": field, "message": f"{field} is required for person type {person_type.value}"})

    rfc = data.get("rfc")
    if _missing(rfc):
        errors.append({"field": "rfc", "message": "rfc is required"})
    elif not is_valid_rfc(rfc, person_type):
        expected = 12 if person_type == PersonType.corporate else 13
        errors.append({
            "field": "rfc",
            "message": f"rfc does not match the {expected}-character format for person type {person_type.value}",
        })

    curp = data.get("curp")
    if not _missing(curp):
        if not person_type.is_individual:
            errors.append({"field": "curp", "message": "curp only applies to individuals"})
        elif not is_valid_curp(curp):
            errors.append({"field": "curp", "message": "curp does not have a valid format"})

    birth_date = data.get("birth_date")
    if person_type.is_individual and birth_date is not None:
        if birth_date > today:
            errors.append({"field": "birth_date", "message": "birth_date cannot be in the future"})
        elif age_on(birth_date, today) < minimum_age:
            errors.append({"field": "birth_date", "message": f"client must be at least {minimum_age} years old"})
    if not person_type.is_individual and birth_date is not None:
        errors.append({"field": "birth_date", "message": "birth_date does not apply to corporate clients"})

    incorporation_date = data.get("incorporation_date")
    if incorporation_date is not None:
        if person_type.is_individual:
            errors.append({"field": "incorporation_date", "message": "incorporation_date only applies to corporate clients"})
        elif incorporation_date > today:
            errors.append({"field": "incorporation_date", "message": "incorporation_date cannot be in the future"})

    address = data.get("address") or {}
    postal_code = address.get("postal_code")
    if not _missing(postal_code) and not POSTAL_CODE_PATTERN.match(postal_code):
        errors.append({"field": "address.postal_code", "message": "postal_code must have exactly 5 digits"})

    return errors


def display_name(client) -> str:
    if PersonType(client.person_type) == PersonType.corporate:
        return client.legal_name or ""
    parts = (client.first_name, client.last_name, client.second_last_name)
    return " ".join(p for p in parts if p).strip()


BASIC_FIELDS = {
    PersonType.individual: ("rfc", "email", "first_name", "last_name", "birth_date", "curp"),
    PersonType.individual_business: ("rfc", "email", "first_name", "last_name", "birth_date", "curp"),
    PersonType.corporate: ("rfc", "email", "legal_name", "incorporation_date", "legal_representative"),
}
ADDRESS_FIELDS = ("street", "exterior_number", "neighborhood", "postal_code", "city", "state")


def _value(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def basic_data_complete(client) -> bool:
    """Identity fields a person-type needs before its file can be processed."""
    fields = BASIC_FIELDS[PersonType(_value(client, "person_type"))]
    return not any(_missing(_value(client, field)) for field in fields)


def address_complete(client) -> bool:
    address = _value(client, "address")
    if not address:
        return False
    return not any(_missing(_value(address, field)) for field in ADDRESS_FIELDS)
