from datetime import date

from onboarding.schemas.enums import PersonType
from onboarding.workflow.validators import (
    address_complete,
    age_on,
    basic_data_complete,
    client_errors,
    is_valid_curp,
    is_valid_rfc,
)

TODAY = date(2024, 6, 15)


def individual(**overrides):
    data = {
        "person_type": "PF",
        "rfc": "JUPA850101ABC",
        "email": "juan.perez@email.com",
        "curp": "PEAJ850101HDFRRN09",
        "first_name": "Juan",
        "last_name": "Pérez",
        "birth_date": date(1985, 1, 1),
        "address": {"postal_code": "06600"},
    }
    data.update(overrides)
    return data


def corporate(**overrides):
    data = {
        "person_type": "PM",
        "rfc": "ABC010101XY9",
        "email": "contacto@empresa.mx",
        "legal_name": "Empresa SA de CV",
        "incorporation_date": date(2001, 1, 1),
    }
    data.update(overrides)
    return data


def fields(errors):
    return {e["field"] for e in errors}


def test_rfc_length_depends_on_person_type():
    assert is_valid_rfc("JUPA850101ABC", PersonType.individual)
    assert is_valid_rfc("JUPA850101ABC", PersonType.individual_business)
    assert not is_valid_rfc("JUPA850101ABC", PersonType.corporate)
    assert is_valid_rfc("ABC010101XY9", PersonType.corporate)
    assert not is_valid_rfc("ABC010101XY9", PersonType.individual)


def test_rfc_is_normalized_before_matching():
    assert is_valid_rfc("  jupa850101abc ", PersonType.individual)
    assert is_valid_rfc("ÑAN&850101AB1", "PF")


def test_curp_format():
    assert is_valid_curp("PEAJ850101HDFRRN09")
    assert not is_valid_curp("PEAJ850101XDFRRN09")
    assert not is_valid_curp("")


def test_age_on_birthday_boundary():
    assert age_on(date(2006, 6, 15), TODAY) == 18
    assert age_on(date(2006, 6, 16), TODAY) == 17


def test_valid_individual_has_no_errors():
    assert client_errors(individual(), today=TODAY) == []


def test_valid_corporate_has_no_errors():
    assert client_errors(corporate(), today=TODAY) == []


def test_individual_requires_names_and_birth_date():
    errors = client_errors(individual(first_name=None, last_name="  ", birth_date=None), today=TODAY)
    assert {"first_name", "last_name", "birth_date"} <= fields(errors)


def test_corporate_requires_legal_name_and_incorporation_date():
    errors = client_errors(corporate(legal_name=None, incorporation_date=None), today=TODAY)
    assert fields(errors) == {"legal_name", "incorporation_date"}


def test_minor_is_rejected():
    errors = client_errors(individual(birth_date=date(2010, 1, 1)), today=TODAY)
    assert fields(errors) == {"birth_date"}
    assert "18" in errors[0]["message"]


def test_minimum_age_is_configurable():
    assert client_errors(individual(birth_date=date(2010, 1, 1)), today=TODAY, minimum_age=14) == []


def test_future_dates_are_rejected():
    assert fields(client_errors(individual(birth_date=date(2030, 1, 1)), today=TODAY)) == {"birth_date"}
    assert fields(client_errors(corporate(incorporation_date=date(2030, 1, 1)), today=TODAY)) == {"incorporation_date"}


def test_corporate_rfc_with_individual_length_is_rejected():
    errors = client_errors(corporate(rfc="JUPA850101ABC"), today=TODAY)
    assert fields(errors) == {"rfc"}
    assert "12" in errors[0]["message"]


def test_curp_does_not_apply_to_corporate():
    errors = client_errors(corporate(curp="PEAJ850101HDFRRN09"), today=TODAY)
    assert fields(errors) == {"curp"}


def test_postal_code_needs_five_digits():
    errors = client_errors(individual(address={"postal_code": "6600"}), today=TODAY)
    assert fields(errors) == {"address.postal_code"}


def test_basic_data_depends_on_person_type():
    assert basic_data_complete(individual())
    assert not basic_data_complete(individual(curp=None))
    assert not basic_data_complete(corporate())
    assert basic_data_complete(corporate(legal_representative="María López"))


def test_address_needs_every_street_field():
    full = {
        "street": "Av. Reforma",
        "exterior_number": "222",
        "neighborhood": "Juárez",
        "postal_code": "06600",
        "city": "Ciudad de México",
        "state": "CDMX",
    }
    assert address_complete({"address": full})
    assert not address_complete({"address": {**full, "city": " "}})
    assert not address_complete(individual())
    assert not address_complete({"address": None})
