import re
from datetime import datetime

from onboarding.product_catalog import is_credit_product, product_name, validate_requested_products
from onboarding.schemas.enums import ProductCode
from onboarding.utils.folio import generate_folio, is_valid_folio


def line(code, amount, term=None):
    return {"product_code": code, "amount": amount, "term_months": term}


def test_auto_financing_with_term_48_is_valid():
    assert validate_requested_products([line("FA", 350000, 48)]) == []


def test_auto_financing_with_term_0_is_rejected():
    errors = validate_requested_products([line("FA", 350000, 0)])
    assert [e["field"] for e in errors] == ["products.0.term_months"]


def test_credit_products_need_a_term():
    errors = validate_requested_products([line("CS", 1000)])
    assert errors[0]["field"] == "products.0.term_months"


def test_term_ceiling_is_sixty_months():
    assert validate_requested_products([line("AR", 1000, 60)]) == []
    assert validate_requested_products([line("AR", 1000, 61)])


def test_non_credit_products_accept_zero_amount_without_term():
    assert validate_requested_products([line("AH", 0), line("CH", 0)]) == []


def test_credit_products_need_a_positive_amount():
    errors = validate_requested_products([line("CC", 0, 12)])
    assert errors[0]["field"] == "products.0.amount"


def test_negative_and_excessive_amounts_are_rejected():
    errors = validate_requested_products([line("AH", -1), line("CS", 10_000_001, 12)])
    assert [e["field"] for e in errors] == ["products.0.amount", "products.1.amount"]


def test_empty_request_is_rejected():
    assert validate_requested_products([])[0]["field"] == "products"


def test_unknown_product_code():
    errors = validate_requested_products([line("ZZ", 1)])
    assert errors[0]["field"] == "products.0.product_code"


def test_errors_reference_line_positions_in_order():
    errors = validate_requested_products([line("FA", 100, 12), line("CS", 0, 0), line("AH", 0)])
    assert {e["field"] for e in errors} == {"products.1.amount", "products.1.term_months"}


def test_catalog_lookups():
    assert is_credit_product(ProductCode.leasing)
    assert not is_credit_product("AH")
    assert product_name("FA") == "Financiamiento Automotriz"


def test_folio_format():
    folio = generate_folio(datetime(2024, 1, 31, 12, 0))
    assert re.match(r"^SOL-20240131-[A-Z0-9]{8}$", folio)
    assert is_valid_folio(folio)


def test_folios_are_not_repeated():
    folios = {generate_folio() for _ in range(200)}
    assert len(folios) == 200


def test_is_valid_folio_rejects_malformed_values():
    assert not is_valid_folio("")
    assert not is_valid_folio("SOL-2024013-ABCDEFGH")
    assert not is_valid_folio("APP-20240131-ABCDEFGH")
    assert not is_valid_folio("SOL-20240131-abcdefgh")
