from datetime import date, timedelta

import pytest
from beanie import PydanticObjectId

from onboarding.core.exceptions import ConflictError, InvalidStateError, NotFoundError, ValidationError
from onboarding.database.models import Client, DocumentSubmission, DocumentType, ProductApplication
from onboarding.schemas import (
    ApplicationCreate,
    ClientCreate,
    ClientUpdate,
    DocumentTypeCreate,
    DocumentTypeUpdate,
    IncomeCreate,
    RequestedProductSchema,
    RequestedProductUpdate,
)
from onboarding.schemas.enums import ApplicationStatus, ReviewDecision, SubmissionStatus
from onboarding.services.application_service import application_service
from onboarding.services.client_service import ClientService, client_service
from onboarding.services.document_service import document_service
from onboarding.services.income_service import income_service
from onboarding.utils.converters import to_datetime
from onboarding.utils.folio import is_valid_folio

ADDRESS = {
    "street": "Av. Reforma",
    "exterior_number": "222",
    "neighborhood": "Juárez",
    "postal_code": "06600",
    "city": "Ciudad de México",
    "state": "CDMX",
}


def individual(**overrides):
    data = {
        "person_type": "PF",
        "rfc": "JUPA850101ABC",
        "email": "juan.perez@email.com",
        "curp": "PEPJ850101HDFRRN09",
        "first_name": "Juan",
        "last_name": "Pérez",
        "birth_date": date(1985, 1, 1),
        "address": ADDRESS,
    }
    data.update(overrides)
    return ClientCreate(**data)


async def register(**overrides):
    return await client_service.register_client(individual(**overrides), actor="operador")


async def submission(client_id, type_code, status=SubmissionStatus.approved, expiration=None, document_date=None):
    doc_type = await DocumentType.find_one(DocumentType.code == type_code)
    doc = DocumentSubmission(
        client_id=PydanticObjectId(client_id),
        document_type_id=doc_type.id,
        storage_locator=f"clients/{client_id}/{type_code}/file.pdf",
        original_filename="file.pdf",
        content_type="application/pdf",
        size_bytes=1024,
        document_date=to_datetime(document_date or date.today()),
        expiration_date=to_datetime(expiration),
        status=status,
    )
    await doc.insert()
    return doc


async def test_duplicate_email_is_a_conflict(memory_db):
    await register()
    with pytest.raises(ConflictError) as exc_info:
        await register(rfc="LOMA900202XYZ")
    assert exc_info.value.details == {"field": "email"}


async def test_unique_index_is_the_authority_when_the_precheck_misses(memory_db, monkeypatch):
    await register()

    async def no_precheck(*args, **kwargs):
        return None

    monkeypatch.setattr(ClientService, "_ensure_unique", no_precheck)
    with pytest.raises(ConflictError):
        await register(rfc="LOMA900202XYZ")
    assert await Client.find_all().count() == 1


async def test_update_cannot_clear_rfc_or_email(memory_db):
    client = await register()
    with pytest.raises(ValidationError) as exc_info:
        await client_service.update_client(client["id"], ClientUpdate(rfc=None, email=None))
    assert {d["field"] for d in exc_info.value.details} == {"rfc", "email"}

    stored = await Client.get(PydanticObjectId(client["id"]))
    assert (stored.rfc, stored.email) == ("JUPA850101ABC", "juan.perez@email.com")


async def test_update_cannot_clear_a_required_name(memory_db):
    client = await register()
    with pytest.raises(ValidationError) as exc_info:
        await client_service.update_client(client["id"], ClientUpdate(first_name=None))
    assert exc_info.value.details[0]["field"] == "first_name"


async def test_update_can_clear_optional_fields(memory_db):
    client = await register(phone="5512345678")
    updated = await client_service.update_client(client["id"], ClientUpdate(phone=None, email="Nuevo@Email.com"))
    assert updated["phone"] is None
    assert updated["email"] == "nuevo@email.com"


async def test_update_rejects_rfc_of_the_wrong_layout(memory_db):
    client = await register()
    with pytest.raises(ValidationError) as exc_info:
        await client_service.update_client(client["id"], ClientUpdate(rfc="ABC850101AB1"))
    assert exc_info.value.details[0]["field"] == "rfc"


async def test_review_of_an_already_reviewed_document(memory_db):
    await document_service.seed_document_types()
    client = await register()
    doc = await submission(client["id"], "INE", status=SubmissionStatus.approved)

    with pytest.raises(InvalidStateError) as exc_info:
        await document_service.review_document(str(doc.id), ReviewDecision.rejected, reviewer="admin")
    assert exc_info.value.details == {"current": "approved", "target": "rejected"}


async def test_review_of_a_missing_document(memory_db):
    with pytest.raises(NotFoundError):
        await document_service.review_document("64b0000000000000000000dd", ReviewDecision.approved)


async def test_review_approves_a_pending_document(memory_db):
    await document_service.seed_document_types()
    client = await register()
    doc = await submission(client["id"], "INE", status=SubmissionStatus.pending)

    reviewed = await document_service.review_document(str(doc.id), ReviewDecision.approved, "ok", reviewer="admin")
    assert (reviewed["status"], reviewed["reviewed_by"]) == ("approved", "admin")


async def create_application(client_id, products):
    return await application_service.create_application(
        ApplicationCreate(client_id=client_id, products=products), actor="operador"
    )


async def test_application_embeds_lines_in_order(memory_db):
    client = await register()
    created = await create_application(client["id"], [
        {"product_code": "FA", "amount": 350000, "term_months": 48},
        {"product_code": "AH", "amount": 0},
        {"product_code": "CS", "amount": 50000, "term_months": 12},
    ])
    assert is_valid_folio(created["folio"])

    stored = await ProductApplication.get(PydanticObjectId(created["id"]))
    assert [p.product_code.value for p in stored.products] == ["FA", "AH", "CS"]
    assert [p.amount for p in stored.products] == [350000, 0, 50000]
    assert len({p.line_id for p in stored.products}) == 3
    assert stored.status == ApplicationStatus.initiated
    assert stored.status_history[0].to_status == ApplicationStatus.initiated


async def test_application_can_be_read_by_folio(memory_db):
    client = await register()
    created = await create_application(client["id"], [{"product_code": "AH", "amount": 0}])
    fetched = await application_service.get_application(created["folio"])
    assert fetched["id"] == created["id"]
    assert fetched["products"][0]["product_name"] == "Cuenta de Ahorro"


async def test_transition_lost_race(memory_db, monkeypatch):
    client = await register()
    created = await create_application(client["id"], [{"product_code": "AH", "amount": 0}])
    stale = await ProductApplication.get(PydanticObjectId(created["id"]))
    await application_service.transition(created["id"], ApplicationStatus.in_review, actor="admin")

    async def stale_get(oid):
        return stale

    monkeypatch.setattr(ProductApplication, "get", stale_get)
    with pytest.raises(InvalidStateError) as exc_info:
        await application_service.transition(created["id"], ApplicationStatus.cancelled, actor="operador")
    assert exc_info.value.details == {"current": "initiated", "target": "cancelled"}


async def test_transition_records_history(memory_db):
    client = await register()
    created = await create_application(client["id"], [{"product_code": "AH", "amount": 0}])
    await application_service.transition(created["id"], ApplicationStatus.in_review, actor="admin")
    approved = await application_service.transition(created["id"], ApplicationStatus.approved, actor="admin", comment="ok")

    assert approved["status"] == "approved"
    assert [(h["from_status"], h["to_status"]) for h in approved["status_history"]] == [
        (None, "initiated"),
        ("initiated", "in_review"),
        ("in_review", "approved"),
    ]


async def test_product_lines_can_be_added_edited_and_removed(memory_db):
    client = await register()
    created = await create_application(client["id"], [{"product_code": "AH", "amount": 0}])

    added = await application_service.add_product(
        created["id"], RequestedProductSchema(product_code="CS", amount=80000, term_months=24)
    )
    assert [p["product_code"] for p in added["products"]] == ["AH", "CS"]

    line_id = added["products"][1]["line_id"]
    edited = await application_service.update_product(created["id"], line_id, RequestedProductUpdate(term_months=36))
    assert edited["products"][1]["term_months"] == 36
    assert edited["products"][1]["line_id"] == line_id

    removed = await application_service.remove_product(created["id"], added["products"][0]["line_id"])
    assert [p["product_code"] for p in removed["products"]] == ["CS"]


async def test_product_edit_is_checked_against_product_rules(memory_db):
    client = await register()
    created = await create_application(client["id"], [{"product_code": "CS", "amount": 80000, "term_months": 24}])
    line_id = created["products"][0]["line_id"]

    with pytest.raises(ValidationError) as exc_info:
        await application_service.update_product(created["id"], line_id, RequestedProductUpdate(term_months=0))
    assert exc_info.value.details[0]["field"] == "products.0.term_months"

    with pytest.raises(ValidationError):
        await application_service.remove_product(created["id"], line_id)


async def test_products_are_frozen_after_initiated(memory_db):
    client = await register()
    created = await create_application(client["id"], [{"product_code": "AH", "amount": 0}])
    await application_service.transition(created["id"], ApplicationStatus.in_review)

    with pytest.raises(InvalidStateError):
        await application_service.add_product(created["id"], RequestedProductSchema(product_code="CH", amount=0))


async def test_product_edit_lost_race(memory_db, monkeypatch):
    client = await register()
    created = await create_application(client["id"], [{"product_code": "AH", "amount": 0}])
    stale = await ProductApplication.get(PydanticObjectId(created["id"]))
    await application_service.add_product(created["id"], RequestedProductSchema(product_code="CH", amount=0))

    async def stale_get(oid):
        return stale

    monkeypatch.setattr(ProductApplication, "get", stale_get)
    with pytest.raises(InvalidStateError):
        await application_service.add_product(created["id"], RequestedProductSchema(product_code="CS", amount=1000, term_months=6))

    stored = await ProductApplication.find_one(ProductApplication.id == PydanticObjectId(created["id"]))
    assert [p.product_code.value for p in stored.products] == ["AH", "CH"]


async def test_unknown_line_is_not_found(memory_db):
    client = await register()
    created = await create_application(client["id"], [{"product_code": "AH", "amount": 0}])
    with pytest.raises(NotFoundError):
        await application_service.remove_product(created["id"], "64b0000000000000000000ff")


async def test_completeness_reports_income_and_client_data(memory_db):
    await document_service.seed_document_types()
    client = await register()
    for code in ("INE", "CURP", "EFIRMA"):
        await submission(client["id"], code)

    before = await document_service.compute_completeness(client["id"])
    assert before["percentage"] == 60.0
    assert before["has_income"] is False
    assert before["current_income"] is None
    assert before["basic_data_complete"] is True
    assert before["address_complete"] is True
    assert before["can_proceed"] is True
    assert before["file_complete"] is False

    await income_service.record_income(
        client["id"], IncomeCreate(sector="Servicios", activity="Consultoría", annual_income=480000)
    )
    after = await document_service.compute_completeness(client["id"])
    assert after["has_income"] is True
    assert after["current_income"]["annual_income"] == 480000
    assert after["percentage"] == before["percentage"]


async def test_completeness_without_address_cannot_proceed(memory_db):
    await document_service.seed_document_types()
    client = await register(address=None, curp=None)

    result = await document_service.compute_completeness(client["id"])
    assert result["basic_data_complete"] is False
    assert result["address_complete"] is False
    assert result["can_proceed"] is False


async def test_client_detail_names_requested_products(memory_db):
    client = await register()
    await create_application(client["id"], [{"product_code": "FA", "amount": 350000, "term_months": 48}])
    detail = await client_service.get_client(client["id"])
    assert detail["applications"][0]["products"][0]["product_name"] == "Financiamiento Automotriz"


async def test_expired_documents_listing(memory_db):
    await document_service.seed_document_types()
    client = await register()
    today = date.today()
    expired = await submission(client["id"], "CSF", SubmissionStatus.pending, expiration=today - timedelta(days=3))
    await submission(client["id"], "COMP_DOM", SubmissionStatus.rejected, expiration=today - timedelta(days=10))
    await submission(client["id"], "CSF", SubmissionStatus.approved, expiration=today + timedelta(days=20))

    items = await document_service.list_expired_documents(today=today)
    assert [i["id"] for i in items] == [str(expired.id)]
    assert items[0]["days_expired"] == 3


async def test_returning_client_must_renew_expired_documents(memory_db):
    await document_service.seed_document_types()
    client = await register()
    await submission(client["id"], "CSF", expiration=date.today() - timedelta(days=1))

    result = await client_service.evaluate_returning_client("jupa850101abc")
    assert result["returning_client"] is True
    assert result["can_reuse_documents"] is False
    assert [d["code"] for d in result["documents_to_renew"]] == ["CSF"]


async def test_unknown_rfc_is_a_new_client(memory_db):
    result = await client_service.evaluate_returning_client("LOMA900202XYZ")
    assert result["returning_client"] is False
    with pytest.raises(NotFoundError):
        await client_service.find_by_rfc("LOMA900202XYZ")
    with pytest.raises(ValidationError):
        await client_service.find_by_rfc("ABC")


async def test_find_by_rfc_reports_profile_flags(memory_db):
    await register(address=None)
    found = await client_service.find_by_rfc("JUPA850101ABC")
    assert found["client"]["rfc"] == "JUPA850101ABC"
    assert (found["basic_data_complete"], found["address_complete"]) == (True, False)


async def test_document_type_administration(memory_db):
    created = await document_service.create_document_type(
        DocumentTypeCreate(code="rfc_cert", name="Cédula RFC", applies_to=["PM", "PF"], validity_days=180)
    )
    assert created["code"] == "RFC_CERT"
    assert created["applies_to"] == ["PF", "PM"]

    with pytest.raises(ConflictError):
        await document_service.create_document_type(
            DocumentTypeCreate(code="RFC_CERT", name="Otra", applies_to=["PF"])
        )

    updated = await document_service.update_document_type(created["id"], DocumentTypeUpdate(validity_days=None, optional=True))
    assert (updated["validity_days"], updated["optional"]) == (None, True)

    with pytest.raises(ValidationError):
        await document_service.update_document_type(created["id"], DocumentTypeUpdate(name=None))

    await document_service.delete_document_type(created["id"])
    assert await DocumentType.get(PydanticObjectId(created["id"])) is None


async def test_document_type_in_use_cannot_be_deleted(memory_db):
    await document_service.seed_document_types()
    client = await register()
    doc = await submission(client["id"], "INE")

    with pytest.raises(ConflictError):
        await document_service.delete_document_type(str(doc.document_type_id))
