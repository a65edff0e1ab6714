import onboarding.services.application_service as aps
from onboarding.core.exceptions import InvalidStateError, ValidationError

APP_ID = "64b0000000000000000000bb"
CLIENT_ID = "64b0000000000000000000aa"


def test_create_application_keeps_product_order(api, login_as, monkeypatch):
    login_as("OPERADOR")

    async def fake_create(payload, actor=None):
        return {
            "id": APP_ID,
            "folio": "SOL-20240615-AB12CD34",
            "status": "initiated",
            "products": [p.model_dump(mode="json") for p in payload.products],
        }

    monkeypatch.setattr(aps.application_service, "create_application", fake_create)

    resp = api.post("/solicitudes", json={
        "client_id": CLIENT_ID,
        "products": [
            {"product_code": "FA", "amount": 350000, "term_months": 48},
            {"product_code": "AH", "amount": 0},
            {"product_code": "CS", "amount": 50000, "term_months": 12},
        ],
    })
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["status"] == "initiated"
    assert [p["product_code"] for p in data["products"]] == ["FA", "AH", "CS"]


def test_invalid_product_line_is_422(api, login_as, monkeypatch):
    login_as("OPERADOR")

    async def fake_create(payload, actor=None):
        raise ValidationError("Invalid requested products", details=[{"field": "products.0.term_months", "message": "bad"}])

    monkeypatch.setattr(aps.application_service, "create_application", fake_create)

    resp = api.post("/solicitudes", json={
        "client_id": CLIENT_ID,
        "products": [{"product_code": "FA", "amount": 350000, "term_months": 0}],
    })
    assert resp.status_code == 422
    assert resp.json()["error"]["details"][0]["field"] == "products.0.term_months"


def test_unknown_product_code_is_422(api, login_as):
    login_as("OPERADOR")
    resp = api.post("/solicitudes", json={
        "client_id": CLIENT_ID,
        "products": [{"product_code": "XX", "amount": 1}],
    })
    assert resp.status_code == 422


def test_transition_supports_put_and_patch(api, login_as, monkeypatch):
    login_as("ADMIN")
    calls = []

    async def fake_transition(application_id, target_status, actor=None, comment=None):
        calls.append(target_status.value)
        return {"id": application_id, "folio": "SOL-20240615-AB12CD34", "status": target_status.value}

    monkeypatch.setattr(aps.application_service, "transition", fake_transition)

    assert api.put(f"/solicitudes/{APP_ID}", json={"status": "in_review"}).status_code == 200
    assert api.patch(f"/solicitudes/{APP_ID}", json={"status": "approved"}).status_code == 200
    assert calls == ["in_review", "approved"]


def test_invalid_transition_is_409(api, login_as, monkeypatch):
    login_as("ADMIN")

    async def fake_transition(application_id, target_status, actor=None, comment=None):
        raise InvalidStateError("Application is already approved", current="approved", target=target_status.value)

    monkeypatch.setattr(aps.application_service, "transition", fake_transition)

    resp = api.patch(f"/solicitudes/{APP_ID}", json={"status": "in_review"})
    assert resp.status_code == 409
    assert resp.json()["error"] == {
        "code": "INVALID_STATE",
        "details": {"current": "approved", "target": "in_review"},
    }


def test_list_applications_filters(api, login_as, monkeypatch):
    login_as("AUDITOR")
    captured = {}

    async def fake_list(params):
        captured["params"] = params
        return {"items": [], "pagination": {"total": 0, "page": 1, "limit": 10, "pages": 0, "hasNext": False, "hasPrev": False}}

    monkeypatch.setattr(aps.application_service, "list_applications", fake_list)

    resp = api.get(f"/solicitudes?client_id={CLIENT_ID}&status=in_review&product_code=FA")
    assert resp.status_code == 200
    assert resp.json()["data"] == []
    params = captured["params"]
    assert (params.client_id, params.status.value, params.product_code.value) == (CLIENT_ID, "in_review", "FA")


def test_add_product_line(api, login_as, monkeypatch):
    login_as("OPERADOR")
    captured = {}

    async def fake_add(application_id, payload, actor=None):
        captured.update(application_id=application_id, code=payload.product_code.value, actor=actor)
        return {"id": application_id, "folio": "SOL-20240615-AB12CD34", "products": [{"product_code": "CH"}]}

    monkeypatch.setattr(aps.application_service, "add_product", fake_add)

    resp = api.post(f"/solicitudes/{APP_ID}/productos", json={"product_code": "CH", "amount": 0})
    assert resp.status_code == 201
    assert captured == {"application_id": APP_ID, "code": "CH", "actor": "operador"}


def test_editing_lines_of_a_reviewed_application_is_409(api, login_as, monkeypatch):
    login_as("OPERADOR")

    async def fake_update(*args, **kwargs):
        raise InvalidStateError("Products can only change while the application is initiated (it is in_review)", current="in_review")

    monkeypatch.setattr(aps.application_service, "update_product", fake_update)

    resp = api.put(f"/solicitudes/{APP_ID}/productos/64b0000000000000000000cc", json={"amount": 1000})
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "INVALID_STATE"


def test_operator_cannot_remove_lines(api, login_as):
    login_as("OPERADOR")
    resp = api.delete(f"/solicitudes/{APP_ID}/productos/64b0000000000000000000cc")
    assert resp.status_code == 403


def test_admin_removes_a_line(api, login_as, monkeypatch):
    login_as("ADMIN")

    async def fake_remove(application_id, line_id, actor=None):
        return {"id": application_id, "folio": "SOL-20240615-AB12CD34", "products": []}

    monkeypatch.setattr(aps.application_service, "remove_product", fake_remove)

    resp = api.delete(f"/solicitudes/{APP_ID}/productos/64b0000000000000000000cc")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Product removed from the application"
