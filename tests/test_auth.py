import pytest

from conftest import AUTH


def test_login_ok_returns_password_as_token(client):
    resp = client.post("/api/login", json={"password": "admin_123"})
    assert resp.status_code == 200
    assert resp.mimetype == "application/json"
    assert resp.get_json() == {"token": "admin_123"}


def test_login_wrong_password(client):
    resp = client.post("/api/login", json={"password": "wrong"})
    assert resp.status_code == 401
    assert resp.get_data(as_text=True) == "Senha incorreta\n"


@pytest.mark.parametrize("body", ["{nope", "", '"admin_123"', '{"password": 123}'])
def test_login_invalid_json(client, body):
    resp = client.post("/api/login", data=body)
    assert resp.status_code == 400
    assert resp.get_data(as_text=True) == "JSON inválido\n"


@pytest.mark.parametrize("method", ["get", "put", "delete", "options"])
def test_login_other_methods(client, method):
    resp = getattr(client, method)("/api/login")
    assert resp.status_code == 405
    assert resp.get_data(as_text=True) == "Método inválido\n"


def test_login_uses_configured_password(app, client):
    app.config["ADMIN_PASSWORD"] = "outra"
    assert client.post("/api/login", json={"password": "admin_123"}).status_code == 401
    assert client.post("/api/login", json={"password": "outra"}).get_json() == {"token": "outra"}


SHIFT = {"sistema": "X", "periodo": "dia", "nome": "A", "contato": "c", "dataFim": "2025-01-01"}


@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": "wrong"},
    {"Authorization": "Bearer admin_123"},
    {"Authorization": "ADMIN_123"},
])
def test_mutations_without_correct_header_are_rejected(client, headers):
    resp = client.post("/api/plantoes", json=SHIFT, headers=headers)
    assert resp.status_code == 401
    assert resp.get_data(as_text=True) == "Acesso Negado.\n"
    assert client.get("/api/plantoes").get_json() == []


def test_rejected_requests_leave_storage_untouched(client, post_shift, post_person):
    shift = post_shift()
    person = post_person("Ana")
    bad = {"Authorization": "nope"}

    assert client.delete(f"/api/plantoes/{shift['id']}", headers=bad).status_code == 401
    assert client.post("/api/pessoas", json={"nome": "Bia", "contato": "b"}, headers=bad).status_code == 401
    assert client.put(f"/api/pessoas/{person['id']}", json={"nome": "Z", "contato": "z"}).status_code == 401
    assert client.delete(f"/api/pessoas/{person['id']}").status_code == 401

    assert client.get("/api/plantoes").get_json() == [shift]
    assert client.get("/api/pessoas").get_json() == [person]


def test_gate_runs_before_id_parsing(client):
    assert client.put("/api/pessoas/abc", json={}).status_code == 401
    assert client.put("/api/pessoas/abc", json={}, headers=AUTH).status_code == 400


@pytest.mark.parametrize("headers", [{}, {"Authorization": "qualquer"}, AUTH])
def test_reads_ignore_authorization(client, headers):
    assert client.get("/api/plantoes", headers=headers).status_code == 200
    assert client.get("/api/pessoas", headers=headers).status_code == 200
