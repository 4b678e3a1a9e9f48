import pytest

from plantao import create_app
from plantao.extensions import db

ADMIN_PASSWORD = "admin_123"
AUTH = {"Authorization": ADMIN_PASSWORD}


@pytest.fixture()
def app(tmp_path, monkeypatch):
    # sem .env do desenvolvedor nos testes
    monkeypatch.chdir(tmp_path)
    for key in ("ADMIN_PASSWORD", "SQLALCHEMY_DATABASE_URI", "DB_PORT_EXTERNAL"):
        monkeypatch.delenv(key, raising=False)

    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'escala.db'}",
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
    })
    yield app

    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def post_shift(client):
    def _post(**fields):
        body = {"sistema": "NETQ", "periodo": "De 01/01 a 07/01", "nome": "Ana", "contato": "(11) 9999-0000",
                "dataFim": "2025-01-07"}
        body.update(fields)
        resp = client.post("/api/plantoes", json=body, headers=AUTH)
        assert resp.status_code == 200
        return resp.get_json()
    return _post


@pytest.fixture()
def post_person(client):
    def _post(nome, contato="c"):
        resp = client.post("/api/pessoas", json={"nome": nome, "contato": contato}, headers=AUTH)
        assert resp.status_code == 200
        return resp.get_json()
    return _post
