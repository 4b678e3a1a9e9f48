def test_root_serves_index(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.mimetype == "text/html"
    assert b"app.js" in resp.data


def test_assets_with_mime_type(client):
    resp = client.get("/app.js")
    assert resp.status_code == 200
    assert "javascript" in resp.mimetype
    assert b"/api/plantoes" in resp.data


def test_missing_file_is_404(client):
    assert client.get("/nao-existe.html").status_code == 404


def test_no_directory_traversal(client):
    assert client.get("/../config.py").status_code == 404
