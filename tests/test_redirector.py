import pytest

from plantao.redirector import create_redirector, https_url, strip_port


class FakeManager:
    def __init__(self, tokens=None):
        self.tokens = tokens or {}

    def http_token(self, path):
        return self.tokens.get(path)


@pytest.fixture()
def redirector():
    manager = FakeManager({"/.well-known/acme-challenge/tok123": "tok123.thumb"})
    return create_redirector(manager).test_client()


@pytest.mark.parametrize("host, expected", [
    ("plantao.example.com", "plantao.example.com"),
    ("plantao.example.com:80", "plantao.example.com"),
    ("[::1]:80", "[::1]"),
])
def test_strip_port(host, expected):
    assert strip_port(host) == expected


def test_redirects_to_https_keeping_path_and_query(redirector):
    resp = redirector.get("/api/plantoes?x=1&y=2", headers={"Host": "plantao.example.com:80"})
    assert resp.status_code == 301
    assert resp.headers["Location"] == "https://plantao.example.com/api/plantoes?x=1&y=2"


@pytest.mark.parametrize("method", ["get", "post", "delete"])
def test_any_method_redirects(redirector, method):
    resp = getattr(redirector, method)("/", headers={"Host": "plantao.example.com"})
    assert resp.status_code == 301
    assert resp.headers["Location"] == "https://plantao.example.com/"


def test_serves_pending_http01_token(redirector):
    resp = redirector.get("/.well-known/acme-challenge/tok123")
    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == "tok123.thumb"


def test_unknown_token_is_404(redirector):
    assert redirector.get("/.well-known/acme-challenge/outro").status_code == 404


@pytest.mark.parametrize("path", ["/a%3Fb", "/a%23b", "/docs/a%2Fb"])
def test_encoded_path_separators_are_preserved(redirector, path):
    resp = redirector.get(path, headers={"Host": "plantao.example.com"})
    assert resp.status_code == 301
    location = resp.headers["Location"]
    assert location.startswith("https://plantao.example.com/")
    assert "?" not in location and "#" not in location


def test_path_is_requoted_without_raw_uri():
    app = create_redirector(FakeManager())
    with app.test_request_context("/a%3Fb/c", query_string="x=1", environ_overrides={
        "RAW_URI": "", "REQUEST_URI": "", "HTTP_HOST": "plantao.example.com:80",
    }):
        assert https_url() == "https://plantao.example.com/a%3Fb/c?x=1"


def test_encoded_question_mark_stays_in_path(redirector):
    resp = redirector.get("/a%3Fb", headers={"Host": "plantao.example.com"})
    assert resp.headers["Location"] == "https://plantao.example.com/a%3Fb"
