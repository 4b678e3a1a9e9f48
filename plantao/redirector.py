"""App da porta 80: tokens HTTP-01 do ACME e redirecionamento para HTTPS."""
from __future__ import annotations

from urllib.parse import quote

from flask import Flask, Response, abort, redirect, request

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
# caracteres que continuam literais no caminho ao recodificar
PATH_SAFE = "/:@!$&'()*+,;=~"


def strip_port(host: str) -> str:
    if host.startswith("["):
        # IPv6 literal: [::1]:80
        return host[: host.index("]") + 1]
    return host.split(":", 1)[0]


def https_url() -> str:
    # caminho ainda codificado: %3F, %23 e %2F não podem virar separadores
    raw = request.environ.get("RAW_URI") or request.environ.get("REQUEST_URI") or ""
    if raw.startswith("/"):
        return f"https://{strip_port(request.host)}{raw}"

    url = f"https://{strip_port(request.host)}{quote(request.path, safe=PATH_SAFE)}"
    if request.query_string:
        url += "?" + request.query_string.decode("latin-1")
    return url


def create_redirector(manager) -> Flask:
    app = Flask("plantao.redirector")

    @app.get("/.well-known/acme-challenge/<token>")
    def acme_challenge(token: str):
        key_authorization = manager.http_token(request.path)
        if key_authorization is None:
            abort(404)
        return Response(key_authorization, mimetype="text/plain")

    @app.route("/", defaults={"path": ""}, methods=ALL_METHODS)
    @app.route("/<path:path>", methods=ALL_METHODS)
    def to_https(path: str):
        return redirect(https_url(), code=301)

    return app
