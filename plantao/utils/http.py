from __future__ import annotations

import re

from flask import Response, request

_ID_RE = re.compile(r"[+-]?[0-9]+")


class InvalidBody(ValueError):
    pass


def text_error(message: str, status: int) -> Response:
    """Resposta de erro em texto puro (mesmo formato para todos os handlers)."""
    resp = Response(message + "\n", status=status, mimetype="text/plain")
    resp.headers["X-Content-Type-Options"] = "nosniff"
    return resp


def parse_id(raw: str) -> int | None:
    if not _ID_RE.fullmatch(raw or ""):
        return None
    return int(raw)


def read_json_object(fields: tuple[str, ...]) -> dict:
    """Decodifica o corpo como objeto JSON com os campos de texto pedidos.

    Campos ausentes ou null viram "". Campos extras são ignorados.
    Levanta InvalidBody se o corpo não for um objeto ou se algum tipo não bater.
    """
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise InvalidBody("corpo não é um objeto JSON")

    raw_id = data.get("id")
    if raw_id is not None and (isinstance(raw_id, bool) or not isinstance(raw_id, int)):
        raise InvalidBody("id deve ser inteiro")

    out = {}
    for name in fields:
        value = data.get(name)
        if value is None:
            value = ""
        elif not isinstance(value, str):
            raise InvalidBody(f"{name} deve ser texto")
        out[name] = value
    return out
