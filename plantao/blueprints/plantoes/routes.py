from __future__ import annotations

import logging

from flask import Blueprint, jsonify

from ... import store
from ...utils.http import InvalidBody, parse_id, read_json_object, text_error
from ...utils.security import require_admin

logger = logging.getLogger(__name__)

plantoes_bp = Blueprint("plantoes", __name__, url_prefix="/api/plantoes")

SHIFT_FIELDS = ("sistema", "periodo", "nome", "contato", "dataFim")


@plantoes_bp.get("")
@require_admin
def list_plantoes():
    try:
        lista = store.list_shifts()
    except store.StoreError:
        return text_error("Erro no Banco de Dados", 500)
    return jsonify(lista)


@plantoes_bp.post("")
@require_admin
def create_plantao():
    try:
        data = read_json_object(SHIFT_FIELDS)
    except InvalidBody as exc:
        logger.debug("corpo inválido em POST /api/plantoes: %s", exc)
        return text_error("JSON inválido", 400)

    try:
        created = store.insert_shift(data)
    except store.StoreError:
        return text_error("Erro ao inserir no Banco", 500)
    return jsonify(created)


@plantoes_bp.delete("/", defaults={"id_str": ""})
@plantoes_bp.delete("/<id_str>")
@require_admin
def delete_plantao(id_str: str):
    shift_id = parse_id(id_str)
    if shift_id is None:
        return text_error("ID inválido", 400)

    try:
        store.delete_shift(shift_id)
    except store.StoreError:
        return text_error("Erro ao deletar no Banco", 500)
    return "", 200
