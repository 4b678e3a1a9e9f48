from __future__ import annotations

from flask import Blueprint, jsonify, request

from ... import store
from ...utils.http import InvalidBody, parse_id, read_json_object, text_error
from ...utils.security import require_admin

pessoas_bp = Blueprint("pessoas", __name__, url_prefix="/api/pessoas")

PERSON_FIELDS = ("nome", "contato")


@pessoas_bp.get("")
@require_admin
def list_pessoas():
    try:
        lista = store.list_people()
    except store.StoreError:
        return text_error("Erro no Banco de Dados", 500)
    return jsonify(lista)


@pessoas_bp.post("")
@require_admin
def create_pessoa():
    try:
        data = read_json_object(PERSON_FIELDS)
    except InvalidBody:
        return text_error("JSON inválido", 400)

    try:
        created = store.insert_person(data)
    except store.StoreError:
        return text_error("Erro ao inserir pessoa", 500)
    return jsonify(created)


# "/api/pessoas/" sem id também responde 400, como um id inválido
@pessoas_bp.route("/", defaults={"id_str": ""}, methods=["PUT", "DELETE"])
@pessoas_bp.route("/<id_str>", methods=["PUT", "DELETE"])
@require_admin
def pessoa_operacoes(id_str: str):
    person_id = parse_id(id_str)
    if person_id is None:
        return text_error("ID inválido", 400)

    if request.method == "DELETE":
        try:
            store.delete_person(person_id)
        except store.StoreError:
            return text_error("Erro ao deletar", 500)
        return "", 200

    try:
        data = read_json_object(PERSON_FIELDS)
    except InvalidBody:
        return text_error("JSON inválido", 400)

    try:
        store.update_person(person_id, data["nome"], data["contato"])
    except store.StoreError:
        return text_error("Erro ao atualizar", 500)
    return "", 200
