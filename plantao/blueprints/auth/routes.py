from flask import Blueprint, jsonify, request
from ...utils.http import text_error
from ...utils.security import admin_password

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


# Todos os métodos chegam aqui para que o 405 tenha o corpo "Método inválido"
@auth_bp.route("/login", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
               provide_automatic_options=False)
def login():
    if request.method != "POST":
        return text_error("Método inválido", 405)

    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return text_error("JSON inválido", 400)
    password = data.get("password")
    if password is not None and not isinstance(password, str):
        return text_error("JSON inválido", 400)

    expected = admin_password()
    if password == expected:
        # o token devolvido é a própria senha; o front manda de volta no Authorization
        return jsonify({"token": expected})
    return text_error("Senha incorreta", 401)
