from functools import wraps
from flask import current_app, request

from .http import text_error


def admin_password() -> str:
    return current_app.config["ADMIN_PASSWORD"]


def require_admin(f):
    """GET passa direto; os demais métodos exigem Authorization == ADMIN_PASSWORD."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method == "GET":
            return f(*args, **kwargs)
        token = request.headers.get("Authorization", "")
        if token != admin_password():
            return text_error("Acesso Negado.", 401)
        return f(*args, **kwargs)
    return wrapper
