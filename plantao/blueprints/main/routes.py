from flask import Blueprint, current_app, send_from_directory

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def root():
    return send_from_directory(current_app.static_folder, "index.html")
