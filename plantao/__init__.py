from __future__ import annotations

import os
from flask import Flask

from .config import Config, load_env_file
from .extensions import db

PUBLIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "public")


def create_app(test_config: dict | None = None) -> Flask:
    load_env_file()

    # 1) Frontend estático servido na raiz
    if not os.path.isdir(PUBLIC_DIR):
        raise RuntimeError(f"Erro ao carregar arquivos estáticos: {PUBLIC_DIR} não existe")

    app = Flask(__name__, static_folder=PUBLIC_DIR, static_url_path="")
    app.config.from_object(Config())
    if test_config:
        app.config.update(test_config)

    # UTF-8 direto no JSON, campos na ordem do model
    app.json.ensure_ascii = False
    app.json.sort_keys = False

    # init extensions
    db.init_app(app)

    # register blueprints
    from .blueprints.main.routes import main_bp
    from .blueprints.auth.routes import auth_bp
    from .blueprints.plantoes.routes import plantoes_bp
    from .blueprints.pessoas.routes import pessoas_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(plantoes_bp)
    app.register_blueprint(pessoas_bp)

    # 2) ping no banco + create table if not exists
    from .store import init_store
    init_store(app)

    return app
