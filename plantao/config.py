from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
from sqlalchemy.engine import URL

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PASSWORD = "admin_123"
DEFAULT_DOMAIN_NAME = "plantao.openlabs.com.br"
LETSENCRYPT_DIRECTORY = "https://acme-v02.api.letsencrypt.org/directory"


def env_or(key: str, fallback: str) -> str:
    """Valor da variável de ambiente ou o fallback (string vazia conta como definida)."""
    value = os.environ.get(key)
    if value is None:
        return fallback
    return value


def load_env_file(path: str = ".env") -> bool:
    # Não sobrescreve variáveis já definidas no ambiente
    if not os.path.isfile(path):
        logger.info("Arquivo %s não encontrado. Usando variáveis de ambiente do sistema.", path)
        return False
    return load_dotenv(path, override=False)


def default_cert_dir() -> str:
    exe_dir = os.path.dirname(os.path.abspath(sys.argv[0] or "."))
    return os.path.join(exe_dir, "certs")


def database_uri(host: str, port: str, user: str, password: str, name: str) -> str:
    url = URL.create(
        "postgresql+psycopg2",
        username=user,
        password=password,
        host=host,
        port=int(port),
        database=name,
        query={"sslmode": "disable"},
    )
    return url.render_as_string(hide_password=False)


class Config:
    """Configuração lida do ambiente no momento da criação (depois do .env)."""

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    def __init__(self) -> None:
        self.DB_HOST = env_or("DB_HOST", "localhost")
        # DB_PORT_EXTERNAL é a porta exposta pelo container do Postgres
        self.DB_PORT = env_or("DB_PORT_EXTERNAL", "5432")
        self.DB_USER = env_or("DB_USER", "admin")
        self.DB_PASS = env_or("DB_PASS", "admin_123")
        self.DB_NAME = env_or("DB_NAME", "escala_db")

        self.SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI") or database_uri(
            self.DB_HOST, self.DB_PORT, self.DB_USER, self.DB_PASS, self.DB_NAME
        )

        self.ADMIN_PASSWORD = env_or("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD)
        self.DOMAIN_NAME = env_or("DOMAIN_NAME", DEFAULT_DOMAIN_NAME)

        self.CERT_DIR = os.getenv("CERT_DIR") or default_cert_dir()
        self.ACME_DIRECTORY_URL = env_or("ACME_DIRECTORY_URL", LETSENCRYPT_DIRECTORY)
        self.ACME_EMAIL = os.getenv("ACME_EMAIL") or None
