"""Acesso ao banco: criação das tabelas e CRUD de plantões e pessoas.

Todas as consultas passam pelo SQLAlchemy com parâmetros vinculados; nenhuma
entrada do usuário é interpolada em SQL.
"""
from __future__ import annotations

import logging

from flask import Flask
from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import Pessoa, Plantao

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Falha do banco em uma operação; a mensagem é o nome da operação."""

    def __init__(self, operation: str):
        super().__init__(operation)
        self.operation = operation


class DatabaseUnavailable(StoreError):
    def __init__(self, host: str, port: str, reason: str):
        super().__init__("ping")
        self.host = host
        self.port = port
        self.reason = reason

    def __str__(self) -> str:
        return (
            f"Não foi possível conectar ao banco de dados em {self.host}:{self.port}. "
            f"Verifique se o Postgres está rodando e se as credenciais estão corretas. "
            f"Erro: {self.reason}"
        )


def _fail(operation: str, exc: SQLAlchemyError) -> StoreError:
    db.session.rollback()
    logger.error("Erro %s: %s", operation, exc)
    return StoreError(operation)


def ping() -> None:
    db.session.execute(text("SELECT 1"))


def init_store(app: Flask) -> None:
    host = app.config.get("DB_HOST", "?")
    port = app.config.get("DB_PORT", "?")
    logger.info("Conectando ao banco em %s:%s...", host, port)
    with app.app_context():
        try:
            ping()
        except SQLAlchemyError as exc:
            reason = " ".join(str(getattr(exc, "orig", None) or exc).split())
            raise DatabaseUnavailable(host, port, reason) from exc
        logger.info("Conexão com o banco de dados estabelecida.")

        try:
            db.create_all()
        except SQLAlchemyError as exc:
            raise _fail("create tables", exc) from exc


# --------------------
# Plantões
# --------------------
def list_shifts() -> list[dict]:
    stmt = select(Plantao).order_by(func.coalesce(Plantao.data_fim, "").asc(), Plantao.id.asc())
    try:
        rows = db.session.execute(stmt).scalars().all()
    except SQLAlchemyError as exc:
        raise _fail("select plantoes", exc) from exc
    return [p.to_dict() for p in rows]


def insert_shift(data: dict) -> dict:
    p = Plantao(
        sistema=data["sistema"],
        periodo=data["periodo"],
        nome=data["nome"],
        contato=data["contato"],
        data_fim=data["dataFim"],
    )
    try:
        db.session.add(p)
        db.session.commit()
    except SQLAlchemyError as exc:
        raise _fail("insert plantao", exc) from exc
    return {**data, "id": p.id}


def delete_shift(shift_id: int) -> None:
    try:
        db.session.execute(delete(Plantao).where(Plantao.id == shift_id))
        db.session.commit()
    except SQLAlchemyError as exc:
        raise _fail("delete plantao", exc) from exc


# --------------------
# Pessoas
# --------------------
def list_people() -> list[dict]:
    stmt = select(Pessoa).order_by(Pessoa.nome.asc(), Pessoa.id.asc())
    try:
        rows = db.session.execute(stmt).scalars().all()
    except SQLAlchemyError as exc:
        raise _fail("select pessoas", exc) from exc
    return [p.to_dict() for p in rows]


def insert_person(data: dict) -> dict:
    p = Pessoa(nome=data["nome"], contato=data["contato"])
    try:
        db.session.add(p)
        db.session.commit()
    except SQLAlchemyError as exc:
        raise _fail("insert pessoa", exc) from exc
    return {**data, "id": p.id}


def update_person(person_id: int, nome: str, contato: str) -> None:
    stmt = update(Pessoa).where(Pessoa.id == person_id).values(nome=nome, contato=contato)
    try:
        db.session.execute(stmt)
        db.session.commit()
    except SQLAlchemyError as exc:
        raise _fail("update pessoa", exc) from exc


def delete_person(person_id: int) -> None:
    try:
        db.session.execute(delete(Pessoa).where(Pessoa.id == person_id))
        db.session.commit()
    except SQLAlchemyError as exc:
        raise _fail("delete pessoa", exc) from exc
