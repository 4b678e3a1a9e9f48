from __future__ import annotations
from ..extensions import db


class Pessoa(db.Model):
    __tablename__ = "pessoas"

    id = db.Column(db.Integer, primary_key=True)
    nome = db.Column(db.Text)
    contato = db.Column(db.Text)

    def to_dict(self) -> dict:
        return {"id": self.id, "nome": self.nome or "", "contato": self.contato or ""}

    def __repr__(self) -> str:
        return f"<Pessoa {self.id} {self.nome}>"
