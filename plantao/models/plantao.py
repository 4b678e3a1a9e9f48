from __future__ import annotations
from ..extensions import db


class Plantao(db.Model):
    __tablename__ = "plantoes"

    id = db.Column(db.Integer, primary_key=True)

    sistema = db.Column(db.Text)
    # rótulo livre da janela, ex: "De 01/02 a 07/02"
    periodo = db.Column(db.Text)

    # nome/contato copiados da pessoa no momento do cadastro (sem FK)
    nome = db.Column(db.Text)
    contato = db.Column(db.Text)

    # data final como texto (YYYY-MM-DD vindo do front); ordenação é lexical
    data_fim = db.Column(db.Text)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sistema": self.sistema or "",
            "periodo": self.periodo or "",
            "nome": self.nome or "",
            "contato": self.contato or "",
            "dataFim": self.data_fim or "",
        }

    def __repr__(self) -> str:
        return f"<Plantao {self.id} {self.sistema} {self.nome}>"
