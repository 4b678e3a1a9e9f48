from .plantao import Plantao
from .pessoa import Pessoa

__all__ = [
    # Escala de plantão
    "Plantao",

    # Cadastro de pessoas (contatos)
    "Pessoa",
]
