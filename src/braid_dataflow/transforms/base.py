"""
Contrato base dos transforms do Braid DataFlow.

Um transform é aplicado via `Pipeline.apply` (ou `Collection.apply`): o
pipeline abre um escopo com o label do transform e chama `expand(input)`.
Transforms primitivos registram stages no pipeline; transforms compostos
apenas aplicam outros transforms dentro do próprio escopo.

Decisões arquiteturais:
    - `expand` recebe o handle de entrada e devolve o handle de saída
    - O label padrão é o nome da classe; colisões recebem sufixo numérico

Limites explícitos:
    - Não executa nada (a execução pertence ao engine)
"""

from __future__ import annotations

from typing import Any


class PTransform:
    """Classe base para transforms primitivos e compostos."""

    def default_label(self) -> str:
        return self.__class__.__name__

    def expand(self, pvalue: Any) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
