"""
Planejador de execução do grafo de stages.

Produz uma ordem topológica determinística a partir das dependências
derivadas de cada stage (coleções de entrada e views lidas).

Decisões arquiteturais:
    - Algoritmo de Kahn com fila de prioridade
    - Empates são resolvidos pela ordem de construção dos stages, de modo
      que o plano acompanha a leitura natural do pipeline
    - Erros estruturais são tratados como falhas fatais

Invariantes:
    - Nenhum stage aparece antes de suas dependências
    - Em particular, um stage VIEW sempre precede os stages que leem a view
    - O mesmo grafo produz sempre a mesma ordem

Limites explícitos:
    - Não executa stages
    - Não interage com RunContext
"""

from __future__ import annotations

import heapq
from typing import Dict, Iterable, List, Set, Tuple

from braid_dataflow.core.graph.stages import Stage


class UnknownDependencyError(ValueError):
    """Um stage depende de um stage inexistente no grafo planejado."""


class CycleDetectedError(ValueError):
    """O grafo de dependências contém um ciclo; nenhuma ordem é possível."""


def plan_execution(stages: Iterable[Stage]) -> List[Stage]:
    """
    Valida e ordena topologicamente os stages.

    Args:
        stages (Iterable[Stage]): Stages na ordem de construção.

    Returns:
        List[Stage]: Stages em ordem de execução.

    Raises:
        ValueError: Se algum stage possuir `id` inválido ou duplicado.
        UnknownDependencyError: Se um stage declarar dependência inexistente.
        CycleDetectedError: Se houver ciclo no grafo.
    """
    position: Dict[str, int] = {}
    by_id: Dict[str, Stage] = {}
    for index, stage in enumerate(stages):
        sid = getattr(stage, "id", None)
        if not isinstance(sid, str) or not sid.strip():
            raise ValueError("stage.id must be a non-empty string")
        if sid in by_id:
            raise ValueError(f"Duplicate stage id: {sid}")
        by_id[sid] = stage
        position[sid] = index

    pending: Dict[str, int] = {}
    children: Dict[str, Set[str]] = {sid: set() for sid in by_id}
    for sid, stage in by_id.items():
        deps = set(getattr(stage, "depends_on", []) or [])
        for dep in deps:
            if dep not in by_id:
                raise UnknownDependencyError(f"Stage '{sid}' depends on unknown stage '{dep}'")
            children[dep].add(sid)
        pending[sid] = len(deps)

    ready: List[Tuple[int, str]] = [(position[sid], sid) for sid, n in pending.items() if n == 0]
    heapq.heapify(ready)

    order: List[Stage] = []
    while ready:
        _, sid = heapq.heappop(ready)
        order.append(by_id[sid])
        for child in children[sid]:
            pending[child] -= 1
            if pending[child] == 0:
                heapq.heappush(ready, (position[child], child))

    if len(order) != len(by_id):
        raise CycleDetectedError("Cycle detected in stage dependency graph")

    return order
