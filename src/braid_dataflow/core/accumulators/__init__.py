"""
Acumuladores nomeados do Braid DataFlow.

Um acumulador é a tripla (nome, função de merge, valor). A função de merge
é comutativa e associativa, o que permite combinar parciais por partição
em qualquer ordem com o mesmo resultado.

Ciclo de vida:
    register (construção) → add (por elemento, por partição)
    → commit (tentativa de partição bem-sucedida) → finalize (uma vez)
    → read (somente após finalize)
"""

from .combine import CombineFn, MaxIntFn, MinIntFn, SumFloatFn, SumIntFn
from .registry import (
    AccumulatorRegistry,
    PartitionAccumulators,
    active_partition,
    current_partition,
)

__all__ = [
    "CombineFn",
    "SumIntFn",
    "SumFloatFn",
    "MaxIntFn",
    "MinIntFn",
    "AccumulatorRegistry",
    "PartitionAccumulators",
    "active_partition",
    "current_partition",
]
