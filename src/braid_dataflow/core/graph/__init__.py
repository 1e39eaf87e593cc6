"""
# Graph Model: Braid DataFlow

Modelo em memória do DAG de um job: handles de coleções distribuídas,
tags de saída, views e stages.

## Componentes

- **values**: `Collection`, `CollectionList`, `OutputTag`, `TaggedOutputs`,
  `View`, `ViewShape`, `KV`
- **fn**: `DoFn`, `Accumulator`, `ProcessContext`
- **stages**: `Stage` e suas variantes, `StageKind`
- **registry**: `StageRegistry` (unicidade de `stage.id`)
- **pipeline**: `Pipeline` (construção e validação do grafo)

## Invariantes

- O grafo é construído uma vez, estaticamente, e não guarda dados
- Violações estruturais falham na construção; o job nunca chega a rodar
"""

from .values import (
    KV,
    Collection,
    CollectionList,
    OutputTag,
    PipelineRoot,
    TaggedOutputs,
    View,
    ViewShape,
)
from .fn import Accumulator, DoFn, ProcessContext
from .stages import Stage, StageKind
from .registry import StageRegistry
from .pipeline import Pipeline

__all__ = [
    "KV",
    "Collection",
    "CollectionList",
    "OutputTag",
    "PipelineRoot",
    "TaggedOutputs",
    "View",
    "ViewShape",
    "Accumulator",
    "DoFn",
    "ProcessContext",
    "Stage",
    "StageKind",
    "StageRegistry",
    "Pipeline",
]
