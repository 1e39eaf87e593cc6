"""
Stages do grafo do Braid DataFlow.

Um stage é um passo de transformação: consome zero ou mais coleções e/ou
views e produz uma coleção, um bundle de tags (ParDo) ou uma view.

Variantes (StageKind):
    - CREATE: origem em memória
    - PAR_DO: função por elemento com N tags de saída
    - UNION: união multiconjunto de N coleções (Flatten)
    - COUNT_PER_ELEMENT: contagem agrupada por elemento
    - VIEW: materialização de broadcast view
    - COMBINE_GLOBALLY: combinação global em um único valor

Invariantes:
    - `depends_on` é derivado das entradas (coleções e views), nunca declarado à mão
    - Stages não executam nada; a avaliação pertence ao engine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .fn import DoFn
from .values import Collection, OutputTag, TaggedOutputs, View


class StageKind(str, Enum):
    CREATE = "create"
    PAR_DO = "par_do"
    UNION = "union"
    COUNT_PER_ELEMENT = "count_per_element"
    VIEW = "view"
    COMBINE_GLOBALLY = "combine_globally"


@dataclass(eq=False)
class Stage:
    """Campos comuns: identificador único, variante e coleções de entrada."""

    id: str
    kind: StageKind
    inputs: List[Collection] = field(default_factory=list)

    @property
    def side_inputs(self) -> List[View]:
        return []

    @property
    def depends_on(self) -> List[str]:
        deps: List[str] = []
        for producer in [c.producer for c in self.inputs] + [v.id for v in self.side_inputs]:
            if producer not in deps:
                deps.append(producer)
        return deps

    def output_collections(self) -> List[Collection]:
        return []

    def describe(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "inputs": [c.id for c in self.inputs],
            "side_inputs": [v.id for v in self.side_inputs],
            "outputs": [c.id for c in self.output_collections()],
            "depends_on": self.depends_on,
        }


@dataclass(eq=False)
class CreateStage(Stage):
    values: Sequence[Any] = ()
    output: Optional[Collection] = None

    def output_collections(self) -> List[Collection]:
        return [self.output] if self.output is not None else []


@dataclass(eq=False)
class ParDoStage(Stage):
    fn: Optional[DoFn] = None
    main_tag: Optional[OutputTag] = None
    tags: List[OutputTag] = field(default_factory=list)
    views: List[View] = field(default_factory=list)
    outputs: Optional[TaggedOutputs] = None

    @property
    def side_inputs(self) -> List[View]:
        return list(self.views)

    def output_collections(self) -> List[Collection]:
        if self.outputs is None:
            return []
        return [self.outputs[tag] for tag in self.tags]


@dataclass(eq=False)
class UnionStage(Stage):
    output: Optional[Collection] = None

    def output_collections(self) -> List[Collection]:
        return [self.output] if self.output is not None else []


@dataclass(eq=False)
class CountStage(Stage):
    output: Optional[Collection] = None

    def output_collections(self) -> List[Collection]:
        return [self.output] if self.output is not None else []


@dataclass(eq=False)
class ViewStage(Stage):
    view: Optional[View] = None


@dataclass(eq=False)
class CombineGloballyStage(Stage):
    """`combiner` segue o protocolo create_accumulator/add_input/merge_accumulators/extract_output."""

    combiner: Any = None
    output: Optional[Collection] = None

    def output_collections(self) -> List[Collection]:
        return [self.output] if self.output is not None else []
