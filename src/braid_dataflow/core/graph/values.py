"""
Handles do grafo: coleções distribuídas, tags de saída e views.

Todos os handles são referências leves: nenhum deles carrega dados. Os
dados de uma coleção só existem durante uma run, no dataset store do
RunContext, indexados pelo `id` da coleção.

Invariantes:
    - Um handle pertence a exatamente um Pipeline
    - OutputTag usa igualdade por identidade (duas tags com o mesmo tipo
      de elemento continuam distintas)
    - Um TaggedOutputs contém todas as tags declaradas pelo stage
"""

from __future__ import annotations

from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
)

from braid_dataflow.core.codecs.base import KV, Codec
from braid_dataflow.core.exceptions import UnknownReferenceError

if TYPE_CHECKING:  # pragma: no cover
    from braid_dataflow.core.graph.pipeline import Pipeline


class OutputTag:
    """
    Token de identidade única que rotula uma das saídas de um stage.

    O `name` é apenas descritivo (aparece em ids de coleção e no event log);
    a identidade é a do objeto.
    """

    def __init__(self, name: Optional[str] = None, element_type: Optional[type] = None):
        self.name = name
        self.element_type = element_type

    def __repr__(self) -> str:
        type_name = self.element_type.__name__ if self.element_type else "?"
        return f"OutputTag({self.name or hex(id(self))}, {type_name})"


class Collection:
    """
    Handle imutável de uma coleção distribuída.

    O codec pode ser explícito (`set_codec`) ou resolvido pelo CodecRegistry
    do pipeline a partir de `element_type`. A ausência de ambos só é
    detectada na validação do grafo, antes de qualquer execução.
    """

    def __init__(
        self,
        pipeline: "Pipeline",
        collection_id: str,
        *,
        producer: str,
        element_type: Optional[type] = None,
        codec: Optional["Codec"] = None,
        codec_resolver: Optional[Callable[[], Optional["Codec"]]] = None,
    ):
        self.pipeline = pipeline
        self.id = collection_id
        self.producer = producer
        self.element_type = element_type
        self._codec = codec
        # coleções derivadas (ex.: union, count) seguem o codec da entrada
        self._codec_resolver = codec_resolver

    @property
    def codec(self) -> Optional["Codec"]:
        if self._codec is not None:
            return self._codec
        if self._codec_resolver is not None:
            derived = self._codec_resolver()
            if derived is not None:
                return derived
        return self.pipeline.codec_registry.lookup(self.element_type)

    def set_codec(self, codec: "Codec") -> "Collection":
        self._codec = codec
        return self

    def apply(self, transform: Any, label: Optional[str] = None) -> Any:
        return self.pipeline.apply(transform, self, label=label)

    def __repr__(self) -> str:
        return f"Collection({self.id})"


class CollectionList:
    """Lista ordenada de coleções de um mesmo pipeline (entrada do Flatten)."""

    def __init__(self, collections: Sequence[Collection] = ()):
        self._collections: Tuple[Collection, ...] = tuple(collections)

    @classmethod
    def of(cls, *collections: Collection) -> "CollectionList":
        return cls(collections)

    def and_(self, collection: Collection) -> "CollectionList":
        return CollectionList(self._collections + (collection,))

    @property
    def pipeline(self) -> "Pipeline":
        if not self._collections:
            raise ValueError("CollectionList is empty")
        return self._collections[0].pipeline

    def apply(self, transform: Any, label: Optional[str] = None) -> Any:
        return self.pipeline.apply(transform, self, label=label)

    def __iter__(self) -> Iterator[Collection]:
        return iter(self._collections)

    def __len__(self) -> int:
        return len(self._collections)


class PipelineRoot:
    """Entrada dos transforms de origem (ex.: Create)."""

    def __init__(self, pipeline: "Pipeline"):
        self.pipeline = pipeline


class TaggedOutputs:
    """
    Bundle `OutputTag -> Collection` produzido atomicamente por um ParDo.

    Consultar uma tag não declarada falha com UnknownReferenceError.
    """

    def __init__(self, main_tag: OutputTag, collections: Dict[OutputTag, Collection]):
        self.main_tag = main_tag
        self._collections = dict(collections)

    @property
    def main(self) -> Collection:
        return self._collections[self.main_tag]

    @property
    def tags(self) -> List[OutputTag]:
        return list(self._collections)

    def get(self, tag: OutputTag) -> Collection:
        return self[tag]

    def items(self):
        return self._collections.items()

    def __getitem__(self, tag: OutputTag) -> Collection:
        try:
            return self._collections[tag]
        except KeyError:
            raise UnknownReferenceError(
                message=f"Tag {tag!r} was not declared by this stage",
                details={"tag": repr(tag), "declared": [repr(t) for t in self._collections]},
            ) from None

    def __contains__(self, tag: object) -> bool:
        return tag in self._collections

    def __iter__(self) -> Iterator[OutputTag]:
        return iter(self._collections)

    def __len__(self) -> int:
        return len(self._collections)


class ViewShape(str, Enum):
    """
    Formato de materialização de uma view.

    - SINGLETON: a origem deve conter exatamente um elemento
    - MAPPING: a origem contém pares KV com chaves únicas
    """
    SINGLETON = "singleton"
    MAPPING = "mapping"


class View:
    """Handle de uma broadcast view sobre uma coleção de origem."""

    def __init__(self, source: Collection, shape: ViewShape, view_id: str):
        self.source = source
        self.shape = shape
        self.id = view_id

    @property
    def pipeline(self) -> "Pipeline":
        return self.source.pipeline

    def __repr__(self) -> str:
        return f"View({self.id}, {self.shape.value})"
