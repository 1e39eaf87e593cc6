"""
Transforms elementares: Create, ParDo e Flatten.

- Create.of(*values): coleção em memória (origem do pipeline)
- ParDo.of(fn): aplica um DoFn por elemento; com `with_output_tags` o
  resultado é um TaggedOutputs com uma coleção por tag declarada
- Flatten(): união multiconjunto de um CollectionList
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple, Union

from braid_dataflow.core.codecs import Codec
from braid_dataflow.core.graph import (
    Collection,
    CollectionList,
    DoFn,
    OutputTag,
    PipelineRoot,
    TaggedOutputs,
    View,
)

from .base import PTransform


class Create(PTransform):
    def __init__(
        self,
        values: Sequence[Any],
        *,
        element_type: Optional[type] = None,
        codec: Optional[Codec] = None,
    ):
        self.values = list(values)
        self.element_type = element_type
        self.codec = codec

    @classmethod
    def of(cls, *values: Any, element_type: Optional[type] = None, codec: Optional[Codec] = None) -> "Create":
        return cls(values, element_type=element_type, codec=codec)

    def with_codec(self, codec: Codec) -> "Create":
        return Create(self.values, element_type=self.element_type, codec=codec)

    def default_label(self) -> str:
        return "Create"

    def expand(self, pvalue: Any) -> Collection:
        if not isinstance(pvalue, PipelineRoot):
            raise TypeError("Create must be applied to the pipeline root")
        return pvalue.pipeline.add_create(self.values, element_type=self.element_type, codec=self.codec)


class ParDo(PTransform):
    """
    Transform por elemento com saídas rotuladas e side inputs.

    Sem `with_output_tags`, a saída é a coleção principal. Com tags, a saída
    é o TaggedOutputs completo: toda tag declarada tem uma coleção, mesmo
    que nenhum elemento seja emitido nela.
    """

    def __init__(
        self,
        fn: DoFn,
        *,
        side_inputs: Sequence[View] = (),
        main_tag: Optional[OutputTag] = None,
        additional_tags: Sequence[OutputTag] = (),
    ):
        if not isinstance(fn, DoFn):
            raise TypeError(f"ParDo expects a DoFn, got {type(fn).__name__}")
        self.fn = fn
        self.side_inputs: Tuple[View, ...] = tuple(side_inputs)
        self.main_tag = main_tag
        self.additional_tags: Tuple[OutputTag, ...] = tuple(additional_tags)

    @classmethod
    def of(cls, fn: DoFn) -> "ParDo":
        return cls(fn)

    def with_side_inputs(self, *views: View) -> "ParDo":
        return ParDo(
            self.fn,
            side_inputs=self.side_inputs + views,
            main_tag=self.main_tag,
            additional_tags=self.additional_tags,
        )

    def with_output_tags(self, main_tag: OutputTag, additional_tags: Sequence[OutputTag] = ()) -> "ParDo":
        return ParDo(
            self.fn,
            side_inputs=self.side_inputs,
            main_tag=main_tag,
            additional_tags=additional_tags,
        )

    def default_label(self) -> str:
        return f"ParDo({self.fn.default_label()})"

    def expand(self, pvalue: Any) -> Union[Collection, TaggedOutputs]:
        if not isinstance(pvalue, Collection):
            raise TypeError("ParDo must be applied to a Collection")
        tagged = self.main_tag is not None
        outputs = pvalue.pipeline.add_par_do(
            pvalue,
            self.fn,
            main_tag=self.main_tag if tagged else OutputTag("out", self.fn.output_type),
            additional_tags=self.additional_tags,
            side_inputs=self.side_inputs,
        )
        return outputs if tagged else outputs.main


class Flatten(PTransform):
    def expand(self, pvalue: Any) -> Collection:
        if not isinstance(pvalue, CollectionList):
            raise TypeError("Flatten must be applied to a CollectionList")
        return pvalue.pipeline.add_union(list(pvalue))
