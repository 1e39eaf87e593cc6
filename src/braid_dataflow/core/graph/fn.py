"""
Funções por elemento (DoFn) e o contexto de processamento.

Um DoFn visita cada elemento da coleção de entrada e pode, pelos canais
declarados:
    - emitir zero ou mais valores na saída principal (`c.output`)
    - emitir zero ou mais valores em tags secundárias (`c.side_output`)
    - ler views recebidas na construção (`c.side_input`)
    - atualizar acumuladores criados em `__init__` (`Accumulator.add`)

Um DoFn pode ser re-executado sobre a mesma partição após uma falha; ele
não deve depender de rodar exatamente uma vez por elemento.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from braid_dataflow.core.accumulators import CombineFn, current_partition
from braid_dataflow.core.exceptions import UndeclaredOutputError, UnknownReferenceError

from .values import OutputTag, View


class Accumulator:
    """Handle de escrita para um acumulador nomeado."""

    def __init__(self, name: str, combine_fn: CombineFn):
        self.name = name
        self.combine_fn = combine_fn

    def add(self, value: Any) -> None:
        current_partition().add(self.name, value)

    def __repr__(self) -> str:
        return f"Accumulator({self.name!r}, {self.combine_fn!r})"


class DoFn:
    """
    Base class de funções por elemento.

    Subclasses implementam `process(c)`. Acumuladores são declarados com
    `create_accumulator` (normalmente em `__init__`) e registrados no
    pipeline quando o ParDo é aplicado.

    `output_type` tipa a saída principal quando o ParDo não declara tags;
    é por ele que o codec da coleção é resolvido.
    """

    output_type: Optional[type] = None

    def create_accumulator(self, name: str, combine_fn: CombineFn) -> Accumulator:
        declared: Dict[str, Accumulator] = self.__dict__.setdefault("_braid_accumulators", {})
        accumulator = Accumulator(name, combine_fn)
        declared[name] = accumulator
        return accumulator

    def declared_accumulators(self) -> List[Accumulator]:
        return list(self.__dict__.get("_braid_accumulators", {}).values())

    def default_label(self) -> str:
        return type(self).__name__

    def process(self, c: "ProcessContext") -> None:
        raise NotImplementedError(f"{type(self).__name__}.process is not implemented")


class OutputEmitter:
    """Buffers de saída de uma tentativa de partição, um por tag declarada."""

    def __init__(self, stage_id: str, main_tag: OutputTag, tags: Sequence[OutputTag]):
        self.stage_id = stage_id
        self.main_tag = main_tag
        self.buffers: Dict[OutputTag, List[Any]] = {tag: [] for tag in tags}

    def emit(self, tag: OutputTag, value: Any) -> None:
        buffer = self.buffers.get(tag)
        if buffer is None:
            raise UndeclaredOutputError(
                message=f"Stage '{self.stage_id}' emitted to undeclared tag {tag!r}",
                details={"stage_id": self.stage_id, "tag": repr(tag)},
                hint="Declare a tag em ParDo.with_output_tags",
            )
        buffer.append(value)


class ProcessContext:
    """Visão que um DoFn tem do elemento corrente e dos seus canais."""

    __slots__ = ("element", "_emitter", "_side_inputs")

    def __init__(self, element: Any, emitter: OutputEmitter, side_inputs: Mapping[str, Any]):
        self.element = element
        self._emitter = emitter
        self._side_inputs = side_inputs

    def output(self, value: Any) -> None:
        self._emitter.emit(self._emitter.main_tag, value)

    def side_output(self, tag: OutputTag, value: Any) -> None:
        self._emitter.emit(tag, value)

    def side_input(self, view: View) -> Any:
        try:
            return self._side_inputs[view.id]
        except KeyError:
            raise UnknownReferenceError(
                message=f"{view!r} was not declared as a side input of this stage",
                details={"view_id": view.id, "declared": sorted(self._side_inputs)},
                hint="Declare a view em ParDo.with_side_inputs",
            ) from None
