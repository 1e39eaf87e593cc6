"""
Run Handle: fachada pós-execução de uma run concluída.

Expõe:
    - get(collection | tag): elementos finais de uma coleção do pipeline executado
    - get_accumulator(name, type): valor finalizado de um acumulador
    - stage_results / events / manifest: rastreabilidade da run
    - close(): libera views, acumuladores e datasets da run

Invariantes:
    - O handle só existe após a finalização dos acumuladores
    - Referências de outro pipeline falham com UnknownReferenceError
    - Após `close()`, qualquer outra operação falha com ClosedHandleError;
      `close()` em si é idempotente
"""

from __future__ import annotations

from typing import Any, Dict, List, Union

from braid_dataflow.core.accumulators import AccumulatorRegistry
from braid_dataflow.core.context import RunContext
from braid_dataflow.core.exceptions import (
    AccumulatorTypeMismatchError,
    ClosedHandleError,
    UnknownReferenceError,
)
from braid_dataflow.core.graph.pipeline import Pipeline
from braid_dataflow.core.graph.values import Collection, OutputTag
from braid_dataflow.core.traceability import RunManifest
from braid_dataflow.core.views import BroadcastViewManager

from .types import StageResult


class EvaluationResult:
    def __init__(
        self,
        *,
        pipeline: Pipeline,
        ctx: RunContext,
        views: BroadcastViewManager,
        accumulators: AccumulatorRegistry,
        stage_results: Dict[str, StageResult],
        manifest: RunManifest,
    ):
        self._pipeline = pipeline
        self._ctx = ctx
        self._views = views
        self._accumulators = accumulators
        self._stage_results = dict(stage_results)
        self._manifest = manifest
        self._closed = False

    @property
    def run_id(self) -> str:
        self._check_open()
        return self._ctx.run_id

    def get(self, ref: Union[Collection, OutputTag]) -> List[Any]:
        """Elementos finais da coleção (ordem não especificada)."""
        self._check_open()
        if isinstance(ref, OutputTag):
            collection = self._pipeline.collection_for_tag(ref)
        elif isinstance(ref, Collection) and self._pipeline.owns(ref):
            collection = ref
        else:
            raise UnknownReferenceError(
                message=f"{ref!r} does not belong to the executed pipeline",
                details={"reference": repr(ref)},
                hint="Consulte apenas coleções ou tags do pipeline que foi executado",
            )
        return list(self._ctx.get_dataset(collection.id).elements())

    def get_accumulator(self, name: str, value_type: type) -> Any:
        """
        Valor finalizado do acumulador `name`.

        Raises:
            UnknownAccumulatorError: Nome não registrado no pipeline.
            AccumulatorTypeMismatchError: `value_type` difere do tipo declarado.
            ClosedHandleError: Handle já fechado.
        """
        self._check_open()
        declared = self._accumulators.value_type(name)
        if declared is not value_type:
            raise AccumulatorTypeMismatchError(
                message=f"Accumulator '{name}' holds {declared.__name__}, not {value_type.__name__}",
                details={"name": name, "declared": declared.__name__, "requested": value_type.__name__},
            )
        return self._accumulators.read(name)

    def accumulators(self) -> Dict[str, Any]:
        self._check_open()
        return {name: self._accumulators.read(name) for name in self._accumulators.names()}

    @property
    def stage_results(self) -> Dict[str, StageResult]:
        self._check_open()
        return dict(self._stage_results)

    @property
    def events(self) -> List[Dict[str, Any]]:
        self._check_open()
        return list(self._ctx.events)

    @property
    def manifest(self) -> RunManifest:
        self._check_open()
        return self._manifest

    def close(self) -> None:
        if self._closed:
            return
        self._views.release()
        self._accumulators.release()
        self._ctx.clear_datasets()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "EvaluationResult":
        self._check_open()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ClosedHandleError(
                message="EvaluationResult is closed",
                details={"run_id": self._ctx.run_id},
            )
