"""
Avaliadores por variante de stage.

Cada avaliador recebe o stage e o `EvaluationState` da run, grava os
datasets de saída no RunContext e devolve as métricas do stage.

Variantes:
    - CREATE: particiona os valores em memória
    - PAR_DO: visita cada elemento uma vez por tentativa de partição e
      demultiplexa as emissões nas tags declaradas; views lidas são
      resolvidas antes da primeira partição (barreira) e acumuladores são
      comitados apenas para tentativas bem-sucedidas
    - UNION: concatena as partições das entradas, sem shuffle
    - COUNT_PER_ELEMENT: pré-contagem por partição, shuffle por hash estável
      da chave codificada, soma por grupo no lado de redução
    - VIEW: materializa e publica a view (memoizada por origem e formato)
    - COMBINE_GLOBALLY: acumulador por partição, merge global, um único valor
"""

from __future__ import annotations

import hashlib
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

from braid_dataflow.core.accumulators import AccumulatorRegistry, active_partition
from braid_dataflow.core.config import EngineOptions
from braid_dataflow.core.context import RunContext
from braid_dataflow.core.graph.fn import OutputEmitter, ProcessContext
from braid_dataflow.core.graph.stages import (
    CombineGloballyStage,
    CountStage,
    CreateStage,
    ParDoStage,
    Stage,
    StageKind,
    UnionStage,
    ViewStage,
)
from braid_dataflow.core.graph.values import KV, Collection
from braid_dataflow.core.views import BroadcastViewManager

from .backend import PartitionedDataset, PartitionExecutor


@dataclass
class EvaluationState:
    """Estado de uma run compartilhado pelos avaliadores."""

    ctx: RunContext
    options: EngineOptions
    executor: PartitionExecutor
    views: BroadcastViewManager
    accumulators: AccumulatorRegistry

    def dataset(self, collection: Collection) -> PartitionedDataset:
        return self.ctx.get_dataset(collection.id)

    def put(self, collection: Collection, dataset: PartitionedDataset) -> None:
        self.ctx.set_dataset(collection.id, dataset)

    def retry_hook(self, stage_id: str) -> Callable[[int, int, BaseException], None]:
        def on_retry(partition: int, attempt: int, exc: BaseException) -> None:
            message = f"partition {partition} attempt {attempt} failed: {exc.__class__.__name__}"
            self.ctx.add_warning(stage_id=stage_id, message=message)
            self.ctx.log(
                stage_id=stage_id,
                level="warning",
                message="partition retry",
                partition=partition,
                attempt=attempt,
                error=str(exc),
            )

        return on_retry


def _stable_bucket(key: bytes, buckets: int) -> int:
    digest = hashlib.sha256(key).digest()
    return int.from_bytes(digest[:8], "big") % buckets


def evaluate_create(stage: CreateStage, state: EvaluationState) -> Dict[str, Any]:
    dataset = PartitionedDataset.from_values(stage.values, state.options.num_partitions)
    state.put(stage.output, dataset)
    return {"elements_out": dataset.count(), "partitions": dataset.num_partitions}


def evaluate_par_do(stage: ParDoStage, state: EvaluationState) -> Dict[str, Any]:
    source = state.dataset(stage.inputs[0])
    side_values = state.views.snapshot(stage.side_inputs)
    fn = stage.fn

    def process_partition(index: int, partition: Sequence[Any]):
        emitter = OutputEmitter(stage.id, stage.main_tag, stage.tags)
        partial = state.accumulators.new_partition()
        with active_partition(partial):
            for element in partition:
                fn.process(ProcessContext(element, emitter, side_values))
        return emitter.buffers, partial

    results = state.executor.map_partitions(
        stage.id,
        source.partitions,
        process_partition,
        on_retry=state.retry_hook(stage.id),
    )

    for _, partial in results:
        state.accumulators.commit(partial)

    elements_out: Dict[str, int] = {}
    for tag in stage.tags:
        output = stage.outputs[tag]
        dataset = PartitionedDataset.from_partitions(buffers[tag] for buffers, _ in results)
        state.put(output, dataset)
        elements_out[output.id] = dataset.count()

    return {
        "elements_in": source.count(),
        "elements_out": elements_out,
        "partitions": source.num_partitions,
        "side_inputs": [view.id for view in stage.side_inputs],
    }


def evaluate_union(stage: UnionStage, state: EvaluationState) -> Dict[str, Any]:
    inputs = [state.dataset(c) for c in stage.inputs]
    dataset = PartitionedDataset.concat(inputs)
    state.put(stage.output, dataset)
    return {
        "elements_in": [d.count() for d in inputs],
        "elements_out": dataset.count(),
        "partitions": dataset.num_partitions,
    }


def evaluate_count(stage: CountStage, state: EvaluationState) -> Dict[str, Any]:
    source = state.dataset(stage.inputs[0])
    codec = stage.inputs[0].codec
    buckets = state.options.num_partitions

    def count_locally(index: int, partition: Sequence[Any]) -> List[Dict[bytes, int]]:
        shards: List[Dict[bytes, int]] = [{} for _ in range(buckets)]
        for key, n in Counter(codec.encode(e) for e in partition).items():
            shards[_stable_bucket(key, buckets)][key] = n
        return shards

    mapped = state.executor.map_partitions(
        stage.id, source.partitions, count_locally, on_retry=state.retry_hook(stage.id)
    )
    shuffled = [[shards[bucket] for shards in mapped] for bucket in range(buckets)]

    def sum_group(index: int, shards: Sequence[Dict[bytes, int]]) -> List[KV]:
        totals: Counter = Counter()
        for shard in shards:
            totals.update(shard)
        return [KV(codec.decode(key), n) for key, n in sorted(totals.items())]

    reduced = state.executor.map_partitions(
        stage.id, shuffled, sum_group, on_retry=state.retry_hook(stage.id)
    )
    dataset = PartitionedDataset.from_partitions(reduced)
    state.put(stage.output, dataset)
    return {
        "elements_in": source.count(),
        "elements_out": dataset.count(),
        "partitions": dataset.num_partitions,
    }


def evaluate_view(stage: ViewStage, state: EvaluationState) -> Dict[str, Any]:
    view = stage.view
    already = state.views.is_materialized(view)
    source = state.dataset(view.source)
    state.views.materialize(view, source.elements(), view.source.codec)
    state.ctx.log(
        stage_id=stage.id,
        level="info",
        message="view reused" if already else "view materialized",
        shape=view.shape.value,
        source=view.source.id,
    )
    return {"shape": view.shape.value, "elements_in": source.count(), "memoized": already}


def evaluate_combine_globally(stage: CombineGloballyStage, state: EvaluationState) -> Dict[str, Any]:
    source = state.dataset(stage.inputs[0])
    combiner = stage.combiner

    def combine_partition(index: int, partition: Sequence[Any]) -> Any:
        acc = combiner.create_accumulator()
        for element in partition:
            acc = combiner.add_input(acc, element)
        return acc

    partials = state.executor.map_partitions(
        stage.id, source.partitions, combine_partition, on_retry=state.retry_hook(stage.id)
    )
    result = combiner.extract_output(combiner.merge_accumulators(partials))
    state.put(stage.output, PartitionedDataset.from_partitions([[result]]))
    return {"elements_in": source.count(), "elements_out": 1, "partitions": source.num_partitions}


EVALUATORS: Dict[StageKind, Callable[[Any, EvaluationState], Dict[str, Any]]] = {
    StageKind.CREATE: evaluate_create,
    StageKind.PAR_DO: evaluate_par_do,
    StageKind.UNION: evaluate_union,
    StageKind.COUNT_PER_ELEMENT: evaluate_count,
    StageKind.VIEW: evaluate_view,
    StageKind.COMBINE_GLOBALLY: evaluate_combine_globally,
}


def evaluate(stage: Stage, state: EvaluationState) -> Dict[str, Any]:
    evaluator = EVALUATORS.get(stage.kind)
    if evaluator is None:
        raise NotImplementedError(f"No evaluator for stage kind {stage.kind!r}")
    return evaluator(stage, state)
