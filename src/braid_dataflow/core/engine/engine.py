"""
Engine de execução do Braid DataFlow.

Fluxo de uma run:
    1. valida o grafo (codecs) e planeja a ordem topológica dos stages
    2. cria o RunContext, o manifest e o estado da run (views, acumuladores)
    3. avalia os stages em ordem; partições de um stage rodam em paralelo
    4. finaliza os acumuladores uma única vez
    5. devolve o Run Handle (EvaluationResult)

Política de falha:
    - exceções de um stage são convertidas em BraidErrorPayload e
      registradas no StageResult e no manifest
    - stages seguintes são marcados SKIPPED
    - recursos da run são liberados e a exceção original é relançada:
      a run completa todos os stages ou falha
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from braid_dataflow._version import __version__
from braid_dataflow.core.config import compute_config_hash, deep_merge, resolve_engine_options
from braid_dataflow.core.config.hashing import compute_graph_hash
from braid_dataflow.core.context import RunContext
from braid_dataflow.core.errors import exception_to_payload
from braid_dataflow.core.graph.pipeline import Pipeline
from braid_dataflow.core.graph.stages import Stage
from braid_dataflow.core.traceability import (
    RunManifest,
    create_manifest,
    run_finished,
    stage_failed,
    stage_finished,
    stage_skipped,
    stage_started,
)
from braid_dataflow.core.views import BroadcastViewManager

from .backend import PartitionExecutor
from .evaluators import EvaluationState, evaluate
from .planner import plan_execution
from .result import EvaluationResult
from .types import StageResult, StageStatus


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Engine:
    """Planner + executor de um Pipeline."""

    def __init__(self, *, pipeline: Pipeline, config: Optional[Dict[str, Any]] = None):
        self.pipeline = pipeline
        self.config: Dict[str, Any] = (
            deep_merge(pipeline.config, config) if config else dict(pipeline.config)
        )
        # estado da última run, mantido também quando a run falha
        self.manifest: Optional[RunManifest] = None
        self.stage_results: Dict[str, StageResult] = {}

    def _summary(self, stage: Stage, metrics: Dict[str, Any]) -> str:
        out = metrics.get("elements_out")
        if isinstance(out, dict):
            out = sum(out.values())
        if out is None:
            return f"{stage.kind.value} evaluated"
        return f"{stage.kind.value} produced {out} element(s)"

    def run(self) -> EvaluationResult:
        self.pipeline.validate()
        ordered = plan_execution(self.pipeline.stages())
        options = resolve_engine_options(self.config)

        started = _now()
        ctx = RunContext(run_id=uuid.uuid4().hex, created_at=started, config=self.config)
        manifest = create_manifest(
            run_id=ctx.run_id,
            started_at=started,
            engine_version=__version__,
            config_hash=compute_config_hash(self.config),
            graph_hash=compute_graph_hash(self.pipeline.describe()),
        )
        ctx.meta.update(manifest.inputs)
        self.manifest = manifest

        state = EvaluationState(
            ctx=ctx,
            options=options,
            executor=PartitionExecutor(options),
            views=BroadcastViewManager(),
            accumulators=self.pipeline.accumulators.fork(),
        )

        results: Dict[str, StageResult] = {}
        self.stage_results = results
        failure: Optional[BaseException] = None

        for stage in ordered:
            sid = stage.id
            if failure is not None:
                stage_skipped(manifest, stage_id=sid, kind=stage.kind.value, ts=_now(), reason="upstream failure")
                results[sid] = StageResult(
                    stage_id=sid,
                    kind=stage.kind,
                    status=StageStatus.SKIPPED,
                    summary="skipped due to failed stage",
                )
                continue

            stage_started(manifest, stage_id=sid, kind=stage.kind.value, ts=_now())
            ctx.log(stage_id=sid, level="info", message="stage started", kind=stage.kind.value)
            try:
                metrics = evaluate(stage, state)
            except Exception as exc:
                error = exception_to_payload(exc)
                stage_failed(manifest, stage_id=sid, ts=_now(), error=error.to_dict())
                ctx.log(stage_id=sid, level="error", message=error.message, error_type=error.type)
                results[sid] = StageResult(
                    stage_id=sid,
                    kind=stage.kind,
                    status=StageStatus.FAILED,
                    summary=error.message,
                    warnings=list(ctx.warnings.get(sid, [])),
                    payload={"error": error.to_dict()},
                )
                failure = exc
                continue

            summary = self._summary(stage, metrics)
            warnings = list(ctx.warnings.get(sid, []))
            stage_finished(manifest, stage_id=sid, ts=_now(), summary=summary, metrics=metrics, warnings=warnings)
            ctx.log(stage_id=sid, level="info", message="stage finished", summary=summary)
            results[sid] = StageResult(
                stage_id=sid,
                kind=stage.kind,
                status=StageStatus.SUCCESS,
                summary=summary,
                metrics=metrics,
                warnings=warnings,
            )

        if failure is not None:
            run_finished(manifest, ts=_now(), status="failed")
            state.views.release()
            state.accumulators.release()
            ctx.clear_datasets()
            raise failure

        values = state.accumulators.finalize()
        ctx.log(stage_id="<run>", level="info", message="accumulators finalized", values=values)
        run_finished(manifest, ts=_now(), status="success", accumulators=values)

        return EvaluationResult(
            pipeline=self.pipeline,
            ctx=ctx,
            views=state.views,
            accumulators=state.accumulators,
            stage_results=results,
            manifest=manifest,
        )


class PipelineRunner:
    """
    Ponto de entrada da execução: `PipelineRunner.create().run(pipeline)`.

    `config` (opcional) é aplicado por deep-merge sobre a configuração do
    pipeline e vale apenas para as runs deste runner.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config

    @classmethod
    def create(cls, config: Optional[Dict[str, Any]] = None) -> "PipelineRunner":
        return cls(config)

    def run(self, pipeline: Pipeline) -> EvaluationResult:
        return Engine(pipeline=pipeline, config=self.config).run()
