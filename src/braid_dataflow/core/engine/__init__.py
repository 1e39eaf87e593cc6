"""
Engine do Braid DataFlow: planejamento, avaliação particionada e Run Handle.

- planner: ordem topológica determinística dos stages
- backend: PartitionedDataset e PartitionExecutor (threads + retry)
- evaluators: avaliação por variante de stage
- engine: Engine / PipelineRunner
- result: EvaluationResult (Run Handle)
"""

from .backend import PartitionedDataset, PartitionExecutor
from .engine import Engine, PipelineRunner
from .planner import CycleDetectedError, UnknownDependencyError, plan_execution
from .result import EvaluationResult
from .types import StageResult, StageStatus

__all__ = [
    "PartitionedDataset",
    "PartitionExecutor",
    "Engine",
    "PipelineRunner",
    "CycleDetectedError",
    "UnknownDependencyError",
    "plan_execution",
    "EvaluationResult",
    "StageResult",
    "StageStatus",
]
